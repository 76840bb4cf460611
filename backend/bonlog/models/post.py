"""
Post and genre models (read-only mappings of the main application's tables).
"""

from datetime import datetime
from sqlalchemy import Column, String, Text, DateTime, Boolean, Integer, ForeignKey
from sqlalchemy.orm import relationship

from bonlog.core.database import Base


class Post(Base):
    """A user post; ``content`` is the full-text search target."""

    __tablename__ = "posts"

    id = Column(String, primary_key=True)  # cuid, used as the pagination cursor
    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    content = Column(Text, nullable=True)
    is_hidden = Column(Boolean, default=False, nullable=False)  # Hidden by moderation
    hidden_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)

    genres = relationship("PostGenre", back_populates="post", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Post(id={self.id}, user_id={self.user_id})>"


class Genre(Base):
    """Bonsai category (species, tools, events...)."""

    __tablename__ = "genres"

    id = Column(String, primary_key=True)
    name = Column(String, nullable=False)
    category = Column(String, nullable=False)
    type = Column(String, default="post", nullable=False)
    sort_order = Column(Integer, default=0, nullable=False)


class PostGenre(Base):
    """Many-to-many association between posts and genres."""

    __tablename__ = "post_genres"

    post_id = Column(String, ForeignKey("posts.id", ondelete="CASCADE"), primary_key=True)
    genre_id = Column(String, ForeignKey("genres.id", ondelete="CASCADE"), primary_key=True)

    post = relationship("Post", back_populates="genres")
