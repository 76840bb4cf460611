"""
User model (read-only mapping of the main application's ``users`` table).
"""

from datetime import datetime
from sqlalchemy import Column, String, Text, DateTime, Boolean

from bonlog.core.database import Base


class User(Base):
    """Profile columns the search backend reads."""

    __tablename__ = "users"

    id = Column(String, primary_key=True)  # cuid, sortable by creation
    nickname = Column(String, nullable=False)
    bio = Column(Text, nullable=True)
    avatar_url = Column(String, nullable=True)
    is_public = Column(Boolean, default=True, nullable=False)
    is_suspended = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    def __repr__(self):
        return f"<User(id={self.id}, nickname='{self.nickname}')>"
