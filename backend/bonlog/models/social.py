"""
Block and mute relations, used to hide authors from a viewer's search results.
"""

from datetime import datetime
from sqlalchemy import Column, String, DateTime, ForeignKey

from bonlog.core.database import Base


class Block(Base):
    __tablename__ = "blocks"

    blocker_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    blocked_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class Mute(Base):
    __tablename__ = "mutes"

    muter_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    muted_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
