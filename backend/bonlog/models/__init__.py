"""
Database models for the BON-LOG search backend.
"""

from .user import User
from .post import Post, Genre, PostGenre
from .social import Block, Mute

__all__ = [
    "User",
    "Post",
    "Genre",
    "PostGenre",
    "Block",
    "Mute",
]
