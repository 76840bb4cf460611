"""
Utility modules for the BON-LOG search backend.
"""

from .exceptions import (
    BonLogException,
    SearchUnavailableError,
    AuthenticationError,
    AuthorizationError,
    ValidationError,
)

__all__ = [
    "BonLogException",
    "SearchUnavailableError",
    "AuthenticationError",
    "AuthorizationError",
    "ValidationError",
]
