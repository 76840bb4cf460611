"""
Custom exception classes for the BON-LOG search backend.
"""

from typing import Optional


class BonLogException(Exception):
    """Base exception for all BON-LOG search errors."""

    def __init__(self, message: str, detail: Optional[str] = None):
        self.message = message
        self.detail = detail
        super().__init__(self.message)


class SearchUnavailableError(BonLogException):
    """Raised when a search failed with both the configured and the fallback strategy."""

    def __init__(self, target: str):
        # No driver text here: the message is returned to API clients as is
        super().__init__(f"Search unavailable: {target} search failed after fallback")
        self.target = target


class AuthenticationError(BonLogException):
    """Raised when authentication fails."""

    def __init__(self, message: str = "Authentication failed", detail: Optional[str] = None):
        super().__init__(message, detail)


class AuthorizationError(BonLogException):
    """Raised when an authenticated caller lacks the required role."""

    def __init__(self, message: str = "Admin privileges required", detail: Optional[str] = None):
        super().__init__(message, detail)


class ValidationError(BonLogException):
    """Raised when input validation fails."""

    def __init__(self, message: str, field: Optional[str] = None, detail: Optional[str] = None):
        if field:
            message = f"Validation error for field '{field}': {message}"
        super().__init__(message, detail)
        self.field = field
