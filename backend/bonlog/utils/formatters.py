"""
Data formatting utilities.
"""

from typing import Any, Dict


def format_error_response(error: Exception, status_code: int = 500) -> Dict[str, Any]:
    """
    Format error response for API.

    Args:
        error: Exception object
        status_code: HTTP status code

    Returns:
        Formatted error response dictionary
    """
    response = {
        "error": error.__class__.__name__,
        "detail": getattr(error, "message", None) or str(error),
        "status_code": status_code,
    }

    # Add additional details for custom exceptions
    if getattr(error, "detail", None):
        response["detail"] = error.detail

    if getattr(error, "field", None):
        response["field"] = error.field

    return response


def truncate_query(query: str, max_length: int = 50, suffix: str = "...") -> str:
    """Shorten a search query for log lines."""
    if query is None:
        return ""
    if len(query) <= max_length:
        return query
    return query[:max_length - len(suffix)] + suffix
