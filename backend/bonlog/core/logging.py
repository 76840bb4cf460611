"""
Request correlation and search log records.

Every log line written while serving a request carries the request's
correlation ID, so a search and its fallback can be traced back to the
HTTP call that triggered them.
"""

import uuid
from contextvars import ContextVar
from typing import Optional

from fastapi import Request
from loguru import logger

correlation_id_var: ContextVar[Optional[str]] = ContextVar("correlation_id", default=None)


def get_correlation_id() -> Optional[str]:
    return correlation_id_var.get()


def set_correlation_id(cid: Optional[str] = None) -> str:
    """Bind ``cid`` (or a fresh UUID) to the current request context."""
    cid = cid or str(uuid.uuid4())
    correlation_id_var.set(cid)
    return cid


def log_http_request(request: Request, correlation_id: str) -> None:
    client_ip = request.client.host if request.client else None
    logger.bind(correlation_id=correlation_id, client_ip=client_ip).info(
        f"{request.method} {request.url.path}"
    )


def log_http_response(request: Request, status_code: int, duration_ms: float, correlation_id: str) -> None:
    """Server errors at ERROR, client errors at WARNING, the rest at INFO."""
    if status_code >= 500:
        level = "ERROR"
    elif status_code >= 400:
        level = "WARNING"
    else:
        level = "INFO"
    logger.bind(correlation_id=correlation_id).log(
        level,
        f"{request.method} {request.url.path} -> {status_code} ({duration_ms:.1f} ms)",
    )


def log_search_call(
    target: str,
    mode: str,
    duration_ms: float,
    results: Optional[int] = None,
    fallback: bool = False,
    error: Optional[str] = None,
) -> None:
    """
    Record one search_posts / search_users call.

    Args:
        target: "posts" or "users"
        mode: Mode of the strategy that produced the result (or failed last)
        duration_ms: Wall time including any fallback attempt
        results: Number of ids returned; None when the search failed
        fallback: True when the LIKE fallback produced the result
        error: Error text of the final failure, logged server side only
    """
    record = logger.bind(
        correlation_id=get_correlation_id(),
        search_target=target,
        search_mode=mode,
        fallback=fallback,
        duration_ms=round(duration_ms, 2),
    )
    if error is not None:
        record.error(f"{target} search unavailable after fallback ({mode}): {error}")
    elif fallback:
        record.warning(f"{target} search served by like fallback: {results} results")
    else:
        record.info(f"{target} search ({mode}): {results} results")
