"""Translate handler failures into user-facing UseCaseError instances."""

from __future__ import annotations


from typing import Optional

from crossthread.adapters.api_errors import (
    ApiClientError,
    ApiError,
    ApiServerError,
    ApiTimeoutError,
)
from crossthread.domain.errors import (
    BlockingWaitTimeout,
    ContextClosedError,
    ThreadAffinityError,
)
from crossthread.domain.ports import UseCaseError


def map_handler_error(
    exc: BaseException,
    *,
    default_code: str = "HANDLER_FAILED",
    default_message: Optional[str] = None,
) -> UseCaseError:
    """Map an exception that escaped a handler to a stable UseCaseError code.

    Args:
        exc: Exception recorded on the failed run.
        default_code: Code for exceptions without a dedicated mapping.
        default_message: Message for those; falls back to ``str(exc)``.

    Returns:
        UseCaseError: Value returned to the caller.
    """
    if isinstance(exc, UseCaseError):
        return exc
    if isinstance(exc, ThreadAffinityError):
        return UseCaseError(
            "AFFINITY_VIOLATION",
            "UI updated from a worker thread; the change was rejected.",
        )
    if isinstance(exc, BlockingWaitTimeout):
        return UseCaseError(
            "BLOCKING_WAIT_TIMEOUT",
            "Blocking wait on the UI thread did not complete (deadlock).",
        )
    if isinstance(exc, ContextClosedError):
        return UseCaseError("CONTEXT_CLOSED", "Application is shutting down.")
    if isinstance(exc, ApiTimeoutError):
        return UseCaseError("REQUEST_TIMEOUT", "Request timed out. Check connection.")
    if isinstance(exc, ApiClientError):
        status = exc.status or 0
        label = f"Request failed (HTTP {status})" if status else "Request failed"
        return UseCaseError("REQUEST_FAILED", f"{label}.")
    if isinstance(exc, ApiServerError):
        return UseCaseError("SERVER_ERROR", "Server error, try again.")
    if isinstance(exc, ApiError):
        return UseCaseError("API_ERROR", str(exc))

    message = default_message or str(exc) or "Unexpected error."
    return UseCaseError(default_code, message)


__all__ = ["map_handler_error"]
