from __future__ import annotations

from typing import Any, Optional


class ApiError(RuntimeError):
    """Base class for HTTP adapter failures."""

    def __init__(
        self,
        message: str,
        *,
        status: Optional[int] = None,
        payload: Any = None,
        context: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.status = status
        self.payload = payload
        self.context = context


class ApiClientError(ApiError):
    """HTTP 4xx from the target endpoint."""

    def __init__(
        self,
        message: str,
        *,
        status: int,
        payload: Any = None,
        context: Optional[str] = None,
    ) -> None:
        super().__init__(message, status=status, payload=payload, context=context)


class ApiServerError(ApiError):
    """HTTP 5xx from the target endpoint."""

    def __init__(
        self,
        message: str,
        *,
        status: int,
        payload: Any = None,
        context: Optional[str] = None,
    ) -> None:
        super().__init__(message, status=status, payload=payload, context=context)


class ApiTimeoutError(ApiError):
    """Transport level timeout or connectivity failure."""

    def __init__(
        self,
        message: str,
        *,
        context: Optional[str] = None,
    ) -> None:
        super().__init__(message, context=context)


def parse_error_payload(resp: Any, *, limit: int = 400) -> Optional[str]:
    """Best-effort snippet of an error body without raising."""
    snippet = getattr(resp, "text", "") or ""
    snippet = snippet.strip()
    if not snippet:
        return None
    return snippet[:limit]


def build_error_message(ctx: str, status: int, payload: Any) -> str:
    reason = payload.splitlines()[0].strip() if isinstance(payload, str) else ""
    if reason:
        return f"{ctx}: {reason[:120]} (HTTP {status})"
    return f"{ctx}: HTTP {status}"


__all__ = [
    "ApiClientError",
    "ApiError",
    "ApiServerError",
    "ApiTimeoutError",
    "build_error_message",
    "parse_error_payload",
]
