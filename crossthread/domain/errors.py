"""Domain-level error types for thread-affinity violations.

These errors cross layer boundaries unchanged: handlers never catch them, the
continuation dispatcher records them on the failing run and reports them to
its unhandled-exception hook.
"""

from __future__ import annotations

from typing import Optional


class ThreadAffinityError(RuntimeError):
    """UI state was touched from a thread that does not own the UI context."""

    def __init__(
        self,
        message: str,
        *,
        expected: Optional[str] = None,
        actual: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.expected = expected
        self.actual = actual


class BlockingWaitTimeout(TimeoutError):
    """A blocking wait gave up before the awaited operation completed."""

    def __init__(self, message: str, *, timeout_s: Optional[float] = None) -> None:
        super().__init__(message)
        self.timeout_s = timeout_s


class ContextClosedError(RuntimeError):
    """Work was posted to a context that has been shut down."""

    def __init__(self, message: str, *, context: Optional[str] = None) -> None:
        super().__init__(message)
        self.context = context


__all__ = ["BlockingWaitTimeout", "ContextClosedError", "ThreadAffinityError"]
