"""Domain package exports for execution contexts and affinity errors."""

from .contexts import (
    ExecutionContext,
    UiContext,
    UiToken,
    WorkerContext,
    current_context,
)
from .errors import BlockingWaitTimeout, ContextClosedError, ThreadAffinityError

__all__ = [
    "BlockingWaitTimeout",
    "ContextClosedError",
    "ExecutionContext",
    "ThreadAffinityError",
    "UiContext",
    "UiToken",
    "WorkerContext",
    "current_context",
]
