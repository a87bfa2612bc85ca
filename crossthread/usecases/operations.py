"""Fast and slow operations awaited by the three button handlers."""

from __future__ import annotations

from concurrent.futures import Future
from dataclasses import dataclass

from crossthread.domain.ports import TextSourcePort

from .continuation import HandlerScope, captured

FAST_RESULT = "test"


def _relay_completion(scope: HandlerScope, io_future: Future):
    # Plain captured await: the result is handed back on the context that
    # started the operation, like a library method that does not detach.
    text = yield captured(io_future)
    return text


@dataclass
class Operations:
    """Factory for the operations a handler waits on.

    Attributes:
        source: Blocking text producer run on the worker pool.
        capture_completion: Relay the slow result through the starting
            context. When False the raw worker future is returned.
        fast_result: Value of the already-completed operation.
    """
    source: TextSourcePort
    capture_completion: bool = True
    fast_result: str = FAST_RESULT

    def fast(self) -> Future:
        """Return an already-resolved future."""
        fut: Future = Future()
        fut.set_result(self.fast_result)
        return fut

    def slow(self, scope: HandlerScope) -> Future:
        """Start the network-bound operation from ``scope.context``."""
        io_future = scope.workers.submit(self.source.fetch)
        if not self.capture_completion:
            return io_future
        run = scope.dispatcher.start(
            _relay_completion,
            io_future,
            context=scope.context,
            name="slow_operation",
            report_errors=False,
        )
        return run.future


__all__ = ["FAST_RESULT", "Operations"]
