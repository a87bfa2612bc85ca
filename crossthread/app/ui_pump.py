"""Drain the UI context from the Tk main loop.

Tk widgets may only be touched from the thread running ``mainloop``. Worker
threads therefore never call Tk; they post callbacks to the ``UiContext``
queue, and this pump runs them from a repeating Tk ``after`` timer.

The app passes Tk ``after`` and ``after_cancel`` callables so the pump can be
driven by a stub in tests.
"""

from __future__ import annotations


from typing import Callable, Optional

from ..domain.contexts import UiContext


ScheduleFn = Callable[[int, Callable[[], None]], str]
CancelFn = Callable[[str], None]


class UiPump:
    """Run queued UI callbacks every ``interval_ms`` on the Tk thread."""

    def __init__(
        self,
        context: UiContext,
        schedule: ScheduleFn,
        cancel: CancelFn,
        *,
        interval_ms: int = 15,
        batch_size: int = 50,
    ) -> None:
        """Store the context and the Tk timer functions.

        Args:
            context: UI context whose queue is drained.
            schedule: Function compatible with ``after(delay_ms, callback)``.
            cancel: Function compatible with ``after_cancel(token)``.
            interval_ms: Delay between two drains.
            batch_size: Maximum callbacks per drain so input stays responsive.
        """
        self._context = context
        self._schedule = schedule
        self._cancel = cancel
        self.interval_ms = max(1, int(interval_ms))
        self.batch_size = max(1, int(batch_size))
        self._token: Optional[str] = None

    @property
    def running(self) -> bool:
        return self._token is not None

    def start(self) -> None:
        """Bind the calling (Tk) thread to the context and arm the timer."""
        self._context.bind_current_thread()
        if self._token is None:
            self._token = self._schedule(self.interval_ms, self._tick)

    def stop(self) -> None:
        token, self._token = self._token, None
        if token is not None:
            self._cancel(token)

    def _tick(self) -> None:
        if self._token is None:
            return
        self._context.pump(max_items=self.batch_size)
        self._token = self._schedule(self.interval_ms, self._tick)


__all__ = ["UiPump"]
