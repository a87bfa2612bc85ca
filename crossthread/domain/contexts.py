"""Execution context handles for the UI thread and the worker pool.

A context is an explicit handle for "where code runs": callbacks posted to a
context run on a thread that belongs to it. Two kinds exist:

* ``UiContext``: one owner thread; posted callbacks queue up until that thread
  pumps them (from the Tk main loop or from ``run_forever``).
* ``WorkerContext``: a thread pool; posted callbacks run on any pool thread.

UI state is guarded by ``UiToken`` capabilities which can only be obtained on
the UI owner thread.
"""

from __future__ import annotations

import logging
import queue
import threading
from abc import ABC, abstractmethod
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Callable, Optional

from .errors import ContextClosedError, ThreadAffinityError

Callback = Callable[[], None]

_log = logging.getLogger(__name__)
_local = threading.local()


def current_context() -> Optional["ExecutionContext"]:
    """Return the context owning the calling thread (``None`` for foreign threads)."""
    return getattr(_local, "context", None)


def _enter(context: "ExecutionContext") -> None:
    _local.context = context


class ExecutionContext(ABC):
    """Named place where posted callbacks run."""

    def __init__(self, name: str) -> None:
        self.name = name

    @abstractmethod
    def post(self, callback: Callback) -> None:
        """Schedule ``callback`` to run later on this context."""

    def is_current(self) -> bool:
        return current_context() is self

    def _invoke(self, callback: Callback) -> None:
        # Same contract as Tk's report_callback_exception: report and keep
        # the loop alive.
        try:
            callback()
        except Exception:
            _log.exception("Unhandled exception in callback on %s", self.name)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name!r}>"


@dataclass(frozen=True)
class UiToken:
    """Proof that the holder ran on the owner thread of ``context``."""

    context: "UiContext"
    thread_id: int

    def verify(self, context: "UiContext") -> None:
        """Raise ``ThreadAffinityError`` unless valid for ``context`` on this thread."""
        if context is not self.context:
            raise ThreadAffinityError(
                f"Token issued for {self.context.name!r} used for {context.name!r}",
                expected=context.name,
                actual=self.context.name,
            )
        if threading.get_ident() != self.thread_id:
            raise ThreadAffinityError(
                f"Token for {context.name!r} used from thread "
                f"{threading.current_thread().name!r}",
                expected=context.name,
                actual=threading.current_thread().name,
            )


class UiContext(ExecutionContext):
    """Single-threaded context; only its owner thread runs posted callbacks."""

    def __init__(self, name: str = "ui") -> None:
        super().__init__(name)
        self._queue: "queue.Queue[Optional[Callback]]" = queue.Queue()
        self._owner: Optional[int] = None
        self._owner_name: Optional[str] = None
        self._stopped = False

    # ------------------------------------------------------------------
    # Ownership
    # ------------------------------------------------------------------
    @property
    def owner_thread_id(self) -> Optional[int]:
        return self._owner

    @property
    def owner_thread_name(self) -> Optional[str]:
        return self._owner_name

    def bind_current_thread(self) -> None:
        """Make the calling thread the owner of this context.

        Raises:
            ThreadAffinityError: If another thread already owns the context.
        """
        ident = threading.get_ident()
        if self._owner is not None and self._owner != ident:
            raise ThreadAffinityError(
                f"{self.name!r} is already owned by thread {self._owner_name!r}",
                expected=self._owner_name,
                actual=threading.current_thread().name,
            )
        self._owner = ident
        self._owner_name = threading.current_thread().name
        _enter(self)

    def is_current(self) -> bool:
        return self._owner is not None and threading.get_ident() == self._owner

    def token(self) -> UiToken:
        """Return a mutation token; only the owner thread may ask for one."""
        self._require_owner("token()")
        return UiToken(context=self, thread_id=threading.get_ident())

    def _require_owner(self, action: str) -> None:
        if not self.is_current():
            raise ThreadAffinityError(
                f"{action} requires the {self.name!r} thread, called from "
                f"{threading.current_thread().name!r}",
                expected=self._owner_name or self.name,
                actual=threading.current_thread().name,
            )

    # ------------------------------------------------------------------
    # Queue
    # ------------------------------------------------------------------
    def post(self, callback: Callback) -> None:
        self._queue.put(callback)

    def pending(self) -> int:
        """Approximate number of callbacks waiting for the owner thread."""
        return self._queue.qsize()

    def pump(
        self,
        *,
        block: bool = False,
        timeout: Optional[float] = None,
        max_items: Optional[int] = None,
    ) -> int:
        """Run queued callbacks on the owner thread and return how many ran.

        Args:
            block: Wait for the first callback instead of returning at once.
            timeout: Upper bound in seconds for that first wait.
            max_items: Stop after this many callbacks.
        """
        self._require_owner("pump()")
        ran = 0
        while max_items is None or ran < max_items:
            wait = block and ran == 0
            try:
                callback = self._queue.get(block=wait, timeout=timeout if wait else None)
            except queue.Empty:
                break
            if callback is None:
                self._stopped = True
                break
            self._invoke(callback)
            ran += 1
        return ran

    def run_forever(self) -> None:
        """Bind the calling thread and pump until ``stop()`` is requested."""
        self.bind_current_thread()
        self._stopped = False
        _log.debug("UI context %s running on %s", self.name, self._owner_name)
        while not self._stopped:
            self.pump(block=True)
        _log.debug("UI context %s stopped", self.name)

    def stop(self) -> None:
        """Ask ``run_forever`` to return after the callbacks queued so far."""
        self._queue.put(None)


class WorkerContext(ExecutionContext):
    """Thread-pool context; posted callbacks run on any pool thread."""

    def __init__(self, name: str = "worker", max_workers: int = 4) -> None:
        super().__init__(name)
        self._executor = ThreadPoolExecutor(
            max_workers=max(1, int(max_workers)),
            thread_name_prefix=name,
            initializer=_enter,
            initargs=(self,),
        )
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def post(self, callback: Callback) -> None:
        """Queue ``callback`` on the pool.

        Raises:
            ContextClosedError: If ``shutdown()`` was already called.
        """
        self.submit(self._invoke, callback)

    def submit(self, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Future:
        """Run ``fn`` on the pool and return its future."""
        if self._closed:
            raise ContextClosedError(f"{self.name!r} is shut down", context=self.name)
        try:
            return self._executor.submit(fn, *args, **kwargs)
        except RuntimeError as exc:
            # Executor shut down between the flag check and the submit.
            raise ContextClosedError(f"{self.name!r} is shut down", context=self.name) from exc

    def shutdown(self, wait: bool = True) -> None:
        self._closed = True
        self._executor.shutdown(wait=wait)


__all__ = [
    "Callback",
    "ExecutionContext",
    "UiContext",
    "UiToken",
    "WorkerContext",
    "current_context",
]
