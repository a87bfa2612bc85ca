from __future__ import annotations

import threading
import time
from concurrent.futures import Future
from typing import Any, Callable, Dict, List, Optional

from crossthread.domain.contexts import UiContext


class UiThread:
    """Headless stand-in for the Tk main loop: a thread pumping a UiContext."""

    def __init__(self, context: UiContext, name: str = "ui-thread") -> None:
        self.context = context
        self._thread = threading.Thread(target=context.run_forever, name=name, daemon=True)

    def __enter__(self) -> "UiThread":
        self._thread.start()
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.context.stop()
        self._thread.join(timeout=5)

    def call(self, fn: Callable[..., Any], *args: Any, timeout: float = 5.0) -> Any:
        """Run ``fn(*args)`` on the UI thread and return its result."""
        fut: Future = Future()

        def _run() -> None:
            try:
                fut.set_result(fn(*args))
            except Exception as exc:
                fut.set_exception(exc)

        self.context.post(_run)
        return fut.result(timeout=timeout)


class GatedTextSource:
    """Text source whose fetch blocks until ``release()`` is called."""

    def __init__(self, text: str = "gated") -> None:
        self.text = text
        self._gate = threading.Event()
        self.started = threading.Event()

    def release(self) -> None:
        self._gate.set()

    def fetch(self) -> str:
        self.started.set()
        if not self._gate.wait(timeout=5):
            raise RuntimeError("gate never released")
        return self.text


class WinStub:
    def __init__(self, **callbacks: Optional[Callable[[], None]]) -> None:
        self.callbacks: Dict[str, Optional[Callable[[], None]]] = dict(callbacks)
        self.after_calls: List[tuple[int, object]] = []
        self.after_cancelled: List[object] = []
        self.texts: List[str] = []
        self.status: List[str] = []

    def after(self, delay: int, callback) -> str:
        token = f"after-{len(self.after_calls)+1}"
        self.after_calls.append((delay, callback))
        return token

    def after_cancel(self, token: object) -> None:
        self.after_cancelled.append(token)

    def set_text(self, text: str) -> None:
        self.texts.append(text)

    def set_status_message(self, text: str) -> None:
        self.status.append(text)

    def click(self, name: str) -> None:
        callback = self.callbacks[name]
        assert callback is not None
        callback()


def pump_until(context: UiContext, predicate: Callable[[], bool], timeout: float = 5.0) -> None:
    """Pump ``context`` on the calling (owner) thread until ``predicate`` holds."""
    deadline = time.monotonic() + timeout
    while not predicate():
        if time.monotonic() > deadline:
            raise AssertionError("condition not met before timeout")
        context.pump(block=True, timeout=0.02)


__all__ = ["GatedTextSource", "UiThread", "WinStub", "pump_until"]
