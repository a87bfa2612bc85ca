from __future__ import annotations
import time
from crossthread.domain.ports import TextSourcePort


class StaticTextSource(TextSourcePort):
    """In-memory text source used for tests and offline development."""

    def __init__(self, text: str = "offline", delay_s: float = 0.0) -> None:
        self.text = text
        self.delay_s = delay_s
        self.calls = 0

    def fetch(self) -> str:
        self.calls += 1
        if self.delay_s > 0:
            # Stand-in for the network round trip.
            time.sleep(self.delay_s)
        return self.text
