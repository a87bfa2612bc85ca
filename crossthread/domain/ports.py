from __future__ import annotations
from typing import Protocol


# ---- Error model ----
class UseCaseError(Exception):
    """Base class for use case level errors (user-presentable)."""

    def __init__(self, code: str, message: str):
        super().__init__(message)
        self.code = code
        self.message = message


# ---- Ports (Hexagonal boundaries) ----
class TextSourcePort(Protocol):
    """Blocking producer of the text shown after a slow operation.

    Implementations are called on a worker thread only; they may block on
    network I/O and raise adapter errors on failure.
    """

    def fetch(self) -> str: ...
