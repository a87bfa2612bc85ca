from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

from crossthread.domain.contexts import UiContext, UiToken


class TextFieldVM:
    """State of the single text display; mutable only on its UI context.

    - ``set_text`` must present a ``UiToken`` issued on the owner thread
    - ``set_text_unchecked`` writes from any thread, like a bare control
      property, and records the writer so off-thread writes are visible
    - Notifies the view through ``on_text_changed`` after a mutation
    """

    def __init__(
        self,
        context: UiContext,
        *,
        on_text_changed: Optional[Callable[[str], None]] = None,
    ) -> None:
        self.context = context
        self.on_text_changed = on_text_changed
        self._text = ""
        self.mutations = 0
        self.off_context_writes = 0
        self.last_writer: Optional[str] = None
        self._log = logging.getLogger(__name__)

    @property
    def text(self) -> str:
        return self._text

    def set_text(self, text: str, token: UiToken) -> None:
        token.verify(self.context)
        self._apply(text)

    def set_text_unchecked(self, text: str) -> None:
        """Write without an affinity check; the caller's thread is recorded."""
        if not self.context.is_current():
            self.off_context_writes += 1
            self._log.warning(
                "Text field of %r written from thread %r",
                self.context.name,
                threading.current_thread().name,
            )
        self._apply(text)

    def _apply(self, text: str) -> None:
        self._text = text
        self.mutations += 1
        self.last_writer = threading.current_thread().name
        if self.on_text_changed:
            self.on_text_changed(text)
