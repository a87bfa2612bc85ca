from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from crossthread.domain.contexts import ExecutionContext
from crossthread.viewmodels.text_field_vm import TextFieldVM

from .continuation import (
    ContinuationDispatcher,
    HandlerRun,
    HandlerScope,
    detached,
    wait_blocking,
)
from .operations import Operations


@dataclass
class BlockingWait:
    """Detached fast wait, then a blocking wait on the slow operation.

    Started on the UI context, the blocking wait keeps the UI thread busy.
    When the slow operation relays its completion through that same context
    the wait never ends; ``wait_timeout_s`` turns the hang into
    ``BlockingWaitTimeout``. When the slow operation completes on a worker,
    the body is still on the UI thread and the write succeeds.
    """

    dispatcher: ContinuationDispatcher
    operations: Operations
    field: TextFieldVM
    wait_timeout_s: Optional[float] = None

    def __call__(self, context: ExecutionContext) -> HandlerRun:
        return self.dispatcher.start(self._body, context=context, name="blocking_wait")

    def _body(self, scope: HandlerScope):
        yield detached(self.operations.fast())
        text = wait_blocking(
            self.operations.slow(scope),
            timeout=self.wait_timeout_s,
            context=scope.context,
        )
        self.field.set_text(text, scope.ui.token())
