from __future__ import annotations

from dataclasses import dataclass

from crossthread.domain.contexts import ExecutionContext
from crossthread.viewmodels.text_field_vm import TextFieldVM

from .continuation import (
    ContinuationDispatcher,
    HandlerRun,
    HandlerScope,
    SwitchTo,
    detached,
)
from .operations import Operations


@dataclass
class ExplicitMarshal:
    """Hop to the worker pool, wait detached, marshal back before the write."""

    dispatcher: ContinuationDispatcher
    operations: Operations
    field: TextFieldVM

    def __call__(self, context: ExecutionContext) -> HandlerRun:
        return self.dispatcher.start(self._body, context=context, name="explicit_marshal")

    def _body(self, scope: HandlerScope):
        yield SwitchTo(scope.workers)
        yield detached(self.operations.fast())
        text = yield detached(self.operations.slow(scope))
        yield SwitchTo(scope.ui)
        self.field.set_text(text, scope.ui.token())
