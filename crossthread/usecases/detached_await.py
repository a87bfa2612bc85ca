from __future__ import annotations

from dataclasses import dataclass

from crossthread.domain.contexts import ExecutionContext
from crossthread.viewmodels.text_field_vm import TextFieldVM

from .continuation import ContinuationDispatcher, HandlerRun, HandlerScope, detached
from .operations import Operations


@dataclass
class DetachedAwait:
    """Both waits detached, then a direct write to the text field.

    The fast wait is already complete and continues on the caller's thread.
    The slow wait resumes on a worker. With ``check_affinity`` the final write
    asks for a UI token there and fails with ``ThreadAffinityError``; nothing
    here catches it. Without it the write goes through on the worker thread,
    as an unguarded control would allow, and the field records the writer.
    """

    dispatcher: ContinuationDispatcher
    operations: Operations
    field: TextFieldVM
    check_affinity: bool = True

    def __call__(self, context: ExecutionContext) -> HandlerRun:
        return self.dispatcher.start(self._body, context=context, name="detached_await")

    def _body(self, scope: HandlerScope):
        yield detached(self.operations.fast())
        text = yield detached(self.operations.slow(scope))
        if self.check_affinity:
            self.field.set_text(text, scope.ui.token())
        else:
            self.field.set_text_unchecked(text)
