"""Continuation dispatcher: decides where a handler resumes after each wait.

Handler bodies are generators. Every ``yield`` is a wait point and names the
thing being waited for:

* ``Await(future, policy)``: suspend until ``future`` completes. With
  ``ContinuationPolicy.CAPTURE`` the body resumes on the context that was
  running it; with ``ContinuationPolicy.DETACH`` it resumes on the worker
  pool. A future that is already done never suspends: the body continues
  synchronously on the calling context whatever the policy.
* ``SwitchTo(context)``: marshal the rest of the body onto ``context``.
  Continues synchronously when ``context`` is already current.

The value sent back into the generator is the future's result; a failed
future is thrown into the body at the wait point.

``wait_blocking`` is the other primitive: it never suspends and occupies the
calling thread until the future completes. Calling it on the UI context while
the future's completion has to be processed by that same context never
returns.

When the context a body should resume on has been shut down, the run ends
with ``ContextClosedError`` and is not reported as unhandled.

Call context:
    ``DetachedAwait``, ``BlockingWait`` and ``ExplicitMarshal`` start their
    bodies through ``ContinuationDispatcher.start`` from the UI thread.
"""

from __future__ import annotations

import inspect
import logging
import threading
from concurrent.futures import CancelledError, Future
from concurrent.futures import TimeoutError as FutureTimeout
from dataclasses import dataclass, field
from enum import Enum
from functools import partial
from typing import Any, Callable, Generator, List, Optional, Tuple

from crossthread.domain.contexts import ExecutionContext, UiContext, WorkerContext
from crossthread.domain.errors import (
    BlockingWaitTimeout,
    ContextClosedError,
    ThreadAffinityError,
)


class ContinuationPolicy(str, Enum):
    """Where a suspended body resumes."""

    CAPTURE = "capture"
    DETACH = "detach"


@dataclass(frozen=True)
class Await:
    future: Future
    policy: ContinuationPolicy = ContinuationPolicy.CAPTURE


@dataclass(frozen=True)
class SwitchTo:
    context: ExecutionContext


def captured(future: Future) -> Await:
    """Wait for ``future`` and resume on the context that awaited it."""
    return Await(future, ContinuationPolicy.CAPTURE)


def detached(future: Future) -> Await:
    """Wait for ``future`` and resume on any worker thread."""
    return Await(future, ContinuationPolicy.DETACH)


@dataclass(frozen=True)
class Resumption:
    """Where and how a body continued after one wait point.

    Attributes:
        kind: ``"await"`` or ``"switch"``.
        policy: Continuation policy of an await; ``None`` for switches.
        synchronous: True if the body never left the calling thread.
        context: Name of the context that resumed the body.
        thread_id: ``threading.get_ident()`` of the resuming thread.
        thread_name: Name of the resuming thread.
    """
    kind: str
    policy: Optional[ContinuationPolicy]
    synchronous: bool
    context: str
    thread_id: int
    thread_name: str


class HandlerScope:
    """Explicit handle passed to a handler body.

    ``context`` always names the context currently running the body; the
    dispatcher updates it on every resumption.
    """

    def __init__(self, dispatcher: "ContinuationDispatcher", context: ExecutionContext) -> None:
        self.dispatcher = dispatcher
        self.context = context

    @property
    def ui(self) -> UiContext:
        return self.dispatcher.ui

    @property
    def workers(self) -> WorkerContext:
        return self.dispatcher.workers


@dataclass
class HandlerRun:
    """Progress record for one started handler body.

    Attributes:
        name: Label used in logs.
        future: Completes with the body's return value or escaped exception.
        resumptions: One entry per wait point, in order.
        report_errors: False when a caller observes ``future`` itself, so an
            escaped exception is not an unhandled failure.
    """

    name: str
    future: Future = field(default_factory=Future)
    resumptions: List[Resumption] = field(default_factory=list)
    report_errors: bool = True

    def done(self) -> bool:
        return self.future.done()

    def result(self, timeout: Optional[float] = None) -> Any:
        return self.future.result(timeout=timeout)

    def exception(self, timeout: Optional[float] = None) -> Optional[BaseException]:
        return self.future.exception(timeout=timeout)


HandlerBody = Callable[..., Generator[Any, Any, Any]]
UnhandledHook = Callable[[HandlerRun, BaseException], None]


class ContinuationDispatcher:
    """Drive handler bodies across the UI context and the worker pool."""

    def __init__(
        self,
        ui: UiContext,
        workers: WorkerContext,
        *,
        on_unhandled: Optional[UnhandledHook] = None,
    ) -> None:
        """Store the two contexts and the unhandled-exception hook.

        Args:
            ui: UI-owning context.
            workers: Worker pool used for detached resumptions.
            on_unhandled: Called with the run and the exception that escaped a
                body. Failures are always logged first.
        """
        self.ui = ui
        self.workers = workers
        self.on_unhandled = on_unhandled
        self._log = logging.getLogger(__name__)

    def start(
        self,
        body: HandlerBody,
        *args: Any,
        context: ExecutionContext,
        name: Optional[str] = None,
        report_errors: bool = True,
    ) -> HandlerRun:
        """Run ``body(scope, *args)`` on ``context`` until its first suspension.

        Args:
            body: Generator function whose first parameter is a ``HandlerScope``.
            context: Context of the caller; must be current.
            name: Label for logs and the returned run.
            report_errors: Report an escaped exception as unhandled. Pass
                False for nested operations whose future is awaited.

        Returns:
            ``HandlerRun`` whose future completes with the body's return value
            or the exception that escaped it.

        Raises:
            ThreadAffinityError: If ``context`` is not the calling context.
            TypeError: If ``body`` is not a generator function.
        """
        if not context.is_current():
            raise ThreadAffinityError(
                f"start() called for {context.name!r} from "
                f"{threading.current_thread().name!r}",
                expected=context.name,
                actual=threading.current_thread().name,
            )
        scope = HandlerScope(self, context)
        gen = body(scope, *args)
        if not inspect.isgenerator(gen):
            raise TypeError(f"{body!r} is not a generator function")
        run = HandlerRun(
            name=name or getattr(body, "__name__", "handler"),
            report_errors=report_errors,
        )
        self._log.debug("%s: started on %s", run.name, context.name)
        self._advance(run, gen, scope, context, None, None)
        return run

    # ------------------------------------------------------------------
    # Stepping
    # ------------------------------------------------------------------
    def _advance(
        self,
        run: HandlerRun,
        gen: Generator[Any, Any, Any],
        scope: HandlerScope,
        context: ExecutionContext,
        value: Any,
        error: Optional[BaseException],
    ) -> None:
        scope.context = context
        while True:
            try:
                if error is not None:
                    instruction = gen.throw(error)
                else:
                    instruction = gen.send(value)
            except StopIteration as stop:
                self._log.debug("%s: completed on %s", run.name, context.name)
                run.future.set_result(stop.value)
                return
            except Exception as exc:
                # Report first so the hook has run once the future is done.
                try:
                    self._report(run, exc)
                finally:
                    run.future.set_exception(exc)
                return
            value, error = None, None

            if isinstance(instruction, Future):
                instruction = captured(instruction)

            if isinstance(instruction, SwitchTo):
                target = instruction.context
                if target.is_current():
                    self._record(run, "switch", None, True, target)
                    continue
                self._log.debug("%s: marshaling to %s", run.name, target.name)
                self._post(run, gen, target, partial(self._resume_switch, run, gen, scope, target))
                return

            if isinstance(instruction, Await):
                fut = instruction.future
                if fut.done():
                    value, error = _outcome(fut)
                    self._record(run, "await", instruction.policy, True, context)
                    continue
                if instruction.policy is ContinuationPolicy.CAPTURE:
                    target = context
                else:
                    target = self.workers
                fut.add_done_callback(
                    partial(self._on_done, run, gen, scope, target, instruction.policy)
                )
                return

            error = TypeError(f"{run.name} yielded unsupported wait {instruction!r}")

    def _on_done(
        self,
        run: HandlerRun,
        gen: Generator[Any, Any, Any],
        scope: HandlerScope,
        target: ExecutionContext,
        policy: ContinuationPolicy,
        fut: Future,
    ) -> None:
        self._post(
            run, gen, target, partial(self._resume_await, run, gen, scope, target, policy, fut)
        )

    def _post(
        self,
        run: HandlerRun,
        gen: Generator[Any, Any, Any],
        target: ExecutionContext,
        callback: Callable[[], None],
    ) -> None:
        try:
            target.post(callback)
        except ContextClosedError as exc:
            # Shutdown, not a handler bug: the run ends without the hook.
            self._log.info("%s: abandoned, %s is shut down", run.name, target.name)
            gen.close()
            run.future.set_exception(exc)

    def _resume_await(
        self,
        run: HandlerRun,
        gen: Generator[Any, Any, Any],
        scope: HandlerScope,
        target: ExecutionContext,
        policy: ContinuationPolicy,
        fut: Future,
    ) -> None:
        value, error = _outcome(fut)
        self._record(run, "await", policy, False, target)
        self._advance(run, gen, scope, target, value, error)

    def _resume_switch(
        self,
        run: HandlerRun,
        gen: Generator[Any, Any, Any],
        scope: HandlerScope,
        target: ExecutionContext,
    ) -> None:
        self._record(run, "switch", None, False, target)
        self._advance(run, gen, scope, target, None, None)

    def _record(
        self,
        run: HandlerRun,
        kind: str,
        policy: Optional[ContinuationPolicy],
        synchronous: bool,
        context: ExecutionContext,
    ) -> None:
        thread = threading.current_thread()
        run.resumptions.append(
            Resumption(
                kind=kind,
                policy=policy,
                synchronous=synchronous,
                context=context.name,
                thread_id=threading.get_ident(),
                thread_name=thread.name,
            )
        )
        self._log.debug(
            "%s: %s%s resumed %s on %s (%s)",
            run.name,
            kind,
            f"[{policy.value}]" if policy else "",
            "synchronously" if synchronous else "asynchronously",
            context.name,
            thread.name,
        )

    def _report(self, run: HandlerRun, exc: BaseException) -> None:
        if not run.report_errors:
            self._log.debug("%s: failed with %r", run.name, exc)
            return
        self._log.error(
            "Unhandled exception in %s on %s",
            run.name,
            threading.current_thread().name,
            exc_info=exc,
        )
        if self.on_unhandled is not None:
            self.on_unhandled(run, exc)


def _outcome(fut: Future) -> Tuple[Any, Optional[BaseException]]:
    if fut.cancelled():
        return None, CancelledError()
    exc = fut.exception()
    if exc is not None:
        return None, exc
    return fut.result(), None


def wait_blocking(
    future: Future,
    *,
    timeout: Optional[float] = None,
    context: Optional[ExecutionContext] = None,
) -> Any:
    """Block the calling thread until ``future`` completes and return its result.

    This does not suspend: the calling context stays occupied for the whole
    wait. If ``context`` is a single-threaded UI context and the future can
    only complete after that context runs a posted callback, the wait never
    ends. ``timeout`` turns that hang into ``BlockingWaitTimeout``.

    Args:
        future: Future to wait for.
        timeout: Seconds to wait; ``None`` waits forever.
        context: Context of the caller, used to flag waits on the UI thread.

    Raises:
        BlockingWaitTimeout: If ``timeout`` elapses first.
        Exception: Whatever the future failed with.
    """
    if isinstance(context, UiContext) and context.is_current():
        logging.getLogger(__name__).warning(
            "Blocking wait on %s; callbacks posted to it cannot run until the wait ends",
            context.name,
        )
    try:
        return future.result(timeout=timeout)
    except FutureTimeout as exc:
        if future.done():
            raise
        raise BlockingWaitTimeout(
            f"Blocking wait gave up after {timeout}s", timeout_s=timeout
        ) from exc


__all__ = [
    "Await",
    "ContinuationDispatcher",
    "ContinuationPolicy",
    "HandlerRun",
    "HandlerScope",
    "Resumption",
    "SwitchTo",
    "captured",
    "detached",
    "wait_blocking",
]
