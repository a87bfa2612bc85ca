from __future__ import annotations

import threading
from typing import List

import pytest

from crossthread.adapters.text_source_mock import StaticTextSource
from crossthread.domain.contexts import UiContext, WorkerContext
from crossthread.domain.errors import BlockingWaitTimeout, ThreadAffinityError
from crossthread.tests.unit.helpers import GatedTextSource, UiThread
from crossthread.usecases.blocking_wait import BlockingWait
from crossthread.usecases.continuation import ContinuationDispatcher
from crossthread.usecases.detached_await import DetachedAwait
from crossthread.usecases.explicit_marshal import ExplicitMarshal
from crossthread.usecases.operations import FAST_RESULT, Operations
from crossthread.viewmodels.text_field_vm import TextFieldVM


class _Harness:
    def __init__(self) -> None:
        self.ui = UiContext("ui")
        self.workers = WorkerContext("worker", max_workers=2)
        self.unhandled: List[BaseException] = []
        self.dispatcher = ContinuationDispatcher(
            self.ui, self.workers, on_unhandled=lambda run, exc: self.unhandled.append(exc)
        )
        self.mutation_threads: List[int] = []
        self.field = TextFieldVM(
            self.ui,
            on_text_changed=lambda _text: self.mutation_threads.append(threading.get_ident()),
        )


@pytest.fixture
def harness():
    h = _Harness()
    yield h
    h.workers.shutdown()


def test_fast_operation_is_already_complete() -> None:
    fut = Operations(StaticTextSource()).fast()

    assert fut.done()
    assert fut.result() == FAST_RESULT == "test"


def test_detached_await_resumes_on_worker_and_ui_write_is_rejected(harness) -> None:
    ops = Operations(StaticTextSource("slow text", delay_s=0.1))
    handler = DetachedAwait(harness.dispatcher, ops, harness.field)

    with UiThread(harness.ui) as ui_thread:
        run = ui_thread.call(handler, harness.ui)
        err = run.exception(timeout=5)

    assert isinstance(err, ThreadAffinityError)
    assert harness.unhandled == [err]
    assert harness.field.text == ""
    assert harness.field.mutations == 0

    fast, slow = run.resumptions
    assert fast.synchronous
    assert fast.context == "ui"
    assert fast.thread_id == harness.ui.owner_thread_id
    assert not slow.synchronous
    assert slow.context == "worker"
    assert slow.thread_id != harness.ui.owner_thread_id


def test_detached_await_without_affinity_check_writes_from_a_worker(harness) -> None:
    ops = Operations(StaticTextSource("slow text", delay_s=0.1))
    handler = DetachedAwait(harness.dispatcher, ops, harness.field, check_affinity=False)

    with UiThread(harness.ui) as ui_thread:
        run = ui_thread.call(handler, harness.ui)
        run.result(timeout=5)

    assert harness.field.text == "slow text"
    assert harness.unhandled == []
    # the write happened, but not on the UI owner thread
    assert harness.field.off_context_writes == 1
    assert harness.field.last_writer.startswith("worker")
    assert harness.mutation_threads == [run.resumptions[-1].thread_id]
    assert harness.mutation_threads[0] != harness.ui.owner_thread_id


def test_blocking_wait_on_ui_deadlocks_when_completion_is_captured(harness) -> None:
    ops = Operations(StaticTextSource("slow text", delay_s=0.2))
    handler = BlockingWait(harness.dispatcher, ops, harness.field, wait_timeout_s=0.6)

    with UiThread(harness.ui) as ui_thread:
        run = ui_thread.call(handler, harness.ui)
        err = run.exception(timeout=5)

    assert isinstance(err, BlockingWaitTimeout)
    assert harness.unhandled == [err]
    assert harness.field.mutations == 0
    fast = run.resumptions[0]
    assert fast.synchronous and fast.context == "ui"


def test_blocking_wait_completes_when_completion_is_not_captured(harness) -> None:
    ops = Operations(StaticTextSource("slow text", delay_s=0.05), capture_completion=False)
    handler = BlockingWait(harness.dispatcher, ops, harness.field, wait_timeout_s=5)

    with UiThread(harness.ui) as ui_thread:
        run = ui_thread.call(handler, harness.ui)
        assert run.done()
        run.result(timeout=0)

    assert harness.field.text == "slow text"
    assert harness.mutation_threads == [harness.ui.owner_thread_id]
    assert [r.synchronous for r in run.resumptions] == [True]


@pytest.mark.parametrize("capture_completion", [True, False])
def test_explicit_marshal_always_writes_on_the_ui_thread(harness, capture_completion) -> None:
    ops = Operations(
        StaticTextSource("slow text", delay_s=0.05), capture_completion=capture_completion
    )
    handler = ExplicitMarshal(harness.dispatcher, ops, harness.field)

    with UiThread(harness.ui) as ui_thread:
        run = ui_thread.call(handler, harness.ui)
        run.result(timeout=5)

    assert harness.field.text == "slow text"
    assert harness.mutation_threads == [harness.ui.owner_thread_id]
    assert harness.unhandled == []

    to_worker, fast, slow, to_ui = run.resumptions
    assert (to_worker.kind, to_worker.context, to_worker.synchronous) == ("switch", "worker", False)
    # fast await continues on whichever thread was running the body
    assert fast.synchronous
    assert fast.thread_id == to_worker.thread_id
    assert slow.context == "worker"
    assert (to_ui.kind, to_ui.context) == ("switch", "ui")
    assert to_ui.thread_id == harness.ui.owner_thread_id


def test_explicit_marshal_keeps_the_ui_thread_free_while_waiting(harness) -> None:
    source = GatedTextSource("late text")
    handler = ExplicitMarshal(harness.dispatcher, Operations(source), harness.field)

    with UiThread(harness.ui) as ui_thread:
        run = ui_thread.call(handler, harness.ui)
        assert source.started.wait(timeout=5)
        assert ui_thread.call(lambda: "responsive") == "responsive"
        assert not run.done()
        source.release()
        run.result(timeout=5)

    assert harness.field.text == "late text"


def test_slow_operation_failure_propagates_to_the_handler(harness) -> None:
    class _Failing:
        def fetch(self) -> str:
            raise ConnectionError("network down")

    handler = ExplicitMarshal(harness.dispatcher, Operations(_Failing()), harness.field)

    with UiThread(harness.ui) as ui_thread:
        run = ui_thread.call(handler, harness.ui)
        err = run.exception(timeout=5)

    assert isinstance(err, ConnectionError)
    assert harness.unhandled == [err]
    assert harness.field.mutations == 0
