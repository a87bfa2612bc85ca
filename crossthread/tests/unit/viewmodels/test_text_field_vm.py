from __future__ import annotations

import threading

import pytest

from crossthread.domain.contexts import UiContext, WorkerContext
from crossthread.domain.errors import ThreadAffinityError
from crossthread.viewmodels.text_field_vm import TextFieldVM


def test_set_text_with_owner_token_updates_state_and_view() -> None:
    ui = UiContext("ui")
    ui.bind_current_thread()
    rendered = []
    vm = TextFieldVM(ui, on_text_changed=rendered.append)

    vm.set_text("hello", ui.token())

    assert vm.text == "hello"
    assert vm.mutations == 1
    assert rendered == ["hello"]


def test_set_text_rejects_token_of_another_context() -> None:
    ui = UiContext("ui")
    other = UiContext("other")
    ui.bind_current_thread()
    other.bind_current_thread()
    vm = TextFieldVM(ui)

    with pytest.raises(ThreadAffinityError):
        vm.set_text("nope", other.token())
    assert vm.text == ""


def test_set_text_rejects_token_carried_to_a_worker() -> None:
    ui = UiContext("ui")
    ui.bind_current_thread()
    vm = TextFieldVM(ui)
    token = ui.token()
    workers = WorkerContext("worker", max_workers=1)
    try:
        err = workers.submit(vm.set_text, "from worker", token).exception(timeout=5)
    finally:
        workers.shutdown()

    assert isinstance(err, ThreadAffinityError)
    assert vm.mutations == 0


def test_unchecked_write_on_owner_is_not_flagged() -> None:
    ui = UiContext("ui")
    ui.bind_current_thread()
    vm = TextFieldVM(ui)

    vm.set_text_unchecked("hello")

    assert vm.text == "hello"
    assert vm.off_context_writes == 0
    assert vm.last_writer == threading.current_thread().name


def test_unchecked_write_from_worker_is_applied_and_recorded() -> None:
    ui = UiContext("ui")
    ui.bind_current_thread()
    rendered = []
    vm = TextFieldVM(ui, on_text_changed=rendered.append)
    workers = WorkerContext("worker", max_workers=1)
    try:
        workers.submit(vm.set_text_unchecked, "from worker").result(timeout=5)
    finally:
        workers.shutdown()

    assert vm.text == "from worker"
    assert rendered == ["from worker"]
    assert vm.off_context_writes == 1
    assert vm.last_writer == "worker_0"
