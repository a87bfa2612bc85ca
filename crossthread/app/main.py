# crossthread/app/main.py
from __future__ import annotations
import logging
from functools import partial
from typing import Any, Callable, List, Optional

# ---- ViewModels ----
from ..viewmodels.text_field_vm import TextFieldVM

# ---- Contexts, UseCases & Adapters ----
from ..domain.contexts import UiContext, WorkerContext
from ..domain.ports import TextSourcePort
from ..usecases.continuation import ContinuationDispatcher, HandlerRun
from ..usecases.operations import Operations
from ..usecases.detached_await import DetachedAwait
from ..usecases.blocking_wait import BlockingWait
from ..usecases.explicit_marshal import ExplicitMarshal
from ..usecases.error_mapping import map_handler_error
from ..adapters.page_text_rest import PageTextRest
from ..adapters.text_source_mock import StaticTextSource
from .settings import SettingsConfig, settings_from_env
from .ui_pump import UiPump
from ..utils import logging as logging_utils

_LOG_LEVEL = logging_utils.configure_root()


class App:
    """Bootstrap: wire the window, contexts, dispatcher and the three handlers."""

    def __init__(
        self,
        settings: Optional[SettingsConfig] = None,
        *,
        source: Optional[TextSourcePort] = None,
        window_factory: Optional[Callable[..., Any]] = None,
    ) -> None:
        self._log = logging.getLogger(__name__)
        self.settings = settings or settings_from_env()
        self._log.debug("Effective log level: %s", logging_utils.level_name(_LOG_LEVEL))

        if window_factory is None:
            # Tk is imported only when a real window is built.
            from .views.main_window import MainWindowView

            window_factory = MainWindowView

        # Main window with button callback wiring
        self.win = window_factory(
            on_detached_await=self._on_detached_await,
            on_blocking_wait=self._on_blocking_wait,
            on_explicit_marshal=self._on_explicit_marshal,
            on_close=self.shutdown,
        )

        # ---- Execution contexts ----
        self.ui = UiContext("ui")
        self.workers = WorkerContext("worker", max_workers=self.settings.worker_count)
        self.dispatcher = ContinuationDispatcher(
            self.ui, self.workers, on_unhandled=self._on_unhandled
        )
        # Tk thread == UI context owner from here on
        self.pump = UiPump(
            self.ui,
            self.win.after,
            self.win.after_cancel,
            interval_ms=self.settings.ui_pump_interval_ms,
        )
        self.pump.start()

        # ---- ViewModel ----
        self.text_vm = TextFieldVM(self.ui, on_text_changed=self.win.set_text)

        # ---- Operations & UseCases ----
        self._source = source or self._build_source()
        self.operations = Operations(
            self._source, capture_completion=self.settings.capture_completion
        )
        self.uc_detached_await = DetachedAwait(
            self.dispatcher,
            self.operations,
            self.text_vm,
            check_affinity=self.settings.check_ui_affinity,
        )
        self.uc_blocking_wait = BlockingWait(
            self.dispatcher,
            self.operations,
            self.text_vm,
            wait_timeout_s=self.settings.blocking_wait_timeout_s,
        )
        self.uc_explicit_marshal = ExplicitMarshal(self.dispatcher, self.operations, self.text_vm)

        self.runs: List[HandlerRun] = []
        self._closed = False
        self.win.set_status_message("Ready.")

    def _build_source(self) -> TextSourcePort:
        """Offline text when configured, otherwise the live page download."""
        if self.settings.offline_text is not None:
            self._log.info(
                "Offline mode: slow operation returns canned text after %.2fs",
                self.settings.offline_delay_s,
            )
            return StaticTextSource(
                self.settings.offline_text, delay_s=self.settings.offline_delay_s
            )
        return PageTextRest(
            self.settings.target_url,
            request_timeout_s=self.settings.request_timeout_s,
            retries=self.settings.request_retries,
        )

    # ------------------------------------------------------------------
    # Button callbacks (Tk thread)
    # ------------------------------------------------------------------
    def _on_detached_await(self) -> None:
        self._start(self.uc_detached_await)

    def _on_blocking_wait(self) -> None:
        self._start(self.uc_blocking_wait)

    def _on_explicit_marshal(self) -> None:
        self._start(self.uc_explicit_marshal)

    def _start(self, handler: Callable[[UiContext], HandlerRun]) -> HandlerRun:
        self.win.set_status_message("Running...")
        run = handler(self.ui)
        self.runs.append(run)
        self._log.info("%s started (%d runs so far)", run.name, len(self.runs))
        run.future.add_done_callback(lambda _f: self.ui.post(partial(self._on_run_finished, run)))
        return run

    def _on_run_finished(self, run: HandlerRun) -> None:
        if run.exception() is not None:
            return
        self._log.info("%s finished: %d chars", run.name, len(self.text_vm.text))
        self.win.set_status_message(f"{run.name}: done ({len(self.text_vm.text)} chars).")

    def _on_unhandled(self, run: HandlerRun, exc: BaseException) -> None:
        err = map_handler_error(exc)
        self._log.warning("%s failed [%s]: %s", run.name, err.code, err.message)
        self.ui.post(partial(self.win.set_status_message, f"{run.name} failed: {err.message}"))

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def run(self) -> None:
        self.win.mainloop()

    def shutdown(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._log.info("Shutting down (%d runs started)", len(self.runs))
        self.pump.stop()
        # Runs still waiting on a worker resume end with ContextClosedError.
        self.workers.shutdown(wait=False)
        close = getattr(getattr(self._source, "session", None), "close", None)
        if callable(close):
            close()


def main() -> None:
    App().run()


if __name__ == "__main__":
    main()
