"""
MainWindowView
---------------
Tkinter main window for the cross-threading sample. This file contains
**only View code**: no HTTP, no threading. It exposes callback hooks that
are connected to the handler use cases by ``crossthread/app/main.py``.

Notes:
- The window provides:
  * Toolbar with one button per handler variant
  * A read-only text display for the slow operation's result
  * StatusBar at the bottom
- Widget methods must be called on the Tk thread; the app reaches them only
  through ``TextFieldVM`` and the UI context.
"""
from __future__ import annotations
import tkinter as tk
from tkinter import ttk
from tkinter.scrolledtext import ScrolledText
from typing import Callable, Optional


class MainWindowView(tk.Tk):
    """Top-level application window (UI-only)."""

    OnVoid = Optional[Callable[[], None]]

    def __init__(
        self,
        *,
        on_detached_await: OnVoid = None,
        on_blocking_wait: OnVoid = None,
        on_explicit_marshal: OnVoid = None,
        on_close: OnVoid = None,
    ) -> None:
        super().__init__()

        self.title("Cross-threading tests")
        self.geometry("720x480")
        self.minsize(480, 320)

        self._on_detached_await = on_detached_await
        self._on_blocking_wait = on_blocking_wait
        self._on_explicit_marshal = on_explicit_marshal
        self._on_close = on_close

        # ---- 3 rows (Toolbar, Text, Status) ----
        self.rowconfigure(1, weight=1)
        self.columnconfigure(0, weight=1)

        self._build_toolbar(self)
        self._build_text_area(self)
        self._build_statusbar(self)

        self.protocol("WM_DELETE_WINDOW", self._handle_close)

    # ------------------------------------------------------------------
    # Toolbar
    # ------------------------------------------------------------------
    def _build_toolbar(self, parent: tk.Widget) -> None:
        toolbar = ttk.Frame(parent)
        toolbar.grid(row=0, column=0, sticky="ew", padx=8, pady=(8, 4))

        ttk.Button(
            toolbar, text="1: Detached await", command=self._on_detached_await
        ).grid(row=0, column=0, padx=(0, 6))
        ttk.Button(
            toolbar, text="2: Blocking wait", command=self._on_blocking_wait
        ).grid(row=0, column=1, padx=6)
        ttk.Button(
            toolbar, text="3: Explicit marshal", command=self._on_explicit_marshal
        ).grid(row=0, column=2, padx=6)

    # ------------------------------------------------------------------
    # Text area
    # ------------------------------------------------------------------
    def _build_text_area(self, parent: tk.Widget) -> None:
        self.text_box = ScrolledText(parent, wrap="word", height=20)
        self.text_box.grid(row=1, column=0, sticky="nsew", padx=8, pady=4)
        self.text_box.configure(state="disabled")

    # ------------------------------------------------------------------
    # StatusBar
    # ------------------------------------------------------------------
    def _build_statusbar(self, parent: tk.Widget) -> None:
        status = ttk.Frame(parent)
        status.grid(row=2, column=0, sticky="ew", padx=8, pady=(4, 8))
        status.columnconfigure(0, weight=1)

        self.status_message_var = tk.StringVar(value="Ready.")
        ttk.Label(status, textvariable=self.status_message_var).grid(row=0, column=0, sticky="w")

    # ------------------------------------------------------------------
    # Public API (called by VMs/presenters)
    # ------------------------------------------------------------------
    def set_text(self, text: str) -> None:
        """Replace the contents of the text display."""
        self.text_box.configure(state="normal")
        self.text_box.delete("1.0", "end")
        self.text_box.insert("1.0", text)
        self.text_box.configure(state="disabled")

    def set_status_message(self, text: str) -> None:
        """Update the short status message shown in the status bar."""
        self.status_message_var.set(text)

    def _handle_close(self) -> None:
        if self._on_close:
            self._on_close()
        self.destroy()
