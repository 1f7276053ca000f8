from __future__ import annotations
import logging
import tkinter as tk
from typing import Optional

logger = logging.getLogger(__name__)

TOAST_MS = 4000
COLORS = {"success": "#15803D", "error": "#B00020", "info": "#1D4ED8"}


class Toaster:
    """Transient user-facing notices.

    Controllers get this as their ``notify(level, message)`` callable before
    any window exists; notices are logged until a label is attached.
    """
    def __init__(self):
        self.label: Optional[tk.Label] = None
        self._after_id = None

    def attach(self, label: tk.Label) -> None:
        self.label = label

    def __call__(self, level: str, message: str) -> None:
        logger.debug("toast [%s] %s", level, message)
        if self.label is None or not self.label.winfo_exists():
            return
        self.label.configure(text=message, fg=COLORS.get(level, "#111111"))
        if self._after_id is not None:
            self.label.after_cancel(self._after_id)
        self._after_id = self.label.after(TOAST_MS, self._clear)

    def _clear(self) -> None:
        self._after_id = None
        if self.label is not None and self.label.winfo_exists():
            self.label.configure(text="")
