from __future__ import annotations
import logging
import tkinter as tk
from concurrent.futures import Future, ThreadPoolExecutor
from typing import List, Optional, Tuple

from controller.runner import Done, Work, deliver

logger = logging.getLogger(__name__)

POLL_MS = 50
MAX_WORKERS = 4


class BackgroundRunner:
    """Runs remote work on a thread pool; completions are applied from the Tk loop.

    Futures are polled with ``after`` so controller state is only ever
    mutated on the main thread. Work submitted before ``attach`` waits until
    the window exists.
    """
    def __init__(self, max_workers: int = MAX_WORKERS):
        self.pool = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="taskboard")
        self.pending: List[Tuple[Future, Done]] = []
        self.widget = None
        self._after_id: Optional[str] = None

    def attach(self, widget) -> None:
        self.widget = widget
        self._poll()

    def submit(self, work: Work, done: Done) -> None:
        self.pending.append((self.pool.submit(work), done))

    def _poll(self) -> None:
        # reschedule first: a failing callback must not stop delivery
        self._after_id = self.widget.after(POLL_MS, self._poll)
        ready, waiting = [], []
        for item in self.pending:
            (ready if item[0].done() else waiting).append(item)
        # callbacks may submit more work
        self.pending = waiting
        for future, done in ready:
            deliver(future, done)

    def shutdown(self) -> None:
        if self.widget is not None and self._after_id is not None:
            try:
                self.widget.after_cancel(self._after_id)
            except tk.TclError as e:  # window already destroyed
                logger.debug("after_cancel: %s", e)
        self.pool.shutdown(wait=False, cancel_futures=True)
