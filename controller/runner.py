"""
Where remote work runs.

Controllers never call the backend and mutate their state in one step. They
hand a ``work`` callable (remote calls only, no controller state touched) to a
runner together with a ``done(result, error)`` callback; the runner calls
``done`` on the thread that owns the controllers. ``error`` is the PBError the
work raised, or None. Any other exception is a bug and propagates.

``InlineRunner`` does both at once on the calling thread. The GUI uses
``gui.background.BackgroundRunner``, which runs ``work`` on a thread pool and
delivers ``done`` from the Tk main loop.
"""
from __future__ import annotations
from concurrent.futures import Future
from typing import Any, Callable, Optional

from core.exceptions import PBError

Work = Callable[[], Any]
Done = Callable[[Any, Optional[PBError]], None]


def call(then: Optional[Callable[..., None]], *args) -> None:
    """Invoke an optional completion callback."""
    if then is not None:
        then(*args)


def deliver(future: Future, done: Done) -> None:
    """Pass a finished future's outcome to ``done``."""
    error = future.exception()
    if error is None:
        done(future.result(), None)
    elif isinstance(error, PBError):
        done(None, error)
    else:
        raise error


class InlineRunner:
    def submit(self, work: Work, done: Done) -> None:
        try:
            result = work()
        except PBError as e:
            done(None, e)
            return
        done(result, None)
