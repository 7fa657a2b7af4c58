"""Single-shot delivery of an Outcome to the caller."""

from __future__ import annotations

import asyncio
import threading
from typing import Callable

from .exceptions import RequestStateError
from .models import Outcome

CompletionCallback = Callable[[Outcome], None]


class CompletionDispatcher:
    """Deliver exactly one Outcome to ``callback``.

    ``dispatch`` may be called from any thread. Without a loop the callback
    runs inline on the calling thread; with a loop it is scheduled there via
    ``call_soon_threadsafe``.
    """

    def __init__(self, callback: CompletionCallback, *, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._callback = callback
        self._loop = loop
        self._lock = threading.Lock()
        self._delivered = False

    @property
    def delivered(self) -> bool:
        return self._delivered

    def dispatch(self, outcome: Outcome) -> None:
        with self._lock:
            if self._delivered:
                raise RequestStateError("Completion was already delivered for this send")
            self._delivered = True

        if self._loop is not None:
            self._loop.call_soon_threadsafe(self._callback, outcome)
            return
        self._callback(outcome)
