"""Coalesce bursts of repository change signals into single reloads."""

from __future__ import annotations

import threading
import time
from collections.abc import Callable

RELOAD_COALESCE_SECONDS = 0.2


class LiveReloadMonitor:
    """Turn watcher signals into at most one reload per coalescing window.

    ``notify`` may be called from any thread. The first signal after a quiet
    period opens a window; further signals inside it are absorbed. ``tick``
    runs on the event loop and fires ``request_reload`` once the window has
    elapsed.
    """

    def __init__(
        self,
        request_reload: Callable[[], None],
        *,
        coalesce_seconds: float = RELOAD_COALESCE_SECONDS,
        monotonic: Callable[[], float] = time.monotonic,
    ) -> None:
        self._request_reload = request_reload
        self._coalesce_seconds = max(0.0, coalesce_seconds)
        self._monotonic = monotonic
        self._lock = threading.Lock()
        self._deadline: float | None = None

    @property
    def pending(self) -> bool:
        with self._lock:
            return self._deadline is not None

    def notify(self) -> None:
        with self._lock:
            if self._deadline is None:
                self._deadline = self._monotonic() + self._coalesce_seconds

    def tick(self) -> bool:
        """Fire the pending reload if its window has closed. Returns whether it fired."""
        with self._lock:
            if self._deadline is None or self._monotonic() < self._deadline:
                return False
            self._deadline = None
        self._request_reload()
        return True


__all__ = ["RELOAD_COALESCE_SECONDS", "LiveReloadMonitor"]
