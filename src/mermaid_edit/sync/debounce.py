"""Trailing-edge debounce on a threading.Timer."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable

logger = logging.getLogger(__name__)


class Debouncer:
    """Run ``callback`` once, ``delay`` seconds after the last ``schedule()``.

    Every ``schedule()`` cancels the pending timer and starts a new one.
    ``flush()`` runs a pending callback now, on the caller's thread.
    """

    def __init__(self, delay: float, callback: Callable[[], None]) -> None:
        self.delay = delay
        self._callback = callback
        self._lock = threading.Lock()
        self._timer: threading.Timer | None = None

    @property
    def pending(self) -> bool:
        with self._lock:
            return self._timer is not None

    def schedule(self) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            timer = threading.Timer(self.delay, self._fire)
            timer.daemon = True
            self._timer = timer
            timer.start()

    def cancel(self) -> bool:
        """Drop the pending call; returns whether one was pending."""
        with self._lock:
            timer, self._timer = self._timer, None
        if timer is None:
            return False
        timer.cancel()
        return True

    def flush(self) -> bool:
        """Run the pending call immediately; returns whether one was pending."""
        if not self.cancel():
            return False
        self._callback()
        return True

    def _fire(self) -> None:
        with self._lock:
            if self._timer is None or threading.current_thread() is not self._timer:
                return
            self._timer = None
        try:
            self._callback()
        except Exception:
            # Nobody on the timer thread can handle it.
            logger.warning("debounced callback raised", exc_info=True)
