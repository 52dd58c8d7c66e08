"""Countdown: Wall-clock time limit tracking and a cancellable repeating tick."""

import logging
import threading
import time
from typing import Callable, Optional

logger = logging.getLogger(__name__)

BAND_NORMAL = "normal"
BAND_WARNING = "warning"
BAND_CRITICAL = "critical"

DEFAULT_TIME_LIMIT = 30 * 60
DEFAULT_WARNING_THRESHOLD = 5 * 60
DEFAULT_CRITICAL_THRESHOLD = 60


class Countdown:
    """
    Derives remaining time from a start timestamp and a fixed limit.
    Remaining time is always recomputed from the clock, so a suspended
    process catches up on its next tick. Expiry is latched and reported once.
    """

    def __init__(self, time_limit: float, start_time: float,
                 on_expire: Optional[Callable] = None,
                 clock: Callable[[], float] = time.time,
                 warning_threshold: float = DEFAULT_WARNING_THRESHOLD,
                 critical_threshold: float = DEFAULT_CRITICAL_THRESHOLD):
        self.time_limit = time_limit
        self.start_time = start_time
        self.warning_threshold = warning_threshold
        self.critical_threshold = critical_threshold
        self._on_expire = on_expire
        self._clock = clock
        self._expired = False

    @property
    def expired(self) -> bool:
        return self._expired

    def remaining(self) -> float:
        return max(0.0, self.time_limit - (self._clock() - self.start_time))

    def band(self, remaining: Optional[float] = None) -> str:
        if remaining is None:
            remaining = self.remaining()
        if remaining <= self.critical_threshold:
            return BAND_CRITICAL
        if remaining <= self.warning_threshold:
            return BAND_WARNING
        return BAND_NORMAL

    def tick(self) -> float:
        """Recompute remaining time and fire the expiry callback the first time it hits zero."""
        remaining = self.remaining()
        if remaining <= 0 and not self._expired:
            self._expired = True
            logger.info("Time limit reached.")
            if self._on_expire:
                self._on_expire()
        return remaining


class RepeatingTimer:
    """
    Calls a callback every `interval` seconds on a background thread until cancelled.
    Usable as a context manager; leaving the block cancels the timer.
    """

    def __init__(self, interval: float, callback: Callable, name: str = "countdown-tick"):
        self.interval = interval
        self._callback = callback
        self._name = name
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def is_active(self) -> bool:
        return self._thread is not None and self._thread.is_alive() and not self._stop_event.is_set()

    def start(self):
        if self._thread is not None:
            raise RuntimeError("RepeatingTimer can only be started once")
        self._thread = threading.Thread(target=self._run, name=self._name, daemon=True)
        self._thread.start()

    def _run(self):
        while not self._stop_event.wait(self.interval):
            try:
                self._callback()
            except Exception as e:
                logger.error(f"Timer callback failed: {e}")

    def cancel(self):
        """Stop ticking. Safe to call repeatedly and from inside the callback."""
        self._stop_event.set()

    def join(self, timeout: Optional[float] = None):
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.cancel()
        self.join()
        return False
