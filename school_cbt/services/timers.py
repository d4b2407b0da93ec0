"""
services/timers.py

시험 세션이 소유하는 취소 가능한 반복 타이머.

Runs `callback` every `interval` seconds on a daemon thread until cancelled.
Exceptions raised by the callback are logged and do not stop the timer.
"""

import logging
import threading
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class RepeatingTimer:
    def __init__(self, interval: float, callback: Callable[[], None], name: Optional[str] = None):
        self.interval = interval
        self.callback = callback
        self.name = name or "repeating-timer"
        self._stopped = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def start(self) -> None:
        if self._thread is not None:
            return
        self._thread = threading.Thread(target=self._run, name=self.name, daemon=True)
        self._thread.start()

    def _run(self) -> None:
        while not self._stopped.wait(self.interval):
            try:
                self.callback()
            except Exception:
                logger.exception(f"{self.name}: callback failed")

    def cancel(self) -> None:
        """
        Stop future firings. Does not wait for a firing already in progress,
        so it is safe to call from the callback or while holding the lock the
        callback needs.
        """
        self._stopped.set()

    @property
    def is_active(self) -> bool:
        return self._thread is not None and not self._stopped.is_set()


TimerFactory = Callable[[float, Callable[[], None], str], RepeatingTimer]
