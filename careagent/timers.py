"""
Daemon timer primitives.

Both timers run on daemon threads so a pending deadline or a periodic job
never keeps the host process alive on its own. Components that schedule
work accept a ``timer_factory`` with the same call signature, which lets
tests substitute a manually-fired fake clock.
"""

import logging
import threading
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)


# (interval, callback) -> object with start() and cancel()
TimerFactory = Callable[[float, Callable[[], None]], Any]


class DaemonTimer:
    """One-shot timer that fires ``callback`` once after ``interval`` seconds."""

    def __init__(self, interval: float, callback: Callable[[], None], name: str = "careagent-timer"):
        self.interval = interval
        self._timer = threading.Timer(interval, callback)
        self._timer.daemon = True
        self._timer.name = name

    def start(self) -> None:
        self._timer.start()

    def cancel(self) -> None:
        self._timer.cancel()


class RepeatingTimer:
    """
    Periodic timer that calls ``callback`` every ``interval`` seconds until
    cancelled. The first call happens one interval after ``start()``.

    Exceptions raised by the callback are logged and do not stop the loop.
    """

    def __init__(self, interval: float, callback: Callable[[], None], name: str = "careagent-interval"):
        self.interval = interval
        self._callback = callback
        self._name = name
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def start(self) -> None:
        if self._thread and self._thread.is_alive():
            logger.warning(f"Timer {self._name} already running")
            return

        self._stop.clear()
        self._thread = threading.Thread(target=self._run, daemon=True, name=self._name)
        self._thread.start()

    def cancel(self) -> None:
        self._stop.set()

    @property
    def is_running(self) -> bool:
        return bool(self._thread and self._thread.is_alive() and not self._stop.is_set())

    def _run(self) -> None:
        while not self._stop.wait(timeout=self.interval):
            try:
                self._callback()
            except Exception as e:
                logger.error(f"Scheduled job {self._name} failed: {e}")
