import asyncio
import atexit
import logging
import threading
from typing import Callable

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL = 1.0


class Watchdog:
    """
    Runs `check` every `interval` seconds until cancelled.

    Ticks come from a chain of daemon threading.Timer objects. While the
    asyncio loop given to (or running at) `start` is alive, each check is
    handed to that loop with call_soon_threadsafe; once the loop stops or
    closes, checks run on the timer thread instead.
    """

    def __init__(self, check: Callable[[], object], interval: float = DEFAULT_INTERVAL):
        if interval <= 0:
            raise ValueError(f"Watchdog interval must be positive, got {interval}")

        self.check = check
        self.interval = interval
        self._loop: asyncio.AbstractEventLoop | None = None
        self._timer: threading.Timer | None = None
        self._running = False
        self._lock = threading.Lock()

    @property
    def running(self) -> bool:
        return self._running

    def start(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        if loop is None:
            try:
                loop = asyncio.get_running_loop()
            except RuntimeError:
                loop = None

        with self._lock:
            if loop is not None:
                # A later loop takes over from one that has gone away
                self._loop = loop
            if self._running:
                return

            self._running = True
            self._schedule()

        atexit.register(self.cancel)

    def cancel(self) -> None:
        """Stop repairing. Safe to call any number of times."""
        with self._lock:
            self._running = False
            timer, self._timer = self._timer, None
            self._loop = None

        if timer is not None:
            timer.cancel()
        atexit.unregister(self.cancel)

    def _schedule(self) -> None:
        timer = threading.Timer(self.interval, self._tick)
        timer.daemon = True
        timer.name = "eavesdrop-watchdog"
        self._timer = timer
        timer.start()

    def _tick(self) -> None:
        if not self._running:
            return

        loop = self._loop
        if loop is not None and loop.is_running() and not loop.is_closed():
            try:
                loop.call_soon_threadsafe(self._check)
            except RuntimeError:
                # Closed between the test and the call
                self._check()
        else:
            self._check()

        with self._lock:
            if self._running:
                self._schedule()

    def _check(self) -> None:
        if not self._running:
            return

        try:
            self.check()
        except Exception:
            logger.warning("Watchdog check failed", exc_info=True)
