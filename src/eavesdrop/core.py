import asyncio
import logging
import threading
import time
from datetime import UTC, datetime
from types import MappingProxyType
from typing import Any, Callable, Iterable, Mapping

from .ambient import AmbientCapture
from .buffer import EntryBuffer
from .config import EngineConfig, load_config
from .identity import IdGenerator
from .interceptor import Interceptor, Surface, quiet
from .registry import ListenerRegistry, Subscription
from .surfaces import console_surface, logging_surface
from .types import Entry, Level, Listener
from .watchdog import Watchdog

logger = logging.getLogger(__name__)


def default_surfaces(config: EngineConfig) -> list[Surface]:
    surfaces = [console_surface()]
    if config.track_logging:
        surfaces.append(logging_surface())
    return surfaces


class Eavesdropper:
    """
    Eavesdropper is where intercepted calls become entries.
    Entries are kept for late subscribers and passed to all listeners.
    """

    def __init__(
        self,
        config: EngineConfig | None = None,
        surfaces: Iterable[Surface] | None = None,
        *,
        generate_id: Callable[[], str] | None = None,
    ):
        self.config = config or load_config()
        self.buffer = EntryBuffer(self.config.buffer_capacity)
        self.listeners = ListenerRegistry()
        self.ambient = AmbientCapture(self.record)

        if surfaces is None:
            surfaces = default_surfaces(self.config)
        self.interceptors = [
            Interceptor(surface, self.record, capture_stacks=self.config.capture_stacks)
            for surface in surfaces
        ]

        self.watchdog: Watchdog | None = None
        if self.config.watchdog_interval > 0:
            self.watchdog = Watchdog(self.repair, self.config.watchdog_interval)

        self._generate_id = generate_id or IdGenerator()
        self._last_ns = 0
        self._installed = False
        self._lock = threading.Lock()

    @property
    def installed(self) -> bool:
        return self._installed

    def install(self, loop: asyncio.AbstractEventLoop | None = None) -> "Eavesdropper":
        """
        Start capturing. Only the first call installs hooks; later calls
        attach the watchdog and the loop error handler to a new event loop.
        """
        if loop is None:
            try:
                loop = asyncio.get_running_loop()
            except RuntimeError:
                loop = None

        with self._lock:
            first = not self._installed
            self._installed = True

        if not first:
            if loop is not None:
                self._attach(loop)
            return self

        for interceptor in self.interceptors:
            interceptor.install()

        if self.config.capture_ambient:
            self.ambient.install()

        self._attach(loop)

        logger.debug(
            "Capturing %s",
            ", ".join(interceptor.surface.name for interceptor in self.interceptors),
        )
        return self

    def _attach(self, loop: asyncio.AbstractEventLoop | None) -> None:
        if self.config.capture_ambient and loop is not None:
            self.ambient.install_loop(loop)
        if self.watchdog is not None:
            self.watchdog.start(loop)

    def subscribe(self, listener: Listener) -> Subscription:
        """
        Register a listener, replaying buffered entries to it first.
        The first subscription installs interception.
        """
        self.install()
        subscription = self.listeners.add(listener)

        with quiet():
            for entry in self.buffer.snapshot():
                if not subscription.active:
                    break
                try:
                    listener(entry)
                except Exception:
                    logger.debug("Listener %r failed during replay", listener, exc_info=True)

        return subscription

    def record(
        self,
        method: str | None,
        level: Level,
        args: Iterable[Any],
        kwargs: Mapping[str, Any] | None = None,
        stack: str | None = None,
    ) -> Entry:
        """Build an entry and emit it."""
        if level != "error" or not self.config.capture_stacks:
            stack = None

        entry = Entry(
            id=self._generate_id(),
            timestamp=self._now(),
            level=level,
            method=method,
            args=tuple(args),
            kwargs=MappingProxyType(dict(kwargs)) if kwargs else MappingProxyType({}),
            stack=stack,
        )
        self.emit(entry)
        return entry

    def emit(self, entry: Entry) -> None:
        self.buffer.push(entry)
        with quiet():
            self.listeners.emit(entry)

    def snapshot(self) -> tuple[Entry, ...]:
        return self.buffer.snapshot()

    def repair(self) -> list[str]:
        """Re-install every tracked slot someone else has replaced."""
        repaired = []
        for interceptor in self.interceptors:
            if not self._installed:
                break
            for attr in interceptor.repair():
                name = f"{interceptor.surface.name}.{attr}"
                logger.info("Re-installed %s after it was replaced", name)
                repaired.append(name)
        return repaired

    def shutdown(self) -> None:
        """Stop the watchdog, restore hooks and drop all listeners."""
        if self.watchdog is not None:
            self.watchdog.cancel()
        self.ambient.uninstall()
        for interceptor in self.interceptors:
            interceptor.uninstall()
        self.listeners.clear()
        with self._lock:
            self._installed = False

    def _now(self) -> datetime:
        # Never step back, even if the wall clock does
        now_ns = max(time.time_ns(), self._last_ns)
        self._last_ns = now_ns
        return datetime.fromtimestamp(now_ns / 1_000_000_000, tz=UTC)

    def __enter__(self) -> "Eavesdropper":
        return self.install()

    def __exit__(self, *exc_info: object) -> None:
        self.shutdown()


_default: Eavesdropper | None = None
_default_lock = threading.Lock()


def get_eavesdropper() -> Eavesdropper:
    """The process wide instance, created on first use."""
    global _default
    with _default_lock:
        if _default is None:
            _default = Eavesdropper()
        return _default


def subscribe(listener: Listener) -> Subscription:
    return get_eavesdropper().subscribe(listener)


def shutdown() -> None:
    global _default
    with _default_lock:
        engine, _default = _default, None
    if engine is not None:
        engine.shutdown()
