import functools
import logging
import threading
import traceback
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import Any, Callable, Iterator, Mapping

from .types import Level

logger = logging.getLogger(__name__)

# Set while an intercepted call or a delivery is in progress on this context.
# Calls made from inside (listeners, originals chaining to other tracked
# functions) reach their originals but are not recorded again.
_quiet: ContextVar[bool] = ContextVar("eavesdrop_quiet", default=False)


@contextmanager
def quiet() -> Iterator[None]:
    token = _quiet.set(True)
    try:
        yield
    finally:
        _quiet.reset(token)


LEVEL_BY_NAME: dict[str, Level] = {
    "error": "error",
    "warn": "warn",
    "info": "info",
    "debug": "debug",
}


def level_for(method: str) -> Level:
    """Severity bucket for a method name; anything unknown is plain log."""
    return LEVEL_BY_NAME.get(method, "log")


def level_for_number(number: int) -> Level:
    """Severity bucket for a stdlib logging level number."""
    if number >= logging.ERROR:
        return "error"
    if number >= logging.WARNING:
        return "warn"
    if number >= logging.INFO:
        return "info"
    return "debug"


@dataclass(frozen=True, slots=True)
class Slot:
    """A tracked attribute on a surface and the entry it produces."""

    attr: str
    method: str
    level: Level
    assertion: bool = False
    # Take the level from a numeric first argument, as logging.log does
    numeric_level: bool = False


@dataclass(frozen=True)
class Surface:
    """A shared object whose attributes are intercepted."""

    name: str
    target: Any
    slots: tuple[Slot, ...]
    passthrough: tuple[str, ...] = field(default=())

    def slot(self, attr: str) -> Slot:
        for slot in self.slots:
            if slot.attr == attr:
                return slot
        raise KeyError(attr)


type Recorder = Callable[[str, Level, tuple[Any, ...], Mapping[str, Any], str | None], None]


class Interceptor:
    """
    Installs recording wrappers over the tracked slots of one surface.

    Each wrapper closes over the value the slot held when it was installed and
    always calls it, returning its result. Recording faults never reach the
    caller.
    """

    def __init__(self, surface: Surface, record: Recorder, *, capture_stacks: bool = True):
        self.surface = surface
        self.capture_stacks = capture_stacks
        self._record = record
        self._originals: dict[str, Callable[..., Any]] = {}
        self._wrappers: dict[str, Callable[..., Any]] = {}
        self._active = False
        self._lock = threading.RLock()

    @property
    def installed(self) -> bool:
        return bool(self._wrappers)

    def original(self, attr: str) -> Callable[..., Any]:
        return self._originals[attr]

    def wrapper(self, attr: str) -> Callable[..., Any] | None:
        return self._wrappers.get(attr)

    def install(self) -> None:
        """Wrap every tracked slot and forward every passthrough slot."""
        with self._lock:
            self._active = True
            for slot in self.surface.slots:
                self._try_install(slot.attr)
            for attr in self.surface.passthrough:
                self._try_install(attr)

    def _try_install(self, attr: str) -> None:
        try:
            self.install_slot(attr)
        except Exception:
            logger.warning("Could not intercept %s.%s", self.surface.name, attr, exc_info=True)

    def install_slot(self, attr: str) -> bool:
        """
        Wrap a single slot, chaining to whatever it currently holds.

        A slot already holding this interceptor's wrapper is left as is, so a
        wrapper never ends up wrapping itself. Does nothing once uninstalled.
        Returns whether a new wrapper was put in place.
        """
        with self._lock:
            if not self._active:
                return False

            current = getattr(self.surface.target, attr)
            if attr in self._wrappers and current is self._wrappers[attr]:
                return False

            if attr in self.surface.passthrough:
                wrapper = _forwarder(current)
            else:
                wrapper = self._make_wrapper(self.surface.slot(attr), current)

            setattr(self.surface.target, attr, wrapper)
            self._originals[attr] = current
            self._wrappers[attr] = wrapper
            return True

    def tampered(self) -> list[str]:
        """Tracked slots no longer holding the wrapper we last installed."""
        with self._lock:
            return [
                slot.attr
                for slot in self.surface.slots
                if slot.attr in self._wrappers
                and getattr(self.surface.target, slot.attr, None) is not self._wrappers[slot.attr]
            ]

    def repair(self) -> list[str]:
        """Re-wrap tampered slots; uninstall cannot interleave with this."""
        repaired = []
        with self._lock:
            for attr in self.tampered():
                try:
                    if self.install_slot(attr):
                        repaired.append(attr)
                except Exception:
                    logger.warning(
                        "Could not re-install %s.%s", self.surface.name, attr, exc_info=True
                    )
        return repaired

    def uninstall(self) -> None:
        """Put originals back where our wrappers are still in place."""
        with self._lock:
            self._active = False
            for attr, wrapper in self._wrappers.items():
                if getattr(self.surface.target, attr, None) is wrapper:
                    setattr(self.surface.target, attr, self._originals[attr])
            self._wrappers.clear()
            self._originals.clear()

    def _make_wrapper(self, slot: Slot, original: Callable[..., Any]) -> Callable[..., Any]:
        capture = self._capture

        @functools.wraps(original)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            if _quiet.get():
                return original(*args, **kwargs)

            with quiet():
                try:
                    capture(slot, args, kwargs)
                except Exception:
                    logger.debug("Failed to record %s call", slot.method, exc_info=True)

                return original(*args, **kwargs)

        return wrapper

    def _capture(self, slot: Slot, args: tuple[Any, ...], kwargs: dict[str, Any]) -> None:
        if slot.assertion:
            condition = args[0] if args else kwargs.get("condition", False)
            if condition:
                return

        level = slot.level
        if slot.numeric_level:
            number = args[0] if args else kwargs.get("level")
            if isinstance(number, int):
                level = level_for_number(number)

        stack = None
        if level == "error" and self.capture_stacks:
            # Drop this frame and the wrapper frame
            stack = "".join(traceback.format_stack()[:-2])

        self._record(slot.method, level, args, kwargs, stack)


def _forwarder(original: Callable[..., Any]) -> Callable[..., Any]:
    @functools.wraps(original)
    def forward(*args: Any, **kwargs: Any) -> Any:
        # Whatever the original prints on the way is part of the same call
        with quiet():
            return original(*args, **kwargs)

    return forward
