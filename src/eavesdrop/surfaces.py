import logging
from types import ModuleType
from typing import Any

from .interceptor import Slot, Surface, level_for
from .types import Level

CONSOLE_METHODS = (
    "log",
    "error",
    "warn",
    "info",
    "debug",
    "trace",
    "table",
    "group",
    "group_collapsed",
    "group_end",
    "dir",
    "dirxml",
    "assert_",
)

# Paired timer calls keep their behavior but never become entries
CONSOLE_TIMERS = ("time", "time_end", "time_log")

LOGGING_LEVELS: dict[str, Level] = {
    "debug": "debug",
    "info": "info",
    "warning": "warn",
    "error": "error",
    "exception": "error",
    "critical": "error",
    "log": "log",
}


def console_surface(target: Any = None) -> Surface:
    """The console slots; defaults to the shared eavesdrop.console.console."""
    if target is None:
        from .console import console as target

    slots = []
    for attr in CONSOLE_METHODS:
        method = attr.rstrip("_")
        slots.append(Slot(attr, method, level_for(method), assertion=method == "assert"))

    return Surface("console", target, tuple(slots), passthrough=CONSOLE_TIMERS)


def logging_surface(module: ModuleType = logging) -> Surface:
    """Module level functions of the stdlib logging module."""
    slots = tuple(
        Slot(attr, f"logging.{attr}", level, numeric_level=attr == "log")
        for attr, level in LOGGING_LEVELS.items()
    )
    return Surface("logging", module, slots)
