import logging

from .buffer import EntryBuffer
from .config import EngineConfig, ViewConfig, load_config
from .console import Console, console
from .core import Eavesdropper, get_eavesdropper, shutdown, subscribe
from .identity import IdGenerator
from .interceptor import Interceptor, Slot, Surface
from .registry import ListenerRegistry, Subscription
from .surfaces import console_surface, logging_surface
from .types import Entry, Level, Listener
from .watchdog import Watchdog

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "Console",
    "Eavesdropper",
    "EngineConfig",
    "Entry",
    "EntryBuffer",
    "IdGenerator",
    "Interceptor",
    "Level",
    "Listener",
    "ListenerRegistry",
    "Slot",
    "Subscription",
    "Surface",
    "ViewConfig",
    "Watchdog",
    "console",
    "console_surface",
    "get_eavesdropper",
    "load_config",
    "logging_surface",
    "shutdown",
    "subscribe",
]
