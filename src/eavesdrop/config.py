"""Configuration: engine settings loaded from the environment, view settings for listeners."""

import os
from dataclasses import dataclass
from typing import Literal

type Theme = Literal["light", "dark"]

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    value = raw.strip().lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    raise ValueError(f"{name} must be a boolean, got {raw!r}")


@dataclass(frozen=True)
class EngineConfig:
    """Capture side settings."""

    buffer_capacity: int = 5000
    # Seconds between integrity checks; zero or less disables the watchdog
    watchdog_interval: float = 1.0
    capture_stacks: bool = True
    track_logging: bool = True
    capture_ambient: bool = True

    def __post_init__(self) -> None:
        if self.buffer_capacity < 1:
            raise ValueError(f"buffer_capacity must be at least 1, got {self.buffer_capacity}")


def load_config() -> EngineConfig:
    """Build EngineConfig from EAVESDROP_* environment variables."""
    return EngineConfig(
        buffer_capacity=int(os.environ.get("EAVESDROP_BUFFER_CAPACITY", EngineConfig.buffer_capacity)),
        watchdog_interval=float(os.environ.get("EAVESDROP_WATCHDOG_INTERVAL", EngineConfig.watchdog_interval)),
        capture_stacks=_env_bool("EAVESDROP_CAPTURE_STACKS", EngineConfig.capture_stacks),
        track_logging=_env_bool("EAVESDROP_TRACK_LOGGING", EngineConfig.track_logging),
        capture_ambient=_env_bool("EAVESDROP_CAPTURE_AMBIENT", EngineConfig.capture_ambient),
    )


@dataclass(frozen=True)
class ViewConfig:
    """Display settings for presentation listeners; they never affect capture."""

    max_entries: int = 1000
    auto_scroll: bool = True
    show_timestamp: bool = True
    show_stack_trace: bool = True
    theme: Theme = "dark"

    def __post_init__(self) -> None:
        if self.max_entries < 1:
            raise ValueError(f"max_entries must be at least 1, got {self.max_entries}")
        if self.theme not in ("light", "dark"):
            raise ValueError(f"Unknown theme {self.theme!r}")
