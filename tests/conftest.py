import pytest

from eavesdrop import EngineConfig, Eavesdropper, console_surface
from eavesdrop.surfaces import CONSOLE_METHODS, CONSOLE_TIMERS


class FakeConsole:
    """Stands in for the shared console and remembers every call reaching it."""

    def __init__(self):
        self.calls = []
        for name in CONSOLE_METHODS + CONSOLE_TIMERS:
            setattr(self, name, self._method(name))

    def _method(self, name):
        def method(*args, **kwargs):
            self.calls.append((name, args, kwargs))
            return f"{name}-result"

        return method


def quiet_config(**overrides) -> EngineConfig:
    settings = {
        "watchdog_interval": 0,
        "capture_ambient": False,
        "track_logging": False,
    }
    settings.update(overrides)
    return EngineConfig(**settings)


@pytest.fixture
def fake_console():
    return FakeConsole()


@pytest.fixture
def engine(fake_console):
    eavesdropper = Eavesdropper(quiet_config(), surfaces=[console_surface(fake_console)])
    yield eavesdropper
    eavesdropper.shutdown()


@pytest.fixture
def make_engine():
    """Build engines with custom settings; all are shut down afterwards."""
    created = []

    def make(surfaces, **overrides):
        eavesdropper = Eavesdropper(quiet_config(**overrides), surfaces=surfaces)
        created.append(eavesdropper)
        return eavesdropper

    yield make

    for eavesdropper in created:
        eavesdropper.shutdown()
