from collections import deque

from rich.console import Console, Group
from rich.text import Text
from rich.traceback import Traceback

from eavesdrop.config import ViewConfig
from eavesdrop.types import Entry

DARK_COLORS = {
    "debug": "cyan",
    "info": "green",
    "warn": "yellow",
    "error": "red",
    "log": "white",
}

LIGHT_COLORS = {
    "debug": "dark_cyan",
    "info": "dark_green",
    "warn": "dark_orange",
    "error": "red3",
    "log": "black",
}


def level_color(level: str, theme: str = "dark") -> str:
    colors = LIGHT_COLORS if theme == "light" else DARK_COLORS
    return colors.get(level, colors["log"])


def format_arg(value: object) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, BaseException):
        return f"{type(value).__name__}: {value}"
    return repr(value)


class RichListener:
    """
    Rich console view of entries.

    Drops entries it has already seen (replay and live delivery overlap) and
    keeps only the last `max_entries` for display. With auto_scroll on, every
    entry is printed as it arrives; otherwise entries wait for `render()`.
    """

    def __init__(self, config: ViewConfig | None = None, console: Console | None = None):
        self.config = config or ViewConfig()
        self.console = console or Console(stderr=True)
        self.entries: deque[Entry] = deque(maxlen=self.config.max_entries)
        self._seen: set[str] = set()
        self._open = False

    def open(self) -> None:
        """Start printing entries as they arrive."""
        self._open = True

    def close(self) -> None:
        self._open = False

    def clear(self) -> None:
        self.entries.clear()
        self._seen.clear()

    def __call__(self, entry: Entry) -> None:
        if entry.id in self._seen:
            return

        if len(self.entries) == self.entries.maxlen:
            self._seen.discard(self.entries[0].id)
        self.entries.append(entry)
        self._seen.add(entry.id)

        if self._open and self.config.auto_scroll:
            self.console.print(self.build(entry))

    def render(self) -> None:
        """Print every retained entry."""
        for entry in self.entries:
            self.console.print(self.build(entry))

    def build(self, entry: Entry) -> Group:
        theme = self.config.theme
        color = level_color(entry.level, theme)
        muted = "grey70" if theme == "dark" else "grey37"

        line = Text()
        if self.config.show_timestamp:
            line.append(entry.timestamp.astimezone().strftime("%H:%M:%S.%f")[:-3] + " ", style=muted)

        line.append(f"{entry.level.upper():<5} ", style="bold " + color)
        if entry.method and entry.method != entry.level:
            line.append(f"[{entry.method}] ", style=muted)

        line.append(" ".join(format_arg(a) for a in entry.args), style=color)
        for key, value in entry.kwargs.items():
            line.append(f" {key}={format_arg(value)}", style=muted)

        parts: list[Text | Traceback] = [line]
        if self.config.show_stack_trace and entry.level == "error":
            if entry.stack:
                parts.append(Text(entry.stack.rstrip(), style="dim " + color))
            else:
                parts.extend(self._tracebacks(entry))

        return Group(*parts)

    def _tracebacks(self, entry: Entry) -> list[Traceback]:
        traces = []
        for value in entry.args:
            if isinstance(value, BaseException) and value.__traceback__ is not None:
                traces.append(
                    Traceback.from_exception(
                        type(value),
                        value,
                        value.__traceback__,
                        width=self.console.width,
                        max_frames=2,
                    )
                )
        return traces
