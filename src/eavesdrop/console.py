"""
Process wide console surface.

A browser style console for Python code, rendered with rich. Any code may
reassign its methods; eavesdrop intercepts them and repairs its hooks when
someone else takes a slot over.
"""

import time
import traceback
from typing import Any, Iterable, Mapping

from rich.console import Console as RichConsole
from rich.console import RenderableType
from rich.padding import Padding
from rich.pretty import Pretty
from rich.table import Table


class Console:
    """
    log/info/debug go to stdout, warn/error/assert_ failures to stderr.
    group/group_end indent everything printed in between.
    """

    def __init__(self, out: RichConsole | None = None, err: RichConsole | None = None):
        self.out = out or RichConsole()
        self.err = err or RichConsole(stderr=True)
        self._depth = 0
        self._timers: dict[str, int] = {}

    def _write(self, data: tuple[Any, ...], *, style: str | None = None, stderr: bool = False) -> None:
        target = self.err if stderr else self.out
        if self._depth and data:
            # print joins objects with one space, so this pads to 2 * depth
            target.print(" " * (2 * self._depth - 1), *data, style=style, markup=False)
        else:
            target.print(*data, style=style, markup=False)

    def _render(self, renderable: RenderableType) -> None:
        self.out.print(Padding(renderable, (0, 0, 0, 2 * self._depth)))

    def log(self, *data: Any) -> None:
        self._write(data)

    def info(self, *data: Any) -> None:
        self._write(data, style="green")

    def debug(self, *data: Any) -> None:
        self._write(data, style="cyan")

    def warn(self, *data: Any) -> None:
        self._write(data, style="yellow", stderr=True)

    def error(self, *data: Any) -> None:
        self._write(data, style="red", stderr=True)

    def trace(self, *data: Any) -> None:
        """Print data followed by the current call stack."""
        self._write(("Trace:", *data), stderr=True)
        stack = "".join(traceback.format_stack()[:-1]).rstrip()
        self.err.print(stack, style="dim", markup=False, highlight=False, soft_wrap=True)

    def table(self, data: Any, columns: Iterable[str] | None = None) -> None:
        rows = _table_rows(data)
        if rows is None:
            self.log(data)
            return

        if columns is None:
            columns = list(dict.fromkeys(key for _, row in rows for key in row))
        else:
            columns = list(columns)

        table = Table("(index)", *(str(c) for c in columns))
        for index, row in rows:
            table.add_row(str(index), *(_cell(row.get(c)) for c in columns))
        self._render(table)

    def group(self, *label: Any) -> None:
        if label:
            self._write(label, style="bold")
        self._depth += 1

    def group_collapsed(self, *label: Any) -> None:
        # No folding in a terminal
        self.group(*label)

    def group_end(self) -> None:
        self._depth = max(0, self._depth - 1)

    def dir(self, obj: Any = None, *_: Any) -> None:
        self._render(Pretty(obj, expand_all=True))

    def dirxml(self, *data: Any) -> None:
        self.log(*data)

    def assert_(self, condition: Any = False, *data: Any) -> None:
        if not condition:
            self._write(("Assertion failed:", *data) if data else ("Assertion failed",), style="red", stderr=True)

    def time(self, label: str = "default") -> None:
        if label in self._timers:
            self.warn(f"Timer '{label}' already exists")
            return
        self._timers[label] = time.perf_counter_ns()

    def time_log(self, label: str = "default", *data: Any) -> None:
        started = self._timers.get(label)
        if started is None:
            self.warn(f"Timer '{label}' does not exist")
            return
        self.log(f"{label}: {_elapsed(started)}", *data)

    def time_end(self, label: str = "default") -> None:
        started = self._timers.pop(label, None)
        if started is None:
            self.warn(f"Timer '{label}' does not exist")
            return
        self.log(f"{label}: {_elapsed(started)}")


def _elapsed(started_ns: int) -> str:
    return f"{(time.perf_counter_ns() - started_ns) / 1_000_000:.3f}ms"


def _cell(value: Any) -> str:
    return "" if value is None else str(value)


def _table_rows(data: Any) -> list[tuple[Any, Mapping[Any, Any]]] | None:
    """Rows as (index, mapping) pairs, or None if data isn't tabular."""
    if isinstance(data, Mapping):
        items = list(data.items())
    elif isinstance(data, (list, tuple)):
        items = list(enumerate(data))
    else:
        return None

    rows = []
    for index, row in items:
        if isinstance(row, Mapping):
            rows.append((index, row))
        elif isinstance(row, (list, tuple)):
            rows.append((index, dict(enumerate(row))))
        else:
            rows.append((index, {"Values": row}))
    return rows


console = Console()
