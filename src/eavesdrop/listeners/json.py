import asyncio
import json
import logging
import sys
from datetime import date
from pathlib import Path
from typing import IO, Iterable

from eavesdrop.types import Entry

logger = logging.getLogger(__name__)


def json_dumps(entry: Entry, *, indent: int | None = None) -> str:
    separators = (",", ":") if indent is None else None
    return json.dumps(entry.to_dict(), default=repr, separators=separators, indent=indent, ensure_ascii=False)


def export_json(entries: Iterable[Entry], path: str | Path | None = None) -> Path:
    """
    Write entries to a JSON array file and return its path.
    Defaults to console-logs-YYYY-MM-DD.json in the current directory.
    """
    if path is None:
        path = f"console-logs-{date.today().isoformat()}.json"
    path = Path(path)

    data = [entry.to_dict() for entry in entries]
    path.write_text(json.dumps(data, default=repr, indent=2, ensure_ascii=False), encoding="utf-8")
    return path


def format_text(entries: Iterable[Entry], show_timestamp: bool = True) -> str:
    """Plain text rendering for pasting somewhere: `[HH:MM:SS] LEVEL: <args as JSON>`."""
    lines = []
    for entry in entries:
        prefix = ""
        if show_timestamp:
            prefix = f"[{entry.timestamp.astimezone().strftime('%H:%M:%S')}] "
        args = json.dumps(entry.to_dict()["args"], default=repr, indent=2, ensure_ascii=False)
        lines.append(f"{prefix}{entry.level.upper()}: {args}")
    return "\n".join(lines)


class JsonListener:
    """Newline delimited JSON output, flushed periodically from the event loop."""

    def __init__(
        self,
        stream: IO[str] | None = None,
        buffer_size: int = 100,
        flush_interval: float = 0.05,
    ):
        self.stream = stream
        self.buffer_size = buffer_size
        self.flush_interval = flush_interval
        self._buffer: list[Entry] = []
        self._flush_task: asyncio.Task | None = None

    def open(self) -> None:
        """Start the buffer flusher task (needs a running loop)."""
        self._flush_task = asyncio.create_task(self._buffer_flusher())

    def close(self) -> None:
        """Stop the flusher and write whatever is left."""
        if self._flush_task and not self._flush_task.done():
            self._flush_task.cancel()
        self._flush_task = None
        self.flush()

    def __call__(self, entry: Entry) -> None:
        self._buffer.append(entry)
        if len(self._buffer) >= self.buffer_size:
            self.flush()

    def flush(self) -> None:
        if self._buffer:
            entries, self._buffer = self._buffer, []
            self.write(entries)

    async def _buffer_flusher(self) -> None:
        """Periodically flush buffered entries."""
        while True:
            try:
                self.flush()
                await asyncio.sleep(self.flush_interval)
            except asyncio.CancelledError:
                break
            except Exception:
                logger.warning("Error in JSON buffer flusher", exc_info=True)
                await asyncio.sleep(self.flush_interval)

    def write(self, entries: list[Entry]) -> None:
        """Write entries as newline delimited JSON."""
        if not entries:
            return

        stream = self.stream or sys.stdout
        stream.writelines(json_dumps(e) + "\n" for e in entries)
        stream.flush()
