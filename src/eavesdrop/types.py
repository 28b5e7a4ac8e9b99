from dataclasses import dataclass, field
from datetime import datetime
from types import MappingProxyType
from typing import Any, Callable, Literal, Mapping, get_args

type Level = Literal["log", "error", "warn", "info", "debug"]

LEVELS: tuple[str, ...] = get_args(Level.__value__)

_EMPTY_KWARGS: Mapping[str, Any] = MappingProxyType({})


@dataclass(frozen=True, slots=True)
class Entry:
    """One intercepted logging call or ambient error."""

    id: str
    timestamp: datetime
    level: Level
    method: str | None
    args: tuple[Any, ...]
    kwargs: Mapping[str, Any] = field(default=_EMPTY_KWARGS)
    stack: str | None = None

    def __post_init__(self) -> None:
        if self.level not in LEVELS:
            raise ValueError(f"Unknown level {self.level!r}")

    def to_dict(self) -> dict[str, Any]:
        """JSON friendly view of the entry (values we can't encode become repr)."""
        data: dict[str, Any] = {
            "id": self.id,
            "timestamp": self.timestamp.isoformat(),
            "level": self.level,
            "method": self.method,
            "args": [_jsonable(a) for a in self.args],
        }
        if self.kwargs:
            data["kwargs"] = {k: _jsonable(v) for k, v in self.kwargs.items()}
        if self.stack is not None:
            data["stack"] = self.stack
        return data


def _jsonable(value: Any) -> Any:
    if value is None or isinstance(value, (str, int, float, bool)):
        return value

    if isinstance(value, BaseException):
        return {"type": type(value).__name__, "message": str(value)}

    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]

    if isinstance(value, dict):
        return {str(k): _jsonable(v) for k, v in value.items()}

    return repr(value)


type Listener = Callable[[Entry], None]
