import itertools
import time
import uuid
from typing import Callable

# Fallback counter wraps here; ids stay distinct within the same millisecond.
COUNTER_WRAP = 1_000_000_000


class IdGenerator:
    """
    Hands out entry ids.

    Ids come from uuid4 (os.urandom) when the random source works, otherwise
    from the current time in milliseconds joined with a wrapping counter.
    """

    __slots__ = ("_random", "_counter")

    def __init__(self, random_source: Callable[[], uuid.UUID] = uuid.uuid4):
        self._random = random_source
        self._counter = itertools.count(1)

    def __call__(self) -> str:
        try:
            return str(self._random())
        except Exception:
            return self.fallback()

    def fallback(self) -> str:
        now_ms = time.time_ns() // 1_000_000
        return f"{now_ms}-{next(self._counter) % COUNTER_WRAP}"

