import asyncio
import logging
import sys
import threading
import traceback
from types import TracebackType
from typing import Any, Callable

from .interceptor import Recorder, quiet

logger = logging.getLogger(__name__)

GLOBAL_ERROR = "global-error"
THREAD_ERROR = "thread-error"
UNHANDLED_REJECTION = "unhandled-rejection"

type LoopHandler = Callable[[asyncio.AbstractEventLoop, dict[str, Any]], object]


def format_stack(exc: BaseException | None) -> str | None:
    if exc is None or exc.__traceback__ is None:
        return None
    return "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))


def _location(tb: TracebackType | None) -> tuple[str | None, int | None]:
    """File and line where the exception was raised (innermost frame)."""
    if tb is None:
        return None, None
    while tb.tb_next is not None:
        tb = tb.tb_next
    return tb.tb_frame.f_code.co_filename, tb.tb_lineno


def describe(exc_type: type[BaseException], exc: BaseException | None) -> str:
    """`Type: message`, even for exceptions whose __str__ raises."""
    name = getattr(exc_type, "__name__", repr(exc_type))
    try:
        text = str(exc)
    except Exception:
        text = "<exception str() failed>"
    return f"{name}: {text}"


class AmbientCapture:
    """
    Turns uncaught errors into entries.

    Hooks sys.excepthook, threading.excepthook and, per loop, the asyncio
    exception handler. The previous hook always runs afterwards.
    """

    def __init__(self, record: Recorder):
        self._record = record
        self._previous_excepthook: Callable[..., Any] | None = None
        self._previous_thread_hook: Callable[..., Any] | None = None
        self._loops: dict[asyncio.AbstractEventLoop, LoopHandler | None] = {}

    @property
    def installed(self) -> bool:
        return self._previous_excepthook is not None

    def install(self) -> None:
        if self.installed:
            return
        self._previous_excepthook = sys.excepthook
        sys.excepthook = self._excepthook
        self._previous_thread_hook = threading.excepthook
        threading.excepthook = self._thread_excepthook

    def install_loop(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        """Capture unhandled task/future exceptions on `loop` (default: running loop)."""
        loop = loop or asyncio.get_running_loop()
        for closed in [known for known in self._loops if known.is_closed()]:
            del self._loops[closed]
        if loop in self._loops:
            return
        self._loops[loop] = loop.get_exception_handler()
        loop.set_exception_handler(self._loop_handler)

    def uninstall(self) -> None:
        if self._previous_excepthook is not None:
            if sys.excepthook == self._excepthook:
                sys.excepthook = self._previous_excepthook
            self._previous_excepthook = None

        if self._previous_thread_hook is not None:
            if threading.excepthook == self._thread_excepthook:
                threading.excepthook = self._previous_thread_hook
            self._previous_thread_hook = None

        for loop, previous in self._loops.items():
            if not loop.is_closed() and loop.get_exception_handler() == self._loop_handler:
                loop.set_exception_handler(previous)
        self._loops.clear()

    def _emit(
        self,
        method: str,
        build_args: Callable[[], tuple[Any, ...]],
        exc: BaseException | None,
    ) -> None:
        try:
            with quiet():
                self._record(method, "error", build_args(), {}, format_stack(exc))
        except Exception:
            logger.debug("Failed to record %s", method, exc_info=True)

    def _excepthook(
        self,
        exc_type: type[BaseException],
        exc: BaseException,
        tb: TracebackType | None,
    ) -> None:
        def build_args() -> tuple[Any, ...]:
            filename, lineno = _location(tb)
            return describe(exc_type, exc), filename, lineno, exc

        try:
            self._emit(GLOBAL_ERROR, build_args, exc)
        finally:
            previous = self._previous_excepthook or sys.__excepthook__
            previous(exc_type, exc, tb)

    def _thread_excepthook(self, args: threading.ExceptHookArgs) -> None:
        exc = args.exc_value

        def build_args() -> tuple[Any, ...]:
            thread_name = args.thread.name if args.thread is not None else None
            return describe(args.exc_type, exc), thread_name, exc

        try:
            self._emit(THREAD_ERROR, build_args, exc)
        finally:
            previous = self._previous_thread_hook or threading.__excepthook__
            previous(args)

    def _loop_handler(self, loop: asyncio.AbstractEventLoop, context: dict[str, Any]) -> None:
        exc = context.get("exception")
        message = context.get("message", "Unhandled exception in event loop")
        try:
            self._emit(UNHANDLED_REJECTION, lambda: (message, exc if exc is not None else context), exc)
        finally:
            previous = self._loops.get(loop)
            if previous is not None:
                previous(loop, context)
            else:
                loop.default_exception_handler(context)
