import logging

from starlette.types import ASGIApp, Receive, Scope, Send

from .ambient import format_stack
from .core import Eavesdropper, get_eavesdropper

logger = logging.getLogger(__name__)

ASGI_ERROR = "asgi-error"


class ErrorCaptureMiddleware:
    """
    Records exceptions escaping an ASGI app as error entries, then re-raises.

    Put it outermost (or just inside your error handling middleware) so every
    unhandled request failure is seen. The response the client gets is whatever
    the rest of the stack makes of the exception.
    """

    def __init__(self, app: ASGIApp, eavesdropper: Eavesdropper | None = None) -> None:
        self.app = app
        self.eavesdropper = eavesdropper

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] not in ("http", "websocket"):
            await self.app(scope, receive, send)
            return

        try:
            await self.app(scope, receive, send)

        except Exception as exc:
            self._record(scope, exc)
            raise

    def _record(self, scope: Scope, exc: Exception) -> None:
        engine = self.eavesdropper or get_eavesdropper()
        try:
            engine.record(
                ASGI_ERROR,
                "error",
                (
                    f"{type(exc).__name__}: {exc}",
                    scope.get("method"),
                    scope.get("path"),
                    exc,
                ),
                stack=format_stack(exc),
            )
        except Exception:
            # Never get in the way of the host's own error handling
            logger.debug("Failed to record request error", exc_info=True)
