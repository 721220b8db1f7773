"""Recovery middleware turning escaping errors into error pages.

Three entry points share the same recovery rules:

- ``RecoveryMiddleware`` wraps a whole ASGI application
- ``recovery_wrapper`` wraps a single handler function, sync or async
- ``Recovery`` is a context manager for in-place recovery in a handler body

Only ``Exception`` subclasses are recovered. Cancellation and interpreter
exits (``BaseException``) always propagate.

Usage:
    handler = ErrorHandler()
    app.add_middleware(RecoveryMiddleware, handler=handler)
"""

from __future__ import annotations

import functools
import inspect
import logging
from types import TracebackType
from typing import TYPE_CHECKING, Any, Callable

from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from devtrace.core.report import safe_str

if TYPE_CHECKING:
    from devtrace.core.exception_handlers import ErrorHandler

logger = logging.getLogger(__name__)


class RecoveryMiddleware:
    """ASGI middleware rendering an error page for any escaping error.

    If the wrapped application already started its response, the page
    can't be sent; the failure is logged and the request ends there.

    Args:
        app: Wrapped ASGI application.
        handler: Error handler rendering the page.
    """

    def __init__(self, app: ASGIApp, handler: ErrorHandler) -> None:
        self.app = app
        self.handler = handler

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        response_started = False

        async def _send(message: Message) -> None:
            nonlocal response_started
            if message["type"] == "http.response.start":
                response_started = True
            await send(message)

        try:
            await self.app(scope, receive, _send)
        except Exception as exc:
            if response_started:
                logger.error(
                    "response_already_started",
                    extra={
                        "error_type": type(exc).__name__,
                        "error_msg": safe_str(exc),
                        "request_path": scope.get("path", ""),
                    },
                    exc_info=exc if self.handler.config.debug_mode else None,
                )
                return
            response = self.handler.handle_error(Request(scope, receive), exc)
            await response(scope, receive, send)


def _find_request(args: tuple[Any, ...], kwargs: dict[str, Any]) -> Request | None:
    for value in (*args, *kwargs.values()):
        if isinstance(value, Request):
            return value
    return None


def recovery_wrapper(handler: ErrorHandler, func: Callable[..., Any]) -> Callable[..., Any]:
    """Wrap a handler function so an escaping error returns the error page.

    The wrapper keeps ``func``'s signature, so FastAPI still injects the
    same parameters. The first ``Request`` among the call arguments supplies
    the request metadata.

    Args:
        handler: Error handler rendering the page.
        func: Route handler, sync or async.

    Returns:
        Wrapper of the same kind (coroutine function or plain function).
    """

    if inspect.iscoroutinefunction(func):

        @functools.wraps(func)
        async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
            try:
                return await func(*args, **kwargs)
            except Exception as exc:
                return handler.handle_error(_find_request(args, kwargs), exc)

        return async_wrapper

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except Exception as exc:
            return handler.handle_error(_find_request(args, kwargs), exc)

    return wrapper


class Recovery:
    """Context manager rendering the error page for an error in its body.

    The error is suppressed and the page stored on ``response``:

        with handler.recover(request) as recovered:
            return do_work()
        return recovered.response
    """

    def __init__(self, handler: ErrorHandler, request: Request | None = None) -> None:
        self.handler = handler
        self.request = request
        self.response: Response | None = None

    def __enter__(self) -> Recovery:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> bool:
        if exc is None or not isinstance(exc, Exception):
            return False
        if self.response is not None:
            # one page per request; a second failure propagates
            return False
        self.response = self.handler.handle_error(self.request, exc)
        return True
