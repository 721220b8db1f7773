"""Error page rendering for unhandled failures.

``ErrorHandler`` turns an error (or any value a handler failed with) into a
diagnostic HTML response: the error text, the stack frames with source
context, request metadata and runtime facts.

Design:
- Every response is a 500 with ``text/html; charset=utf-8``
- A failing template downgrades to an escaped plain-text body, never an exception
- Frames come from the error itself when possible, else from the live stack
"""

from __future__ import annotations

import html
import logging
from typing import Any, Callable

from fastapi import FastAPI, Request
from jinja2 import Environment
from starlette.responses import HTMLResponse, Response
from starlette.types import ASGIApp

from devtrace.core.config import ErrorPageSettings, default_config
from devtrace.core.errors import ClassifiedError
from devtrace.core.middleware import Recovery, RecoveryMiddleware, recovery_wrapper
from devtrace.core.report import (
    ERROR_TEMPLATE,
    ErrorReport,
    build_environment,
    describe,
    request_facts,
    runtime_facts,
    safe_str,
)
from devtrace.utils.snippet import SOURCE_DISABLED, code_snippet
from devtrace.utils.stack import (
    Frame,
    StackSnapshot,
    capture_stack,
    collect_frames,
    snapshot_from_traceback,
)

logger = logging.getLogger(__name__)

STATUS_CODE = 500


class ErrorHandler:
    """Render error pages for one configuration.

    A handler is immutable once built and can serve any number of
    concurrent requests.

    Args:
        config: Error page settings; defaults apply when omitted.
        environment: Jinja2 environment holding ``error.html``; defaults to
            the packaged template with the standard helper registry.
    """

    def __init__(
        self,
        config: ErrorPageSettings | None = None,
        *,
        environment: Environment | None = None,
    ) -> None:
        self.config = config or default_config()
        self.environment = environment or build_environment()

    def code_snippet(self, file: str, line: int) -> str:
        if not self.config.show_source_code:
            return SOURCE_DISABLED
        return code_snippet(file, line)

    def snapshot_for(self, value: Any) -> StackSnapshot:
        """Pick the stack to report for ``value``.

        Classified errors report where they were created, other exceptions
        where they were raised. Anything else gets the live stack, minus
        ``config.skip_frames`` frames (this method and its caller by
        default).
        """

        if isinstance(value, ClassifiedError):
            return value.stack
        if isinstance(value, BaseException) and value.__traceback__ is not None:
            return snapshot_from_traceback(value.__traceback__)
        return capture_stack(self.config.skip_frames)

    def stack_frames(self, snapshot: StackSnapshot) -> list[Frame]:
        return collect_frames(snapshot, self.config.max_frames, self.code_snippet)

    def build_report(
        self,
        request: Request | None,
        value: Any,
        snapshot: StackSnapshot | None = None,
    ) -> ErrorReport:
        """Assemble the report for one error page.

        Args:
            request: Request being served, if any.
            value: Error or other value the handler failed with.
            snapshot: Stack to report; chosen by ``snapshot_for`` if omitted.

        Returns:
            Fully populated ``ErrorReport``.
        """

        if snapshot is None:
            snapshot = self.snapshot_for(value)
        return ErrorReport(
            error=describe(value),
            frames=self.stack_frames(snapshot),
            environment=self.config.environment,
            debug_mode=self.config.debug_mode,
            **request_facts(request),
            **runtime_facts(),
        )

    def handle_error(self, request: Request | None, value: Any) -> Response:
        """Render the error page for ``value``.

        Args:
            request: Request being served, if any.
            value: Error or other value the handler failed with.

        Returns:
            500 response with the rendered page, or an escaped text fallback
            when the template fails.
        """

        report = self.build_report(request, value, self.snapshot_for(value))

        exc_info = None
        if self.config.debug_mode and isinstance(value, BaseException):
            exc_info = (type(value), value, value.__traceback__)
        logger.error(
            "unhandled_error",
            extra={
                "error_type": type(value).__name__,
                "error_msg": report.error,
                "request_method": report.method,
                "request_url": report.url,
                "frame_count": len(report.frames),
            },
            exc_info=exc_info,
        )

        try:
            body = self.environment.get_template(ERROR_TEMPLATE).render(report=report)
        except Exception as render_exc:
            logger.warning(
                "error_page_render_failed",
                extra={
                    "error_type": type(render_exc).__name__,
                    "error_msg": safe_str(render_exc),
                },
            )
            reason = safe_str(render_exc)
            text = f"Error: {report.error}\n\nTemplate rendering failed: {reason}"
            return HTMLResponse(
                f"<pre>{html.escape(text)}</pre>",
                status_code=STATUS_CODE,
            )

        return HTMLResponse(body, status_code=STATUS_CODE)

    def middleware(self, app: ASGIApp) -> RecoveryMiddleware:
        """Wrap an ASGI application so escaping errors render this page."""

        return RecoveryMiddleware(app, handler=self)

    def middleware_func(self, func: Callable[..., Any]) -> Callable[..., Any]:
        """Wrap a single handler function (sync or async)."""

        return recovery_wrapper(self, func)

    def recover(self, request: Request | None = None) -> Recovery:
        """Context manager recovering from an error inside a handler body."""

        return Recovery(self, request)


def setup_exception_handlers(app: FastAPI, handler: ErrorHandler) -> None:
    """Render raised ``ClassifiedError``s with ``handler``.

    The page shows the stack captured where the error was created.

    Args:
        app: FastAPI application instance.
        handler: Error handler rendering the page.

    Example:
        >>> from fastapi import FastAPI
        >>> app = FastAPI()
        >>> setup_exception_handlers(app, ErrorHandler())
    """

    async def classified_error_handler(request: Request, exc: ClassifiedError) -> Response:
        logger.info(
            "classified_error_handled",
            extra={
                "error_category": exc.type,
                "request_path": request.url.path,
            },
        )
        return handler.handle_error(request, exc)

    app.exception_handler(ClassifiedError)(classified_error_handler)
