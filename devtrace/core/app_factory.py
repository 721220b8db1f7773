from __future__ import annotations

"""Application factory for the demo FastAPI app.

Centralizes app construction (middleware, handlers, routers) so tests can
build isolated instances with their own error page settings.
"""

from fastapi import FastAPI

from devtrace.api.routes import demo_router, health_router
from devtrace.core.config import ErrorPageSettings, settings
from devtrace.core.exception_handlers import ErrorHandler, setup_exception_handlers
from devtrace.core.logging import configure_logging
from devtrace.core.middleware import RecoveryMiddleware


def create_app(config: ErrorPageSettings | None = None) -> FastAPI:
    """Create and configure the demo application.

    Args:
        config: Error page settings; the global settings apply when omitted.

    Returns:
        FastAPI app with recovery middleware, handlers and routers.
    """
    # Logging first so subsequent init logs are formatted as desired
    configure_logging(settings.log)

    app = FastAPI(
        title="devtrace demo",
        description="Routes that fail on purpose to show the diagnostic error page.",
        version="0.1.0",
    )

    handler = ErrorHandler(config or settings.error_page)
    app.state.error_handler = handler

    # Middleware
    app.add_middleware(RecoveryMiddleware, handler=handler)

    # Exception handlers
    setup_exception_handlers(app, handler)

    # Routers
    app.include_router(demo_router)
    app.include_router(health_router)

    return app
