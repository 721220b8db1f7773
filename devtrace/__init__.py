"""Classified errors and diagnostic error pages for ASGI services."""

from __future__ import annotations

from devtrace.core.config import ErrorPageSettings, default_config
from devtrace.core.errors import (
    ERR_UNKNOWN,
    ClassifiedError,
    ErrorType,
    is_type,
    iter_chain,
    unwrap,
)
from devtrace.core.exception_handlers import ErrorHandler, setup_exception_handlers
from devtrace.core.matching import ErrorSlot, error_as
from devtrace.core.middleware import Recovery, RecoveryMiddleware
from devtrace.core.report import ErrorReport
from devtrace.utils.stack import Frame

__all__ = [
    "ERR_UNKNOWN",
    "ClassifiedError",
    "ErrorHandler",
    "ErrorPageSettings",
    "ErrorReport",
    "ErrorSlot",
    "ErrorType",
    "Frame",
    "Recovery",
    "RecoveryMiddleware",
    "default_config",
    "error_as",
    "is_type",
    "iter_chain",
    "setup_exception_handlers",
    "unwrap",
]
