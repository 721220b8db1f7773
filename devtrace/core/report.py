"""Error report data and template environment.

An ``ErrorReport`` is assembled once per rendered error page and discarded
right after. ``build_environment`` creates the Jinja2 environment a handler
renders it with; every environment gets its own helper registry.
"""

from __future__ import annotations

import platform
import sys
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable

from jinja2 import Environment, FileSystemLoader, select_autoescape
from starlette.requests import Request

from devtrace.core.errors import ClassifiedError
from devtrace.utils.snippet import parse_code_line
from devtrace.utils.stack import Frame

TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates"
ERROR_TEMPLATE = "error.html"


@dataclass
class ErrorReport:
    """Everything the error page template can reference."""

    error: str
    frames: list[Frame] = field(default_factory=list)
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    method: str = ""
    url: str = ""
    user_agent: str = ""
    python_version: str = ""
    os: str = ""
    arch: str = ""
    environment: str = ""
    debug_mode: bool = False


def safe_str(value: Any) -> str:
    """``str(value)``, or a placeholder when its ``__str__`` itself fails."""

    try:
        return str(value)
    except Exception:
        return f"<unprintable {type(value).__name__} object>"


def describe(value: Any) -> str:
    """Stringify an error or any other recovered value. Never raises."""

    if isinstance(value, ClassifiedError):
        return safe_str(value)
    if isinstance(value, BaseException):
        text = safe_str(value)
        name = type(value).__name__
        return f"{name}: {text}" if text else name
    return safe_str(value)


def runtime_facts() -> dict[str, str]:
    """Interpreter version, OS and architecture of the running process."""

    return {
        "python_version": platform.python_version(),
        "os": sys.platform,
        "arch": platform.machine(),
    }


def request_facts(request: Request | None) -> dict[str, str]:
    """Method, URL and user agent of ``request``; empty strings without one."""

    if request is None:
        return {"method": "", "url": "", "user_agent": ""}
    return {
        "method": request.method,
        "url": str(request.url),
        "user_agent": request.headers.get("user-agent", ""),
    }


def _split(text: str, sep: str) -> list[str]:
    return text.split(sep)


def _contains(text: str, sub: str) -> bool:
    return sub in text


def _trim_space(text: str) -> str:
    return text.strip()


def _length(value: Any) -> int:
    # frame lists and strings only; anything else counts as empty
    if isinstance(value, str):
        return len(value)
    if isinstance(value, Sequence) and all(isinstance(v, Frame) for v in value):
        return len(value)
    return 0


def template_helpers() -> dict[str, Callable[..., Any]]:
    """Return a fresh registry of the helpers exposed to the error template."""

    return {
        "split": _split,
        "contains": _contains,
        "trim_space": _trim_space,
        "length": _length,
        "parse_code_line": parse_code_line,
    }


def build_environment(
    template_dir: str | Path | None = None,
    helpers: dict[str, Callable[..., Any]] | None = None,
) -> Environment:
    """Create a Jinja2 environment for the error page.

    Args:
        template_dir: Directory holding ``error.html``; defaults to the
            templates shipped with the package.
        helpers: Helper registry; defaults to ``template_helpers()``.

    Returns:
        Environment with HTML autoescaping and the helpers as globals.
    """

    env = Environment(
        loader=FileSystemLoader(str(template_dir or TEMPLATE_DIR)),
        autoescape=select_autoescape(["html", "xml"]),
    )
    env.globals.update(helpers if helpers is not None else template_helpers())
    return env
