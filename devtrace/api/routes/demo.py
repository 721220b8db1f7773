"""Demo routes showing each way an error reaches the error page.

- ``/panic`` raises and relies on the recovery middleware
- ``/error`` renders a plain exception in place
- ``/xerr`` renders a classified error with its creation-time stack
- ``/recover`` recovers inside the handler body
"""

from __future__ import annotations

from fastapi import APIRouter, Request
from fastapi.responses import PlainTextResponse, Response

from devtrace.core.errors import ERR_UNKNOWN, ClassifiedError

router = APIRouter(tags=["Demo"])


def _some_operation() -> None:
    raise ValueError("simulated error")


def _do_action() -> ClassifiedError:
    return ClassifiedError("custom error occurred", ERR_UNKNOWN)


@router.get("/", response_class=PlainTextResponse)
def index() -> str:
    return "Hello! Try /panic, /error, /xerr or /recover to see the error pages"


@router.get("/panic")
def panic() -> None:
    raise RuntimeError("boom! something failed")


@router.get("/error")
def error(request: Request) -> Response:
    try:
        _some_operation()
    except ValueError as exc:
        return request.app.state.error_handler.handle_error(request, exc)
    return PlainTextResponse("Success")


@router.get("/xerr")
def xerr(request: Request) -> Response:
    return request.app.state.error_handler.handle_error(request, _do_action())


@router.get("/recover")
def recover(request: Request) -> Response:
    with request.app.state.error_handler.recover(request) as recovered:
        _some_operation()
        return PlainTextResponse("Success")
    return recovered.response
