"""Classified, chainable application errors.

A ``ClassifiedError`` carries a category (``ErrorType``), a developer
message, an optional public message and structured details, an optional
wrapped cause, and a snapshot of the call stack taken when it was created.

Categories are open-ended: define your own next to your code.

    TYPE_NOT_FOUND = ErrorType(2000)

    raise ClassifiedError("user not found", TYPE_NOT_FOUND, cause=exc)
"""

from __future__ import annotations

import sys
from dataclasses import dataclass, field
from typing import Any, Iterator, Mapping

from devtrace.utils.snippet import code_snippet
from devtrace.utils.stack import Frame, StackSnapshot, capture_stack, iter_frames


class ErrorType(int):
    """Category tag for classified errors."""

    def __repr__(self) -> str:
        return f"ErrorType({int(self)})"


ERR_UNKNOWN = ErrorType(0)


def _construction_depth(err: BaseException) -> int:
    """Count the frames, from the caller up, still constructing ``err``.

    Covers ``__post_init__``, the generated ``__init__`` and any subclass
    ``__init__`` chaining to it, so the snapshot starts where the error was
    created.
    """

    depth = 0
    frame = sys._getframe(1)
    while frame is not None and frame.f_locals.get("self") is err:
        depth += 1
        frame = frame.f_back
    return depth


@dataclass(eq=False)
class ClassifiedError(Exception):
    """Base error for classified application failures.

    ``with_public_message`` and ``with_details`` mutate the instance and
    return it for chaining. Call them while the error is still owned by the
    code that created it; they are not safe to call once the error is shared
    between threads or tasks.

    Attributes:
        message: Developer-facing message.
        type: Category used for matching.
        cause: Wrapped error, if any.
        public_message: Message safe to show end users.
        details: Optional structured context (e.g. validation failures).
    """

    message: str
    type: ErrorType = ERR_UNKNOWN
    cause: BaseException | None = None
    public_message: str = ""
    details: dict[str, Any] | None = None
    _stack: StackSnapshot = field(default=(), init=False, repr=False)

    def __post_init__(self) -> None:
        super().__init__(self.message)
        self.__cause__ = self.cause
        self._stack = capture_stack(skip=_construction_depth(self))

    def __str__(self) -> str:
        if self.cause is not None:
            return f"{self.message} - {self.cause}"
        return self.message

    def with_public_message(self, message: str) -> ClassifiedError:
        self.public_message = message
        return self

    def with_details(self, details: Mapping[str, Any]) -> ClassifiedError:
        self.details = dict(details)
        return self

    def unwrap(self) -> BaseException | None:
        return self.cause

    def is_type(self, *types: Any) -> bool:
        """Check the category against ``types``; no types means existence only."""

        if not types:
            return True
        return self.type in types

    @property
    def stack(self) -> StackSnapshot:
        return self._stack

    def stack_trace(self, include_source: bool = False) -> list[Frame]:
        """Resolve the creation-time stack into frames, innermost first.

        Args:
            include_source: Attach a source snippet to every frame.
        """

        frames = list(iter_frames(self._stack))
        if not include_source:
            return frames
        return [
            Frame(
                function=frame.function,
                file=frame.file,
                line=frame.line,
                snippet=code_snippet(frame.file, frame.line),
            )
            for frame in frames
        ]


def is_type(err: ClassifiedError | None, *types: Any) -> bool:
    """``err.is_type(*types)`` that also accepts ``None`` (always False)."""

    if err is None:
        return False
    return err.is_type(*types)


def unwrap(err: BaseException | None) -> BaseException | None:
    """Return the next error in the chain.

    Errors exposing ``unwrap()`` decide for themselves; otherwise the
    explicit ``__cause__`` wins over the implicit ``__context__``.
    """

    if err is None:
        return None
    method = getattr(err, "unwrap", None)
    if callable(method):
        return method()
    if err.__cause__ is not None:
        return err.__cause__
    if err.__suppress_context__:
        return None
    return err.__context__


def iter_chain(err: BaseException | None) -> Iterator[BaseException]:
    """Yield ``err`` followed by every error it wraps, outermost first."""

    seen: set[int] = set()
    while err is not None and id(err) not in seen:
        seen.add(id(err))
        yield err
        err = unwrap(err)
