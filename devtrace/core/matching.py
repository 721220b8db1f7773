"""Type-aware error matching across wrap chains.

``error_as`` mirrors the usual "find an error of this class in the chain"
lookup and adds an optional category filter:

    slot = ErrorSlot()
    if error_as(exc, slot, TYPE_NOT_FOUND):
        return not_found(slot.value.public_message)

The slot is filled as soon as a matching class is found, before the
category check. A category mismatch returns False but leaves the matched
error in ``slot.value``.
"""

from __future__ import annotations

from typing import Any, Generic, TypeVar

from devtrace.core.errors import ClassifiedError, iter_chain

E = TypeVar("E", bound=BaseException)


class ErrorSlot(Generic[E]):
    """Target for ``error_as``: the class to look for and the match found."""

    def __init__(self, cls: type[E] = ClassifiedError) -> None:  # type: ignore[assignment]
        self.cls = cls
        self.value: E | None = None

    def __repr__(self) -> str:  # pragma: no cover - representation only
        return f"ErrorSlot(cls={self.cls.__name__}, value={self.value!r})"


def error_as(err: BaseException | None, target: ErrorSlot[Any], *types: Any) -> bool:
    """Find the first error in ``err``'s chain that is a ``target.cls``.

    Args:
        err: Error to inspect, possibly wrapped many times.
        target: Slot receiving the matched error.
        *types: Accepted categories. Empty means any category.

    Returns:
        True if a matching error was found and, when ``types`` is given,
        it is a ``ClassifiedError`` whose category is among them.
    """

    if err is None:
        return False

    for candidate in iter_chain(err):
        if isinstance(candidate, target.cls):
            target.value = candidate
            break
    else:
        return False

    if not types:
        return True

    for candidate in iter_chain(err):
        if isinstance(candidate, ClassifiedError):
            return candidate.type in types
    return False
