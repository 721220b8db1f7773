"""Call stack capture and frame resolution.

A ``StackSnapshot`` is the raw material: a tuple of ``(module, code, line)``
entries taken from live frames or from a traceback, innermost first. It holds
code objects rather than frames so a stored snapshot never keeps locals
alive. Snapshots are resolved into ``Frame`` records only when a trace is
actually requested.
"""

from __future__ import annotations

import os
import sys
import sysconfig
import traceback
from dataclasses import dataclass
from types import CodeType, TracebackType
from typing import Callable, Iterator

StackEntry = tuple[str, CodeType, int]
StackSnapshot = tuple[StackEntry, ...]

SnippetFn = Callable[[str, int], str]

# Path fragments marking third-party installs
_DEPENDENCY_MARKERS = ("site-packages", "dist-packages")


def _stdlib_dirs() -> tuple[str, ...]:
    paths = sysconfig.get_paths()
    dirs = {
        os.path.join(paths[key], "")
        for key in ("stdlib", "platstdlib")
        if paths.get(key)
    }
    return tuple(sorted(dirs))


_STDLIB_DIRS = _stdlib_dirs()


@dataclass(frozen=True)
class Frame:
    """A single resolved stack location."""

    function: str
    file: str
    line: int
    snippet: str = ""


def capture_stack(skip: int = 0) -> StackSnapshot:
    """Snapshot the live call stack.

    Args:
        skip: Extra innermost frames to drop beyond the caller of this
            function.

    Returns:
        Snapshot starting at the caller's frame (after ``skip``), innermost
        first. Empty if ``skip`` exceeds the stack depth.
    """

    try:
        start = sys._getframe(skip + 1)
    except ValueError:
        return ()
    return tuple(
        (frame.f_globals.get("__name__", ""), frame.f_code, lineno)
        for frame, lineno in traceback.walk_stack(start)
    )


def snapshot_from_traceback(tb: TracebackType | None) -> StackSnapshot:
    """Snapshot a traceback, raise site first."""

    entries = [
        (frame.f_globals.get("__name__", ""), frame.f_code, lineno)
        for frame, lineno in traceback.walk_tb(tb)
    ]
    entries.reverse()
    return tuple(entries)


def iter_frames(snapshot: StackSnapshot) -> Iterator[Frame]:
    """Resolve snapshot entries to frames, in snapshot order.

    Entries without a file name (or line) are skipped.
    """

    for module, code, lineno in snapshot:
        if not code.co_filename or not lineno:
            continue
        function = f"{module}.{code.co_qualname}" if module else code.co_qualname
        yield Frame(function=function, file=code.co_filename, line=lineno)


def is_internal_path(path: str) -> bool:
    """Tell whether a frame's file belongs to the runtime or a dependency.

    Covers the Python standard library, installed packages and synthetic
    file names such as ``<frozen importlib._bootstrap>`` or ``<string>``.
    """

    if path.startswith("<"):
        return True
    if any(marker in path for marker in _DEPENDENCY_MARKERS):
        return True
    return any(path.startswith(stdlib) for stdlib in _STDLIB_DIRS)


def collect_frames(
    snapshot: StackSnapshot,
    max_frames: int,
    snippet: SnippetFn | None = None,
) -> list[Frame]:
    """Build the visible frame list for an error report.

    Internal frames are dropped without ending iteration; only kept frames
    count towards ``max_frames``.

    Args:
        snapshot: Raw stack snapshot, innermost first.
        max_frames: Cap on the number of frames returned.
        snippet: Optional callable producing a source snippet for a
            ``(file, line)`` pair.

    Returns:
        Caller-code frames, innermost first.
    """

    frames: list[Frame] = []
    for frame in iter_frames(snapshot):
        if is_internal_path(frame.file):
            continue
        if snippet is not None:
            frame = Frame(
                function=frame.function,
                file=frame.file,
                line=frame.line,
                snippet=snippet(frame.file, frame.line),
            )
        frames.append(frame)
        if len(frames) >= max_frames:
            break
    return frames
