"""Source snippet extraction and parsing.

Snippets are plain text blocks, one formatted line per source line:

    "     12 | def handler(request):"
    ">>   13 |     raise RuntimeError('boom')"

The ``>>`` marker flags the line a frame points at. ``parse_code_line``
turns one such line back into its parts for template-side rendering.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

SOURCE_UNREADABLE = "Could not read source file"
SOURCE_DISABLED = "Source code display disabled"

LINES_BEFORE = 15
LINES_AFTER = 20

HIGHLIGHT_MARKER = ">>"


@dataclass(frozen=True)
class CodeLine:
    """One parsed snippet line."""

    number: str = ""
    content: str = ""
    highlight: bool = False


def code_snippet(path: str, line: int) -> str:
    """Extract a numbered window of source around ``line``.

    The window runs from 15 lines before to 20 lines after the target,
    clipped to the file. Read failures never propagate.

    Args:
        path: Source file path.
        line: 1-based target line.

    Returns:
        Formatted snippet, or ``SOURCE_UNREADABLE`` if the file can't be read.
    """

    try:
        text = Path(path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        logger.debug(
            "snippet_read_failed",
            extra={"file_path": path, "error_type": type(exc).__name__},
        )
        return SOURCE_UNREADABLE

    lines = text.split("\n")
    start = max(0, line - LINES_BEFORE)
    end = min(len(lines), line + LINES_AFTER)

    out: list[str] = []
    for index in range(start, end):
        number = index + 1
        prefix = f"{HIGHLIGHT_MARKER} " if number == line else "   "
        out.append(f"{prefix}{number:4d} | {lines[index]}\n")
    return "".join(out)


def parse_code_line(line: str) -> CodeLine:
    """Split a formatted snippet line into number, content and highlight.

    Blank lines (and lines without a ``|`` separator) give an empty record,
    apart from the highlight flag when the marker is present.
    """

    if not line.strip():
        return CodeLine()

    highlight = line.startswith(HIGHLIGHT_MARKER)
    if highlight:
        line = line[len(HIGHLIGHT_MARKER):]

    number, sep, content = line.partition("|")
    if not sep:
        return CodeLine(highlight=highlight)
    return CodeLine(number=number.strip(), content=content, highlight=highlight)
