"""ANSI-aware width measurement and clipping for pane composition."""

from __future__ import annotations

import re
import unicodedata
from collections.abc import Iterator

ANSI_ESCAPE_RE = re.compile(r"\x1b\[[0-9;?]*[ -/]*[@-~]")
TAB_STOP = 8


def char_display_width(ch: str, col: int) -> int:
    """Terminal columns taken by ``ch`` when drawn at visual column ``col``.

    Tabs advance to the next stop, combining marks take none and East Asian
    wide/fullwidth characters take two.
    """
    if ch == "\t":
        return TAB_STOP - (col % TAB_STOP)
    if unicodedata.combining(ch):
        return 0
    return 2 if unicodedata.east_asian_width(ch) in {"W", "F"} else 1


def _cells(text: str) -> Iterator[tuple[str, int]]:
    """Yield ``(piece, width)`` for each escape sequence (width 0) or character."""
    col = 0
    pos = 0
    while pos < len(text):
        escape = ANSI_ESCAPE_RE.match(text, pos) if text[pos] == "\x1b" else None
        if escape is not None:
            yield escape.group(0), 0
            pos = escape.end()
            continue
        width = char_display_width(text[pos], col)
        # Tabs are expanded so clipped output lines up with terminal cells.
        yield (" " * width if text[pos] == "\t" else text[pos]), width
        col += width
        pos += 1


def display_width(text: str) -> int:
    """Visible column count of ``text``; escape sequences count as zero."""
    return sum(width for _piece, width in _cells(text))


def clip_ansi_line(text: str, max_cols: int) -> str:
    """Keep at most ``max_cols`` visible columns of ``text``.

    Escape sequences before the cut are preserved verbatim.
    """
    if max_cols <= 0:
        return ""
    kept: list[str] = []
    used = 0
    for piece, width in _cells(text):
        if width and used + width > max_cols:
            break
        kept.append(piece)
        used += width
        if used >= max_cols:
            break
    return "".join(kept)


def pad_ansi_line(text: str, width: int) -> str:
    """Clip ``text`` to ``width`` columns and right-pad it with spaces."""
    clipped = clip_ansi_line(text, width)
    return clipped + " " * max(0, width - display_width(clipped))


__all__ = [
    "ANSI_ESCAPE_RE",
    "char_display_width",
    "clip_ansi_line",
    "display_width",
    "pad_ansi_line",
]
