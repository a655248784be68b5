"""Flatten one ``FileDiff`` into the scrollable row sequence shown in the diff pane."""

from __future__ import annotations

from dataclasses import dataclass

from .text import display_text
from .types import FileDiff, Line

ROW_HUNK_HEADER = "hunk_header"
ROW_LINE = "line"
ROW_NOTICE = "notice"

BINARY_NOTICE = "Binary file differs"
NO_CONTENT_NOTICE = "No content changes"
UNREADABLE_NOTICE = "Unable to read file"


@dataclass(frozen=True)
class DiffRow:
    kind: str
    text: str
    line: Line | None = None


def flatten_file_diff(file_diff: FileDiff | None) -> list[DiffRow]:
    """Return one header row per hunk followed by its lines.

    A file without hunks flattens to a single notice row naming the reason,
    so every selected file has something to scroll.
    """
    if file_diff is None:
        return []
    if file_diff.read_error is not None:
        return [DiffRow(kind=ROW_NOTICE, text=f"{UNREADABLE_NOTICE}: {file_diff.read_error}")]
    if file_diff.is_binary:
        return [DiffRow(kind=ROW_NOTICE, text=BINARY_NOTICE)]
    if not file_diff.hunks:
        return [DiffRow(kind=ROW_NOTICE, text=NO_CONTENT_NOTICE)]

    rows: list[DiffRow] = []
    for hunk in file_diff.hunks:
        rows.append(DiffRow(kind=ROW_HUNK_HEADER, text=hunk.header()))
        rows.extend(DiffRow(kind=ROW_LINE, text=display_text(line.content), line=line) for line in hunk.lines)
    return rows


__all__ = [
    "ROW_HUNK_HEADER",
    "ROW_LINE",
    "ROW_NOTICE",
    "BINARY_NOTICE",
    "NO_CONTENT_NOTICE",
    "UNREADABLE_NOTICE",
    "DiffRow",
    "flatten_file_diff",
]
