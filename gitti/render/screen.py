"""Screen composition: layout geometry and painting of a ``Frame``.

The screen is one title row, ``content_rows`` rows of file list and diff side
by side, and a reverse-video status row. When the terminal is too narrow for
two panes the diff is drawn alone.
"""

from __future__ import annotations

import logging
import os
import sys
from dataclasses import dataclass

from ..diff_model.flatten import ROW_HUNK_HEADER, ROW_NOTICE
from ..diff_model.types import (
    ORIGIN_ADDED,
    ORIGIN_REMOVED,
    STATUS_ADDED,
    STATUS_DELETED,
    STATUS_RENAMED,
)
from ..errors import RenderError
from ..highlight import DEFAULT_STYLE, style_sgr
from ..navigation import INPUT_MODE_MOUSE
from ..ui_theme import UITheme
from .ansi import display_width, pad_ansi_line
from .frame import DiffRowView, FileListEntry, Frame

logger = logging.getLogger(__name__)

MIN_SPLIT_COLUMNS = 40
MIN_SPLIT_ROWS = 3
CHROME_ROWS = 2
GUTTER_NUMBER_WIDTH = 4
DIVIDER = "│"
KEY_HINTS = "│ ↑↓ files  j/k scroll  b branch  ←→ commit  m mode  q quit"
_SPAN_RESET = "\033[22;23;39m"


@dataclass(frozen=True)
class PaneLayout:
    width: int
    height: int
    content_rows: int
    left_width: int
    right_width: int

    @property
    def split(self) -> bool:
        return self.left_width > 0


def compute_left_width(total_width: int) -> int:
    if total_width <= 60:
        return max(16, total_width // 2)
    return max(20, min(40, total_width // 3))


def clamp_left_width(total_width: int, desired_left: int) -> int:
    max_possible = max(1, total_width - 2)
    min_left = max(12, min(20, total_width - 12))
    max_left = max(min_left, total_width - 12)
    max_left = min(max_left, max_possible)
    min_left = min(min_left, max_left)
    return max(min_left, min(desired_left, max_left))


def compute_split_layout(width: int, height: int, left_width: int) -> PaneLayout:
    """Two-pane geometry; raises ``RenderError`` when the terminal is too small."""
    if width < MIN_SPLIT_COLUMNS or height < MIN_SPLIT_ROWS:
        raise RenderError(f"terminal {width}x{height} too small for split layout")
    left = clamp_left_width(width, left_width)
    return PaneLayout(
        width=width,
        height=height,
        content_rows=height - CHROME_ROWS,
        left_width=left,
        right_width=max(1, width - left - len(DIVIDER)),
    )


def single_column_layout(width: int, height: int) -> PaneLayout:
    return PaneLayout(
        width=max(1, width),
        height=max(1, height),
        content_rows=max(1, height - CHROME_ROWS),
        left_width=0,
        right_width=max(1, width),
    )


def compute_layout(width: int, height: int, left_width: int) -> PaneLayout:
    """Split layout when it fits, otherwise the diff pane alone."""
    try:
        return compute_split_layout(width, height, left_width)
    except RenderError as exc:
        logger.debug("degrading to single column: %s", exc)
        return single_column_layout(width, height)


def selected_with_ansi(text: str) -> str:
    """Apply selection styling without discarding existing ANSI colors."""
    if not text:
        return text

    # Keep reverse video active even when the text contains internal resets.
    return "\033[7m" + text.replace("\033[0m", "\033[0;7m") + "\033[0m"


def build_status_line(left_text: str, width: int, right_text: str = KEY_HINTS) -> str:
    usable = max(1, width - 1)
    if usable <= len(right_text):
        return right_text[-usable:]
    left_limit = max(0, usable - len(right_text) - 1)
    left = left_text[:left_limit]
    gap = " " * (usable - len(left) - len(right_text))
    return f"{left}{gap}{right_text}"


def _status_range(frame: Frame) -> tuple[int, int]:
    if frame.total_rows <= 0:
        return 0, 0
    start = frame.scroll_offset + 1
    end = min(frame.total_rows, frame.scroll_offset + frame.viewport_height)
    return start, end


def _scroll_percent(frame: Frame) -> float:
    max_start = max(0, frame.total_rows - max(1, frame.viewport_height))
    if max_start <= 0:
        return 0.0
    return (min(frame.scroll_offset, max_start) / max_start) * 100.0


def status_text(frame: Frame) -> str:
    """Left side of the status line: message, comparison, mode and scroll range."""
    start, end = _status_range(frame)
    mode = "mouse" if frame.input_mode == INPUT_MODE_MOUSE else "keys"
    parts = [frame.status_message, frame.description, f"[{mode}]"]
    parts.append(f"{start}-{end}/{frame.total_rows} {_scroll_percent(frame):5.1f}%")
    return " ".join(part for part in parts if part)


def _file_color(entry: FileListEntry, theme: UITheme) -> str:
    if entry.status == STATUS_ADDED:
        return theme.file_added
    if entry.status == STATUS_DELETED:
        return theme.file_removed
    if entry.status == STATUS_RENAMED:
        return theme.file_renamed
    return theme.file_modified


def format_file_entry(entry: FileListEntry, width: int, theme: UITheme) -> str:
    color = _file_color(entry, theme)
    text = f"{color}{entry.glyph}{theme.reset} {entry.label}"
    cell = pad_ansi_line(text, width)
    if entry.selected:
        return selected_with_ansi(cell)
    return cell


def _gutter(row: DiffRowView) -> str:
    old = "" if row.old_no is None else str(row.old_no)
    new = "" if row.new_no is None else str(row.new_no)
    return f"{old:>{GUTTER_NUMBER_WIDTH}} {new:>{GUTTER_NUMBER_WIDTH}}{DIVIDER}"


def format_diff_row(
    row: DiffRowView,
    width: int,
    theme: UITheme,
    style_name: str = DEFAULT_STYLE,
    no_color: bool = False,
) -> str:
    """Paint one diff row: gutter, origin marker, then highlighted content."""
    blank_gutter = " " * (GUTTER_NUMBER_WIDTH * 2 + 1) + DIVIDER
    if row.kind == ROW_HUNK_HEADER:
        body = f"{theme.gutter}{blank_gutter}{theme.reset}{theme.hunk_header}{row.text}"
        return pad_ansi_line(body, width) + theme.reset
    if row.kind == ROW_NOTICE:
        body = f"{theme.gutter}{blank_gutter}{theme.reset}{theme.notice}{row.text}"
        return pad_ansi_line(body, width) + theme.reset

    if row.origin == ORIGIN_ADDED:
        background, marker = theme.line_added, "+"
    elif row.origin == ORIGIN_REMOVED:
        background, marker = theme.line_removed, "-"
    else:
        background, marker = "", " "

    pieces: list[str] = []
    for text, tag in row.spans:
        sgr = "" if no_color else style_sgr(tag, style_name)
        pieces.append(f"{sgr}{text}{_SPAN_RESET}" if sgr else text)
    body = f"{theme.gutter}{_gutter(row)}{theme.reset}{background}{marker}{''.join(pieces)}"
    return pad_ansi_line(body, width) + theme.reset


def _diff_pane_lines(
    frame: Frame,
    layout: PaneLayout,
    theme: UITheme,
    style_name: str,
    no_color: bool,
) -> list[str]:
    width = layout.right_width
    lines: list[str] = []
    if frame.empty_message is not None:
        lines.append(pad_ansi_line(f"{theme.notice}{frame.empty_message}", width) + theme.reset)
    for row in frame.rows:
        lines.append(format_diff_row(row, width, theme, style_name, no_color))
    lines = lines[: layout.content_rows]
    lines.extend(" " * width for _ in range(layout.content_rows - len(lines)))
    return lines


def _file_pane_lines(frame: Frame, layout: PaneLayout, theme: UITheme) -> list[str]:
    visible = frame.files[frame.file_list_start : frame.file_list_start + layout.content_rows]
    lines = [format_file_entry(entry, layout.left_width, theme) for entry in visible]
    lines.extend(" " * layout.left_width for _ in range(layout.content_rows - len(lines)))
    return lines


def _title_text(frame: Frame, layout: PaneLayout) -> str:
    if layout.split:
        return f" {frame.title}"
    selected = next(((idx, entry) for idx, entry in enumerate(frame.files) if entry.selected), None)
    if selected is None:
        return f" {frame.title}"
    idx, entry = selected
    return f" {frame.title} · {entry.glyph} {entry.label} ({idx + 1}/{len(frame.files)})"


def render_frame_lines(
    frame: Frame,
    layout: PaneLayout,
    theme: UITheme,
    style_name: str = DEFAULT_STYLE,
    no_color: bool = False,
) -> list[str]:
    """Compose every screen row of ``frame`` (without line terminators)."""
    lines = [pad_ansi_line(f"{theme.title}{_title_text(frame, layout)}", layout.width) + theme.reset]
    diff_lines = _diff_pane_lines(frame, layout, theme, style_name, no_color)
    if layout.split:
        file_lines = _file_pane_lines(frame, layout, theme)
        divider = f"{theme.divider}{DIVIDER}{theme.reset}"
        lines.extend(f"{left}{divider}{right}" for left, right in zip(file_lines, diff_lines))
    else:
        lines.extend(diff_lines)

    status = build_status_line(status_text(frame), layout.width)
    if theme.reverse:
        status = f"{theme.reverse}{status}{theme.reset}"
    lines.append(status)
    return lines[: max(1, layout.height)]


def render_frame(
    frame: Frame,
    layout: PaneLayout,
    theme: UITheme,
    style_name: str = DEFAULT_STYLE,
    no_color: bool = False,
) -> None:
    out = ["\033[H\033[J"]
    out.append("\r\n".join(render_frame_lines(frame, layout, theme, style_name, no_color)))
    os.write(sys.stdout.fileno(), "".join(out).encode("utf-8", errors="replace"))


def file_index_at(frame: Frame, layout: PaneLayout, x: int, y: int) -> int | None:
    """Map a 1-based terminal cell to a file-list index, or ``None``."""
    if not layout.split or x < 1 or x > layout.left_width:
        return None
    row = y - 2
    if row < 0 or row >= layout.content_rows:
        return None
    index = frame.file_list_start + row
    if index >= len(frame.files):
        return None
    return index


__all__ = [
    "MIN_SPLIT_COLUMNS",
    "PaneLayout",
    "build_status_line",
    "clamp_left_width",
    "compute_layout",
    "compute_left_width",
    "compute_split_layout",
    "display_width",
    "file_index_at",
    "format_diff_row",
    "format_file_entry",
    "render_frame",
    "render_frame_lines",
    "single_column_layout",
    "status_text",
]
