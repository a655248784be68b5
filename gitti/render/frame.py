"""Pure frame model: what the screen shows, derived from navigator state.

``build_frame`` performs no I/O. Only the diff rows inside the viewport are
highlighted, so the cost per frame is bounded by the terminal height rather
than by the size of the selected file.
"""

from __future__ import annotations

from dataclasses import dataclass

from ..diff_model.flatten import ROW_LINE
from ..diff_model.types import STATUS_ADDED, STATUS_DELETED, STATUS_MODIFIED, STATUS_RENAMED
from ..highlight import classify, highlight
from ..navigation import Navigator

STATUS_GLYPHS = {
    STATUS_ADDED: "+",
    STATUS_DELETED: "-",
    STATUS_MODIFIED: "~",
    STATUS_RENAMED: "R",
}
EMPTY_CHANGE_SET_MESSAGE = "No changes detected"


@dataclass(frozen=True)
class FileListEntry:
    path: str
    glyph: str
    status: str
    selected: bool
    label: str


@dataclass(frozen=True)
class DiffRowView:
    """One visible diff-pane row with its gutter numbers and highlighted spans."""

    kind: str
    text: str
    origin: str | None = None
    old_no: int | None = None
    new_no: int | None = None
    spans: tuple[tuple[str, str], ...] = ()


@dataclass(frozen=True)
class Frame:
    title: str
    files: tuple[FileListEntry, ...]
    file_list_start: int
    rows: tuple[DiffRowView, ...]
    total_rows: int
    scroll_offset: int
    viewport_height: int
    input_mode: str
    status_message: str = ""
    description: str = ""
    empty_message: str | None = None


def file_list_start(selected: int | None, total: int, height: int) -> int:
    """First file-list row to draw so ``selected`` stays visible."""
    height = max(1, height)
    if selected is None or total <= height:
        return 0
    return max(0, min(selected - height + 1, total - height))


def _file_entry(file_diff, selected: bool) -> FileListEntry:
    label = file_diff.path
    if file_diff.renamed_from:
        label = f"{file_diff.renamed_from} → {file_diff.path}"
    return FileListEntry(
        path=file_diff.path,
        glyph=STATUS_GLYPHS.get(file_diff.status, "?"),
        status=file_diff.status,
        selected=selected,
        label=label,
    )


def build_frame(
    navigator: Navigator,
    *,
    title: str = "",
    file_list_height: int | None = None,
    status_message: str = "",
) -> Frame:
    """Snapshot ``navigator`` into a ``Frame`` ready to paint."""
    change_set = navigator.change_set
    state = navigator.state
    height = navigator.viewport_height if file_list_height is None else file_list_height
    files = tuple(
        _file_entry(file_diff, idx == state.selected_file) for idx, file_diff in enumerate(change_set.files)
    )

    empty_message = EMPTY_CHANGE_SET_MESSAGE if not change_set.files else None
    rows: list[DiffRowView] = []
    selected_diff = navigator.selected_diff
    if selected_diff is not None:
        classifier = classify(selected_diff.path, selected_diff.shebang)
        flat_rows = navigator.rows()
        visible = flat_rows[state.scroll_offset : state.scroll_offset + navigator.viewport_height]
        for row in visible:
            if row.kind != ROW_LINE or row.line is None:
                rows.append(DiffRowView(kind=row.kind, text=row.text))
                continue
            line = row.line
            rows.append(
                DiffRowView(
                    kind=row.kind,
                    text=row.text,
                    origin=line.origin,
                    old_no=line.old_no,
                    new_no=line.new_no,
                    spans=tuple(highlight(classifier, row.text)),
                )
            )

    return Frame(
        title=title or change_set.source.describe(),
        files=files,
        file_list_start=file_list_start(state.selected_file, len(files), height),
        rows=tuple(rows),
        total_rows=navigator.total_rows,
        scroll_offset=state.scroll_offset,
        viewport_height=navigator.viewport_height,
        input_mode=state.input_mode,
        status_message=status_message,
        description=change_set.source.describe(),
        empty_message=empty_message,
    )


__all__ = [
    "EMPTY_CHANGE_SET_MESSAGE",
    "STATUS_GLYPHS",
    "DiffRowView",
    "FileListEntry",
    "Frame",
    "build_frame",
    "file_list_start",
]
