"""File selection and diff scroll state machine.

``Navigator`` is the single owner of ``NavState`` and the current
``ChangeSet``. Input events and change-set replacements mutate it in place;
the renderer only reads from it.
"""

from __future__ import annotations

from dataclasses import dataclass

from .diff_model.flatten import DiffRow, flatten_file_diff
from .diff_model.types import ChangeSet, FileDiff

INPUT_MODE_KEYBOARD = "keyboard"
INPUT_MODE_MOUSE = "mouse"
PAGE_HEADER_ALLOWANCE = 1


@dataclass
class NavState:
    selected_file: int | None = None
    scroll_offset: int = 0
    input_mode: str = INPUT_MODE_KEYBOARD


class Navigator:
    """Selection/scroll transitions over the current change set.

    Every transition keeps ``selected_file`` a valid index (or ``None`` when
    the change set is empty) and ``scroll_offset`` within
    ``[0, max(0, total_rows - viewport_height)]``.
    """

    def __init__(self, change_set: ChangeSet, viewport_height: int = 1) -> None:
        self.change_set = change_set
        self.viewport_height = max(1, viewport_height)
        self.state = NavState(selected_file=0 if change_set.files else None)
        self._rows_for: FileDiff | None = None
        self._rows: list[DiffRow] = []

    @property
    def selected_diff(self) -> FileDiff | None:
        index = self.state.selected_file
        if index is None:
            return None
        return self.change_set.files[index]

    @property
    def selected_path(self) -> str | None:
        selected = self.selected_diff
        return selected.path if selected is not None else None

    def rows(self) -> list[DiffRow]:
        """Return flattened rows of the selected file, cached per ``FileDiff``."""
        selected = self.selected_diff
        if selected is not self._rows_for:
            self._rows_for = selected
            self._rows = flatten_file_diff(selected)
        return self._rows

    @property
    def total_rows(self) -> int:
        return len(self.rows())

    @property
    def max_scroll(self) -> int:
        return max(0, self.total_rows - self.viewport_height)

    @property
    def page_size(self) -> int:
        return max(1, self.viewport_height - PAGE_HEADER_ALLOWANCE)

    def _clamp_scroll(self) -> None:
        self.state.scroll_offset = max(0, min(self.state.scroll_offset, self.max_scroll))

    def select_file(self, index: int) -> bool:
        """Select ``index`` clamped to the file list; resets scroll. Returns change."""
        if not self.change_set.files:
            return False
        target = max(0, min(index, len(self.change_set.files) - 1))
        if target == self.state.selected_file:
            return False
        self.state.selected_file = target
        self.state.scroll_offset = 0
        return True

    def select_next_file(self) -> bool:
        if self.state.selected_file is None:
            return False
        return self.select_file(self.state.selected_file + 1)

    def select_prev_file(self) -> bool:
        if self.state.selected_file is None:
            return False
        return self.select_file(self.state.selected_file - 1)

    def scroll_by(self, delta: int) -> bool:
        previous = self.state.scroll_offset
        self.state.scroll_offset += delta
        self._clamp_scroll()
        return self.state.scroll_offset != previous

    def page_down(self) -> bool:
        return self.scroll_by(self.page_size)

    def page_up(self) -> bool:
        return self.scroll_by(-self.page_size)

    def resize(self, viewport_height: int) -> bool:
        """Set diff viewport height and reclamp scroll. Returns whether anything changed."""
        height = max(1, viewport_height)
        previous = (self.viewport_height, self.state.scroll_offset)
        self.viewport_height = height
        self._clamp_scroll()
        return (self.viewport_height, self.state.scroll_offset) != previous

    def toggle_input_mode(self) -> str:
        if self.state.input_mode == INPUT_MODE_KEYBOARD:
            self.state.input_mode = INPUT_MODE_MOUSE
        else:
            self.state.input_mode = INPUT_MODE_KEYBOARD
        return self.state.input_mode

    def replace_change_set(self, change_set: ChangeSet) -> None:
        """Swap in ``change_set``, keeping the selected path when it still exists.

        A path that disappeared (including one renamed across the refresh)
        resets selection to the first file and scroll to the top.
        """
        previous_path = self.selected_path
        self.change_set = change_set
        self._rows_for = None
        self._rows = []

        if not change_set.files:
            self.state.selected_file = None
            self.state.scroll_offset = 0
            return

        index = change_set.index_of(previous_path) if previous_path is not None else None
        if index is None:
            self.state.selected_file = 0
            self.state.scroll_offset = 0
            return
        self.state.selected_file = index
        self._clamp_scroll()


__all__ = [
    "INPUT_MODE_KEYBOARD",
    "INPUT_MODE_MOUSE",
    "PAGE_HEADER_ALLOWANCE",
    "NavState",
    "Navigator",
]
