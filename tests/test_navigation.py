"""Tests for the selection/scroll state machine.

Covers clamping of every transition, paging, input-mode toggling and the
position-preserving change-set replacement used by live reloads.
"""

from __future__ import annotations

import unittest

from gitti.diff_model import (
    STATUS_ADDED,
    STATUS_MODIFIED,
    ChangeSet,
    FileDiff,
    WorkingVsIndex,
    build_hunks,
)
from gitti.navigation import INPUT_MODE_KEYBOARD, INPUT_MODE_MOUSE, Navigator


def _file(path: str, changed_lines: int = 1, status: str = STATUS_MODIFIED) -> FileDiff:
    old = [f"line {i}" for i in range(changed_lines)]
    new = [f"new {i}" for i in range(changed_lines)]
    return FileDiff(path=path, status=status, hunks=tuple(build_hunks(old, new)))


def _change_set(*files: FileDiff) -> ChangeSet:
    return ChangeSet(source=WorkingVsIndex(), files=tuple(sorted(files, key=lambda f: f.path)))


class NavigatorInitialStateTests(unittest.TestCase):
    def test_initial_state_selects_first_file(self) -> None:
        navigator = Navigator(_change_set(_file("a"), _file("b")), viewport_height=10)

        self.assertEqual(navigator.state.selected_file, 0)
        self.assertEqual(navigator.state.scroll_offset, 0)
        self.assertEqual(navigator.state.input_mode, INPUT_MODE_KEYBOARD)

    def test_empty_change_set_has_no_selection(self) -> None:
        navigator = Navigator(_change_set(), viewport_height=10)

        self.assertIsNone(navigator.state.selected_file)
        self.assertIsNone(navigator.selected_diff)
        self.assertEqual(navigator.total_rows, 0)
        self.assertFalse(navigator.select_next_file())
        self.assertFalse(navigator.scroll_by(5))
        self.assertFalse(navigator.page_down())


class NavigatorTransitionTests(unittest.TestCase):
    def test_file_selection_clamps_and_resets_scroll(self) -> None:
        navigator = Navigator(_change_set(_file("a", 20), _file("b"), _file("c")), viewport_height=5)
        navigator.scroll_by(4)

        self.assertFalse(navigator.select_prev_file())
        self.assertEqual(navigator.state.scroll_offset, 4)
        self.assertTrue(navigator.select_next_file())
        self.assertEqual(navigator.state.selected_file, 1)
        self.assertEqual(navigator.state.scroll_offset, 0)
        self.assertTrue(navigator.select_file(99))
        self.assertEqual(navigator.state.selected_file, 2)
        self.assertFalse(navigator.select_next_file())
        self.assertTrue(navigator.select_file(-3))
        self.assertEqual(navigator.state.selected_file, 0)

    def test_scroll_is_clamped_to_rows_minus_viewport(self) -> None:
        # 10 removed + 10 added + 1 hunk header = 21 rows.
        navigator = Navigator(_change_set(_file("a", 10)), viewport_height=8)
        self.assertEqual(navigator.total_rows, 21)

        self.assertTrue(navigator.scroll_by(100))
        self.assertEqual(navigator.state.scroll_offset, 13)
        self.assertFalse(navigator.scroll_by(1))
        self.assertTrue(navigator.scroll_by(-100))
        self.assertEqual(navigator.state.scroll_offset, 0)

    def test_short_diff_never_scrolls(self) -> None:
        navigator = Navigator(_change_set(_file("a", 1)), viewport_height=20)

        self.assertFalse(navigator.scroll_by(3))
        self.assertEqual(navigator.state.scroll_offset, 0)

    def test_paging_moves_by_viewport_minus_header_allowance(self) -> None:
        navigator = Navigator(_change_set(_file("a", 30)), viewport_height=10)

        self.assertTrue(navigator.page_down())
        self.assertEqual(navigator.state.scroll_offset, 9)
        self.assertTrue(navigator.page_down())
        self.assertEqual(navigator.state.scroll_offset, 18)
        self.assertTrue(navigator.page_up())
        self.assertEqual(navigator.state.scroll_offset, 9)

    def test_page_size_is_at_least_one(self) -> None:
        navigator = Navigator(_change_set(_file("a", 30)), viewport_height=1)

        self.assertEqual(navigator.page_size, 1)
        navigator.page_down()
        self.assertEqual(navigator.state.scroll_offset, 1)

    def test_resize_reclamps_scroll(self) -> None:
        navigator = Navigator(_change_set(_file("a", 10)), viewport_height=5)
        navigator.scroll_by(100)
        self.assertEqual(navigator.state.scroll_offset, 16)

        self.assertTrue(navigator.resize(15))
        self.assertEqual(navigator.state.scroll_offset, 6)
        self.assertFalse(navigator.resize(15))

    def test_toggle_input_mode_flips_without_touching_selection(self) -> None:
        navigator = Navigator(_change_set(_file("a"), _file("b")), viewport_height=5)
        navigator.select_next_file()

        self.assertEqual(navigator.toggle_input_mode(), INPUT_MODE_MOUSE)
        self.assertEqual(navigator.state.selected_file, 1)
        self.assertEqual(navigator.toggle_input_mode(), INPUT_MODE_KEYBOARD)


class NavigatorReplaceChangeSetTests(unittest.TestCase):
    def test_superset_keeps_selected_path_and_scroll(self) -> None:
        navigator = Navigator(_change_set(_file("a"), _file("m", 10), _file("z")), viewport_height=5)
        navigator.select_file(1)
        navigator.scroll_by(3)

        navigator.replace_change_set(_change_set(_file("a"), _file("b"), _file("m", 10), _file("z")))

        self.assertEqual(navigator.selected_path, "m")
        self.assertEqual(navigator.state.selected_file, 2)
        self.assertEqual(navigator.state.scroll_offset, 3)

    def test_shrunk_file_clamps_scroll(self) -> None:
        navigator = Navigator(_change_set(_file("a", 20)), viewport_height=5)
        navigator.scroll_by(30)

        navigator.replace_change_set(_change_set(_file("a", 2)))

        self.assertEqual(navigator.selected_path, "a")
        self.assertEqual(navigator.state.scroll_offset, 0)

    def test_missing_path_resets_to_first_file(self) -> None:
        navigator = Navigator(_change_set(_file("a"), _file("b", 10)), viewport_height=5)
        navigator.select_file(1)
        navigator.scroll_by(2)

        navigator.replace_change_set(_change_set(_file("c"), _file("d")))

        self.assertEqual(navigator.state.selected_file, 0)
        self.assertEqual(navigator.state.scroll_offset, 0)

    def test_empty_replacement_clears_selection(self) -> None:
        navigator = Navigator(_change_set(_file("a")), viewport_height=5)

        navigator.replace_change_set(_change_set())

        self.assertIsNone(navigator.state.selected_file)
        self.assertEqual(navigator.state.scroll_offset, 0)
        self.assertEqual(navigator.rows(), [])

    def test_rows_follow_replaced_diff_for_same_path(self) -> None:
        navigator = Navigator(_change_set(_file("a", 1)), viewport_height=5)
        self.assertEqual(navigator.total_rows, 3)

        navigator.replace_change_set(_change_set(_file("a", 4)))

        self.assertEqual(navigator.total_rows, 9)


if __name__ == "__main__":
    unittest.main()
