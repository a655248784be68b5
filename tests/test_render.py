"""Frame building, layout degradation and screen composition tests."""

from __future__ import annotations

import unittest
from unittest import mock

from gitti.diff_model import (
    STATUS_ADDED,
    STATUS_MODIFIED,
    STATUS_RENAMED,
    ChangeSet,
    CommitVsCommit,
    FileDiff,
    WorkingVsIndex,
)
from gitti.diff_model.flatten import ROW_HUNK_HEADER, ROW_LINE, ROW_NOTICE
from gitti.diff_model.hunks import build_hunks
from gitti.errors import RenderError
from gitti.highlight import PLAIN_STYLE_TAG
from gitti.navigation import Navigator
from gitti.render.ansi import ANSI_ESCAPE_RE, display_width
from gitti.render.frame import EMPTY_CHANGE_SET_MESSAGE, DiffRowView, build_frame, file_list_start
from gitti.render.screen import (
    DIVIDER,
    build_status_line,
    compute_layout,
    compute_split_layout,
    file_index_at,
    format_diff_row,
    render_frame,
    render_frame_lines,
    status_text,
)
from gitti.ui_theme import DEFAULT_THEME, PLAIN_THEME


def _strip(text: str) -> str:
    return ANSI_ESCAPE_RE.sub("", text)


def _change_set() -> ChangeSet:
    modified = FileDiff(
        path="src/app.py",
        status=STATUS_MODIFIED,
        hunks=tuple(build_hunks(["a = 1", "b = 2", "c = 3"], ["a = 1", "b = 20", "c = 3"], 1)),
    )
    added = FileDiff(path="notes.md", status=STATUS_ADDED, hunks=tuple(build_hunks([], ["hello"], 3)))
    renamed = FileDiff(path="new.txt", status=STATUS_RENAMED, renamed_from="old.txt")
    return ChangeSet(source=WorkingVsIndex(), files=(modified, added, renamed))


class BuildFrameTests(unittest.TestCase):
    def test_frame_lists_files_and_visible_rows(self) -> None:
        navigator = Navigator(_change_set(), viewport_height=10)

        frame = build_frame(navigator, title="Local changes")

        self.assertEqual([entry.glyph for entry in frame.files], ["~", "+", "R"])
        self.assertTrue(frame.files[0].selected)
        self.assertEqual(frame.files[2].label, "old.txt → new.txt")
        self.assertEqual([row.kind for row in frame.rows][0], ROW_HUNK_HEADER)
        self.assertEqual(frame.rows[0].text, "@@ -1,3 +1,3 @@")
        line_rows = [row for row in frame.rows if row.kind == ROW_LINE]
        self.assertEqual(len(line_rows), 4)
        self.assertEqual("".join(text for text, _ in line_rows[1].spans), "b = 2")
        self.assertIsNone(frame.empty_message)

    def test_shebang_highlights_extensionless_script(self) -> None:
        script = FileDiff(
            path="bin/tool",
            status=STATUS_ADDED,
            hunks=tuple(build_hunks([], ["import os"], 3)),
            shebang="#!/usr/bin/env python3",
        )
        navigator = Navigator(ChangeSet(source=WorkingVsIndex(), files=(script,)), viewport_height=5)

        line_row = build_frame(navigator).rows[1]

        self.assertNotEqual({tag for _text, tag in line_row.spans}, {PLAIN_STYLE_TAG})

    def test_only_viewport_rows_are_built(self) -> None:
        lines = [f"line {i}" for i in range(50)]
        big = FileDiff(path="big.txt", status=STATUS_ADDED, hunks=tuple(build_hunks([], lines, 3)))
        navigator = Navigator(ChangeSet(source=WorkingVsIndex(), files=(big,)), viewport_height=5)
        navigator.scroll_by(10)

        frame = build_frame(navigator)

        self.assertEqual(len(frame.rows), 5)
        self.assertEqual(frame.rows[0].new_no, 10)
        self.assertEqual(frame.total_rows, 51)
        self.assertEqual(frame.title, WorkingVsIndex().describe())

    def test_empty_change_set_carries_message(self) -> None:
        navigator = Navigator(ChangeSet(source=WorkingVsIndex(), files=()), viewport_height=5)

        frame = build_frame(navigator)

        self.assertEqual(frame.files, ())
        self.assertEqual(frame.rows, ())
        self.assertEqual(frame.empty_message, EMPTY_CHANGE_SET_MESSAGE)

    def test_rename_without_content_shows_notice(self) -> None:
        navigator = Navigator(_change_set(), viewport_height=5)
        navigator.select_file(2)

        frame = build_frame(navigator)

        self.assertEqual([row.kind for row in frame.rows], [ROW_NOTICE])

    def test_file_list_start_keeps_selection_visible(self) -> None:
        self.assertEqual(file_list_start(None, 30, 5), 0)
        self.assertEqual(file_list_start(2, 30, 5), 0)
        self.assertEqual(file_list_start(10, 30, 5), 6)
        self.assertEqual(file_list_start(29, 30, 5), 25)
        self.assertEqual(file_list_start(3, 4, 5), 0)


class LayoutTests(unittest.TestCase):
    def test_split_layout_raises_when_too_small(self) -> None:
        with self.assertRaises(RenderError):
            compute_split_layout(30, 10, 20)
        with self.assertRaises(RenderError):
            compute_split_layout(100, 2, 20)

    def test_compute_layout_degrades_to_single_column(self) -> None:
        layout = compute_layout(30, 10, 20)

        self.assertFalse(layout.split)
        self.assertEqual(layout.right_width, 30)
        self.assertEqual(layout.content_rows, 8)

    def test_split_layout_geometry(self) -> None:
        layout = compute_layout(100, 30, 30)

        self.assertTrue(layout.split)
        self.assertEqual(layout.left_width + len(DIVIDER) + layout.right_width, 100)
        self.assertEqual(layout.content_rows, 28)


class RenderFrameLinesTests(unittest.TestCase):
    def _frame(self, width: int, height: int, left: int = 24, title: str = "Local changes [main]"):
        layout = compute_layout(width, height, left)
        navigator = Navigator(_change_set(), viewport_height=layout.content_rows)
        return build_frame(navigator, title=title, file_list_height=layout.content_rows), layout

    def test_split_screen_fills_terminal(self) -> None:
        frame, layout = self._frame(80, 12)

        lines = render_frame_lines(frame, layout, DEFAULT_THEME)

        self.assertEqual(len(lines), 12)
        for line in lines[:-1]:
            self.assertEqual(display_width(line), 80)
        plain = [_strip(line) for line in lines]
        self.assertIn("Local changes [main]", plain[0])
        self.assertTrue(plain[1].startswith("~ src/app.py"))
        self.assertIn(DIVIDER + "@@ -1,3 +1,3 @@", plain[1])
        self.assertIn("[keys]", plain[-1])

    def test_single_column_title_names_selected_file(self) -> None:
        frame, layout = self._frame(30, 8, title="Diff")

        lines = [_strip(line) for line in render_frame_lines(frame, layout, PLAIN_THEME, no_color=True)]

        self.assertEqual(lines[0].rstrip(), " Diff · ~ src/app.py (1/3)")
        self.assertTrue(lines[1].startswith(" " * 9 + DIVIDER + "@@"))

    def test_empty_state_message_is_drawn(self) -> None:
        layout = compute_layout(80, 8, 24)
        navigator = Navigator(ChangeSet(source=WorkingVsIndex(), files=()), viewport_height=layout.content_rows)
        frame = build_frame(navigator)

        lines = [_strip(line) for line in render_frame_lines(frame, layout, PLAIN_THEME, no_color=True)]

        self.assertIn(EMPTY_CHANGE_SET_MESSAGE, lines[1])

    def test_plain_diff_row_layout(self) -> None:
        row = DiffRowView(kind=ROW_LINE, text="a", origin="context", old_no=1, new_no=1, spans=(("a", "Name"),))

        rendered = format_diff_row(row, 20, PLAIN_THEME, no_color=True)

        self.assertEqual(rendered, "   1    1│ a" + " " * 8)

    def test_render_frame_writes_home_and_clear(self) -> None:
        frame, layout = self._frame(80, 6)
        stdout = mock.Mock()
        stdout.fileno.return_value = 1
        with mock.patch("gitti.render.screen.sys.stdout", stdout), mock.patch("gitti.render.screen.os.write") as write:
            render_frame(frame, layout, PLAIN_THEME, no_color=True)

        payload = write.call_args.args[1].decode("utf-8")
        self.assertTrue(payload.startswith("\033[H\033[J"))
        self.assertEqual(payload.count("\r\n"), 5)


class StatusAndHitTestTests(unittest.TestCase):
    def test_status_line_keeps_hints_on_the_right(self) -> None:
        line = build_status_line("left", 100, right_text="HINTS")

        self.assertEqual(len(line), 99)
        self.assertTrue(line.startswith("left"))
        self.assertTrue(line.endswith("HINTS"))

    def test_status_text_reports_range_mode_and_message(self) -> None:
        navigator = Navigator(_change_set(), viewport_height=2)
        frame = build_frame(navigator, status_message="Loading main…")

        text = status_text(frame)

        self.assertTrue(text.startswith("Loading main… working tree vs index [keys] 1-2/5"))

    def test_status_line_names_the_comparison(self) -> None:
        change_set = ChangeSet(source=CommitVsCommit(old="abc123", new="HEAD"), files=_change_set().files)
        layout = compute_layout(120, 8, 30)
        frame = build_frame(Navigator(change_set, viewport_height=layout.content_rows), title="Diff")

        lines = render_frame_lines(frame, layout, PLAIN_THEME, no_color=True)

        self.assertTrue(lines[-1].startswith("abc123..HEAD [keys]"))

    def test_file_index_at_maps_clicks_in_file_pane(self) -> None:
        layout = compute_layout(80, 12, 24)
        navigator = Navigator(_change_set(), viewport_height=layout.content_rows)
        frame = build_frame(navigator, file_list_height=layout.content_rows)

        self.assertEqual(file_index_at(frame, layout, 3, 2), 0)
        self.assertEqual(file_index_at(frame, layout, 3, 4), 2)
        self.assertIsNone(file_index_at(frame, layout, 3, 5))
        self.assertIsNone(file_index_at(frame, layout, 3, 1))
        self.assertIsNone(file_index_at(frame, layout, 60, 2))

    def test_file_index_at_ignores_single_column(self) -> None:
        layout = compute_layout(30, 8, 24)
        navigator = Navigator(_change_set(), viewport_height=layout.content_rows)
        frame = build_frame(navigator)

        self.assertIsNone(file_index_at(frame, layout, 1, 2))


if __name__ == "__main__":
    unittest.main()
