from __future__ import annotations

import json
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from gitti import config


class ConfigBehaviorTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.config_path = Path(self._tmp.name) / "nested" / "config.json"
        patcher = mock.patch("gitti.config.CONFIG_PATH", self.config_path)
        patcher.start()
        self.addCleanup(patcher.stop)
        self.addCleanup(self._tmp.cleanup)

    def _write(self, data: object) -> None:
        self.config_path.parent.mkdir(parents=True, exist_ok=True)
        self.config_path.write_text(json.dumps(data), encoding="utf-8")

    def test_missing_config_yields_defaults(self) -> None:
        self.assertEqual(config.load_config(), {})
        self.assertEqual(config.load_settings(), config.Settings())

    def test_valid_values_are_loaded(self) -> None:
        self._write(
            {
                "style": "friendly",
                "theme": "ocean",
                "context_lines": 0,
                "watch_poll_seconds": 1.5,
                "reload_coalesce_seconds": 0,
                "commit_limit": 10,
                "left_pane_percent": 30,
            }
        )

        settings = config.load_settings()

        self.assertEqual(settings.style, "friendly")
        self.assertEqual(settings.theme, "ocean")
        self.assertEqual(settings.context_lines, 0)
        self.assertEqual(settings.watch_poll_seconds, 1.5)
        self.assertEqual(settings.reload_coalesce_seconds, 0.0)
        self.assertEqual(settings.commit_limit, 10)
        self.assertEqual(settings.left_pane_percent, 30.0)

    def test_malformed_values_fall_back_to_defaults(self) -> None:
        self._write(
            {
                "style": "   ",
                "theme": 3,
                "context_lines": -1,
                "watch_poll_seconds": 0,
                "reload_coalesce_seconds": "soon",
                "commit_limit": True,
                "left_pane_percent": 150,
            }
        )

        self.assertEqual(config.load_settings(), config.Settings())

    def test_malformed_json_is_logged_and_ignored(self) -> None:
        self.config_path.parent.mkdir(parents=True)
        self.config_path.write_text("{not json", encoding="utf-8")

        with self.assertLogs("gitti.config", level="WARNING"):
            self.assertEqual(config.load_config(), {})

    def test_non_object_json_is_ignored(self) -> None:
        self._write([1, 2, 3])

        self.assertEqual(config.load_config(), {})

    def test_save_left_pane_percent_round_trips_and_keeps_other_keys(self) -> None:
        self._write({"style": "friendly"})

        config.save_left_pane_percent(120, 40)

        saved = config.load_config()
        self.assertEqual(saved["left_pane_percent"], 33.33)
        self.assertEqual(saved["style"], "friendly")
        self.assertEqual(config.load_settings().left_pane_percent, 33.33)

    def test_save_left_pane_percent_clamps(self) -> None:
        config.save_left_pane_percent(100, 100)
        self.assertEqual(config.load_config()["left_pane_percent"], 99.0)

        config.save_left_pane_percent(0, 10)
        self.assertEqual(config.load_config()["left_pane_percent"], 99.0)

    def test_unwritable_config_is_logged(self) -> None:
        with mock.patch.object(Path, "write_text", side_effect=PermissionError("read-only")):
            with self.assertLogs("gitti.config", level="WARNING"):
                config.save_config({"style": "friendly"})


if __name__ == "__main__":
    unittest.main()
