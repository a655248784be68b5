"""Persistent JSON config helpers.

Stores viewer settings (styles, diff context, reload timing) and the pane
split. All access is defensive: malformed or missing config falls back safely.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path

from platformdirs import user_config_dir

from .diff_model.hunks import DEFAULT_CONTEXT_LINES
from .highlight import DEFAULT_STYLE
from .runtime.reload import RELOAD_COALESCE_SECONDS
from .sources import COMMIT_LIST_LIMIT
from .ui_theme import DEFAULT_THEME
from .watch import WATCH_POLL_SECONDS

logger = logging.getLogger(__name__)

APP_NAME = "gitti"
CONFIG_FILENAME = "config.json"
CONFIG_PATH = Path(user_config_dir(APP_NAME, appauthor=False)) / CONFIG_FILENAME


@dataclass(frozen=True)
class Settings:
    style: str = DEFAULT_STYLE
    theme: str = DEFAULT_THEME.name
    context_lines: int = DEFAULT_CONTEXT_LINES
    watch_poll_seconds: float = WATCH_POLL_SECONDS
    reload_coalesce_seconds: float = RELOAD_COALESCE_SECONDS
    commit_limit: int = COMMIT_LIST_LIMIT
    left_pane_percent: float | None = None


def load_config() -> dict[str, object]:
    """Load the persisted JSON config object.

    Returns an empty dict when the file is missing, unreadable, malformed, or
    does not decode to a top-level JSON object.
    """
    try:
        data = json.loads(CONFIG_PATH.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return {}
    except (OSError, ValueError) as exc:
        logger.warning("ignoring unreadable config %s: %s", CONFIG_PATH, exc)
        return {}
    return data if isinstance(data, dict) else {}


def save_config(data: dict[str, object]) -> None:
    """Persist config data as pretty-printed JSON.

    Filesystem errors are logged and otherwise ignored; a read-only config
    directory must not break the viewer.
    """
    try:
        CONFIG_PATH.parent.mkdir(parents=True, exist_ok=True)
        CONFIG_PATH.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")
    except OSError as exc:
        logger.warning("could not write config %s: %s", CONFIG_PATH, exc)


def _string(value: object, default: str) -> str:
    if not isinstance(value, str):
        return default
    stripped = value.strip()
    return stripped if stripped else default


def _int_at_least(value: object, minimum: int, default: int) -> int:
    # bool is an int subclass; reject it explicitly.
    if isinstance(value, bool) or not isinstance(value, int) or value < minimum:
        return default
    return value


def _positive_float(value: object, default: float, *, allow_zero: bool = False) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return default
    if value < 0 or (value == 0 and not allow_zero):
        return default
    return float(value)


def _percent(value: object) -> float | None:
    """Accept a percentage constrained to the open interval (0, 100)."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if value <= 0 or value >= 100:
        return None
    return float(value)


def load_settings() -> Settings:
    data = load_config()
    defaults = Settings()
    return Settings(
        style=_string(data.get("style"), defaults.style),
        theme=_string(data.get("theme"), defaults.theme),
        context_lines=_int_at_least(data.get("context_lines"), 0, defaults.context_lines),
        watch_poll_seconds=_positive_float(data.get("watch_poll_seconds"), defaults.watch_poll_seconds),
        reload_coalesce_seconds=_positive_float(
            data.get("reload_coalesce_seconds"),
            defaults.reload_coalesce_seconds,
            allow_zero=True,
        ),
        commit_limit=_int_at_least(data.get("commit_limit"), 1, defaults.commit_limit),
        left_pane_percent=_percent(data.get("left_pane_percent")),
    )


def save_left_pane_percent(total_width: int, left_width: int) -> None:
    """Store the pane split as a bounded percentage.

    ``left_width / total_width`` is clamped to ``[1.0, 99.0]`` and rounded to
    two decimals before persisting.
    """
    if total_width <= 0:
        return
    percent = max(1.0, min(99.0, (left_width / total_width) * 100.0))
    config = load_config()
    config["left_pane_percent"] = round(percent, 2)
    save_config(config)


__all__ = [
    "CONFIG_PATH",
    "Settings",
    "load_config",
    "load_settings",
    "save_config",
    "save_left_pane_percent",
]
