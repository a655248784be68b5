"""ANSI palettes for viewer chrome and diff decorations.

Themes color the file list, gutters and added/removed row backgrounds. Token
colors inside diff lines come from the Pygments style instead.
"""

from __future__ import annotations

from dataclasses import dataclass, fields


@dataclass(frozen=True)
class UITheme:
    """Semantic ANSI palette used by renderers."""

    name: str
    divider: str
    reverse: str
    reset: str
    title: str
    file_added: str
    file_removed: str
    file_modified: str
    file_renamed: str
    gutter: str
    hunk_header: str
    line_added: str
    line_removed: str
    notice: str


DEFAULT_THEME = UITheme(
    name="default",
    divider="\033[2m",
    reverse="\033[7m",
    reset="\033[0m",
    title="\033[1;38;5;81m",
    file_added="\033[38;5;42m",
    file_removed="\033[38;5;203m",
    file_modified="\033[38;5;214m",
    file_renamed="\033[38;5;141m",
    gutter="\033[2;38;5;245m",
    hunk_header="\033[38;5;75m",
    line_added="\033[48;5;22m",
    line_removed="\033[48;5;52m",
    notice="\033[2;3;38;5;250m",
)

OCEAN_THEME = UITheme(
    name="ocean",
    divider="\033[2;38;5;31m",
    reverse="\033[7m",
    reset="\033[0m",
    title="\033[1;38;5;45m",
    file_added="\033[38;5;84m",
    file_removed="\033[38;5;210m",
    file_modified="\033[38;5;215m",
    file_renamed="\033[38;5;153m",
    gutter="\033[2;38;5;110m",
    hunk_header="\033[38;5;39m",
    line_added="\033[48;5;23m",
    line_removed="\033[48;5;53m",
    notice="\033[2;3;38;5;110m",
)

# Every escape empty: used for --no-color and non-tty output.
PLAIN_THEME = UITheme(name="plain", **{f.name: "" for f in fields(UITheme) if f.name != "name"})

_THEMES: dict[str, UITheme] = {theme.name: theme for theme in (DEFAULT_THEME, OCEAN_THEME)}


def available_theme_names() -> tuple[str, ...]:
    return tuple(sorted(_THEMES))


def normalize_theme_name(name: str | None) -> str:
    """Map ``name`` onto a known theme, case-insensitively; unknown means default."""
    candidate = (name or "").strip().lower()
    return candidate if candidate in _THEMES else DEFAULT_THEME.name


def resolve_theme(name: str | None, *, no_color: bool = False) -> UITheme:
    return PLAIN_THEME if no_color else _THEMES[normalize_theme_name(name)]


__all__ = [
    "DEFAULT_THEME",
    "OCEAN_THEME",
    "PLAIN_THEME",
    "UITheme",
    "available_theme_names",
    "normalize_theme_name",
    "resolve_theme",
]
