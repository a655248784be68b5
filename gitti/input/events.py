"""Translate decoded key tokens into viewer input events."""

from __future__ import annotations

from dataclasses import dataclass

from ..navigation import INPUT_MODE_MOUSE

WHEEL_SCROLL_LINES = 3
KEY_SCROLL_LINES = 3
PANE_RESIZE_STEP = 2


@dataclass(frozen=True)
class FileUp:
    pass


@dataclass(frozen=True)
class FileDown:
    pass


@dataclass(frozen=True)
class ScrollUp:
    lines: int = KEY_SCROLL_LINES


@dataclass(frozen=True)
class ScrollDown:
    lines: int = KEY_SCROLL_LINES


@dataclass(frozen=True)
class PageUp:
    pass


@dataclass(frozen=True)
class PageDown:
    pass


@dataclass(frozen=True)
class SelectBranch:
    pass


@dataclass(frozen=True)
class SelectCommit:
    direction: int


@dataclass(frozen=True)
class ToggleInputMode:
    pass


@dataclass(frozen=True)
class MouseClick:
    x: int
    y: int


@dataclass(frozen=True)
class ResizePane:
    delta: int


@dataclass(frozen=True)
class Quit:
    pass


InputEvent = (
    FileUp
    | FileDown
    | ScrollUp
    | ScrollDown
    | PageUp
    | PageDown
    | SelectBranch
    | SelectCommit
    | ToggleInputMode
    | MouseClick
    | ResizePane
    | Quit
)

_KEY_EVENTS: dict[str, InputEvent] = {
    "UP": FileUp(),
    "DOWN": FileDown(),
    "k": ScrollUp(KEY_SCROLL_LINES),
    "j": ScrollDown(KEY_SCROLL_LINES),
    "PAGE_UP": PageUp(),
    "PAGE_DOWN": PageDown(),
    "CTRL_U": PageUp(),
    "CTRL_D": PageDown(),
    "b": SelectBranch(),
    "[": SelectCommit(-1),
    "]": SelectCommit(1),
    "LEFT": SelectCommit(-1),
    "RIGHT": SelectCommit(1),
    "m": ToggleInputMode(),
    "q": Quit(),
    "Q": Quit(),
    "CTRL_C": Quit(),
    "SHIFT_LEFT": ResizePane(-PANE_RESIZE_STEP),
    "SHIFT_RIGHT": ResizePane(PANE_RESIZE_STEP),
}


def _mouse_col_row(token: str) -> tuple[int, int] | None:
    parts = token.split(":")
    if len(parts) < 3:
        return None
    try:
        return int(parts[1]), int(parts[2])
    except ValueError:
        return None


def _translate_mouse(token: str) -> InputEvent | None:
    if token.startswith("MOUSE_WHEEL_UP:"):
        return ScrollUp(WHEEL_SCROLL_LINES)
    if token.startswith("MOUSE_WHEEL_DOWN:"):
        return ScrollDown(WHEEL_SCROLL_LINES)
    if token.startswith("MOUSE_LEFT_DOWN:"):
        position = _mouse_col_row(token)
        if position is not None:
            return MouseClick(x=position[0], y=position[1])
    return None


def translate_key(token: str, input_mode: str) -> InputEvent | None:
    """Return the event for ``token``, or ``None`` when it maps to nothing.

    Mouse tokens only produce events in mouse mode.
    """
    if not token:
        return None
    if token.startswith("MOUSE"):
        if input_mode != INPUT_MODE_MOUSE:
            return None
        return _translate_mouse(token)
    return _KEY_EVENTS.get(token)


__all__ = [
    "FileDown",
    "FileUp",
    "InputEvent",
    "MouseClick",
    "PageDown",
    "PageUp",
    "Quit",
    "ResizePane",
    "ScrollDown",
    "ScrollUp",
    "SelectBranch",
    "SelectCommit",
    "ToggleInputMode",
    "translate_key",
]
