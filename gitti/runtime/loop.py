"""Terminal event loop driving the interactive viewer.

Each pass syncs the layout to the terminal size, drains background work,
redraws when needed and dispatches at most one input event. Viewer behavior
is supplied through ``RuntimeLoopCallbacks``.
"""

from __future__ import annotations

import shutil
from collections.abc import Callable
from dataclasses import dataclass

from ..input import read_key as _read_key
from ..input import translate_key
from ..input.events import InputEvent

FALLBACK_TERMINAL_SIZE = (80, 24)


@dataclass(frozen=True)
class RuntimeLoopTiming:
    input_poll_ms: int = 50


@dataclass(frozen=True)
class RuntimeLoopCallbacks:
    """Viewer hooks invoked by ``run_main_loop`` on the loop thread."""

    sync_layout: Callable[[int, int], None]
    poll_background: Callable[[], None]
    render_if_dirty: Callable[[], None]
    input_mode: Callable[[], str]
    mouse_reporting: Callable[[], bool]
    handle_event: Callable[[InputEvent, int], bool]


def _next_event(read_key, stdin_fd: int, timeout_ms: int, mode: str) -> InputEvent | None:
    token = read_key(stdin_fd, timeout_ms=timeout_ms)
    return translate_key(token, mode) if token else None


def run_main_loop(
    terminal,
    stdin_fd: int,
    timing: RuntimeLoopTiming,
    callbacks: RuntimeLoopCallbacks,
    *,
    read_key: Callable[..., str] = _read_key,
    get_terminal_size: Callable[..., object] = shutil.get_terminal_size,
) -> None:
    """Loop until ``handle_event`` returns ``True``.

    Key reads time out after ``timing.input_poll_ms`` so reload ticks and
    derivation results land while the keyboard is idle.
    """
    with terminal.raw_mode(callbacks.mouse_reporting()):
        quit_requested = False
        while not quit_requested:
            size = get_terminal_size(FALLBACK_TERMINAL_SIZE)
            callbacks.sync_layout(size.columns, size.lines)
            callbacks.poll_background()
            terminal.set_mouse_reporting(callbacks.mouse_reporting())
            callbacks.render_if_dirty()

            event = _next_event(read_key, stdin_fd, timing.input_poll_ms, callbacks.input_mode())
            if event is not None:
                quit_requested = callbacks.handle_event(event, size.columns)


__all__ = ["RuntimeLoopCallbacks", "RuntimeLoopTiming", "run_main_loop"]
