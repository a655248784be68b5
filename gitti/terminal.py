"""Terminal session control: raw mode, alternate screen and mouse reporting."""

from __future__ import annotations

import contextlib
import logging
import os
import termios
import tty

logger = logging.getLogger(__name__)

_ALT_SCREEN_ON = b"\x1b[?1049h"
_ALT_SCREEN_OFF = b"\x1b[?1049l"
_CURSOR_HIDE = b"\x1b[?25l"
_CURSOR_SHOW = b"\x1b[?25h"
# Button press/release, drag motion, SGR extended coordinates.
_MOUSE_MODES = (1000, 1002, 1006)
_MOUSE_ON = b"".join(b"\x1b[?%dh" % mode for mode in _MOUSE_MODES)
_MOUSE_OFF = b"".join(b"\x1b[?%dl" % mode for mode in _MOUSE_MODES)


class TerminalController:
    """Raw-mode session over a pair of tty descriptors.

    Mouse reporting starts off and follows the viewer's input mode; leaving
    the session always restores the tty attributes saved at construction.
    """

    def __init__(self, stdin_fd: int, stdout_fd: int) -> None:
        self.stdin_fd = stdin_fd
        self.stdout_fd = stdout_fd
        self._saved_tty_state = termios.tcgetattr(stdin_fd)
        self._mouse_reporting_enabled = False

    @property
    def mouse_reporting(self) -> bool:
        return self._mouse_reporting_enabled

    def _write(self, *chunks: bytes) -> None:
        os.write(self.stdout_fd, b"".join(chunks))

    def enable_tui_mode(self, mouse_reporting: bool = False) -> None:
        tty.setraw(self.stdin_fd, termios.TCSAFLUSH)
        self._write(_ALT_SCREEN_ON, _CURSOR_HIDE)
        self.set_mouse_reporting(mouse_reporting)

    def disable_tui_mode(self) -> None:
        self._write(_MOUSE_OFF, _CURSOR_SHOW, _ALT_SCREEN_OFF)
        self._mouse_reporting_enabled = False
        try:
            termios.tcsetattr(self.stdin_fd, termios.TCSAFLUSH, self._saved_tty_state)
        except termios.error as exc:
            logger.warning("could not restore terminal attributes: %s", exc)

    def set_mouse_reporting(self, enabled: bool) -> None:
        """Switch mouse reporting; writes nothing when already in that state."""
        desired = bool(enabled)
        if desired == self._mouse_reporting_enabled:
            return
        self._write(_MOUSE_ON if desired else _MOUSE_OFF)
        self._mouse_reporting_enabled = desired

    @contextlib.contextmanager
    def raw_mode(self, mouse_reporting: bool = False):
        try:
            self.enable_tui_mode(mouse_reporting)
            yield self
        finally:
            self.disable_tui_mode()


__all__ = ["TerminalController"]
