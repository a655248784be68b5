"""Interactive viewer composition.

``ViewerApp`` owns the navigator, source browser, derivation scheduler and
reload monitor, and exposes the callbacks consumed by ``run_main_loop``.
Everything here runs on the loop thread except ``derive`` (scheduler worker)
and the watcher callback, which only touches the thread-safe reload monitor.
"""

from __future__ import annotations

import logging
import sys
import time
from collections.abc import Callable
from dataclasses import dataclass

from ..config import save_left_pane_percent as _save_left_pane_percent
from ..diff_model.hunks import DEFAULT_CONTEXT_LINES
from ..diff_model.types import SourceSelector
from ..highlight import DEFAULT_STYLE
from ..input.events import (
    FileDown,
    FileUp,
    InputEvent,
    MouseClick,
    PageDown,
    PageUp,
    Quit,
    ResizePane,
    ScrollDown,
    ScrollUp,
    SelectBranch,
    SelectCommit,
    ToggleInputMode,
)
from ..navigation import INPUT_MODE_MOUSE, Navigator
from ..render.frame import Frame, build_frame
from ..render.screen import (
    PaneLayout,
    clamp_left_width,
    compute_layout,
    compute_left_width,
    file_index_at,
    render_frame,
)
from ..sources import COMMIT_LIST_LIMIT, SourceBrowser
from ..terminal import TerminalController
from ..ui_theme import resolve_theme
from ..watch import WATCH_POLL_SECONDS
from .derivation import DerivationOutcome, DerivationRequest, DerivationScheduler, derive_outcome
from .loop import RuntimeLoopCallbacks, RuntimeLoopTiming, run_main_loop
from .reload import RELOAD_COALESCE_SECONDS, LiveReloadMonitor

logger = logging.getLogger(__name__)

STATUS_MESSAGE_SECONDS = 4.0


@dataclass(frozen=True)
class ViewerOptions:
    style: str = DEFAULT_STYLE
    theme: str | None = None
    no_color: bool = False
    context_lines: int = DEFAULT_CONTEXT_LINES
    commit_limit: int = COMMIT_LIST_LIMIT
    watch_poll_seconds: float = WATCH_POLL_SECONDS
    reload_coalesce_seconds: float = RELOAD_COALESCE_SECONDS
    left_pane_percent: float | None = None


class ViewerApp:
    """State and event handling of one interactive session."""

    def __init__(
        self,
        backend,
        base_selector: SourceSelector,
        initial: DerivationOutcome,
        options: ViewerOptions,
        *,
        render: Callable[..., None] = render_frame,
        save_left_pane_percent: Callable[[int, int], None] = _save_left_pane_percent,
        monotonic: Callable[[], float] = time.monotonic,
    ) -> None:
        self.backend = backend
        self.base_selector = base_selector
        self.options = options
        self.theme = resolve_theme(options.theme, no_color=options.no_color)
        self._render = render
        self._save_left_pane_percent = save_left_pane_percent
        self._monotonic = monotonic

        self.navigator = Navigator(initial.change_set)
        self.browser = SourceBrowser()
        self.browser.update(initial.branch, initial.branch_names, initial.entries, initial.change_set.source)
        self._applied_request = DerivationRequest(branch=initial.branch, selector=initial.change_set.source)
        self._last_request = self._applied_request

        self.scheduler = DerivationScheduler(self.derive)
        self.reload_monitor = LiveReloadMonitor(
            self.request_reload,
            coalesce_seconds=options.reload_coalesce_seconds,
            monotonic=monotonic,
        )
        self.watcher = None

        self.status_message = ""
        self.status_message_until = 0.0
        self.left_width: int | None = None
        self.layout: PaneLayout | None = None
        self.frame: Frame | None = None
        self.dirty = True

    # Background work ---------------------------------------------------

    def derive(self, request: DerivationRequest) -> DerivationOutcome:
        return derive_outcome(
            self.backend,
            request,
            self.base_selector,
            context=self.options.context_lines,
            commit_limit=self.options.commit_limit,
        )

    def request_derivation(self, request: DerivationRequest) -> int:
        self._last_request = request
        return self.scheduler.request(request)

    def request_reload(self) -> None:
        """Re-derive whatever was last requested, keeping the current position."""
        logger.debug("live reload for %s", self._last_request)
        self.scheduler.request(self._last_request)

    def start_watching(self) -> None:
        self.watcher = self.backend.watch(self.reload_monitor.notify, self.options.watch_poll_seconds)

    def stop_watching(self) -> None:
        if self.watcher is not None:
            self.watcher.stop()
            self.watcher = None

    def set_status(self, message: str) -> None:
        self.status_message = message
        self.status_message_until = self._monotonic() + STATUS_MESSAGE_SECONDS
        self.dirty = True

    def poll_background(self) -> None:
        """Fire due reloads and apply the newest derivation result, if any."""
        if self.status_message and self._monotonic() >= self.status_message_until:
            self.status_message = ""
            self.dirty = True
        self.reload_monitor.tick()

        result = self.scheduler.take_current()
        if result is None:
            return
        if result.error is not None:
            self.set_status(f"Error: {result.error}")
            self._last_request = self._applied_request
            self.browser.realign(self.navigator.change_set.source)
            return

        outcome = result.outcome
        self.navigator.replace_change_set(outcome.change_set)
        self.browser.update(outcome.branch, outcome.branch_names, outcome.entries, outcome.change_set.source)
        self._applied_request = DerivationRequest(branch=outcome.branch, selector=outcome.change_set.source)
        self._last_request = self._applied_request
        self.dirty = True

    # Layout / rendering ------------------------------------------------

    def sync_layout(self, columns: int, lines: int) -> None:
        desired = self.left_width
        if desired is None:
            if self.options.left_pane_percent is not None:
                desired = int(columns * self.options.left_pane_percent / 100.0)
            else:
                desired = compute_left_width(columns)
        layout = compute_layout(columns, lines, desired)
        if layout.split:
            self.left_width = layout.left_width
        if layout != self.layout:
            self.layout = layout
            self.dirty = True
        if self.navigator.resize(layout.content_rows):
            self.dirty = True

    def title(self) -> str:
        entry = self.browser.current_entry
        label = entry.label if entry is not None else self.navigator.change_set.source.describe()
        if self.browser.branch:
            return f"{label} [{self.browser.branch}]"
        return label

    def render_if_dirty(self) -> None:
        if not self.dirty or self.layout is None:
            return
        self.frame = build_frame(
            self.navigator,
            title=self.title(),
            file_list_height=self.layout.content_rows,
            status_message=self.status_message,
        )
        self._render(self.frame, self.layout, self.theme, self.options.style, self.options.no_color)
        self.dirty = False

    # Input -------------------------------------------------------------

    def adjust_left_pane_width(self, columns: int, delta: int) -> bool:
        if self.layout is None or not self.layout.split or self.left_width is None:
            return False
        updated = clamp_left_width(columns, self.left_width + delta)
        if updated == self.left_width:
            return False
        self.left_width = updated
        self._save_left_pane_percent(columns, updated)
        return True

    def _select_branch(self) -> bool:
        branch = self.browser.next_branch(after=self._last_request.branch)
        if branch is None:
            self.set_status("No local branches")
            return True
        self.request_derivation(DerivationRequest(branch=branch, selector=None))
        self.set_status(f"Loading {branch}…")
        return True

    def _select_commit(self, direction: int) -> bool:
        entry = self.browser.step_entry(direction)
        if entry is None:
            return False
        self.request_derivation(DerivationRequest(branch=self.browser.branch, selector=entry.selector))
        return True

    def handle_event(self, event: InputEvent, columns: int) -> bool:
        """Apply one input event. Returns ``True`` when the viewer should quit."""
        navigator = self.navigator
        changed = False
        if isinstance(event, Quit):
            return True
        if isinstance(event, FileUp):
            changed = navigator.select_prev_file()
        elif isinstance(event, FileDown):
            changed = navigator.select_next_file()
        elif isinstance(event, ScrollUp):
            changed = navigator.scroll_by(-event.lines)
        elif isinstance(event, ScrollDown):
            changed = navigator.scroll_by(event.lines)
        elif isinstance(event, PageUp):
            changed = navigator.page_up()
        elif isinstance(event, PageDown):
            changed = navigator.page_down()
        elif isinstance(event, ToggleInputMode):
            mode = navigator.toggle_input_mode()
            self.set_status(f"{mode} mode")
            changed = True
        elif isinstance(event, MouseClick):
            index = file_index_at(self.frame, self.layout, event.x, event.y) if self.frame and self.layout else None
            if index is not None:
                changed = navigator.select_file(index)
        elif isinstance(event, SelectBranch):
            changed = self._select_branch()
        elif isinstance(event, SelectCommit):
            changed = self._select_commit(event.direction)
        elif isinstance(event, ResizePane):
            changed = self.adjust_left_pane_width(columns, event.delta)
        if changed:
            self.dirty = True
        return False

    def mouse_reporting(self) -> bool:
        return self.navigator.state.input_mode == INPUT_MODE_MOUSE

    def loop_callbacks(self) -> RuntimeLoopCallbacks:
        return RuntimeLoopCallbacks(
            sync_layout=self.sync_layout,
            poll_background=self.poll_background,
            render_if_dirty=self.render_if_dirty,
            input_mode=lambda: self.navigator.state.input_mode,
            mouse_reporting=self.mouse_reporting,
            handle_event=self.handle_event,
        )


def run_viewer(
    backend,
    base_selector: SourceSelector,
    initial: DerivationOutcome,
    options: ViewerOptions,
) -> int:
    """Run the interactive viewer until quit; returns the process exit code."""
    stdin_fd = sys.stdin.fileno()
    terminal = TerminalController(stdin_fd, sys.stdout.fileno())
    app = ViewerApp(backend, base_selector, initial, options)
    app.start_watching()
    try:
        run_main_loop(terminal, stdin_fd, RuntimeLoopTiming(), app.loop_callbacks())
    finally:
        app.stop_watching()
    return 0


__all__ = ["STATUS_MESSAGE_SECONDS", "ViewerApp", "ViewerOptions", "run_viewer"]
