"""Command-line front door for gitti.

Parses CLI options, resolves the startup comparison against the repository in
the current directory, and derives its first change set synchronously. Then
dispatches into the interactive viewer, or prints the diff with ``--nopager``.
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path

from .config import load_settings
from .diff_model.flatten import ROW_HUNK_HEADER, ROW_NOTICE, flatten_file_diff
from .diff_model.types import (
    ORIGIN_ADDED,
    ORIGIN_REMOVED,
    STATUS_ADDED,
    STATUS_DELETED,
    ChangeSet,
    CommitVsCommit,
    IndexVsHead,
    SourceSelector,
    WorkingVsIndex,
)
from .errors import RepositoryError
from .git_backend import GitBackend
from .highlight import classify, highlight, style_sgr
from .logging_setup import configure_logging
from .render.frame import EMPTY_CHANGE_SET_MESSAGE
from .runtime import run_viewer
from .runtime.app import ViewerOptions
from .runtime.derivation import DerivationRequest, derive_outcome
from .ui_theme import UITheme, available_theme_names, resolve_theme

logger = logging.getLogger(__name__)


def _non_negative_int(value: str) -> int:
    """argparse type for non-negative integer values."""
    try:
        parsed = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid integer value: {value!r}") from exc
    if parsed < 0:
        raise argparse.ArgumentTypeError("value must be >= 0")
    return parsed


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gitti",
        description="Browse git changes in a split-pane terminal viewer with syntax highlighting.",
    )
    source = parser.add_mutually_exclusive_group()
    source.add_argument("-s", "--staged", action="store_true", help="Show staged changes (index vs HEAD).")
    source.add_argument("-c", "--commit", metavar="REF", help="Show changes from REF to HEAD.")
    parser.add_argument(
        "-C",
        "--context",
        type=_non_negative_int,
        default=None,
        help="Context lines around each change (default: 5).",
    )
    parser.add_argument("--style", default=None, help="Pygments style name for diff content.")
    parser.add_argument(
        "--theme",
        default=None,
        help=f"UI theme name ({', '.join(available_theme_names())}).",
    )
    parser.add_argument("--no-color", action="store_true", help="Disable color output even on TTY.")
    parser.add_argument("--nopager", action="store_true", help="Print every file's diff and exit.")
    parser.add_argument("--log-file", default=None, help="Write diagnostic logs to this file.")
    parser.add_argument("--log-level", default=None, help="Log level (DEBUG, INFO, WARNING, ...).")
    return parser


def selector_from_args(args: argparse.Namespace) -> SourceSelector:
    if args.commit:
        return CommitVsCommit(old=args.commit, new="HEAD")
    if args.staged:
        return IndexVsHead()
    return WorkingVsIndex()


def _file_header(file_diff) -> list[str]:
    old_path = file_diff.renamed_from or file_diff.path
    old_name = "/dev/null" if file_diff.status == STATUS_ADDED else f"a/{old_path}"
    new_name = "/dev/null" if file_diff.status == STATUS_DELETED else f"b/{file_diff.path}"
    return [f"--- {old_name}", f"+++ {new_name}"]


def render_change_set_text(
    change_set: ChangeSet,
    *,
    color: bool,
    style: str,
    theme: UITheme,
) -> str:
    """Render every file of ``change_set`` as unified-diff text."""
    if not change_set.files:
        return f"{EMPTY_CHANGE_SET_MESSAGE}.\n"

    out: list[str] = []
    for file_diff in change_set.files:
        out.extend(f"{theme.title}{line}{theme.reset}" for line in _file_header(file_diff))
        classifier = classify(file_diff.path, file_diff.shebang)
        for row in flatten_file_diff(file_diff):
            if row.kind == ROW_HUNK_HEADER:
                out.append(f"{theme.hunk_header}{row.text}{theme.reset}")
                continue
            if row.kind == ROW_NOTICE:
                out.append(f"{theme.notice}{row.text}{theme.reset}")
                continue
            origin = row.line.origin
            if origin == ORIGIN_ADDED:
                marker = f"{theme.file_added}+{theme.reset}"
            elif origin == ORIGIN_REMOVED:
                marker = f"{theme.file_removed}-{theme.reset}"
            else:
                marker = " "
            if not color:
                out.append(f"{marker}{row.text}")
                continue
            pieces = []
            for text, tag in highlight(classifier, row.text):
                sgr = style_sgr(tag, style)
                pieces.append(f"{sgr}{text}\033[0m" if sgr else text)
            out.append(marker + "".join(pieces))
    return "\n".join(out) + "\n"


def main(argv: list[str] | None = None, cwd: Path | None = None) -> int:
    """Parse CLI arguments and launch the viewer.

    Exits non-zero with a message, before any UI is drawn, when the directory
    is not inside a git repository or the requested comparison cannot be
    resolved.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.log_file, args.log_level)

    settings = load_settings()
    style = args.style or settings.style
    context = args.context if args.context is not None else settings.context_lines
    selector = selector_from_args(args)

    try:
        backend = GitBackend.discover(cwd or Path.cwd())
        request = DerivationRequest(branch=backend.current_branch(), selector=selector)
        initial = derive_outcome(
            backend,
            request,
            selector,
            context=context,
            commit_limit=settings.commit_limit,
        )
    except RepositoryError as exc:
        logger.error("startup failed: %s", exc)
        raise SystemExit(f"gitti: {exc}") from exc

    interactive = os.isatty(sys.stdin.fileno()) and os.isatty(sys.stdout.fileno())
    if args.nopager or not interactive:
        color = not args.no_color and os.isatty(sys.stdout.fileno())
        theme = resolve_theme(args.theme or settings.theme, no_color=not color)
        sys.stdout.write(render_change_set_text(initial.change_set, color=color, style=style, theme=theme))
        return 0

    options = ViewerOptions(
        style=style,
        theme=args.theme or settings.theme,
        no_color=args.no_color,
        context_lines=context,
        commit_limit=settings.commit_limit,
        watch_poll_seconds=settings.watch_poll_seconds,
        reload_coalesce_seconds=settings.reload_coalesce_seconds,
        left_pane_percent=settings.left_pane_percent,
    )
    return run_viewer(backend, selector, initial, options)


if __name__ == "__main__":
    sys.exit(main())
