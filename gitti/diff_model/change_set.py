"""Derive a complete ``ChangeSet`` for one source selector.

Per-file hunk building fans out over a thread pool; the change set is only
assembled once every file has finished, so callers never see a partial list.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Protocol

from ..errors import RepositoryError
from .hunks import DEFAULT_CONTEXT_LINES, build_hunks
from .text import looks_binary, split_lines
from .types import ChangeSet, FileDiff, SourceSelector, STATUS_RENAMED

logger = logging.getLogger(__name__)

DERIVE_MAX_WORKERS = 4


class DiffBackend(Protocol):
    """Subset of the backend provider that derivation depends on."""

    def resolve_source(self, selector: SourceSelector): ...

    def list_changed_files(self, ref) -> list: ...

    def read_raw_pair(self, ref, path: str, old_path: str | None = None) -> tuple[bytes, bytes]: ...


def _shebang(lines: list[str]) -> str | None:
    first = lines[0].rstrip("\r") if lines else ""
    return first if first.startswith("#!") else None


def _build_file_diff(backend: DiffBackend, ref, changed, context: int) -> FileDiff:
    """Read one file pair and build its ``FileDiff``.

    A read failure only affects this file: it is reported through
    ``read_error`` instead of failing the whole change set.
    """
    renamed_from = changed.old_path if changed.status == STATUS_RENAMED else None
    if changed.is_binary:
        return FileDiff(path=changed.path, status=changed.status, is_binary=True, renamed_from=renamed_from)

    try:
        old_data, new_data = backend.read_raw_pair(ref, changed.path, changed.old_path)
    except RepositoryError as exc:
        logger.warning("cannot read %s: %s", changed.path, exc)
        return FileDiff(path=changed.path, status=changed.status, renamed_from=renamed_from, read_error=str(exc))
    if looks_binary(old_data) or looks_binary(new_data):
        return FileDiff(path=changed.path, status=changed.status, is_binary=True, renamed_from=renamed_from)

    old_lines = split_lines(old_data)
    new_lines = split_lines(new_data)
    return FileDiff(
        path=changed.path,
        status=changed.status,
        hunks=tuple(build_hunks(old_lines, new_lines, context)),
        renamed_from=renamed_from,
        shebang=_shebang(new_lines or old_lines),
    )


def derive_change_set(
    backend: DiffBackend,
    selector: SourceSelector,
    context: int = DEFAULT_CONTEXT_LINES,
    max_workers: int = DERIVE_MAX_WORKERS,
) -> ChangeSet:
    """Resolve ``selector`` and build every file's hunks into one ``ChangeSet``.

    Raises ``RepositoryError`` when the selector cannot be resolved or the
    changed files cannot be listed. A file that cannot be read becomes a
    ``FileDiff`` with ``read_error`` set. An empty file list is a valid
    (clean) result.
    """
    ref = backend.resolve_source(selector)
    changed_files = sorted(backend.list_changed_files(ref), key=lambda changed: changed.path)
    if not changed_files:
        return ChangeSet(source=selector, files=())

    if max_workers <= 1 or len(changed_files) == 1:
        files = [_build_file_diff(backend, ref, changed, context) for changed in changed_files]
    else:
        with ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="gitti-hunks") as executor:
            files = list(
                executor.map(
                    lambda changed: _build_file_diff(backend, ref, changed, context),
                    changed_files,
                )
            )

    logger.debug("derived %d file diffs for %s", len(files), selector.describe())
    return ChangeSet(source=selector, files=tuple(files))


__all__ = ["DERIVE_MAX_WORKERS", "DiffBackend", "derive_change_set"]
