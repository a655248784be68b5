"""Diff data model: hunk building and change-set derivation."""

from .change_set import derive_change_set
from .hunks import DEFAULT_CONTEXT_LINES, build_hunks, diff_lines
from .types import (
    ORIGIN_ADDED,
    ORIGIN_CONTEXT,
    ORIGIN_REMOVED,
    STATUS_ADDED,
    STATUS_DELETED,
    STATUS_MODIFIED,
    STATUS_RENAMED,
    ChangeSet,
    CommitVsCommit,
    FileDiff,
    Hunk,
    IndexVsHead,
    Line,
    SourceSelector,
    WorkingVsIndex,
)

__all__ = [
    "DEFAULT_CONTEXT_LINES",
    "build_hunks",
    "diff_lines",
    "derive_change_set",
    "ORIGIN_ADDED",
    "ORIGIN_CONTEXT",
    "ORIGIN_REMOVED",
    "STATUS_ADDED",
    "STATUS_DELETED",
    "STATUS_MODIFIED",
    "STATUS_RENAMED",
    "ChangeSet",
    "CommitVsCommit",
    "FileDiff",
    "Hunk",
    "IndexVsHead",
    "Line",
    "SourceSelector",
    "WorkingVsIndex",
]
