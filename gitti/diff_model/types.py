"""Domain datatypes for diffs: lines, hunks, per-file diffs, and change sets."""

from __future__ import annotations

from dataclasses import dataclass, field

ORIGIN_CONTEXT = "context"
ORIGIN_ADDED = "added"
ORIGIN_REMOVED = "removed"

STATUS_ADDED = "added"
STATUS_MODIFIED = "modified"
STATUS_DELETED = "deleted"
STATUS_RENAMED = "renamed"


@dataclass(frozen=True)
class Line:
    """One diff line with its origin and old/new line numbers.

    Added lines carry only ``new_no``, removed lines only ``old_no`` and
    context lines both.
    """

    content: str
    origin: str
    old_no: int | None = None
    new_no: int | None = None


@dataclass(frozen=True)
class Hunk:
    """Contiguous block of changed lines plus bounded context."""

    old_start: int
    old_count: int
    new_start: int
    new_count: int
    lines: tuple[Line, ...]

    def header(self) -> str:
        """Return the unified-diff ``@@`` header for this hunk."""
        return f"@@ -{self.old_start},{self.old_count} +{self.new_start},{self.new_count} @@"


@dataclass(frozen=True)
class FileDiff:
    """All hunks for one changed path.

    Binary files carry no hunks. ``read_error`` is set, and ``hunks`` left
    empty, when either side could not be read. ``shebang`` holds an
    interpreter line found at the top of the file.
    """

    path: str
    status: str
    hunks: tuple[Hunk, ...] = ()
    is_binary: bool = False
    renamed_from: str | None = None
    read_error: str | None = None
    shebang: str | None = None

    @property
    def added_count(self) -> int:
        return sum(1 for hunk in self.hunks for line in hunk.lines if line.origin == ORIGIN_ADDED)

    @property
    def removed_count(self) -> int:
        return sum(1 for hunk in self.hunks for line in hunk.lines if line.origin == ORIGIN_REMOVED)


@dataclass(frozen=True)
class WorkingVsIndex:
    """Unstaged changes: index on the old side, working tree on the new side."""

    def describe(self) -> str:
        return "working tree vs index"


@dataclass(frozen=True)
class IndexVsHead:
    """Staged changes: HEAD on the old side, index on the new side."""

    def describe(self) -> str:
        return "index vs HEAD"


@dataclass(frozen=True)
class CommitVsCommit:
    """Tree-to-tree comparison; ``old=None`` means the empty tree."""

    old: str | None
    new: str

    def describe(self) -> str:
        return f"{self.old or '(root)'}..{self.new}"


SourceSelector = WorkingVsIndex | IndexVsHead | CommitVsCommit


@dataclass(frozen=True)
class ChangeSet:
    """Every per-file diff for one comparison, sorted by path."""

    source: SourceSelector
    files: tuple[FileDiff, ...] = field(default_factory=tuple)

    def index_of(self, path: str) -> int | None:
        """Return index of ``path`` in ``files`` or ``None`` when absent."""
        for idx, file_diff in enumerate(self.files):
            if file_diff.path == path:
                return idx
        return None


__all__ = [
    "ORIGIN_CONTEXT",
    "ORIGIN_ADDED",
    "ORIGIN_REMOVED",
    "STATUS_ADDED",
    "STATUS_MODIFIED",
    "STATUS_DELETED",
    "STATUS_RENAMED",
    "Line",
    "Hunk",
    "FileDiff",
    "WorkingVsIndex",
    "IndexVsHead",
    "CommitVsCommit",
    "SourceSelector",
    "ChangeSet",
]
