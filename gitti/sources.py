"""Branch and commit browsing for source selection.

Entries for a branch are its recent commits, newest first, each compared
against its first parent. The checked-out branch is prefixed with the startup
comparison ("Local changes") while the worktree or index is dirty.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from .diff_model.types import CommitVsCommit, IndexVsHead, SourceSelector, WorkingVsIndex

COMMIT_LIST_LIMIT = 50


@dataclass(frozen=True)
class SourceEntry:
    label: str
    selector: SourceSelector


class SourceListingBackend(Protocol):
    def list_branches(self) -> list: ...

    def list_commits(self, branch: str, limit: int = COMMIT_LIST_LIMIT) -> list: ...

    def has_local_changes(self) -> bool: ...


def base_entry_label(selector: SourceSelector) -> str:
    if isinstance(selector, WorkingVsIndex):
        return "Local changes"
    if isinstance(selector, IndexVsHead):
        return "Staged changes"
    return selector.describe()


def _base_entry_visible(backend: SourceListingBackend, selector: SourceSelector) -> bool:
    if isinstance(selector, (WorkingVsIndex, IndexVsHead)):
        return backend.has_local_changes()
    return True


def load_source_entries(
    backend: SourceListingBackend,
    branch: str | None,
    base_selector: SourceSelector,
    current_branch: str | None,
    limit: int = COMMIT_LIST_LIMIT,
) -> tuple[SourceEntry, ...]:
    """Build selectable entries for ``branch``."""
    entries: list[SourceEntry] = []
    if (branch is None or branch == current_branch) and _base_entry_visible(backend, base_selector):
        entries.append(SourceEntry(label=base_entry_label(base_selector), selector=base_selector))
    if branch is None:
        return tuple(entries)
    for commit in backend.list_commits(branch, limit):
        entries.append(
            SourceEntry(
                label=f"{commit.short_sha} {commit.message}",
                selector=CommitVsCommit(old=commit.parent, new=commit.sha),
            )
        )
    return tuple(entries)


class SourceBrowser:
    """Cached branch list plus the selectable entries of the browsed branch.

    Holds only data already fetched by a derivation, so cycling branches or
    commits never touches the repository on the input path.
    """

    def __init__(
        self,
        *,
        branch: str | None = None,
        branch_names: tuple[str, ...] = (),
        entries: tuple[SourceEntry, ...] = (),
    ) -> None:
        self.branch = branch
        self.branch_names = branch_names
        self.entries = entries
        self.entry_index: int | None = 0 if entries else None

    def update(
        self,
        branch: str | None,
        branch_names: tuple[str, ...],
        entries: tuple[SourceEntry, ...],
        selector: SourceSelector,
    ) -> None:
        """Adopt freshly loaded listings and point at the entry for ``selector``."""
        self.branch = branch
        self.branch_names = branch_names
        self.entries = entries
        self.realign(selector)

    def next_branch(self, after: str | None = None) -> str | None:
        """Return the branch after ``after`` (default: the browsed one), wrapping around."""
        current = after if after is not None else self.branch
        if not self.branch_names:
            return None
        if current in self.branch_names:
            idx = self.branch_names.index(current)
            return self.branch_names[(idx + 1) % len(self.branch_names)]
        return self.branch_names[0]

    def step_entry(self, direction: int) -> SourceEntry | None:
        """Move ``direction`` entries, clamped, and return the new entry.

        Returns ``None`` when the selection did not move.
        """
        if not self.entries:
            return None
        current = self.entry_index
        if current is None:
            current = -1 if direction > 0 else len(self.entries)
        target = max(0, min(current + direction, len(self.entries) - 1))
        if target == self.entry_index:
            return None
        self.entry_index = target
        return self.entries[target]

    def realign(self, selector: SourceSelector) -> None:
        """Point back at the entry for ``selector`` (after a failed switch)."""
        self.entry_index = next(
            (idx for idx, entry in enumerate(self.entries) if entry.selector == selector),
            None,
        )

    @property
    def current_entry(self) -> SourceEntry | None:
        if self.entry_index is None:
            return None
        return self.entries[self.entry_index]


__all__ = [
    "COMMIT_LIST_LIMIT",
    "SourceEntry",
    "SourceBrowser",
    "base_entry_label",
    "load_source_entries",
]
