"""Git CLI backend: source resolution, changed-file listing, and blob reads.

Every call shells out to ``git`` with a timeout. Failures that the caller must
surface (bad refs, unreadable repositories) become ``RepositoryError``; probes
that only inform optional UI (branch lists, dirtiness) degrade to empty results.
"""

from __future__ import annotations

import logging
import os
import subprocess
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from .diff_model.types import (
    STATUS_ADDED,
    STATUS_DELETED,
    STATUS_MODIFIED,
    STATUS_RENAMED,
    CommitVsCommit,
    IndexVsHead,
    SourceSelector,
    WorkingVsIndex,
)
from .diff_model.text import looks_binary, split_lines
from .errors import RepositoryError
from .watch import WATCH_POLL_SECONDS, RepositoryWatcher

logger = logging.getLogger(__name__)

GIT_TIMEOUT_SECONDS = 10.0

_INDEX_REV = ":"


@dataclass(frozen=True)
class RepoRef:
    """Resolved comparison handle, valid for one derivation call.

    ``old_rev``/``new_rev`` are commit ids, ``":"`` for the index, or ``None``
    for the working tree (new side) or the empty tree (old side).
    """

    selector: SourceSelector
    repo_root: Path
    old_rev: str | None
    new_rev: str | None


@dataclass(frozen=True)
class ChangedFile:
    path: str
    status: str
    is_binary: bool = False
    old_path: str | None = None


@dataclass(frozen=True)
class BranchInfo:
    name: str
    is_current: bool


@dataclass(frozen=True)
class CommitInfo:
    sha: str
    short_sha: str
    author: str
    message: str
    parent: str | None = None


def _run_git(
    repo_root: Path,
    args: list[str],
    timeout_seconds: float = GIT_TIMEOUT_SECONDS,
    input_data: bytes = b"",
) -> subprocess.CompletedProcess[bytes] | None:
    """Execute a git subcommand with timeout and tolerant failure handling.

    stdin is always a pipe so git never reads from the controlling terminal.
    """
    try:
        return subprocess.run(
            ["git", "-C", str(repo_root), *args],
            input=input_data,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            check=False,
            timeout=timeout_seconds,
        )
    except (OSError, subprocess.SubprocessError) as exc:
        logger.warning("git %s failed to run: %s", " ".join(args), exc)
        return None


def _git_text(proc: subprocess.CompletedProcess[bytes] | None) -> str:
    if proc is None or proc.returncode != 0:
        return ""
    return proc.stdout.decode("utf-8", errors="replace")


def _git_error(proc: subprocess.CompletedProcess[bytes] | None, fallback: str) -> RepositoryError:
    if proc is None:
        return RepositoryError(fallback)
    detail = proc.stderr.decode("utf-8", errors="replace").strip()
    return RepositoryError(detail.splitlines()[-1] if detail else fallback)


def discover_repo_root(start: Path) -> Path:
    """Return the worktree root containing ``start`` or raise ``RepositoryError``."""
    proc = _run_git(start, ["rev-parse", "--show-toplevel"])
    root = _git_text(proc).strip()
    if not root:
        raise _git_error(proc, f"not a git repository: {start}")
    return Path(root).resolve()


def parse_name_status(output: str) -> list[tuple[str, str, str | None]]:
    """Parse ``git diff --name-status -z`` output into ``(status, path, old_path)``.

    Renames and copies carry two path tokens, source first.
    """
    records: list[tuple[str, str, str | None]] = []
    tokens = output.split("\0")
    index = 0
    while index < len(tokens):
        code = tokens[index]
        index += 1
        if not code:
            continue
        letter = code[0]
        if letter in {"R", "C"}:
            if index + 1 >= len(tokens):
                break
            old_path = tokens[index]
            new_path = tokens[index + 1]
            index += 2
            if letter == "R":
                records.append((STATUS_RENAMED, new_path, old_path))
            else:
                records.append((STATUS_ADDED, new_path, None))
            continue
        if index >= len(tokens):
            break
        path = tokens[index]
        index += 1
        if letter == "A":
            records.append((STATUS_ADDED, path, None))
        elif letter == "D":
            records.append((STATUS_DELETED, path, None))
        else:
            records.append((STATUS_MODIFIED, path, None))
    return records


def parse_numstat_binary_paths(output: str) -> set[str]:
    """Return paths reported as binary (``-\\t-``) by ``git diff --numstat -z``."""
    binary: set[str] = set()
    tokens = output.split("\0")
    index = 0
    while index < len(tokens):
        token = tokens[index]
        index += 1
        if not token:
            continue
        parts = token.split("\t", 2)
        if len(parts) < 3:
            continue
        added, deleted, path = parts
        if not path:
            # Rename record: old and new paths follow as separate tokens.
            path = tokens[index + 1] if index + 1 < len(tokens) else ""
            index += 2
        if added == "-" and deleted == "-" and path:
            binary.add(path)
    return binary


class GitBackend:
    """Backend provider over the ``git`` command line for one repository."""

    def __init__(self, repo_root: Path, timeout_seconds: float = GIT_TIMEOUT_SECONDS) -> None:
        self.repo_root = repo_root
        self.timeout_seconds = timeout_seconds
        self._empty_tree: str | None = None

    @classmethod
    def discover(cls, start: Path) -> "GitBackend":
        return cls(discover_repo_root(start))

    def _git(self, args: list[str]) -> subprocess.CompletedProcess[bytes] | None:
        return _run_git(self.repo_root, args, self.timeout_seconds)

    def _verify_commit(self, ref: str) -> str:
        proc = self._git(["rev-parse", "--verify", "--quiet", f"{ref}^{{commit}}"])
        sha = _git_text(proc).strip()
        if not sha:
            raise RepositoryError(f"unknown revision: {ref}")
        return sha

    def _head_commit(self) -> str | None:
        proc = self._git(["rev-parse", "--verify", "--quiet", "HEAD^{commit}"])
        return _git_text(proc).strip() or None

    def empty_tree(self) -> str:
        """Return the id of the empty tree for this repository's hash format."""
        if self._empty_tree is None:
            proc = self._git(["hash-object", "-t", "tree", "--stdin"])
            sha = _git_text(proc).strip()
            if not sha:
                raise _git_error(proc, "cannot compute empty tree id")
            self._empty_tree = sha
        return self._empty_tree

    def resolve_source(self, selector: SourceSelector) -> RepoRef:
        """Resolve ``selector`` to concrete revisions or raise ``RepositoryError``."""
        if isinstance(selector, WorkingVsIndex):
            discover_repo_root(self.repo_root)
            return RepoRef(selector, self.repo_root, old_rev=_INDEX_REV, new_rev=None)
        if isinstance(selector, IndexVsHead):
            return RepoRef(selector, self.repo_root, old_rev=self._head_commit(), new_rev=_INDEX_REV)
        if isinstance(selector, CommitVsCommit):
            old_rev = self._verify_commit(selector.old) if selector.old else None
            new_rev = self._verify_commit(selector.new)
            return RepoRef(selector, self.repo_root, old_rev=old_rev, new_rev=new_rev)
        raise RepositoryError(f"unsupported selector: {selector!r}")

    def _diff_range_args(self, ref: RepoRef) -> list[str]:
        if isinstance(ref.selector, WorkingVsIndex):
            return []
        if isinstance(ref.selector, IndexVsHead):
            return ["--cached", ref.old_rev or self.empty_tree()]
        return [ref.old_rev or self.empty_tree(), ref.new_rev or "HEAD"]

    def list_changed_files(self, ref: RepoRef) -> list[ChangedFile]:
        """List changed paths for ``ref`` sorted by path."""
        range_args = self._diff_range_args(ref)
        status_proc = self._git(["diff", "--no-color", "--name-status", "-z", "-M", *range_args, "--"])
        if status_proc is None or status_proc.returncode != 0:
            raise _git_error(status_proc, "git diff failed")
        numstat_proc = self._git(["diff", "--no-color", "--numstat", "-z", "-M", *range_args, "--"])
        binary_paths = parse_numstat_binary_paths(_git_text(numstat_proc))

        files: dict[str, ChangedFile] = {}
        for status, path, old_path in parse_name_status(_git_text(status_proc)):
            files[path] = ChangedFile(
                path=path,
                status=status,
                is_binary=path in binary_paths,
                old_path=old_path,
            )

        if isinstance(ref.selector, WorkingVsIndex):
            for path in self._untracked_paths():
                if path in files:
                    continue
                try:
                    is_binary = looks_binary(self._read_worktree(path))
                except RepositoryError as exc:
                    logger.warning("skipping binary check for %s: %s", path, exc)
                    is_binary = False
                files[path] = ChangedFile(path=path, status=STATUS_ADDED, is_binary=is_binary)

        return [files[path] for path in sorted(files)]

    def _untracked_paths(self) -> list[str]:
        proc = self._git(["ls-files", "--others", "--exclude-standard", "-z"])
        return [token for token in _git_text(proc).split("\0") if token]

    def _read_worktree(self, path: str) -> bytes:
        """Read ``path`` from the working tree the way git stores it.

        A symlink reads as its link text, never its target. Missing paths and
        directories (submodules) read as empty.
        """
        target = self.repo_root / path
        try:
            if target.is_symlink():
                return os.fsencode(os.readlink(target))
            return target.read_bytes()
        except (FileNotFoundError, IsADirectoryError):
            return b""
        except OSError as exc:
            raise RepositoryError(f"cannot read {path}: {exc}") from exc

    def _read_blob(self, rev: str | None, path: str) -> bytes:
        """Read ``path`` at ``rev`` (``":"`` = index); missing entries read as empty."""
        if rev is None:
            return b""
        spec = f":{path}" if rev == _INDEX_REV else f"{rev}:{path}"
        proc = self._git(["cat-file", "-e", spec])
        if proc is None:
            raise RepositoryError(f"cannot read {spec}")
        if proc.returncode != 0:
            return b""
        proc = self._git(["cat-file", "blob", spec])
        if proc is None or proc.returncode != 0:
            raise _git_error(proc, f"cannot read {spec}")
        return proc.stdout

    def read_raw_pair(self, ref: RepoRef, path: str, old_path: str | None = None) -> tuple[bytes, bytes]:
        """Return raw ``(old, new)`` bytes for ``path`` under ``ref``."""
        old_data = self._read_blob(ref.old_rev, old_path or path)
        if ref.new_rev is None:
            new_data = self._read_worktree(path)
        else:
            new_data = self._read_blob(ref.new_rev, path)
        return old_data, new_data

    def read_pair(self, ref: RepoRef, path: str, old_path: str | None = None) -> tuple[list[str], list[str]]:
        """Return decoded ``(old_lines, new_lines)`` for ``path`` under ``ref``."""
        old_data, new_data = self.read_raw_pair(ref, path, old_path)
        return split_lines(old_data), split_lines(new_data)

    def current_branch(self) -> str | None:
        proc = self._git(["symbolic-ref", "--short", "-q", "HEAD"])
        return _git_text(proc).strip() or None

    def list_branches(self) -> list[BranchInfo]:
        """List local branches, current branch first, then alphabetically."""
        proc = self._git(["for-each-ref", "--format=%(refname:short)", "refs/heads"])
        current = self.current_branch()
        names = [line.strip() for line in _git_text(proc).splitlines() if line.strip()]
        branches = [BranchInfo(name=name, is_current=name == current) for name in names]
        branches.sort(key=lambda branch: (not branch.is_current, branch.name))
        return branches

    def list_commits(self, branch: str, limit: int = 50) -> list[CommitInfo]:
        """List up to ``limit`` commits reachable from ``branch``, newest first."""
        proc = self._git(
            [
                "log",
                f"--max-count={max(1, limit)}",
                "--format=%H%x1f%h%x1f%an%x1f%P%x1f%s",
                f"refs/heads/{branch}",
                "--",
            ]
        )
        commits: list[CommitInfo] = []
        for line in _git_text(proc).splitlines():
            parts = line.split("\x1f")
            if len(parts) != 5:
                continue
            sha, short_sha, author, parents, message = parts
            parent_list = parents.split()
            commits.append(
                CommitInfo(
                    sha=sha,
                    short_sha=short_sha,
                    author=author,
                    message=message,
                    parent=parent_list[0] if parent_list else None,
                )
            )
        return commits

    def status_snapshot(self) -> bytes:
        """Return raw ``git status`` output; raises ``RepositoryError`` on failure."""
        proc = self._git(["status", "--porcelain=v1", "-z", "--untracked-files=normal"])
        if proc is None or proc.returncode != 0:
            raise _git_error(proc, "git status failed")
        return proc.stdout

    def has_local_changes(self) -> bool:
        """Whether the worktree or index differs from HEAD (untracked files count)."""
        return bool(self.status_snapshot().strip(b"\0\n "))

    def git_dir(self) -> Path | None:
        proc = self._git(["rev-parse", "--absolute-git-dir"])
        text = _git_text(proc).strip()
        return Path(text) if text else None

    def watch(self, callback: Callable[[], None], poll_seconds: float = WATCH_POLL_SECONDS) -> RepositoryWatcher:
        """Start a poll-based watcher that invokes ``callback`` on repository change."""
        watcher = RepositoryWatcher(self, callback, poll_seconds=poll_seconds)
        watcher.start()
        return watcher


__all__ = [
    "RepoRef",
    "ChangedFile",
    "BranchInfo",
    "CommitInfo",
    "GitBackend",
    "discover_repo_root",
    "parse_name_status",
    "parse_numstat_binary_paths",
]
