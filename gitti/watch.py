"""Repository change signatures and the poll-based repository watcher.

Signatures are cheap hashes over git control files and working-tree status;
the watcher thread compares them between polls and reports any difference.
Losing access to the repository is logged as a ``WatchError`` and the watcher
keeps probing until it can reattach.
"""

from __future__ import annotations

import hashlib
import logging
import threading
from collections.abc import Callable
from pathlib import Path
from typing import TYPE_CHECKING

from .errors import RepositoryError, WatchError

if TYPE_CHECKING:
    from .git_backend import GitBackend

logger = logging.getLogger(__name__)

WATCH_POLL_SECONDS = 0.5


def _update_digest(digest, token: str) -> None:
    """Append a token plus separator byte to a hash digest."""
    digest.update(token.encode("utf-8", errors="surrogateescape"))
    digest.update(b"\0")


def _path_stat_signature(path: Path) -> tuple[str, int, int, int]:
    """Return a stable stat tuple describing ``path`` existence and metadata."""
    try:
        st = path.stat()
    except FileNotFoundError:
        return ("missing", 0, 0, 0)
    except OSError:
        return ("error", 0, 0, 0)
    return ("ok", st.st_mtime_ns, st.st_size, st.st_mode)


def build_git_watch_signature(git_dir: Path | None) -> str:
    """Build a digest over git metadata that signals index/ref changes."""
    digest = hashlib.blake2b(digest_size=20)
    if git_dir is None:
        _update_digest(digest, "git:none")
        return digest.hexdigest()

    git_dir = git_dir.resolve()
    _update_digest(digest, f"git_dir:{git_dir}")

    def add_path_token(label: str, path: Path) -> None:
        """Add stat metadata for one git control file."""
        state, mtime_ns, size, mode = _path_stat_signature(path)
        _update_digest(digest, f"{label}:{state}:{mtime_ns}:{size}:{mode}")

    add_path_token("index", git_dir / "index")
    head_path = git_dir / "HEAD"
    add_path_token("head", head_path)

    ref_name = ""
    try:
        head_text = head_path.read_text(encoding="utf-8", errors="replace").strip()
        if head_text.startswith("ref: "):
            ref_name = head_text[5:].strip()
    except OSError:
        ref_name = ""
    _update_digest(digest, f"head_ref:{ref_name}")

    if ref_name:
        add_path_token("head_ref_file", git_dir / ref_name)
    add_path_token("packed_refs", git_dir / "packed-refs")

    add_path_token("merge_head", git_dir / "MERGE_HEAD")
    add_path_token("cherry_pick_head", git_dir / "CHERRY_PICK_HEAD")
    add_path_token("rebase_head", git_dir / "REBASE_HEAD")

    return digest.hexdigest()


def build_worktree_signature(repo_root: Path, status_output: bytes) -> str:
    """Digest ``git status -z`` output plus stat data of every listed path.

    Status text alone misses repeated edits to an already-modified file, so
    each reported path's mtime/size is folded in too.
    """
    digest = hashlib.blake2b(digest_size=20)
    digest.update(status_output)
    digest.update(b"\0")
    for token in status_output.split(b"\0"):
        if len(token) < 4 or token[2:3] != b" ":
            continue
        rel_path = token[3:].decode("utf-8", errors="surrogateescape")
        state, mtime_ns, size, mode = _path_stat_signature(repo_root / rel_path)
        _update_digest(digest, f"{rel_path}:{state}:{mtime_ns}:{size}:{mode}")
    return digest.hexdigest()


class RepositoryWatcher:
    """Daemon thread that polls repository signatures and reports changes."""

    def __init__(
        self,
        backend: "GitBackend",
        callback: Callable[[], None],
        *,
        poll_seconds: float = WATCH_POLL_SECONDS,
    ) -> None:
        self._backend = backend
        self._callback = callback
        self._poll_seconds = poll_seconds
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None
        self._signature: str | None = None
        self.attached = True

    def probe(self) -> str:
        """Return the current combined signature or raise ``WatchError``."""
        git_dir = self._backend.git_dir()
        if git_dir is None or not git_dir.is_dir():
            raise WatchError(f"repository not accessible: {self._backend.repo_root}")
        try:
            status_output = self._backend.status_snapshot()
        except RepositoryError as exc:
            raise WatchError(str(exc)) from exc
        return build_git_watch_signature(git_dir) + ":" + build_worktree_signature(
            self._backend.repo_root,
            status_output,
        )

    def poll_once(self) -> bool:
        """Probe once; return whether a change was reported to the callback."""
        try:
            signature = self.probe()
        except WatchError as exc:
            if self.attached:
                logger.warning("live reload detached: %s", exc)
            self.attached = False
            return False

        if not self.attached:
            logger.info("live reload reattached to %s", self._backend.repo_root)
            self.attached = True
            # Anything may have changed while detached.
            self._signature = signature
            self._callback()
            return True

        if self._signature is None:
            self._signature = signature
            return False
        if signature == self._signature:
            return False
        self._signature = signature
        self._callback()
        return True

    def _run(self) -> None:
        while not self._stop.is_set():
            self.poll_once()
            self._stop.wait(self._poll_seconds)

    def start(self) -> None:
        if self._thread is not None:
            return
        self._thread = threading.Thread(
            target=self._run,
            name="gitti-repo-watch",
            daemon=True,
        )
        self._thread.start()

    def stop(self) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout=1.0)
            self._thread = None


__all__ = [
    "WATCH_POLL_SECONDS",
    "RepositoryWatcher",
    "build_git_watch_signature",
    "build_worktree_signature",
]
