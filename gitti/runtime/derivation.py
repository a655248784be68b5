"""Background change-set derivation with latest-request-wins semantics.

Requests carry a monotonically increasing sequence number. Only the result
whose sequence matches the newest request is ever applied; anything older is
dropped when results are drained, so a slow derivation can never overwrite
the view produced by a newer one.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass
from queue import Empty, Queue

from ..diff_model.change_set import derive_change_set
from ..diff_model.hunks import DEFAULT_CONTEXT_LINES
from ..diff_model.types import ChangeSet, SourceSelector
from ..errors import GittiError
from ..sources import COMMIT_LIST_LIMIT, SourceEntry, load_source_entries

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DerivationRequest:
    """Which branch to browse and which comparison to derive.

    ``selector`` of ``None`` means "first entry of the branch".
    """

    branch: str | None
    selector: SourceSelector | None


@dataclass(frozen=True)
class DerivationOutcome:
    change_set: ChangeSet
    branch: str | None
    branch_names: tuple[str, ...]
    entries: tuple[SourceEntry, ...]


@dataclass(frozen=True)
class DerivationResult:
    seq: int
    request: DerivationRequest
    outcome: DerivationOutcome | None = None
    error: Exception | None = None


def derive_outcome(
    backend,
    request: DerivationRequest,
    base_selector: SourceSelector,
    *,
    context: int = DEFAULT_CONTEXT_LINES,
    commit_limit: int = COMMIT_LIST_LIMIT,
) -> DerivationOutcome:
    """Load branch listings for ``request`` and derive its change set.

    Runs on the worker thread (or synchronously at startup); raises
    ``RepositoryError`` on any backend failure.
    """
    current_branch = backend.current_branch()
    branch_names = tuple(branch.name for branch in backend.list_branches())
    entries = load_source_entries(backend, request.branch, base_selector, current_branch, commit_limit)
    selector = request.selector
    if selector is None:
        selector = entries[0].selector if entries else base_selector
    change_set = derive_change_set(backend, selector, context)
    return DerivationOutcome(
        change_set=change_set,
        branch=request.branch,
        branch_names=branch_names,
        entries=entries,
    )


class DerivationScheduler:
    """Single-threaded latest-request-wins derivation scheduler.

    A pending request is replaced by any newer one before the worker picks it
    up, so bursts of selection changes only derive the last of them.
    """

    def __init__(self, derive: Callable[[DerivationRequest], DerivationOutcome]) -> None:
        self._derive = derive
        self._lock = threading.Lock()
        self._pending: tuple[int, DerivationRequest] | None = None
        self._running = False
        self._latest_seq = 0
        self._results: Queue[DerivationResult] = Queue()

    @property
    def latest_seq(self) -> int:
        with self._lock:
            return self._latest_seq

    def _worker(self) -> None:
        while True:
            with self._lock:
                pending = self._pending
                self._pending = None
                if pending is None:
                    self._running = False
                    return

            seq, request = pending
            try:
                outcome = self._derive(request)
            except GittiError as exc:
                logger.warning("derivation %d failed: %s", seq, exc)
                self._results.put(DerivationResult(seq=seq, request=request, error=exc))
                continue
            except Exception as exc:
                logger.exception("derivation %d crashed", seq)
                self._results.put(DerivationResult(seq=seq, request=request, error=exc))
                continue
            self._results.put(DerivationResult(seq=seq, request=request, outcome=outcome))

    def request(self, request: DerivationRequest) -> int:
        """Queue ``request``, replacing any not-yet-started one, and return its sequence."""
        with self._lock:
            self._latest_seq += 1
            seq = self._latest_seq
            self._pending = (seq, request)
            if self._running:
                return seq
            self._running = True

        worker = threading.Thread(
            target=self._worker,
            name="gitti-derive",
            daemon=True,
        )
        worker.start()
        return seq

    def drain_results(self) -> list[DerivationResult]:
        """Drain all completed results, stale ones included."""
        out: list[DerivationResult] = []
        while True:
            try:
                out.append(self._results.get_nowait())
            except Empty:
                break
        return out

    def take_current(self) -> DerivationResult | None:
        """Return the result for the newest request if it has completed.

        Results from superseded requests are discarded.
        """
        latest = self.latest_seq
        current: DerivationResult | None = None
        for result in self.drain_results():
            if result.seq != latest:
                logger.debug("discarding stale derivation %d (latest %d)", result.seq, latest)
                continue
            current = result
        return current


__all__ = [
    "DerivationOutcome",
    "DerivationRequest",
    "DerivationResult",
    "DerivationScheduler",
    "derive_outcome",
]
