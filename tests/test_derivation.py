"""Tests for latest-request-wins derivation scheduling."""

from __future__ import annotations

import threading
import time
import unittest

from gitti.diff_model import STATUS_MODIFIED, ChangeSet, CommitVsCommit, WorkingVsIndex
from gitti.errors import RepositoryError
from gitti.git_backend import BranchInfo, ChangedFile, CommitInfo
from gitti.runtime.derivation import (
    DerivationOutcome,
    DerivationRequest,
    DerivationScheduler,
    derive_outcome,
)


def _outcome(request: DerivationRequest) -> DerivationOutcome:
    selector = request.selector or WorkingVsIndex()
    return DerivationOutcome(
        change_set=ChangeSet(source=selector, files=()),
        branch=request.branch,
        branch_names=("main",),
        entries=(),
    )


def _wait_for(predicate, timeout: float = 2.0) -> None:
    deadline = time.monotonic() + timeout
    while not predicate():
        if time.monotonic() > deadline:
            raise AssertionError("condition not reached in time")
        time.sleep(0.005)


class DerivationSchedulerTests(unittest.TestCase):
    def test_pending_requests_collapse_and_stale_results_are_discarded(self) -> None:
        started = threading.Event()
        release = threading.Event()
        derived: list[str | None] = []

        def derive(request: DerivationRequest) -> DerivationOutcome:
            derived.append(request.branch)
            if request.branch == "slow":
                started.set()
                release.wait(2.0)
            return _outcome(request)

        scheduler = DerivationScheduler(derive)
        first = scheduler.request(DerivationRequest(branch="slow", selector=None))
        self.assertTrue(started.wait(2.0))
        scheduler.request(DerivationRequest(branch="middle", selector=None))
        last = scheduler.request(DerivationRequest(branch="newest", selector=None))
        self.assertEqual((first, last), (1, 3))

        release.set()
        _wait_for(lambda: scheduler._results.qsize() >= 2)
        result = scheduler.take_current()

        self.assertEqual(derived, ["slow", "newest"])
        self.assertIsNotNone(result)
        self.assertEqual(result.seq, 3)
        self.assertEqual(result.outcome.branch, "newest")
        self.assertIsNone(scheduler.take_current())

    def test_only_stale_result_available_yields_nothing(self) -> None:
        started = threading.Event()
        release_old = threading.Event()
        release_new = threading.Event()

        def derive(request: DerivationRequest) -> DerivationOutcome:
            if request.branch == "old":
                started.set()
                release_old.wait(2.0)
            else:
                release_new.wait(2.0)
            return _outcome(request)

        scheduler = DerivationScheduler(derive)
        scheduler.request(DerivationRequest(branch="old", selector=None))
        self.assertTrue(started.wait(2.0))
        scheduler.request(DerivationRequest(branch="new", selector=None))
        release_old.set()
        _wait_for(lambda: scheduler._results.qsize() >= 1)

        self.assertIsNone(scheduler.take_current())
        release_new.set()
        _wait_for(lambda: scheduler._results.qsize() >= 1)
        self.assertEqual(scheduler.take_current().outcome.branch, "new")

    def test_errors_are_delivered_as_results(self) -> None:
        def derive(request: DerivationRequest) -> DerivationOutcome:
            raise RepositoryError("unknown revision")

        scheduler = DerivationScheduler(derive)
        scheduler.request(DerivationRequest(branch="main", selector=CommitVsCommit(old=None, new="nope")))
        _wait_for(lambda: scheduler._results.qsize() >= 1)
        result = scheduler.take_current()

        self.assertIsNone(result.outcome)
        self.assertIsInstance(result.error, RepositoryError)

    def test_unexpected_exception_does_not_stop_later_requests(self) -> None:
        calls: list[str | None] = []

        def derive(request: DerivationRequest) -> DerivationOutcome:
            calls.append(request.branch)
            if len(calls) == 1:
                raise UnicodeDecodeError("utf-8", b"\xff", 0, 1, "invalid start byte")
            return _outcome(request)

        scheduler = DerivationScheduler(derive)
        scheduler.request(DerivationRequest(branch="broken", selector=None))
        _wait_for(lambda: scheduler._results.qsize() >= 1)
        failed = scheduler.take_current()
        _wait_for(lambda: not scheduler._running)

        scheduler.request(DerivationRequest(branch="main", selector=None))
        _wait_for(lambda: scheduler._results.qsize() >= 1)
        result = scheduler.take_current()

        self.assertIsInstance(failed.error, UnicodeDecodeError)
        self.assertEqual(calls, ["broken", "main"])
        self.assertEqual(result.outcome.branch, "main")

    def test_sequence_numbers_increase(self) -> None:
        scheduler = DerivationScheduler(_outcome)

        seqs = [scheduler.request(DerivationRequest(branch=None, selector=None)) for _ in range(3)]

        self.assertEqual(seqs, [1, 2, 3])
        self.assertEqual(scheduler.latest_seq, 3)


class _RepoBackend:
    def current_branch(self) -> str:
        return "main"

    def list_branches(self) -> list[BranchInfo]:
        return [BranchInfo(name="main", is_current=True), BranchInfo(name="topic", is_current=False)]

    def list_commits(self, branch: str, limit: int = 50) -> list[CommitInfo]:
        return [CommitInfo(sha="c2", short_sha="c2", author="T", message="tip", parent="c1")]

    def has_local_changes(self) -> bool:
        return False

    def resolve_source(self, selector):
        return selector

    def list_changed_files(self, ref) -> list[ChangedFile]:
        return [ChangedFile(path="f.txt", status=STATUS_MODIFIED)]

    def read_raw_pair(self, ref, path: str, old_path: str | None = None) -> tuple[bytes, bytes]:
        return b"a\n", b"b\n"


class DeriveOutcomeTests(unittest.TestCase):
    def test_unspecified_selector_uses_first_entry_of_branch(self) -> None:
        outcome = derive_outcome(_RepoBackend(), DerivationRequest(branch="topic", selector=None), WorkingVsIndex())

        self.assertEqual(outcome.change_set.source, CommitVsCommit(old="c1", new="c2"))
        self.assertEqual(outcome.branch_names, ("main", "topic"))
        self.assertEqual(outcome.branch, "topic")
        self.assertEqual([file_diff.path for file_diff in outcome.change_set.files], ["f.txt"])

    def test_explicit_selector_is_derived_as_requested(self) -> None:
        request = DerivationRequest(branch="main", selector=WorkingVsIndex())

        outcome = derive_outcome(_RepoBackend(), request, WorkingVsIndex(), context=0)

        self.assertEqual(outcome.change_set.source, WorkingVsIndex())
        self.assertEqual(outcome.change_set.files[0].hunks[0].header(), "@@ -1,1 +1,1 @@")


if __name__ == "__main__":
    unittest.main()
