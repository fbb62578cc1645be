"""
test_claim.py - Claim operation invariants.

1. A waiting dataset is claimed exactly once
2. Only waiting datasets are claimable
3. The snapshot is the full dataset, ascending by sequence
4. Failures leave the store unchanged
"""

import threading

import pytest
from sqlalchemy.exc import OperationalError

from zscan_sync.services import admin
from zscan_sync.services.sync import ScanEntry, SyncErrorKind, UpdateBatch, claim, submit
from zscan_sync.services.sync.mode import DatasetMode, ModeKind


def _seed(store, hasher, uid, records, passcode="seed-pass"):
    """Claim uid, write records, then hand it back to the waiting mode."""
    assert claim(store, uid, passcode, hasher=hasher).ok
    batch = UpdateBatch()
    for record in records:
        assert batch.add(*record).ok
    assert submit(store, batch, uid, passcode, hasher=hasher).ok
    admin.set_mode(store, uid, "wait")


class TestClaimOnce:

    def test_claim_empty_dataset(self, store, hasher, waiting_dataset):
        result = claim(store, waiting_dataset, "s3cret!", hasher=hasher)

        assert result.ok
        assert result.value == []

    def test_second_claim_not_claimable(self, store, hasher, waiting_dataset):
        assert claim(store, waiting_dataset, "s3cret!", hasher=hasher).ok

        second = claim(store, waiting_dataset, "other", hasher=hasher)

        assert not second.ok
        assert second.error.kind == SyncErrorKind.NOT_CLAIMABLE

    def test_passcode_stored_as_hash(self, store, hasher, waiting_dataset, dump):
        claim(store, waiting_dataset, "s3cret!", hasher=hasher)

        datasets, _ = dump()
        mode_field = datasets[0][2]
        assert mode_field != "s3cret!"
        assert DatasetMode.decode(mode_field).kind is ModeKind.CLAIMED
        assert hasher.verify("s3cret!", mode_field)

    def test_uid_is_case_insensitive(self, store, hasher, waiting_dataset):
        assert claim(store, "ABC123", "s3cret!", hasher=hasher).ok

    def test_reclaim_after_admin_reset(self, store, hasher, waiting_dataset):
        assert claim(store, waiting_dataset, "first", hasher=hasher).ok
        admin.set_mode(store, waiting_dataset, "wait")

        assert claim(store, waiting_dataset, "second", hasher=hasher).ok

        batch = UpdateBatch()
        batch.add(0, "9780306406157", 1000, 0)
        assert submit(store, batch, waiting_dataset, "second", hasher=hasher).ok
        denied = submit(store, batch, waiting_dataset, "first", hasher=hasher)
        assert denied.error.kind == SyncErrorKind.AUTH_FAILURE

    def test_concurrent_claims_single_winner(self, store, hasher, waiting_dataset):
        """Claims racing on one dataset: exactly one observes 'waiting'."""
        workers = 4
        barrier = threading.Barrier(workers)
        results = []
        lock = threading.Lock()

        def attempt(i):
            barrier.wait()
            result = claim(store, waiting_dataset, f"pass{i}", hasher=hasher)
            with lock:
                results.append(result)

        threads = [threading.Thread(target=attempt, args=(i,)) for i in range(workers)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert sum(r.ok for r in results) == 1
        assert all(
            r.error.kind == SyncErrorKind.NOT_CLAIMABLE for r in results if not r.ok
        )


class TestNotClaimable:

    def test_missing_dataset(self, store, hasher):
        result = claim(store, "nosuchset", "s3cret!", hasher=hasher)

        assert result.error.kind == SyncErrorKind.NOT_CLAIMABLE

    @pytest.mark.parametrize("mode_name", ["block", "all"])
    def test_blocked_and_open_all_rejected(self, store, hasher, dump, mode_name):
        admin.create_dataset(store, "shelf", mode_name)
        before = dump()

        result = claim(store, "shelf", "s3cret!", hasher=hasher)

        assert result.error.kind == SyncErrorKind.NOT_CLAIMABLE
        assert dump() == before

    @pytest.mark.parametrize(
        "uid,passcode", [("bad uid", "s3cret!"), ("abc123", ""), ("abc123", "has space")]
    )
    def test_format_errors(self, store, hasher, waiting_dataset, dump, uid, passcode):
        before = dump()

        result = claim(store, uid, passcode, hasher=hasher)

        assert result.error.kind == SyncErrorKind.FORMAT_ERROR
        assert dump() == before


class TestSnapshot:

    def test_snapshot_ordered_and_complete(self, store, hasher, waiting_dataset):
        _seed(
            store,
            hasher,
            waiting_dataset,
            [
                (7, "9780140449136", 300, 0),
                (2, "9780306406157", 100, 1),
                (5, "9781861972712", 200, 0),
            ],
        )

        result = claim(store, waiting_dataset, "s3cret!", hasher=hasher)

        assert [e.sequence for e in result.value] == [2, 5, 7]
        first = result.value[0]
        assert first.isbn == "9780306406157"
        assert first.timestamp == 100
        assert first.canceled is True
        assert first.as_wire() == [2, "9780306406157", 100, True]

    def test_snapshot_excludes_other_datasets(self, store, hasher, waiting_dataset):
        admin.create_dataset(store, "other", "wait")
        _seed(store, hasher, "other", [(0, "9780306406157", 1, 0)])

        result = claim(store, waiting_dataset, "s3cret!", hasher=hasher)

        assert result.value == []


class TestRollback:

    def test_storage_failure_leaves_dataset_waiting(
        self, store, hasher, waiting_dataset, dump, monkeypatch
    ):
        _seed(store, hasher, waiting_dataset, [(0, "9780306406157", 1000, 0)])
        before = dump()

        def broken_from_row(cls, row):
            raise OperationalError("SELECT", {}, Exception("disk I/O error"))

        monkeypatch.setattr(ScanEntry, "from_row", classmethod(broken_from_row))

        result = claim(store, waiting_dataset, "s3cret!", hasher=hasher)

        assert result.error.kind == SyncErrorKind.STORAGE_FAILURE
        assert dump() == before
        assert before[0][0][2] == "?"
