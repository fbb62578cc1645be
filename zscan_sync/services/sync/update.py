"""
update.py - Stage record changes and apply them to a dataset.

Staging (UpdateBatch.add) is pure: it validates each record and rejects a
sequence number used twice in the same batch. Submission (submit) applies
the batch in ONE transaction:

- dataset must exist
- claimed datasets require the claimant's passcode
- open-all datasets accept any passcode
- waiting / blocked datasets are never updatable
- each record is upserted by (dataset, sequence): existing rows are
  overwritten in place, new sequence numbers are inserted
- any failure rolls back the whole batch
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session as DBSession

from zscan_sync.database import ScanStore
from zscan_sync.models import Dataset, ScanRecord

from .entries import ScanEntry
from .errors import (
    SyncException,
    SyncResult,
    auth_failure,
    format_error,
    not_found,
    storage_failure,
)
from .mode import DatasetMode, ModeKind
from .passcode import PasscodeHasher, default_hasher
from .validation import (
    check_cancel_flag,
    check_int31,
    check_isbn,
    check_passcode,
    normalize_uid,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UpdateOutcome:
    inserted: int = 0
    updated: int = 0


class UpdateBatch:
    """Client-side staging area for one update request."""

    def __init__(self):
        self._records: Dict[int, ScanEntry] = {}

    def add(self, sequence: Any, isbn: Any, timestamp: Any, cancel_flag: Any) -> SyncResult[None]:
        """
        Stage one record.

        A rejected record leaves the batch unchanged.
        """
        try:
            sequence = check_int31("sequence", sequence)
            timestamp = check_int31("timestamp", timestamp)
            cancel_flag = check_cancel_flag(cancel_flag)
            isbn = check_isbn(isbn)

            if sequence in self._records:
                raise SyncException(
                    format_error(
                        "Sequence number used twice in update request", sequence=sequence
                    )
                )
        except SyncException as e:
            return SyncResult.failure(e.error)

        self._records[sequence] = ScanEntry(
            sequence=sequence, isbn=isbn, timestamp=timestamp, canceled=bool(cancel_flag)
        )
        return SyncResult.success()

    @property
    def records(self) -> List[ScanEntry]:
        """Staged records in ascending sequence order."""
        return [self._records[seq] for seq in sorted(self._records)]

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[ScanEntry]:
        return iter(self.records)


def submit(
    store: ScanStore,
    batch: UpdateBatch,
    dataset_uid: str,
    passcode: str,
    hasher: Optional[PasscodeHasher] = None,
) -> SyncResult[UpdateOutcome]:
    """
    Apply a staged batch to a dataset.

    An empty batch succeeds without touching the store. The batch itself is
    not modified and may be submitted again.

    Returns:
        SyncResult with UpdateOutcome counts on success, or an error of kind
        FORMAT_ERROR, NOT_FOUND, AUTH_FAILURE or STORAGE_FAILURE.
    """
    try:
        uid = normalize_uid(dataset_uid)
        passcode = check_passcode(passcode)
    except SyncException as e:
        logger.warning("Update rejected: %s - %s", e.error.kind.value, e.error.message)
        return SyncResult.failure(e.error)

    records = batch.records
    if not records:
        return SyncResult.success(UpdateOutcome())

    hasher = hasher or default_hasher()
    inserted = updated = 0

    try:
        with store.transaction() as db:
            dataset = _lock_dataset(db, uid)
            _authenticate(dataset, uid, passcode, hasher)

            for entry in records:
                if _upsert_record(db, dataset, entry):
                    inserted += 1
                else:
                    updated += 1
                db.flush()

    except SyncException as e:
        logger.warning("Update rejected: %s - %s", e.error.kind.value, e.error.message)
        return SyncResult.failure(e.error)

    except SQLAlchemyError as e:
        logger.exception("Update storage failure for dataset %s", uid)
        return SyncResult.failure(storage_failure(e))

    logger.info(
        "DATASET UPDATED — uid=%s, inserted=%d, updated=%d", uid, inserted, updated
    )
    return SyncResult.success(UpdateOutcome(inserted=inserted, updated=updated))


def _lock_dataset(db: DBSession, uid: str) -> Dataset:
    stmt = select(Dataset).where(Dataset.uid == uid).with_for_update()
    dataset = db.execute(stmt).scalar_one_or_none()

    if dataset is None:
        raise SyncException(not_found(uid))

    return dataset


def _authenticate(dataset: Dataset, uid: str, passcode: str, hasher: PasscodeHasher) -> None:
    mode = DatasetMode.decode(dataset.mode_field)

    if mode.kind is ModeKind.CLAIMED:
        if not hasher.verify(passcode, mode.passcode_hash):
            raise SyncException(auth_failure(uid))
        return

    if mode.kind is ModeKind.OPEN_ALL:
        logger.warning("Dataset %s is open-all; update accepted without authentication", uid)
        return

    logger.info("Update of %s refused: dataset mode is %r", uid, mode.symbol)
    raise SyncException(auth_failure(uid))


def _upsert_record(db: DBSession, dataset: Dataset, entry: ScanEntry) -> bool:
    """Overwrite the record with this sequence, or insert it. True if inserted."""
    existing = db.execute(
        select(ScanRecord).where(
            ScanRecord.dataset_id == dataset.id,
            ScanRecord.sequence == entry.sequence,
        )
    ).scalar_one_or_none()

    if existing is not None:
        existing.isbn = entry.isbn
        existing.timestamp = entry.timestamp
        existing.cancel_flag = entry.cancel_flag
        return False

    db.add(
        ScanRecord(
            dataset_id=dataset.id,
            sequence=entry.sequence,
            isbn=entry.isbn,
            timestamp=entry.timestamp,
            cancel_flag=entry.cancel_flag,
        )
    )
    return True
