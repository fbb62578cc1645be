"""
claim.py - Bind a waiting dataset to one client passcode.

CRITICAL INVARIANTS:
1. Only a dataset in the waiting mode can be claimed
2. The waiting check and the switch to claimed happen in ONE transaction
   that holds the write lock from its first read
3. The snapshot contains exactly the records present at commit, ordered by
   ascending sequence number
4. Any failure leaves the dataset exactly as it was
"""

import logging
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session as DBSession

from zscan_sync.database import ScanStore
from zscan_sync.models import Dataset, ScanRecord

from .entries import ScanEntry
from .errors import SyncException, SyncResult, not_claimable, storage_failure
from .mode import WAITING_SYMBOL, DatasetMode
from .passcode import PasscodeHasher, default_hasher
from .validation import check_passcode, normalize_uid

logger = logging.getLogger(__name__)


def claim(
    store: ScanStore,
    dataset_uid: str,
    passcode: str,
    hasher: Optional[PasscodeHasher] = None,
) -> SyncResult[List[ScanEntry]]:
    """
    Claim a dataset and return every record it currently holds.

    Args:
        store: Store handle
        dataset_uid: Dataset identifier (case-insensitive)
        passcode: Passcode the client will use for later updates
        hasher: Passcode hashing primitive (defaults to configured bcrypt cost)

    Returns:
        SyncResult with the ordered snapshot on success, or an error of kind
        FORMAT_ERROR, NOT_CLAIMABLE or STORAGE_FAILURE.
    """
    hasher = hasher or default_hasher()

    try:
        uid = normalize_uid(dataset_uid)
        passcode = check_passcode(passcode)

        # Hash before the write lock is taken
        claimed_mode = DatasetMode.claimed(hasher.hash(passcode))

        with store.transaction() as db:
            dataset = _lock_waiting_dataset(db, uid)
            dataset.mode_field = claimed_mode.encode()

            rows = db.execute(
                select(ScanRecord)
                .where(ScanRecord.dataset_id == dataset.id)
                .order_by(ScanRecord.sequence.asc())
            ).scalars()
            snapshot = [ScanEntry.from_row(row) for row in rows]

    except SyncException as e:
        logger.warning("Claim rejected: %s - %s", e.error.kind.value, e.error.message)
        return SyncResult.failure(e.error)

    except SQLAlchemyError as e:
        logger.exception("Claim storage failure for dataset %r", dataset_uid)
        return SyncResult.failure(storage_failure(e))

    logger.info("DATASET CLAIMED — uid=%s, record_count=%d", uid, len(snapshot))
    return SyncResult.success(snapshot)


def _lock_waiting_dataset(db: DBSession, uid: str) -> Dataset:
    """Single lookup + guard: the row must exist AND be waiting."""
    stmt = (
        select(Dataset)
        .where(Dataset.uid == uid, Dataset.mode_field == WAITING_SYMBOL)
        .with_for_update()
    )
    dataset = db.execute(stmt).scalar_one_or_none()

    if dataset is None:
        _log_unclaimable_reason(db, uid)
        raise SyncException(not_claimable(uid))

    return dataset


def _log_unclaimable_reason(db: DBSession, uid: str) -> None:
    mode_field = db.execute(
        select(Dataset.mode_field).where(Dataset.uid == uid)
    ).scalar_one_or_none()

    if mode_field is None:
        logger.info("Claim of %s: dataset does not exist", uid)
    else:
        logger.info(
            "Claim of %s: dataset mode is %r", uid, DatasetMode.decode(mode_field).symbol
        )
