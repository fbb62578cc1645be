"""
admin.py - Administrative dataset operations.

Datasets are created and moved between waiting / blocked / open-all here.
The claimed mode is never set by this module; reset a dataset to waiting
and let the client claim it again.

(open-all exists to let a broken client sync one last time before it is
reset. It disables authentication, so leave a dataset in it only briefly.)
"""

import logging
from dataclasses import dataclass
from typing import List

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from zscan_sync.database import ScanStore
from zscan_sync.models import Dataset, ScanRecord
from zscan_sync.services.sync.entries import ScanEntry
from zscan_sync.services.sync.errors import SyncException, already_exists, not_found
from zscan_sync.services.sync.mode import DatasetMode
from zscan_sync.services.sync.validation import normalize_uid

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DatasetListing:
    uid: str
    symbol: str


def create_dataset(store: ScanStore, uid: str, mode_name: str) -> None:
    """Raises SyncException if the uid is malformed or already defined."""
    uid = normalize_uid(uid)
    mode = DatasetMode.from_admin_name(mode_name)

    try:
        with store.transaction() as db:
            db.add(Dataset(uid=uid, mode_field=mode.encode()))
    except IntegrityError:
        # Unique index on zsetuid; also catches a concurrent create of the same uid
        raise SyncException(already_exists(uid)) from None

    logger.info("Dataset created — uid=%s, mode=%s", uid, mode.symbol)


def set_mode(store: ScanStore, uid: str, mode_name: str) -> None:
    """Administrative override: works from any current mode, claimed included."""
    uid = normalize_uid(uid)
    mode = DatasetMode.from_admin_name(mode_name)

    with store.transaction() as db:
        dataset = db.execute(
            select(Dataset).where(Dataset.uid == uid).with_for_update()
        ).scalar_one_or_none()
        if dataset is None:
            raise SyncException(not_found(uid))

        previous = DatasetMode.decode(dataset.mode_field)
        dataset.mode_field = mode.encode()

    logger.info("Dataset mode changed — uid=%s, %s -> %s", uid, previous.symbol, mode.symbol)


def list_datasets(store: ScanStore) -> List[DatasetListing]:
    with store.transaction() as db:
        rows = db.execute(
            select(Dataset.uid, Dataset.mode_field).order_by(Dataset.id)
        ).all()

    return [
        DatasetListing(uid=uid, symbol=DatasetMode.decode(mode_field).symbol)
        for uid, mode_field in rows
    ]


def query_records(store: ScanStore, uid: str) -> List[ScanEntry]:
    """All records of a dataset, canceled ones included, by ascending sequence."""
    uid = normalize_uid(uid)

    with store.transaction() as db:
        dataset_id = db.execute(
            select(Dataset.id).where(Dataset.uid == uid)
        ).scalar_one_or_none()
        if dataset_id is None:
            raise SyncException(not_found(uid))

        rows = db.execute(
            select(ScanRecord)
            .where(ScanRecord.dataset_id == dataset_id)
            .order_by(ScanRecord.sequence.asc())
        ).scalars()
        return [ScanEntry.from_row(row) for row in rows]
