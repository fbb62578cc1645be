"""Test configuration and fixtures."""

import pytest
from sqlalchemy import text

from zscan_sync.database import ScanStore
from zscan_sync.services import admin
from zscan_sync.services.sync import PasscodeHasher


@pytest.fixture
def store(tmp_path):
    """Fresh file-backed SQLite store with the schema created."""
    store = ScanStore(f"sqlite:///{tmp_path / 'zscan.db'}")
    store.create_schema()
    try:
        yield store
    finally:
        store.dispose()


@pytest.fixture
def hasher():
    """Cheapest bcrypt cost; the hash format is unchanged."""
    return PasscodeHasher(rounds=4)


@pytest.fixture
def waiting_dataset(store):
    admin.create_dataset(store, "abc123", "wait")
    return "abc123"


@pytest.fixture
def dump(store):
    """Return a callable producing every stored row of both tables."""

    def _dump():
        with store.engine.connect() as conn:
            datasets = conn.execute(
                text("SELECT zsetid, zsetuid, zsetpwh FROM zset ORDER BY zsetid")
            ).all()
            records = conn.execute(
                text(
                    "SELECT zscanid, zsetid, zscanseq, zscanisbn, zscantime, zscancflag "
                    "FROM zscan ORDER BY zscanid"
                )
            ).all()
        return [tuple(r) for r in datasets], [tuple(r) for r in records]

    return _dump
