"""
database.py - Store handle and scoped transactions.

Every Claim/Update call receives a ScanStore and runs inside exactly one
transaction obtained from ScanStore.transaction():
- commit on normal exit
- rollback on ANY exception, before the exception leaves the scope
- session always closed

SQLite transactions are opened with BEGIN IMMEDIATE so the write lock is
taken before the first read. Other backends rely on SELECT ... FOR UPDATE.
"""

from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker


class Base(DeclarativeBase):
    """SQLAlchemy declarative base with proper typing."""

    pass


def _enable_immediate_transactions(engine: Engine) -> None:
    """Make pysqlite emit BEGIN IMMEDIATE for every transaction."""

    @event.listens_for(engine, "connect")
    def _disable_pysqlite_transactions(dbapi_connection, connection_record):
        # pysqlite would otherwise issue its own deferred BEGIN
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def create_store_engine(database_url: str, busy_timeout: float = 30.0) -> Engine:
    if database_url.startswith("sqlite"):
        engine = create_engine(
            database_url,
            connect_args={"check_same_thread": False, "timeout": busy_timeout},
        )
        _enable_immediate_transactions(engine)
        return engine

    return create_engine(database_url, pool_pre_ping=True, pool_recycle=300)


class ScanStore:
    """
    Handle on the shared dataset/record store.

    Owns the engine and the session factory. There is no module-level
    connection: callers construct a store and pass it to each operation.
    """

    def __init__(self, database_url: str, busy_timeout: float = 30.0):
        self.database_url = database_url
        self.engine = create_store_engine(database_url, busy_timeout=busy_timeout)
        self.Session = sessionmaker(bind=self.engine, autoflush=False)

    @contextmanager
    def transaction(self) -> Iterator[Session]:
        """
        Yield a session inside a begun transaction.

        Commits when the block exits normally and rolls back when it raises.
        """
        db = self.Session()
        try:
            with db.begin():
                yield db
        finally:
            db.close()

    def create_schema(self) -> None:
        # Registers the mapped tables on Base.metadata
        from zscan_sync import models  # noqa: F401

        Base.metadata.create_all(bind=self.engine)

    def dispose(self) -> None:
        self.engine.dispose()
