#!/usr/bin/env python3
"""
zscan_sync/admin/cli.py - Administrative Command-Line Interface

Usage:
    zscan-dbutil init  DBPATH
    zscan-dbutil list  DBPATH
    zscan-dbutil new   DBPATH UID MODE
    zscan-dbutil mode  DBPATH UID MODE
    zscan-dbutil query DBPATH UID

MODE is one of:
    wait   (?)  the first client to claim the dataset gets it
    block  (!)  no client may claim or update the dataset
    all    (*)  any client may update with any passcode; use briefly

A claimed dataset lists as "."; it cannot be set directly. Set "wait" and
let the client claim it again.

Exit Codes:
    0 = success
    1 = error
"""
import argparse
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path

from sqlalchemy.exc import SQLAlchemyError

from zscan_sync.database import ScanStore
from zscan_sync.services import admin
from zscan_sync.services.sync.entries import ScanEntry
from zscan_sync.services.sync.errors import SyncException
from zscan_sync.services.sync.mode import ADMIN_MODE_NAMES

logger = logging.getLogger(__name__)


def main(argv=None):
    """
    Parse command-line arguments and dispatch the zscan-dbutil verbs.

    Every verb takes the path of the SQLite database; all verbs except
    "init" require it to exist already.
    """
    parser = argparse.ArgumentParser(
        prog="zscan-dbutil",
        description="Administrative utilities for ZScan databases"
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Log transaction activity to stderr"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    init_parser = subparsers.add_parser("init", help="Create the database schema")
    init_parser.add_argument("dbpath", help="Path to the database")

    list_parser = subparsers.add_parser("list", help="List datasets and their modes")
    list_parser.add_argument("dbpath", help="Path to the database")

    for verb, help_text in (("new", "Create a dataset"), ("mode", "Change a dataset's mode")):
        verb_parser = subparsers.add_parser(verb, help=help_text)
        verb_parser.add_argument("dbpath", help="Path to the database")
        verb_parser.add_argument("uid", help="Unique ID of the dataset")
        verb_parser.add_argument("mode", choices=ADMIN_MODE_NAMES, help="Dataset mode")

    query_parser = subparsers.add_parser("query", help="Print all records of a dataset")
    query_parser.add_argument("dbpath", help="Path to the database")
    query_parser.add_argument("uid", help="Unique ID of the dataset")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    sys.exit(run_command(args))


def run_command(args) -> int:
    """Run one parsed verb. Returns the process exit code."""
    db_path = Path(args.dbpath)

    if args.command != "init" and not db_path.is_file():
        print(f"Error: Failed to find file '{db_path}'", file=sys.stderr)
        return 1

    store = ScanStore(f"sqlite:///{db_path}")
    try:
        if args.command == "init":
            store.create_schema()
            print(f"Initialized database: {db_path}")

        elif args.command == "list":
            for listing in admin.list_datasets(store):
                print(f"{listing.symbol} {listing.uid}")

        elif args.command == "new":
            admin.create_dataset(store, args.uid, args.mode)

        elif args.command == "mode":
            admin.set_mode(store, args.uid, args.mode)

        elif args.command == "query":
            for entry in admin.query_records(store, args.uid):
                print(format_record(entry))

    except SyncException as e:
        print(f"Error: {e.error.message}", file=sys.stderr)
        return 1
    except SQLAlchemyError as e:
        print(f"Error: Storage failure ({getattr(e, 'orig', None) or e})", file=sys.stderr)
        logger.exception("Storage failure on %s", db_path)
        return 1
    finally:
        store.dispose()

    return 0


def format_record(entry: ScanEntry) -> str:
    """'<flag> <isbn> <YYYY-MM-DDTHH:MM>' with '*' marking canceled records (UTC)."""
    flag = "*" if entry.canceled else " "
    scanned = datetime.fromtimestamp(entry.timestamp * 60, tz=timezone.utc)
    return f"{flag} {entry.isbn} {scanned.strftime('%Y-%m-%dT%H:%M')}"


if __name__ == "__main__":
    main()
