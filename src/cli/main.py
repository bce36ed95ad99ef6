"""
CLI entry point for dualstore — read-only inspection of a persistent store.

Usage
─────
  # List stored types with row counts
  python -m src.cli --db ./data/store.db types

  # Dump every row of one type as JSON lines
  python -m src.cli --db ./data/store.db dump --type Connection
  python -m src.cli dump --type Connection --sort name --desc

Subcommands are implemented as standalone functions (cmd_types, cmd_dump)
so they can be unit-tested without invoking argparse.
"""

import argparse
import json as _json
import logging
import os
import sys
from typing import Optional

from src.engine.models import TypeDescriptor
from src.exceptions import StoreError
from src.store.config import DEFAULT_DB_PATH, StoreConfig
from src.store.facade import StoreFacade

__all__ = ["build_parser", "cmd_types", "cmd_dump", "main"]

logger = logging.getLogger(__name__)


# ── Argument parser ────────────────────────────────────────────────────────────


def build_parser() -> argparse.ArgumentParser:
    """
    Build and return the top-level argument parser.

    Subcommands: types | dump
    """
    parser = argparse.ArgumentParser(
        prog="dualstore",
        description="Inspect a dualstore persistent object store",
    )
    parser.add_argument(
        "--db",
        default=None,
        metavar="PATH",
        help=f"SQLite database path (default: $DUALSTORE_DB_PATH or {DEFAULT_DB_PATH})",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        default=False,
        help="Enable verbose debug logging",
    )

    sub = parser.add_subparsers(dest="subcommand")

    # ── types ─────────────────────────────────────────────────────────────
    sub.add_parser("types", help="List stored types and their row counts")

    # ── dump ──────────────────────────────────────────────────────────────
    dump = sub.add_parser("dump", help="Print every row of one type as JSON lines")
    dump.add_argument(
        "--type",
        required=True,
        dest="type_name",
        metavar="NAME",
        help="Stored type (table) name",
    )
    dump.add_argument(
        "--sort",
        default=None,
        metavar="FIELD",
        help="Order rows by this field (default: insertion order)",
    )
    dump.add_argument(
        "--desc",
        action="store_true",
        default=False,
        help="Sort descending (only with --sort)",
    )

    return parser


# ── Command implementations ───────────────────────────────────────────────────


def cmd_types(store: StoreFacade) -> None:
    """Print stored type names with row counts."""
    counts = store.stored_types()
    if not counts:
        print("0 stored types found.")
        return
    for name, count in counts.items():
        print(f"{name:<30} {count:>8}")


def cmd_dump(
    store: StoreFacade,
    type_name: str,
    sort: Optional[str] = None,
    descending: bool = False,
) -> int:
    """Print every row of *type_name* as one JSON object per line. Returns row count."""
    descriptor = TypeDescriptor(name=type_name, primary_key="")
    rows = store.objects(descriptor, sort_key=sort, ascending=not descending)
    for row in rows:
        print(_json.dumps(row, sort_keys=True))
    logger.debug("Dumped %d rows of %s", len(rows), type_name)
    return len(rows)


# ── Entry point ───────────────────────────────────────────────────────────────


def main(argv: Optional[list[str]] = None) -> int:
    """Main CLI entry point. Returns exit code."""
    parser = build_parser()
    ns = parser.parse_args(argv)

    level = logging.DEBUG if ns.debug else logging.INFO
    logging.basicConfig(level=level, format="[%(levelname)s] %(message)s")

    if ns.subcommand is None:
        parser.print_help()
        return 0

    db_path = ns.db or os.getenv("DUALSTORE_DB_PATH") or DEFAULT_DB_PATH
    config = StoreConfig(in_memory=False, db_path=db_path)

    with StoreFacade(config) as store:
        try:
            if ns.subcommand == "types":
                cmd_types(store)
            elif ns.subcommand == "dump":
                cmd_dump(store, ns.type_name, sort=ns.sort, descending=ns.desc)
        except StoreError as exc:
            logger.debug("%s failed", ns.subcommand, exc_info=True)
            print(f"Error: {exc}", file=sys.stderr)
            return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
