"""CLI for metaminer."""

from __future__ import annotations

import argparse
import logging
import sqlite3
import sys
from pathlib import Path

import requests

from .config import (
    COLLECTIONS,
    DEFAULT_DB_PATH,
    DEFAULT_RPC_URL,
    XALT,
    XAPE,
    env_default,
    env_timeout,
    load_dotenv,
)
from .errors import MinerError
from .miner import mine, read_mints
from .store import MiningStore, connect
from .summary import summarize


_LOGGER = logging.getLogger("metaminer.cli")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="metaminer")
    parser.add_argument(
        "-d",
        "--db",
        default=env_default("METAMINER_DB", DEFAULT_DB_PATH),
        help="SQLite database path",
    )
    parser.add_argument(
        "-r",
        "--rpc",
        default=env_default("METAMINER_RPC_URL", DEFAULT_RPC_URL),
        help="Solana RPC endpoint URL",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=env_timeout(),
        help="Request timeout in seconds for RPC and metadata requests",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log progress at INFO level")
    subparsers = parser.add_subparsers(dest="command", required=True)

    for collection in (XALT, XAPE):
        mine_parser = subparsers.add_parser(
            f"mine-{collection.name}s",
            help=f"Mine {collection.name} mint metadata into the database",
        )
        mine_parser.add_argument(
            "--mints-file",
            default=collection.mints_file,
            help=f"{collection.name} mints file, one address per line",
        )
        mine_parser.set_defaults(collection=collection.name)

    summarize_parser = subparsers.add_parser("summarize", help="List distinct traits per collection")
    summarize_parser.add_argument(
        "--counts",
        action="store_true",
        help="Also list every value of each trait with its count",
    )

    return parser


def main() -> int:
    load_dotenv()
    parser = build_parser()
    args = parser.parse_args()
    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )

    try:
        conn = connect(args.db)
    except (OSError, sqlite3.Error) as exc:
        print(f"error: cannot open database {args.db}: {exc}", file=sys.stderr)
        return 1

    try:
        if args.command == "summarize":
            summarize(
                [MiningStore(conn, collection) for collection in COLLECTIONS.values()],
                counts=args.counts,
            )
            return 0

        collection = COLLECTIONS[args.collection]
        mints = read_mints(Path(args.mints_file))
        with requests.Session() as session:
            report = mine(
                mints,
                MiningStore(conn, collection),
                rpc_url=args.rpc,
                timeout=args.timeout,
                session=session,
            )
        print("", file=sys.stderr)
        print(f"mined: {len(report.mined)}")
        print(f"skipped: {len(report.skipped)}")
        return 0
    except MinerError as exc:
        _LOGGER.debug("run failed %s", exc.to_dict())
        print("", file=sys.stderr)
        print(f"error: {exc}", file=sys.stderr)
        return 1
    except sqlite3.Error as exc:
        _LOGGER.debug("run failed database=%s", args.db, exc_info=True)
        print("", file=sys.stderr)
        print(f"error: database {args.db}: {exc}", file=sys.stderr)
        return 1
    finally:
        conn.close()


if __name__ == "__main__":
    raise SystemExit(main())
