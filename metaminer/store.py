"""SQLite persistence for mined assets and their attributes."""

from __future__ import annotations

import logging
import sqlite3
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, List, Sequence, Tuple

from .config import Collection
from .errors import ConstraintError


_LOGGER = logging.getLogger("metaminer.store")


@dataclass(frozen=True)
class AssetRecord:
    mint_address: str
    metadata_address: str
    metadata_data_name: str
    metadata_data_uri: str
    metadata_json_name: str
    metadata_json_image: str


def connect(db_path: str) -> sqlite3.Connection:
    if db_path != ":memory:":
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    return sqlite3.connect(db_path)


class MiningStore:
    """Table pair for one collection on an explicitly passed connection."""

    def __init__(self, conn: sqlite3.Connection, collection: Collection) -> None:
        self.conn = conn
        self.collection = collection
        self._in_transaction = False

    def ensure_schema(self) -> None:
        assets = self.collection.assets_table
        attributes = self.collection.attributes_table
        with self.transaction():
            self.conn.execute(
                f"""
                CREATE TABLE IF NOT EXISTS {assets} (
                    mint_address text primary key,
                    metadata_address text unique,
                    metadata_data_name text,
                    metadata_data_uri text,
                    metadata_json_name text,
                    metadata_json_image text
                )
                """
            )
            self.conn.execute(
                f"""
                CREATE TABLE IF NOT EXISTS {attributes} (
                    mint_address text,
                    trait_type text,
                    value text
                )
                """
            )

    @contextmanager
    def transaction(self) -> Iterator["MiningStore"]:
        """Commit on success, roll back on any exception; nested use joins the outer scope."""

        if self._in_transaction:
            yield self
            return
        self._in_transaction = True
        try:
            with self.conn:
                # Reads inside the scope run under the same write lock as the inserts.
                self.conn.execute("BEGIN IMMEDIATE")
                yield self
        finally:
            self._in_transaction = False

    def exists(self, mint_address: str) -> bool:
        row = self.conn.execute(
            f"SELECT COUNT(*) FROM {self.collection.assets_table} WHERE mint_address = ?",
            (mint_address,),
        ).fetchone()
        return bool(row and row[0])

    def insert_asset(self, record: AssetRecord) -> None:
        with self.transaction():
            try:
                self.conn.execute(
                    f"""
                    INSERT INTO {self.collection.assets_table} (
                        mint_address,
                        metadata_address,
                        metadata_data_name,
                        metadata_data_uri,
                        metadata_json_name,
                        metadata_json_image
                    ) VALUES (?, ?, ?, ?, ?, ?)
                    """,
                    (
                        record.mint_address,
                        record.metadata_address,
                        record.metadata_data_name,
                        record.metadata_data_uri,
                        record.metadata_json_name,
                        record.metadata_json_image,
                    ),
                )
            except sqlite3.IntegrityError as exc:
                raise ConstraintError(
                    f"Duplicate asset {record.mint_address}",
                    {
                        "mint_address": record.mint_address,
                        "metadata_address": record.metadata_address,
                    },
                ) from exc

    def insert_attributes(self, mint_address: str, rows: Sequence[Tuple[str, str]]) -> None:
        with self.transaction():
            self.conn.executemany(
                f"INSERT INTO {self.collection.attributes_table} (mint_address, trait_type, value) VALUES (?, ?, ?)",
                [(mint_address, trait_type, value) for trait_type, value in rows],
            )

    def save(self, record: AssetRecord, rows: Sequence[Tuple[str, str]]) -> None:
        """Insert one asset and its attribute rows atomically."""

        with self.transaction():
            if self.exists(record.mint_address):
                raise ConstraintError(
                    f"Asset {record.mint_address} is already stored",
                    {"mint_address": record.mint_address},
                )
            self.insert_asset(record)
            self.insert_attributes(record.mint_address, rows)
        _LOGGER.info(
            "asset saved collection=%s mint=%s attributes=%s",
            self.collection.name,
            record.mint_address,
            len(rows),
        )

    def attribute_rows(self, mint_address: str) -> List[Tuple[str, str]]:
        return self.conn.execute(
            f"SELECT trait_type, value FROM {self.collection.attributes_table} WHERE mint_address = ? ORDER BY rowid",
            (mint_address,),
        ).fetchall()

    def distinct_trait_types(self) -> List[str]:
        rows = self.conn.execute(
            f"SELECT DISTINCT trait_type FROM {self.collection.attributes_table} ORDER BY 1"
        ).fetchall()
        return [row[0] for row in rows]

    def trait_value_counts(self, trait_type: str) -> List[Tuple[str, int]]:
        return self.conn.execute(
            f"SELECT value, COUNT(*) FROM {self.collection.attributes_table} WHERE trait_type = ? GROUP BY 1 ORDER BY 2, 1",
            (trait_type,),
        ).fetchall()
