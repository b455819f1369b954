"""Sequential mining driver."""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional, TextIO

import requests
from solders.pubkey import Pubkey

from .attributes import normalize_attributes
from .derive import TOKEN_METADATA_PROGRAM_ID, find_metadata_address
from .errors import InputError
from .offchain import fetch_offchain_metadata
from .onchain import fetch_metadata_account
from .store import AssetRecord, MiningStore


SKIPPED_MARKER = "-"
MINED_MARKER = "+"

_LOGGER = logging.getLogger("metaminer.miner")


@dataclass
class MiningReport:
    mined: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)


def read_mints(path: Path) -> List[Pubkey]:
    """Parse one base58 mint per line, skipping blanks and # comments."""

    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise InputError(f"Cannot read mints file {path}: {exc.strerror or exc}", {"path": str(path)}) from exc

    mints = []
    for lineno, line in enumerate(text.splitlines(), start=1):
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        try:
            mints.append(Pubkey.from_string(line))
        except ValueError as exc:
            raise InputError(
                f"{path}:{lineno}: invalid mint address {line!r}",
                {"path": str(path), "line": lineno},
            ) from exc
    return mints


def mine_one(
    mint: Pubkey,
    store: MiningStore,
    rpc_url: str,
    timeout: float,
    session: requests.Session,
    program_id: Pubkey = TOKEN_METADATA_PROGRAM_ID,
) -> AssetRecord:
    metadata_address = find_metadata_address(mint, program_id)
    onchain = fetch_metadata_account(rpc_url, metadata_address, timeout, session=session)
    document = fetch_offchain_metadata(onchain.uri, timeout, session=session)
    rows = normalize_attributes(document.attributes)
    record = AssetRecord(
        mint_address=str(mint),
        metadata_address=str(metadata_address),
        metadata_data_name=onchain.name,
        metadata_data_uri=onchain.uri,
        metadata_json_name=document.name,
        metadata_json_image=document.image,
    )
    store.save(record, rows)
    return record


def mine(
    mints: Iterable[Pubkey],
    store: MiningStore,
    rpc_url: str,
    timeout: float,
    session: requests.Session,
    progress: Optional[TextIO] = None,
    program_id: Pubkey = TOKEN_METADATA_PROGRAM_ID,
) -> MiningReport:
    """Mine each mint in order; the first error stops the run and propagates."""

    progress = progress if progress is not None else sys.stderr
    report = MiningReport()
    store.ensure_schema()

    for mint in mints:
        mint_address = str(mint)
        if store.exists(mint_address):
            report.skipped.append(mint_address)
            _LOGGER.debug("mint skipped collection=%s mint=%s", store.collection.name, mint_address)
            print(SKIPPED_MARKER, end="", file=progress, flush=True)
            continue

        mine_one(mint, store, rpc_url, timeout, session, program_id=program_id)
        report.mined.append(mint_address)
        _LOGGER.info("mint mined collection=%s mint=%s", store.collection.name, mint_address)
        print(MINED_MARKER, end="", file=progress, flush=True)

    _LOGGER.info(
        "run complete collection=%s mined=%s skipped=%s",
        store.collection.name,
        len(report.mined),
        len(report.skipped),
    )
    return report
