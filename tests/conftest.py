"""Shared fixtures: in-memory store, account builders and a fake HTTP session."""

import base64
import sqlite3
import struct
from typing import Dict, Optional

import pytest
import requests

from metaminer.config import XALT
from metaminer.store import MiningStore


def borsh_string(value: str, width: int) -> bytes:
    raw = value.encode("utf-8").ljust(width, b"\x00")
    return struct.pack("<I", len(raw)) + raw


def metadata_account(name: str, uri: str, symbol: str = "XALT", key: int = 4) -> bytes:
    """MetadataV1 account bytes with on-chain style NUL padding."""
    return (
        bytes([key])
        + bytes(32)
        + bytes(range(32))
        + borsh_string(name, 32)
        + borsh_string(symbol, 10)
        + borsh_string(uri, 200)
        + struct.pack("<H", 500)
        + b"\x00"  # creators: None
        + b"\x01\x01"
    )


class FakeResponse:
    def __init__(self, payload=None, status_code: int = 200, text: Optional[str] = None) -> None:
        self._payload = payload
        self.status_code = status_code
        self.text = text

    def json(self):
        if self.text is not None:
            raise ValueError("Expecting value: line 1 column 1 (char 0)")
        return self._payload

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error", response=self)


class FakeSession:
    """Serves getAccountInfo from `accounts` and GETs from `documents`."""

    def __init__(self, accounts: Optional[Dict[str, Optional[bytes]]] = None, documents=None) -> None:
        self.accounts = accounts or {}
        self.documents = documents or {}
        self.posts = []
        self.gets = []

    def post(self, url, json=None, headers=None, timeout=None):
        self.posts.append((url, json, timeout))
        address = json["params"][0]
        data = self.accounts.get(address)
        if data is None:
            return FakeResponse({"jsonrpc": "2.0", "id": 1, "result": {"context": {"slot": 1}, "value": None}})
        value = {
            "data": [base64.b64encode(data).decode("ascii"), "base64"],
            "executable": False,
            "lamports": 5616720,
            "owner": "metaqbxxUerdq28cj1RbAWkYQm3ybzjb6a8bt518x1s",
            "rentEpoch": 361,
        }
        return FakeResponse({"jsonrpc": "2.0", "id": 1, "result": {"context": {"slot": 1}, "value": value}})

    def get(self, url, headers=None, timeout=None):
        self.gets.append((url, timeout))
        document = self.documents.get(url)
        if isinstance(document, FakeResponse):
            return document
        if document is None:
            return FakeResponse(status_code=404)
        return FakeResponse(document)


@pytest.fixture
def conn():
    connection = sqlite3.connect(":memory:")
    yield connection
    connection.close()


@pytest.fixture
def store(conn):
    mining_store = MiningStore(conn, XALT)
    mining_store.ensure_schema()
    return mining_store
