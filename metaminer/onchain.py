"""Token Metadata account fetch and decode."""

from __future__ import annotations

import base64
import logging
import struct
from dataclasses import dataclass
from typing import Tuple

import requests
from solders.pubkey import Pubkey

from .errors import DecodeError, NetworkError, NotFoundError


METADATA_V1_KEY = 4
_HEADER = struct.Struct("<B32s32s")
_STRING_LEN = struct.Struct("<I")
_LOGGER = logging.getLogger("metaminer.onchain")


@dataclass(frozen=True)
class OnChainMetadata:
    name: str
    symbol: str
    uri: str


def _read_string(data: bytes, offset: int, field: str) -> Tuple[str, int]:
    if offset + _STRING_LEN.size > len(data):
        raise DecodeError(f"Truncated account data reading {field} length", {"offset": offset})
    (length,) = _STRING_LEN.unpack_from(data, offset)
    offset += _STRING_LEN.size
    end = offset + length
    if end > len(data):
        raise DecodeError(
            f"Truncated account data reading {field}",
            {"offset": offset, "length": length, "size": len(data)},
        )
    raw = data[offset:end].strip(b"\x00")
    try:
        return raw.decode("utf-8"), end
    except UnicodeDecodeError as exc:
        raise DecodeError(f"Invalid UTF-8 in {field}", {"offset": offset}) from exc


def decode_metadata(data: bytes) -> OnChainMetadata:
    """Decode name, symbol and uri from a MetadataV1 account, ignoring everything after uri."""

    if len(data) < _HEADER.size:
        raise DecodeError("Truncated account data reading header", {"size": len(data)})
    key, _update_authority, _mint = _HEADER.unpack_from(data, 0)
    if key != METADATA_V1_KEY:
        raise DecodeError(f"Unexpected account key {key}", {"expected": METADATA_V1_KEY})

    offset = _HEADER.size
    name, offset = _read_string(data, offset, "name")
    symbol, offset = _read_string(data, offset, "symbol")
    uri, offset = _read_string(data, offset, "uri")
    return OnChainMetadata(name=name, symbol=symbol, uri=uri)


def _post_json(session: requests.Session, url: str, payload: dict, timeout: float) -> dict:
    try:
        response = session.post(
            url,
            json=payload,
            headers={"accept": "application/json"},
            timeout=timeout,
        )
        response.raise_for_status()
    except requests.RequestException as exc:
        status = getattr(getattr(exc, "response", None), "status_code", None)
        raise NetworkError(f"RPC request failed: {exc}", url=url, status_code=status) from exc
    try:
        body = response.json()
    except ValueError as exc:
        raise NetworkError("RPC response is not JSON", url=url, status_code=response.status_code) from exc
    if not isinstance(body, dict):
        raise NetworkError("RPC response is not a JSON object", url=url, status_code=response.status_code)
    return body


def fetch_account_data(
    endpoint: str,
    address: Pubkey,
    timeout: float,
    session: requests.Session,
) -> bytes:
    """Return the raw data of the account at address."""

    payload = {
        "id": 1,
        "jsonrpc": "2.0",
        "method": "getAccountInfo",
        "params": [str(address), {"encoding": "base64"}],
    }
    response = _post_json(session, endpoint, payload, timeout)
    error = response.get("error")
    if error:
        raise NetworkError(f"RPC error for {address}: {error}", url=endpoint, context={"error": error})
    if "result" not in response:
        raise NetworkError("No result in getAccountInfo response", url=endpoint)
    result = response.get("result")
    value = result.get("value") if isinstance(result, dict) else None
    if value is None:
        raise NotFoundError(f"No account at {address}", {"address": str(address)})

    data = value.get("data") if isinstance(value, dict) else None
    if not isinstance(data, list) or len(data) != 2 or data[1] != "base64":
        raise DecodeError(f"Unexpected account data encoding for {address}", {"data": repr(data)[:80]})
    try:
        return base64.b64decode(data[0], validate=True)
    except (ValueError, TypeError) as exc:
        raise DecodeError(f"Account data for {address} is not base64") from exc


def fetch_metadata_account(
    endpoint: str,
    address: Pubkey,
    timeout: float,
    session: requests.Session,
) -> OnChainMetadata:
    raw = fetch_account_data(endpoint, address, timeout, session=session)
    _LOGGER.info("account fetched address=%s bytes=%s", address, len(raw))
    return decode_metadata(raw)
