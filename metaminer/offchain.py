"""Off-chain JSON metadata resolution."""

from __future__ import annotations

import logging
from typing import Any, List

import requests
from pydantic import BaseModel, ConfigDict, StrictStr, ValidationError

from .errors import FormatError, NetworkError


_LOGGER = logging.getLogger("metaminer.offchain")


class OffChainAttribute(BaseModel):
    model_config = ConfigDict(frozen=True)

    trait_type: StrictStr
    # Raw JSON value; the normalizer decides what to do with it.
    value: Any


class OffChainMetadata(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: StrictStr
    image: StrictStr
    attributes: List[OffChainAttribute]


def parse_offchain_metadata(payload: Any, uri: str = "") -> OffChainMetadata:
    if not isinstance(payload, dict):
        raise FormatError(f"Metadata at {uri} is not a JSON object", {"uri": uri})
    try:
        return OffChainMetadata.model_validate(payload)
    except ValidationError as exc:
        fields = sorted({".".join(str(part) for part in err["loc"]) for err in exc.errors()})
        raise FormatError(
            f"Metadata at {uri} has missing or invalid fields: {', '.join(fields)}",
            {"uri": uri, "fields": fields},
        ) from exc


def fetch_offchain_metadata(
    uri: str,
    timeout: float,
    session: requests.Session,
) -> OffChainMetadata:
    """GET uri and parse the body as an off-chain metadata document."""

    try:
        response = session.get(uri, headers={"accept": "application/json"}, timeout=timeout)
        response.raise_for_status()
    except requests.RequestException as exc:
        status = getattr(getattr(exc, "response", None), "status_code", None)
        raise NetworkError(f"Metadata request failed: {exc}", url=uri, status_code=status) from exc
    try:
        payload = response.json()
    except ValueError as exc:
        raise FormatError(f"Metadata at {uri} is not valid JSON", {"uri": uri}) from exc
    _LOGGER.info("metadata fetched uri=%s status=%s", uri, response.status_code)
    return parse_offchain_metadata(payload, uri)
