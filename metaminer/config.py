"""Collections and run defaults."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, FrozenSet, Optional


DEFAULT_DB_PATH = "../data/mine.db"
DEFAULT_RPC_URL = "https://api.mainnet-beta.solana.com"
DEFAULT_TIMEOUT = 10.0

_IDENTIFIER_RE = re.compile(r"[a-z][a-z0-9_]*")


@dataclass(frozen=True)
class Collection:
    name: str
    mints_file: str
    hidden_traits: FrozenSet[str] = field(default_factory=frozenset)

    def __post_init__(self) -> None:
        if not _IDENTIFIER_RE.fullmatch(self.name):
            raise ValueError(f"Collection name must be a lowercase identifier: {self.name!r}")

    @property
    def assets_table(self) -> str:
        return f"{self.name}s"

    @property
    def attributes_table(self) -> str:
        return f"{self.name}_atts"

    @property
    def title(self) -> str:
        return self.name.upper()


XALT = Collection(name="xalt", mints_file="../data/xalt-mints")
XAPE = Collection(
    name="xape",
    mints_file="../data/xape-mints",
    hidden_traits=frozenset({"Inmate number"}),
)

COLLECTIONS: Dict[str, Collection] = {XALT.name: XALT, XAPE.name: XAPE}


def load_dotenv(path: str = ".env") -> None:
    """Copy KEY=VALUE lines from path into os.environ without overriding existing values."""

    env_file = Path(path)
    if not env_file.is_file():
        return
    for raw in env_file.read_text(encoding="utf-8").splitlines():
        entry = raw.strip()
        if entry.startswith("export "):
            entry = entry[len("export "):]
        key, sep, value = entry.partition("=")
        key = key.strip()
        if not sep or not key or key.startswith("#") or key in os.environ:
            continue
        value = value.strip()
        if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
            value = value[1:-1]
        os.environ[key] = value


def env_default(name: str, default: str) -> str:
    return os.getenv(name) or default


def env_timeout(name: str = "METAMINER_TIMEOUT", default: float = DEFAULT_TIMEOUT) -> float:
    raw: Optional[str] = os.getenv(name)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number of seconds, got {raw!r}") from exc
