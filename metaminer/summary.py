"""Read-only trait listings over mined collections."""

from __future__ import annotations

import sys
from typing import Iterable, Optional, TextIO

from .store import MiningStore


def summarize(stores: Iterable[MiningStore], counts: bool = False, out: Optional[TextIO] = None) -> None:
    out = out if out is not None else sys.stdout
    for store in stores:
        store.ensure_schema()
        collection = store.collection
        print(f"{collection.title} Traits", file=out)
        for trait_type in store.distinct_trait_types():
            if trait_type in collection.hidden_traits:
                continue
            print(f"  {trait_type}", file=out)
            if counts:
                for value, count in store.trait_value_counts(trait_type):
                    print(f"    {value: <34} {count: >3}", file=out)
        print("", file=out)
