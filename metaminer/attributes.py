"""Flatten off-chain attribute lists into (trait_type, value) rows."""

from __future__ import annotations

from typing import Any, Iterable, List, Tuple

from .errors import UnsupportedAttributeShape
from .offchain import OffChainAttribute


SHAPE_NULL = "null"
SHAPE_BOOL = "bool"
SHAPE_NUMBER = "number"
SHAPE_STRING = "string"
SHAPE_ARRAY = "array"
SHAPE_OBJECT = "object"

SUPPORTED_SHAPES = frozenset({SHAPE_NUMBER, SHAPE_STRING})

AttributeRow = Tuple[str, str]


def attribute_shape(value: Any) -> str:
    """Classify a decoded JSON value into one of the six JSON shapes."""

    if value is None:
        return SHAPE_NULL
    # bool is an int subclass, so it has to be ruled out first.
    if isinstance(value, bool):
        return SHAPE_BOOL
    if isinstance(value, (int, float)):
        return SHAPE_NUMBER
    if isinstance(value, str):
        return SHAPE_STRING
    if isinstance(value, list):
        return SHAPE_ARRAY
    if isinstance(value, dict):
        return SHAPE_OBJECT
    raise TypeError(f"Not a JSON value: {type(value).__name__}")


def normalize_attribute(trait_type: str, value: Any) -> AttributeRow:
    shape = attribute_shape(value)
    if shape not in SUPPORTED_SHAPES:
        raise UnsupportedAttributeShape(trait_type, shape)
    if shape == SHAPE_NUMBER:
        return trait_type, str(value)
    return trait_type, value


def normalize_attributes(attributes: Iterable[OffChainAttribute]) -> List[AttributeRow]:
    """Return rows in document order; the first unsupported value fails the whole list."""

    return [normalize_attribute(attribute.trait_type, attribute.value) for attribute in attributes]
