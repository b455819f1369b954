"""Error taxonomy for the mining pipeline.

Every error aborts the run; nothing here is caught and retried.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class MinerError(Exception):
    """Base class for all mining errors."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "context": self.context,
        }


class InputError(MinerError):
    """Malformed or unreadable mint input."""


class NetworkError(MinerError):
    """A network boundary was unreachable, timed out or answered with an error."""

    def __init__(
        self,
        message: str,
        url: Optional[str] = None,
        status_code: Optional[int] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, context)
        self.url = url
        self.status_code = status_code

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update({"url": self.url, "status_code": self.status_code})
        return data


class NotFoundError(MinerError):
    """No account exists at the derived metadata address."""


class DecodeError(MinerError):
    """Account data does not match the metadata account layout."""


class FormatError(MinerError):
    """Off-chain document is not valid JSON or lacks required fields."""


class UnsupportedAttributeShape(MinerError):
    """An attribute value has a JSON shape the normalizer does not handle."""

    def __init__(self, trait_type: str, shape: str) -> None:
        super().__init__(
            f"Unsupported value shape {shape!r} for trait {trait_type!r}",
            {"trait_type": trait_type, "shape": shape},
        )
        self.trait_type = trait_type
        self.shape = shape


class ConstraintError(MinerError):
    """Duplicate mint or metadata address on insert."""
