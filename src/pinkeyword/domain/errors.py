"""Structured errors raised by keyword stores."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict


@dataclass
class KeywordStoreError(Exception):
    """Backend failure that the caller should surface to the user."""

    message: str
    code: str = "store_error"
    retryable: bool = False
    details: Dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        return self.message


@dataclass
class KeywordStoreAuthError(KeywordStoreError):
    """A write was attempted without an authenticated user or selected project."""

    code: str = "not_authenticated"


@dataclass
class KeywordDecodeError(KeywordStoreError):
    """Persisted or imported document has an unrecognized shape."""

    code: str = "decode_error"
