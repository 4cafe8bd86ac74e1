from __future__ import annotations

from typing import Optional


class StoreError(Exception):
    """Base class for all savestash failures."""


class IntegrityError(StoreError):
    """Raised when a stored record fails its checksum guard."""


class MalformedRecordError(IntegrityError):
    """Raised when a record does not have the ``<digest>/||/<payload>`` shape."""


class DigestMismatchError(IntegrityError):
    """Raised when the stored digest does not match the payload."""


class DecodeError(StoreError):
    """Raised when a payload cannot be turned back into an object."""


class PayloadSyntaxError(DecodeError):
    """Raised for unparseable payloads (bad JSON, bad base64, bad pickle stream)."""


class UnknownEnumError(DecodeError):
    """Raised when a stored tagged value names a type or variant we cannot resolve."""

    def __init__(self, enum_name: str, variant: Optional[str] = None, reason: str = "") -> None:
        self.enum_name = enum_name
        self.variant = variant
        where = enum_name if variant is None else f"{enum_name}.{variant}"
        message = f"Cannot resolve enum value {where}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class EncodeError(StoreError):
    """Raised when an object contains values the target format cannot represent."""


class ReconcileError(StoreError):
    """Raised when a decoded value cannot be shaped after its template."""


class BackendError(StoreError):
    """Raised by backends for platform failures (always swallowed by the store)."""


class ConfigError(StoreError):
    """Raised for invalid store configuration."""
