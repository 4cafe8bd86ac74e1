"""Salted digest guard for stored records.

A guarded record looks like ``<digest>/||/<payload>``. The digest is a
double md5 over the payload and a fixed salt::

    digest = md5(payload + md5(payload + SALT))[:DIGEST_LENGTH]

This detects accidental corruption and casual hand-editing of save files. It
is not authentication: the salt ships with the library, so anyone who reads it
can forge a valid digest. The algorithm must not change, otherwise existing
records stop verifying.
"""
from __future__ import annotations

import hashlib

from .errors import DigestMismatchError, IntegrityError, MalformedRecordError

SALT = "savestash:4e1f3c29"
SEPARATOR = "/||/"
DIGEST_LENGTH = 32

__all__ = [
    "SALT",
    "SEPARATOR",
    "DIGEST_LENGTH",
    "compute_digest",
    "wrap",
    "unwrap",
    "is_intact",
]


def _md5_hex(text: str) -> str:
    return hashlib.md5(text.encode("utf-8"), usedforsecurity=False).hexdigest()


def compute_digest(payload: str, *, salt: str = SALT) -> str:
    inner = _md5_hex(payload + salt)
    return _md5_hex(payload + inner)[:DIGEST_LENGTH]


def wrap(payload: str, *, salt: str = SALT) -> str:
    """Prefix ``payload`` with its digest and the separator."""
    return compute_digest(payload, salt=salt) + SEPARATOR + payload


def unwrap(record: str, *, salt: str = SALT) -> str:
    """Verify a guarded record and return its payload.

    A well-formed record contains the separator exactly once.

    Raises:
        MalformedRecordError: splitting on the separator does not give exactly
            two parts.
        DigestMismatchError: the digest does not match the payload.
    """
    parts = record.split(SEPARATOR)
    if len(parts) != 2:
        raise MalformedRecordError(f"Record splits into {len(parts)} part(s), expected 2")
    digest, payload = parts
    if compute_digest(payload, salt=salt) != digest:
        raise DigestMismatchError("Record digest does not match its payload")
    return payload


def is_intact(record: str, *, salt: str = SALT) -> bool:
    try:
        unwrap(record, salt=salt)
    except IntegrityError:
        return False
    return True
