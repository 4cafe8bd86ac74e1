from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, List, Optional

from .backends import Backend, FileBackend, MemoryBackend, validate_name
from .checksum import SEPARATOR, unwrap, wrap
from .codec import Codec, StorageFormat, StructuredText
from .errors import DecodeError, EncodeError, IntegrityError, ReconcileError
from .reconcile import restore
from .values import EnumRegistry

if TYPE_CHECKING:
    from .config import StoreConfig

logger = logging.getLogger(__name__)


class Store:
    """Named key-value storage for strings and objects.

    Writes run encode -> checksum wrap -> backend; reads run the reverse and
    then shape the decoded object after the caller's default. Reads never
    raise: a missing, corrupt, tampered or incompatible record degrades to the
    default. Writes report success as a bool.

    Storage names must be non-empty and contain no path separators; anything
    else is a programming error and raises ``ValueError``.
    """

    def __init__(
        self,
        backend: Backend,
        storage_format: Optional[StorageFormat] = None,
        use_crc: bool = True,
        registry: Optional[EnumRegistry] = None,
        recursive: bool = False,
    ) -> None:
        self._backend = backend
        self._codec = Codec(storage_format if storage_format is not None else StructuredText(), registry)
        self._use_crc = bool(use_crc)
        self._recursive = bool(recursive)

    @classmethod
    def from_config(cls, config: "StoreConfig", registry: Optional[EnumRegistry] = None) -> "Store":
        if config.backend == "memory":
            backend: Backend = MemoryBackend()
        else:
            backend = FileBackend(config.directory, extension=config.extension)
        return cls(
            backend,
            storage_format=config.storage_format(),
            use_crc=config.use_crc,
            registry=registry,
            recursive=config.recursive,
        )

    @property
    def backend(self) -> Backend:
        return self._backend

    @property
    def storage_format(self) -> StorageFormat:
        return self._codec.storage_format

    @property
    def use_crc(self) -> bool:
        return self._use_crc

    # Strings

    def _read_payload(self, name: str) -> Optional[str]:
        validate_name(name)
        try:
            record = self._backend.get(name)
        except Exception as exc:
            logger.warning("Backend read failed for %r: %s", name, exc)
            return None
        if record is None:
            return None
        if not self._use_crc:
            return record
        try:
            return unwrap(record)
        except IntegrityError as exc:
            logger.warning("Discarding record %r: %s", name, exc)
            return None

    def read_string(self, name: str, default: Optional[str] = None) -> Optional[str]:
        payload = self._read_payload(name)
        return default if payload is None else payload

    def write_string(self, name: str, value: Optional[str]) -> bool:
        """Store ``value`` under ``name``; ``None`` deletes the record.

        Returns whether the backend accepted the write.
        """
        validate_name(name)
        if value is None:
            self.delete(name)
            return True
        if self._use_crc and SEPARATOR in value:
            logger.error("Refusing to write %r: payload contains the digest separator %r", name, SEPARATOR)
            return False
        record = wrap(value) if self._use_crc else value
        try:
            ok = bool(self._backend.set(name, record))
        except Exception as exc:
            logger.warning("Backend write failed for %r: %s", name, exc)
            return False
        if not ok:
            logger.warning("Backend rejected write for %r", name)
        return ok

    # Objects

    def read_object(self, name: str, default: Any = None) -> Any:
        """Load and decode ``name``, shaped after ``default``.

        Any failure (absent, corrupt, undecodable, unknown enum, shape
        mismatch) returns ``default`` itself, never a partial object.
        """
        payload = self._read_payload(name)
        if payload is None:
            return default
        try:
            obj = self._codec.decode(payload)
        except DecodeError as exc:
            logger.warning("Failed to decode %r: %s", name, exc)
            return default
        if obj is None:
            return default
        if default is None:
            return obj
        try:
            return restore(obj, default, recursive=self._recursive)
        except ReconcileError as exc:
            logger.warning("Stored %r does not fit its default: %s", name, exc)
            return default

    def write_object(self, name: str, obj: Any) -> bool:
        validate_name(name)
        if obj is None:
            return self.write_string(name, None)
        try:
            payload = self._codec.encode(obj)
        except EncodeError as exc:
            logger.error("Failed to encode %r: %s", name, exc)
            return False
        return self.write_string(name, payload)

    # Housekeeping

    def exists(self, name: str) -> bool:
        """True iff a readable record (passing its checksum when enabled) exists."""
        return self._read_payload(name) is not None

    def delete(self, name: str) -> None:
        validate_name(name)
        try:
            self._backend.delete(name)
        except Exception as exc:
            logger.warning("Backend delete failed for %r: %s", name, exc)

    def names(self) -> List[str]:
        try:
            return list(self._backend.keys())
        except Exception as exc:
            logger.warning("Backend listing failed: %s", exc)
            return []

    def __repr__(self) -> str:
        return f"Store({self._backend!r}, {self.storage_format!r}, use_crc={self._use_crc})"
