"""Named key-value persistence with integrity checks and schema-tolerant loading."""
from importlib.metadata import PackageNotFoundError, version

from .backends import Backend, FileBackend, MemoryBackend
from .codec import Codec, CompactBinary, StorageFormat, StructuredText
from .config import StoreConfig, load_config
from .errors import (
    BackendError,
    ConfigError,
    DecodeError,
    DigestMismatchError,
    EncodeError,
    IntegrityError,
    MalformedRecordError,
    PayloadSyntaxError,
    ReconcileError,
    StoreError,
    UnknownEnumError,
)
from .reconcile import reconcile, restore
from .store import Store
from .values import EnumRegistry, EnumValue, default_registry, register_enum

__all__ = [
    "__version__",
    "Backend",
    "BackendError",
    "Codec",
    "CompactBinary",
    "ConfigError",
    "DecodeError",
    "DigestMismatchError",
    "EncodeError",
    "EnumRegistry",
    "EnumValue",
    "FileBackend",
    "IntegrityError",
    "MalformedRecordError",
    "MemoryBackend",
    "PayloadSyntaxError",
    "ReconcileError",
    "StorageFormat",
    "Store",
    "StoreConfig",
    "StoreError",
    "StructuredText",
    "UnknownEnumError",
    "default_registry",
    "load_config",
    "reconcile",
    "register_enum",
    "restore",
]

try:
    __version__ = version("savestash")
except PackageNotFoundError:  # pragma: no cover - during tests without packaging
    __version__ = "0.0.0"
