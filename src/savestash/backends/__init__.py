"""Storage backends: where records physically live."""
from .base import Backend, validate_name
from .file import FileBackend
from .memory import MemoryBackend

__all__ = ["Backend", "FileBackend", "MemoryBackend", "validate_name"]
