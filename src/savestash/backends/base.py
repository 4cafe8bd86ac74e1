from __future__ import annotations

import re
from abc import ABC, abstractmethod
from typing import List, Optional

_VALID_NAME = re.compile(r"^[^/\\\x00]+$")


def validate_name(name: str) -> str:
    """Return ``name`` if it is usable as a storage key, else raise ``ValueError``.

    Names must be non-empty and free of path separators so every backend can
    map them to a single slot.
    """
    if not isinstance(name, str) or not _VALID_NAME.match(name) or name in {".", ".."}:
        raise ValueError(f"Invalid storage name: {name!r}")
    return name


class Backend(ABC):
    """Raw string storage keyed by name.

    Implementations should not raise for platform failures: ``get`` returns None,
    ``set`` returns False and ``delete`` gives up quietly. Anything that does
    escape (ideally a ``BackendError``) is caught and logged by the store.
    """

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """Return the stored string, or None when absent or unreadable."""
        raise NotImplementedError

    @abstractmethod
    def set(self, key: str, value: str) -> bool:
        """Replace the value under ``key``. Returns True on success."""
        raise NotImplementedError

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove ``key`` if present (best-effort)."""
        raise NotImplementedError

    @abstractmethod
    def exists(self, key: str) -> bool:
        raise NotImplementedError

    @abstractmethod
    def keys(self) -> List[str]:
        """Names currently stored, sorted."""
        raise NotImplementedError
