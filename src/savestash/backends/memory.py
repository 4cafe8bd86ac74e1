from __future__ import annotations

from typing import Dict, List, Optional

from .base import Backend


class MemoryBackend(Backend):
    """Process-local dict storage. Useful for tests and throwaway sessions."""

    def __init__(self, initial: Optional[Dict[str, str]] = None) -> None:
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> bool:
        self._data[key] = value
        return True

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def exists(self, key: str) -> bool:
        return key in self._data

    def keys(self) -> List[str]:
        return sorted(self._data)

    def raw(self) -> Dict[str, str]:
        """Live view of the underlying dict, for inspection and fault injection."""
        return self._data
