from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional, Union

from ..fs import atomic_write_text
from ..paths import default_store_dir
from .base import Backend

logger = logging.getLogger(__name__)


class FileBackend(Backend):
    """One UTF-8 file per key under a directory.

    Writes are atomic (temp file + fsync + replace) so a crash mid-write leaves
    the previous record intact. The directory is created on first write.
    """

    def __init__(self, directory: Optional[Union[str, Path]] = None, extension: str = ".sav") -> None:
        self.directory = Path(directory).expanduser() if directory is not None else default_store_dir()
        self.extension = extension

    def path_for(self, key: str) -> Path:
        return self.directory / f"{key}{self.extension}"

    def get(self, key: str) -> Optional[str]:
        path = self.path_for(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning("Failed to read %s: %s", path, exc)
            return None

    def set(self, key: str, value: str) -> bool:
        path = self.path_for(key)
        try:
            atomic_write_text(path, value)
        except OSError as exc:
            logger.error("Failed to write %s: %s", path, exc)
            return False
        logger.debug("Wrote %d chars to %s", len(value), path)
        return True

    def delete(self, key: str) -> None:
        path = self.path_for(key)
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            logger.warning("Failed to delete %s: %s", path, exc)

    def exists(self, key: str) -> bool:
        return self.path_for(key).is_file()

    def keys(self) -> List[str]:
        if not self.directory.is_dir():
            return []
        suffix_len = len(self.extension)
        names = []
        for path in self.directory.iterdir():
            if not path.is_file() or not path.name.endswith(self.extension):
                continue
            name = path.name[: len(path.name) - suffix_len] if suffix_len else path.name
            if name:
                names.append(name)
        return sorted(names)

    def __repr__(self) -> str:
        return f"FileBackend({str(self.directory)!r})"
