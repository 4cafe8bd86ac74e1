import enum
import sys
from pathlib import Path

import pytest

# Ensure 'src' is on sys.path for test imports without installing the package
ROOT = Path(__file__).resolve().parents[1]
src = ROOT / "src"
if str(src) not in sys.path:
    sys.path.insert(0, str(src))

from savestash.backends import MemoryBackend  # noqa: E402
from savestash.store import Store  # noqa: E402
from savestash.values import EnumRegistry  # noqa: E402


class Mode(enum.Enum):
    ValueA = 1
    ValueB = 2


@pytest.fixture
def registry() -> EnumRegistry:
    reg = EnumRegistry()
    reg.register(Mode)
    reg.declare("Shape", {"Circle": 1, "Rect": 2, "Point": 0})
    return reg


@pytest.fixture
def backend() -> MemoryBackend:
    return MemoryBackend()


@pytest.fixture
def store(backend: MemoryBackend, registry: EnumRegistry) -> Store:
    return Store(backend, registry=registry)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for var in (
        "SAVESTASH_DIR",
        "SAVESTASH_BACKEND",
        "SAVESTASH_FORMAT",
        "SAVESTASH_USE_CRC",
        "SAVESTASH_LOG_LEVEL",
    ):
        monkeypatch.delenv(var, raising=False)
