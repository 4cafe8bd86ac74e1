from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Dict, Literal, Optional, Union

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from .codec import CompactBinary, StorageFormat, StructuredText
from .errors import ConfigError

logger = logging.getLogger(__name__)

ENV_DIR = "SAVESTASH_DIR"
ENV_BACKEND = "SAVESTASH_BACKEND"
ENV_FORMAT = "SAVESTASH_FORMAT"
ENV_USE_CRC = "SAVESTASH_USE_CRC"

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


class StoreConfig(BaseModel):
    """Settings fixed for the lifetime of a store."""

    backend: Literal["file", "memory"] = Field("file", description="Where records are kept")
    directory: Optional[Path] = Field(None, description="File backend directory; platform default when unset")
    extension: str = Field(".sav", description="File backend record suffix")
    format: Literal["text", "binary"] = Field("text", description="Payload format")
    indent: Optional[int] = Field(None, ge=0, description="Structured text indent; None is compact")
    use_crc: bool = Field(True, description="Guard records with a salted digest")
    recursive: bool = Field(False, description="Reconcile nested mappings too")

    @field_validator("extension")
    @classmethod
    def no_separators(cls, v: str) -> str:
        if "/" in v or "\\" in v:
            raise ValueError("extension must not contain path separators")
        return v

    def storage_format(self) -> StorageFormat:
        if self.format == "binary":
            return CompactBinary()
        return StructuredText(indent=self.indent)


def _parse_bool(name: str, raw: str) -> bool:
    value = raw.strip().lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    raise ConfigError(f"Invalid {name} value: expected a boolean, got {raw!r}")


def _env_overrides() -> Dict[str, Any]:
    overrides: Dict[str, Any] = {}
    if os.getenv(ENV_DIR):
        overrides["directory"] = os.environ[ENV_DIR]
    if os.getenv(ENV_BACKEND):
        overrides["backend"] = os.environ[ENV_BACKEND].strip().lower()
    if os.getenv(ENV_FORMAT):
        overrides["format"] = os.environ[ENV_FORMAT].strip().lower()
    if os.getenv(ENV_USE_CRC):
        overrides["use_crc"] = _parse_bool(ENV_USE_CRC, os.environ[ENV_USE_CRC])
    return overrides


def _load_yaml(path: Path) -> Dict[str, Any]:
    try:
        with path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse config file {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a mapping at top level")
    return data


def load_config(path: Optional[Union[str, Path]] = None, **overrides: Any) -> StoreConfig:
    """Build a config from an optional YAML file, the environment and keyword overrides.

    Precedence, lowest first: field defaults, YAML file, environment, keywords.
    Keyword overrides set to None are ignored.

    Raises:
        ConfigError: the file is missing or unreadable, or a value is invalid.
    """
    data: Dict[str, Any] = {}
    if path is not None:
        path = Path(path).expanduser()
        if not path.exists():
            raise ConfigError(f"Config file not found: {path}")
        data.update(_load_yaml(path))
        logger.info("Loaded store config from %s", path)
    data.update(_env_overrides())
    data.update({k: v for k, v in overrides.items() if v is not None})
    try:
        return StoreConfig(**data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid store configuration: {exc}") from exc
