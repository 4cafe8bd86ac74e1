"""Object <-> storage string conversion.

Two interchangeable formats are supported:

- ``StructuredText``: JSON, compact or indented. JSON has no tagged unions, so
  every tagged value is written as a marker object::

      {"__enum__": "Color", "name": "Red", "args": []}

- ``CompactBinary``: a pickle of the value tree, base64-armoured so it stays a
  plain string. ``EnumValue`` pickles natively and needs no marker.

Both directions go through a plain value tree (str, int, float, bool, None,
list, tuple, dict, set, EnumValue). Dataclass instances and pydantic models
are flattened into dicts of their fields on the way in.
"""
from __future__ import annotations

import base64
import binascii
import dataclasses
import io
import json
import pickle
from dataclasses import dataclass
from typing import Any, Optional, Union

from pydantic import BaseModel

from .errors import DecodeError, EncodeError, PayloadSyntaxError
from .values import EnumRegistry, EnumValue, default_registry, is_tagged


ENUM_MARKER = "__enum__"
VARIANT_FIELD = "name"
ARGS_FIELD = "args"

__all__ = [
    "StructuredText",
    "CompactBinary",
    "StorageFormat",
    "Codec",
    "encode",
    "decode",
    "ENUM_MARKER",
    "VARIANT_FIELD",
    "ARGS_FIELD",
]


@dataclass(frozen=True)
class StructuredText:
    """Human-readable JSON. ``indent=None`` is compact, an int pretty-prints."""

    indent: Optional[int] = None


@dataclass(frozen=True)
class CompactBinary:
    """Base64-armoured pickle."""


StorageFormat = Union[StructuredText, CompactBinary]


# Normalisation


def _to_tree(value: Any, registry: EnumRegistry) -> Any:
    # Tagged values first: IntEnum/StrEnum members are also ints/strs.
    if is_tagged(value):
        described = registry.describe(value)
        return EnumValue(
            described.enum,
            described.name,
            tuple(_to_tree(arg, registry) for arg in described.args),
        )
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    if isinstance(value, BaseModel):
        return _to_tree(value.model_dump(), registry)
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {f.name: _to_tree(getattr(value, f.name), registry) for f in dataclasses.fields(value)}
    if isinstance(value, dict):
        out = {}
        for key, item in value.items():
            if not isinstance(key, str):
                raise EncodeError(f"Mapping keys must be strings, got {key!r}")
            out[key] = _to_tree(item, registry)
        return out
    if isinstance(value, list):
        return [_to_tree(item, registry) for item in value]
    if isinstance(value, tuple):
        return tuple(_to_tree(item, registry) for item in value)
    if isinstance(value, (set, frozenset)):
        return type(value)(_to_tree(item, registry) for item in value)
    raise EncodeError(f"Cannot store value of type {type(value).__name__}")


# Structured text


def _to_json_tree(tree: Any) -> Any:
    if isinstance(tree, EnumValue):
        return {
            ENUM_MARKER: tree.enum,
            VARIANT_FIELD: tree.name,
            ARGS_FIELD: [_to_json_tree(arg) for arg in tree.args],
        }
    if isinstance(tree, dict):
        if ENUM_MARKER in tree:
            raise EncodeError(f"{ENUM_MARKER!r} is a reserved field name")
        return {key: _to_json_tree(item) for key, item in tree.items()}
    if isinstance(tree, (list, tuple)):
        return [_to_json_tree(item) for item in tree]
    if isinstance(tree, (set, frozenset)):
        raise EncodeError("Sets cannot be stored as structured text")
    return tree


def _from_json_tree(tree: Any, registry: EnumRegistry) -> Any:
    if isinstance(tree, dict):
        if ENUM_MARKER in tree:
            return _resolve_marker(tree, registry)
        return {key: _from_json_tree(item, registry) for key, item in tree.items()}
    if isinstance(tree, list):
        return [_from_json_tree(item, registry) for item in tree]
    return tree


def _resolve_marker(marker: dict, registry: EnumRegistry) -> Any:
    type_name = marker.get(ENUM_MARKER)
    variant = marker.get(VARIANT_FIELD)
    args = marker.get(ARGS_FIELD, [])
    if not isinstance(type_name, str) or not isinstance(variant, str) or not isinstance(args, list):
        raise PayloadSyntaxError(f"Malformed enum marker: {marker!r}")
    resolved_args = [_from_json_tree(arg, registry) for arg in args]
    return registry.resolve(type_name, variant, resolved_args)


# Compact binary


class _TreeUnpickler(pickle.Unpickler):
    """Unpickler that only materialises value-tree types."""

    _ALLOWED = {
        ("savestash.values", "EnumValue"): EnumValue,
        ("builtins", "set"): set,
        ("builtins", "frozenset"): frozenset,
    }

    def find_class(self, module: str, name: str) -> Any:
        try:
            return self._ALLOWED[(module, name)]
        except KeyError:
            raise PayloadSyntaxError(f"Refusing to load global {module}.{name}") from None


def _resolve_tree(tree: Any, registry: EnumRegistry) -> Any:
    if isinstance(tree, EnumValue):
        return registry.resolve(tree.enum, tree.name, [_resolve_tree(arg, registry) for arg in tree.args])
    if isinstance(tree, dict):
        return {key: _resolve_tree(item, registry) for key, item in tree.items()}
    if isinstance(tree, list):
        return [_resolve_tree(item, registry) for item in tree]
    if isinstance(tree, tuple):
        return tuple(_resolve_tree(item, registry) for item in tree)
    if isinstance(tree, (set, frozenset)):
        return type(tree)(_resolve_tree(item, registry) for item in tree)
    return tree


# Public API


def encode(obj: Any, storage_format: StorageFormat, registry: Optional[EnumRegistry] = None) -> str:
    """Render ``obj`` as a storage string.

    Raises:
        EncodeError: ``obj`` contains something the format cannot represent.
    """
    registry = registry or default_registry
    try:
        return _encode(obj, storage_format, registry)
    except RecursionError:
        raise EncodeError("Value is self-referencing or nested too deeply") from None


def _encode(obj: Any, storage_format: StorageFormat, registry: EnumRegistry) -> str:
    tree = _to_tree(obj, registry)
    if isinstance(storage_format, CompactBinary):
        try:
            raw = pickle.dumps(tree, protocol=pickle.HIGHEST_PROTOCOL)
        except (pickle.PicklingError, TypeError, AttributeError) as exc:
            raise EncodeError(f"Cannot pickle value tree: {exc}") from exc
        return base64.b64encode(raw).decode("ascii")
    try:
        return json.dumps(_to_json_tree(tree), indent=storage_format.indent, ensure_ascii=False)
    except (TypeError, ValueError) as exc:
        raise EncodeError(f"Cannot render JSON: {exc}") from exc


def decode(text: str, storage_format: StorageFormat, registry: Optional[EnumRegistry] = None) -> Any:
    """Parse a storage string back into an object, resolving tagged values.

    Raises:
        PayloadSyntaxError: the text is not valid for the format.
        UnknownEnumError: a tagged value cannot be resolved; nothing is returned.
    """
    registry = registry or default_registry
    try:
        return _decode(text, storage_format, registry)
    except RecursionError:
        raise PayloadSyntaxError("Payload is nested too deeply") from None


def _decode(text: str, storage_format: StorageFormat, registry: EnumRegistry) -> Any:
    if isinstance(storage_format, CompactBinary):
        try:
            raw = base64.b64decode(text.encode("ascii"), validate=True)
        except (UnicodeEncodeError, binascii.Error) as exc:
            raise PayloadSyntaxError("Payload is not valid base64") from exc
        try:
            tree = _TreeUnpickler(io.BytesIO(raw)).load()
        except DecodeError:
            raise
        except Exception as exc:
            raise PayloadSyntaxError("Payload is not a valid pickle stream") from exc
        return _resolve_tree(tree, registry)
    try:
        tree = json.loads(text)
    except ValueError as exc:
        raise PayloadSyntaxError(f"Payload is not valid JSON: {exc}") from exc
    return _from_json_tree(tree, registry)


class Codec:
    """A format and an enum registry bound together."""

    def __init__(self, storage_format: Optional[StorageFormat] = None, registry: Optional[EnumRegistry] = None) -> None:
        self.storage_format = storage_format if storage_format is not None else StructuredText()
        self.registry = registry if registry is not None else default_registry

    def encode(self, obj: Any) -> str:
        return encode(obj, self.storage_format, self.registry)

    def decode(self, text: str) -> Any:
        return decode(text, self.storage_format, self.registry)

    def __repr__(self) -> str:
        return f"Codec({self.storage_format!r})"
