"""Tagged enum values and the registry that resolves them by name.

Two kinds of tagged value can be stored:

- members of a Python ``enum.Enum`` subclass (no arguments), and
- ``EnumValue`` instances of a declared type, whose variants carry a fixed
  number of positional arguments.

Stored data only carries names, so decoding needs a registry to map the stored
type and variant names back onto live values. Aliases and variant renames let
old saves keep loading after a type is renamed in code.
"""
from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple, Type, Union

from .errors import EncodeError, UnknownEnumError

logger = logging.getLogger(__name__)

__all__ = [
    "EnumValue",
    "EnumRegistry",
    "default_registry",
    "register_enum",
    "is_tagged",
]


@dataclass(frozen=True)
class EnumValue:
    """A variant of a declared tagged type, e.g. ``EnumValue("Shape", "Circle", (2.0,))``."""

    enum: str
    name: str
    args: Tuple[Any, ...] = ()

    def __post_init__(self) -> None:
        if not isinstance(self.args, tuple):
            object.__setattr__(self, "args", tuple(self.args))


@dataclass(frozen=True)
class _DeclaredType:
    name: str
    variants: Dict[str, int]


_Entry = Union[Type[enum.Enum], _DeclaredType]


def is_tagged(value: Any) -> bool:
    return isinstance(value, (EnumValue, enum.Enum))


class EnumRegistry:
    """Name -> type table used when decoding tagged values."""

    def __init__(self) -> None:
        self._types: Dict[str, _Entry] = {}
        self._names_by_class: Dict[Type[enum.Enum], str] = {}
        self._aliases: Dict[str, str] = {}
        self._variant_renames: Dict[Tuple[str, str], str] = {}

    # Registration

    def register(self, enum_cls: Optional[Type[enum.Enum]] = None, *, name: Optional[str] = None):
        """Register an ``Enum`` subclass. Works as a plain call or a decorator."""

        def _register(cls: Type[enum.Enum]) -> Type[enum.Enum]:
            if not (isinstance(cls, type) and issubclass(cls, enum.Enum)):
                raise TypeError(f"Expected an Enum subclass, got {cls!r}")
            type_name = name or cls.__name__
            self._add(type_name, cls)
            self._names_by_class[cls] = type_name
            return cls

        if enum_cls is None:
            return _register
        return _register(enum_cls)

    def declare(self, name: str, variants: Union[Mapping[str, int], Iterable[str]]) -> None:
        """Declare a tagged type. ``variants`` maps variant name -> argument count.

        A plain iterable of names declares argument-less variants.
        """
        if isinstance(variants, Mapping):
            table = {str(k): int(v) for k, v in variants.items()}
        else:
            table = {str(v): 0 for v in variants}
        if any(arity < 0 for arity in table.values()):
            raise ValueError("Variant argument counts must be >= 0")
        self._add(name, _DeclaredType(name=name, variants=table))

    def alias(self, legacy: str, current: str) -> None:
        """Resolve the stored type name ``legacy`` as the registered type ``current``."""
        if current not in self._types:
            raise KeyError(f"Unknown enum type {current!r}")
        self._aliases[legacy] = current

    def rename_variant(self, type_name: str, legacy: str, current: str) -> None:
        self._variant_renames[(type_name, legacy)] = current

    def unregister(self, name: str) -> None:
        entry = self._types.pop(name, None)
        if entry is None:
            return
        if not isinstance(entry, _DeclaredType):
            self._names_by_class.pop(entry, None)
        for legacy in [k for k, v in self._aliases.items() if v == name]:
            del self._aliases[legacy]

    def _add(self, name: str, entry: _Entry) -> None:
        if not name:
            raise ValueError("Enum type name must be non-empty")
        if name in self._types and self._types[name] is not entry:
            logger.debug("Replacing registered enum type %s", name)
        self._types[name] = entry

    def __contains__(self, name: object) -> bool:
        return name in self._types or name in self._aliases

    # Encoding side

    def type_name_of(self, member: enum.Enum) -> str:
        """Stored type name for an ``Enum`` member; unregistered classes use their own name."""
        return self._names_by_class.get(type(member), type(member).__name__)

    def describe(self, value: Any) -> EnumValue:
        """Normalise a tagged value into an ``EnumValue``.

        Raises:
            EncodeError: ``value`` is a combined ``Flag`` value (or another
                pseudo-member) that cannot be looked up by name.
        """
        if isinstance(value, EnumValue):
            return value
        if isinstance(value, enum.Enum):
            if value.name is None or value.name not in type(value).__members__:
                raise EncodeError(f"{value!r} is not a named member of {type(value).__name__}")
            return EnumValue(self.type_name_of(value), value.name, ())
        raise TypeError(f"{value!r} is not a tagged value")

    # Decoding side

    def resolve(self, type_name: str, variant: str, args: Iterable[Any] = ()) -> Any:
        """Return the live value for a stored ``type_name.variant(args)``.

        Raises:
            UnknownEnumError: the type, the variant or the argument count does
                not match anything registered.
        """
        args = tuple(args)
        current = self._aliases.get(type_name, type_name)
        entry = self._types.get(current)
        if entry is None:
            raise UnknownEnumError(type_name, variant, "type is not registered")
        variant = self._variant_renames.get((current, variant), variant)

        if isinstance(entry, _DeclaredType):
            arity = entry.variants.get(variant)
            if arity is None:
                raise UnknownEnumError(current, variant, "no such variant")
            if arity != len(args):
                raise UnknownEnumError(
                    current, variant, f"expected {arity} argument(s), got {len(args)}"
                )
            return EnumValue(current, variant, args)

        if args:
            raise UnknownEnumError(current, variant, "Enum members take no arguments")
        try:
            return entry[variant]
        except KeyError:
            raise UnknownEnumError(current, variant, "no such member") from None


default_registry = EnumRegistry()


def register_enum(enum_cls: Optional[Type[enum.Enum]] = None, *, name: Optional[str] = None):
    """Register ``enum_cls`` in the process-wide default registry."""
    return default_registry.register(enum_cls, name=name)
