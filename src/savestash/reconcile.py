"""Shape a freshly decoded object after the caller's default.

Stored data may come from an older or newer version of the code. Fields the
default does not know about are pruned; fields the stored data predates are
backfilled from the default. By default this only happens at the top level;
``recursive=True`` also reconciles mappings nested on both sides.
"""
from __future__ import annotations

import copy
import dataclasses
import logging
from typing import Any, Dict, Mapping

from pydantic import BaseModel, ValidationError

from .errors import ReconcileError

logger = logging.getLogger(__name__)

__all__ = ["reconcile", "restore", "template_fields"]


def reconcile(decoded: Mapping[str, Any], template: Mapping[str, Any], recursive: bool = False) -> Dict[str, Any]:
    """Return a new dict holding exactly the template's keys.

    Values come from ``decoded`` where present, otherwise a deep copy of the
    template's value. Neither argument is mutated.
    """
    result: Dict[str, Any] = {}
    dropped = [key for key in decoded if key not in template]
    if dropped:
        logger.debug("Pruning fields absent from template: %s", dropped)
    for key, default_value in template.items():
        if key not in decoded:
            result[key] = copy.deepcopy(default_value)
            continue
        value = decoded[key]
        if recursive and isinstance(value, Mapping) and isinstance(default_value, Mapping) and default_value:
            value = reconcile(value, default_value, recursive=True)
        result[key] = value
    return result


def template_fields(template: Any) -> Dict[str, Any]:
    """Field name -> default value for a mapping, dataclass or pydantic template."""
    if isinstance(template, Mapping):
        return dict(template)
    if isinstance(template, BaseModel):
        return {name: getattr(template, name) for name in type(template).model_fields}
    if dataclasses.is_dataclass(template) and not isinstance(template, type):
        return {f.name: getattr(template, f.name) for f in dataclasses.fields(template) if f.init}
    raise TypeError(f"{type(template).__name__} is not a structured template")


def _is_structured(template: Any) -> bool:
    return isinstance(template, (Mapping, BaseModel)) or (
        dataclasses.is_dataclass(template) and not isinstance(template, type)
    )


def restore(decoded: Any, template: Any, recursive: bool = False) -> Any:
    """Reconcile ``decoded`` against ``template`` and rebuild the template's type.

    - Mapping templates give back a reconciled ``dict``.
    - Dataclass templates are rebuilt through their constructor. Nested
      dataclass fields are always restored, since a constructor accepts only
      its declared fields.
    - Pydantic templates are rebuilt with ``model_validate``.
    - Empty mappings and non-structured templates leave ``decoded`` untouched.

    Raises:
        ReconcileError: ``decoded`` is not a mapping while the template is
            structured, or the rebuilt object fails validation.
    """
    if not _is_structured(template) or (isinstance(template, Mapping) and not template):
        return decoded
    if not isinstance(decoded, Mapping):
        raise ReconcileError(
            f"Expected a mapping for {type(template).__name__} template, got {type(decoded).__name__}"
        )

    if isinstance(template, Mapping):
        return reconcile(decoded, template, recursive=recursive)

    fields = template_fields(template)
    values = reconcile(decoded, fields, recursive=False)
    for name, default_value in fields.items():
        if name not in decoded:
            continue
        nested = values[name]
        if isinstance(default_value, BaseModel) or (
            dataclasses.is_dataclass(default_value) and not isinstance(default_value, type)
        ):
            values[name] = restore(nested, default_value, recursive=recursive)
        elif recursive and isinstance(default_value, Mapping) and isinstance(nested, Mapping) and default_value:
            values[name] = reconcile(nested, default_value, recursive=True)

    if isinstance(template, BaseModel):
        try:
            return type(template).model_validate(values)
        except ValidationError as exc:
            raise ReconcileError(f"Stored data does not validate as {type(template).__name__}") from exc
    try:
        return type(template)(**values)
    except (TypeError, ValueError) as exc:
        raise ReconcileError(f"Cannot rebuild {type(template).__name__}: {exc}") from exc
