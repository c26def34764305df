"""
Combine a base request schema with the custom field document.

Rules
-----
1. Base entries come first, in base order.
2. Custom entries follow in custom order. A custom entry whose name already
   exists in the base keeps the base position and base properties; only its
   validators are layered onto the base validators (rule by rule, params
   merged key by key, custom wins). Different `type`s raise
   `SchemaConflictError`.
3. `ValidatorOverride`s are applied last, in order, the same way. Overrides
   for fields absent from the result are skipped so one override list can be
   shared by every operation.

Inputs are never mutated; the same inputs always produce the same output.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Optional, Sequence

from .exceptions import SchemaConflictError
from .types import FieldDefinition, MergedSchema, SchemaDocument, ValidatorOverride

logger = logging.getLogger(__name__)


def layer_validators(
    base: Dict[str, Dict[str, Any]],
    extra: Dict[str, Dict[str, Any]],
) -> Dict[str, Dict[str, Any]]:
    """Return `base` with each rule of `extra` merged in (new rules appended)."""
    merged = {rule: dict(params) for rule, params in base.items()}
    for rule, params in extra.items():
        merged[rule] = {**merged.get(rule, {}), **params}
    return merged


def merge(
    base: Optional[SchemaDocument],
    custom: SchemaDocument,
    overrides: Iterable[ValidatorOverride] = (),
) -> MergedSchema:
    """
    Merge `custom` into `base` and apply `overrides`.

    Raises:
        SchemaConflictError: a name is declared with different types.
    """
    fields: Dict[str, FieldDefinition] = dict(base.items()) if base is not None else {}

    for name, definition in custom.items():
        existing = fields.get(name)
        if existing is None:
            fields[name] = definition
            continue
        if existing.type != definition.type:
            raise SchemaConflictError(name, existing.type, definition.type)
        fields[name] = existing.with_validators(
            layer_validators(existing.validators, definition.validators)
        )

    for override in overrides:
        target = fields.get(override.field)
        if target is None:
            logger.debug("Skipping validator override for absent field '%s'", override.field)
            continue
        fields[override.field] = target.with_validators(
            layer_validators(target.validators, {override.rule: dict(override.params)})
        )

    return MergedSchema(fields.values(), kind=custom.kind)


def password_length_overrides(
    min_length: Optional[int],
    max_length: Optional[int],
    fields: Sequence[str] = ("password", "passwordc"),
) -> List[ValidatorOverride]:
    """Overrides injecting site-configured password length bounds into `fields`."""
    params = {key: value for key, value in (("min", min_length), ("max", max_length)) if value is not None}
    if not params:
        return []
    return [ValidatorOverride(field=name, rule="length", params=params) for name in fields]
