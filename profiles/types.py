"""
Value types for the custom profile field subsystem.

Overview
--------
- `FieldDefinition`: one administrator-defined attribute (type, validators,
  default, visibility, form hints).
- `SchemaDocument`: ordered, read-only mapping of field name -> definition,
  scoped to an entity kind. `MergedSchema` is the same shape produced by
  `profiles.merger.merge`.
- `ValidatorOverride`: an explicit "layer these params onto rule X of field Y"
  instruction applied during merge.

Notes
-----
- Instances are immutable; loaders and the merger always build new objects so
  a cached document can be shared between requests.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Iterable, Iterator, Optional

from django.db import models


class EntityKind(models.TextChoices):
    USER = "user", "User"
    GROUP = "group", "Group"


def as_entity_kind(value: Any) -> EntityKind:
    """Coerce `value` ("user", EntityKind.GROUP, ...) to an `EntityKind`."""
    try:
        return EntityKind(value)
    except ValueError:
        raise ValueError(
            f"Unknown entity kind '{value}'. Allowed: {', '.join(EntityKind.values)}"
        ) from None


class FieldType(models.TextChoices):
    STRING = "string", "String"
    NUMBER = "number", "Number"
    BOOLEAN = "boolean", "Boolean"
    ENUM = "enum", "Enum"


class Visibility(models.TextChoices):
    PUBLIC = "public", "Public"
    PRIVATE = "private", "Private"


class VisibilityFilter(models.TextChoices):
    ALL = "all", "All fields"
    PUBLIC = "public", "Public fields only"


@dataclass(frozen=True)
class FieldDefinition:
    """
    Declarative description of one custom attribute.

    Attributes:
        name: Stable identifier (also the storage slug).
        type: One of `FieldType`.
        validators: Ordered rule -> params mapping, e.g. {"length": {"min": 1}}.
        default: Value used when nothing is stored (already coerced to `type`).
        visibility: `public` fields appear on read-only profile views.
        form: Opaque form-rendering hints (label, placeholder, ...).
    """
    name: str
    type: str
    validators: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    default: Any = None
    visibility: str = Visibility.PUBLIC
    form: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_private(self) -> bool:
        return self.visibility == Visibility.PRIVATE

    def with_validators(self, validators: Dict[str, Dict[str, Any]]) -> "FieldDefinition":
        """Return a copy carrying `validators` instead of the current set."""
        return replace(self, validators=validators)

    def to_dict(self) -> Dict[str, Any]:
        """YAML-shaped representation (the inverse of the loader's parsing)."""
        return {
            "type": self.type,
            "validators": {rule: dict(params) for rule, params in self.validators.items()},
            "default": self.default,
            "visibility": self.visibility,
            "form": dict(self.form),
        }


class SchemaDocument(Mapping):
    """
    Ordered mapping of field name -> `FieldDefinition`.

    Equality follows `Mapping` semantics (same names mapped to equal
    definitions), which is what "schema-equal" means for callers.
    """

    def __init__(self, fields: Iterable[FieldDefinition] = (), kind: Optional[str] = None) -> None:
        entries: Dict[str, FieldDefinition] = {}
        for definition in fields:
            if definition.name in entries:
                raise ValueError(f"Duplicate field name '{definition.name}'.")
            entries[definition.name] = definition
        self._fields = entries
        self.kind = kind

    def __getitem__(self, name: str) -> FieldDefinition:
        return self._fields[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._fields)

    def __len__(self) -> int:
        return len(self._fields)

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} kind={self.kind} fields={list(self._fields)}>"

    def names(self) -> list[str]:
        return list(self._fields)

    def to_dict(self) -> Dict[str, Dict[str, Any]]:
        return {name: definition.to_dict() for name, definition in self._fields.items()}


class MergedSchema(SchemaDocument):
    """A base request schema combined with a custom field document."""


@dataclass(frozen=True)
class ValidatorOverride:
    """Layer `params` onto `rule` of `field` while merging."""
    field: str
    rule: str
    params: Dict[str, Any]
