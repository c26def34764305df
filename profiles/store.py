from __future__ import annotations

"""
Attribute Store: read/write custom field values for one entity.

Contract
--------
- `get_values(entity_id, kind, visibility)` returns exactly the fields of the
  current schema document (schema order). Private fields are dropped for the
  `public` filter; missing values fall back to the field default.
- `set_values(entity_id, kind, values)` is strict: unknown names raise
  `UnknownFieldError` and invalid values raise `ProfileValidationError`, both
  before any row is written. Supplied keys are upserted; other stored keys of
  the entity stay as they are.

Transactions
------------
- No commit/rollback happens here. Callers wrap writes together with the
  owning entity's write in `transaction.atomic()` so both roll back together.
"""

import logging
from typing import Any, Dict, Mapping, Optional, Type

from django.apps import apps
from django.contrib.contenttypes.models import ContentType
from django.db import models

from .cache import SchemaCache
from .exceptions import UnknownFieldError
from .models import ProfileValue
from .types import EntityKind, SchemaDocument, VisibilityFilter, as_entity_kind
from .validation import validate_values

logger = logging.getLogger(__name__)

DEFAULT_ENTITY_MODELS: Dict[str, str] = {
    EntityKind.USER: "accounts.User",
    EntityKind.GROUP: "auth.Group",
}


class AttributeStore:
    """
    Generic attribute store parameterized by entity kind.

    Args:
        schema_cache: Source of the current schema document per kind.
        entity_models: kind -> "app_label.ModelName" (or model class) mapping
            used to resolve the owner content type.
    """

    def __init__(
        self,
        schema_cache: SchemaCache,
        entity_models: Optional[Mapping[str, Any]] = None,
    ) -> None:
        self.schema_cache = schema_cache
        self.entity_models = {
            as_entity_kind(kind): model for kind, model in (entity_models or DEFAULT_ENTITY_MODELS).items()
        }

    # ---------- kind resolution ----------

    def model_for(self, kind) -> Type[models.Model]:
        model = self.entity_models[as_entity_kind(kind)]
        return apps.get_model(model) if isinstance(model, str) else model

    def kind_for(self, entity: models.Model) -> EntityKind:
        """Return the kind whose model class `entity` is an instance of."""
        for kind in self.entity_models:
            if isinstance(entity, self.model_for(kind)):
                return kind
        raise TypeError(f"{type(entity).__name__} is not a profile-enabled entity.")

    def _rows(self, entity_id, kind):
        content_type = ContentType.objects.get_for_model(self.model_for(kind))
        return ProfileValue.objects.filter(content_type=content_type, object_id=entity_id)

    # ---------- reads ----------

    def get_values(
        self,
        entity_id,
        kind,
        visibility=VisibilityFilter.ALL,
        schema: Optional[SchemaDocument] = None,
    ) -> Dict[str, Any]:
        """
        Current attribute values for one entity, keyed by field name.

        Args:
            entity_id: Primary key of the owner row.
            kind: Entity kind of the owner.
            visibility: `VisibilityFilter.PUBLIC` omits private fields entirely.
            schema: Document to apply; defaults to the cached one for `kind`.
        """
        kind = as_entity_kind(kind)
        visibility = VisibilityFilter(visibility)
        schema = schema if schema is not None else self.schema_cache.get_or_load(kind)
        stored = dict(self._rows(entity_id, kind).values_list("slug", "value"))

        values: Dict[str, Any] = {}
        for name, definition in schema.items():
            if visibility == VisibilityFilter.PUBLIC and definition.is_private:
                continue
            values[name] = stored[name] if name in stored else definition.default
        return values

    # ---------- writes ----------

    def set_values(
        self,
        entity_id,
        kind,
        values: Mapping[str, Any],
        schema: Optional[SchemaDocument] = None,
    ) -> Dict[str, Any]:
        """
        Validate and persist `values` for one entity.

        Returns:
            The coerced values that were written.

        Raises:
            UnknownFieldError: a key is not defined by the schema (nothing written).
            ProfileValidationError: a value fails its validators (nothing written).
        """
        kind = as_entity_kind(kind)
        schema = schema if schema is not None else self.schema_cache.get_or_load(kind)
        unknown = set(values) - set(schema)
        if unknown:
            raise UnknownFieldError(unknown)

        cleaned = validate_values(schema, values, partial=True)

        content_type = ContentType.objects.get_for_model(self.model_for(kind))
        for name, value in cleaned.items():
            ProfileValue.objects.update_or_create(
                content_type=content_type,
                object_id=entity_id,
                slug=name,
                defaults={"value": value},
            )
        logger.debug("Stored %d profile value(s) for %s %s", len(cleaned), kind, entity_id)
        return cleaned

    def delete_values(self, entity_id, kind) -> int:
        """Remove every stored value of one entity; returns the row count."""
        deleted, _ = self._rows(entity_id, as_entity_kind(kind)).delete()
        return deleted
