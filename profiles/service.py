"""
Profile Facade: the single entry point used by views and other apps.

Operations
----------
- `fields_schema(kind, base=None)`: cached custom document merged onto a base
  request schema (operation name, document, or nothing) with the configured
  validator overrides.
- `profile(entity, visibility)`: fresh read of one entity's values.
- `update_profile(entity, data)`: lenient write; keys the schema does not know
  are ignored here (the store itself stays strict).
- `validate(kind, data, base=None, partial=False)`: run the merged schema
  through DRF and return coerced data.

Entity-scoped values are never cached; only schema documents are.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, Mapping, Optional, Union

from django.conf import settings
from django.db import models

from .cache import SchemaCache
from .loader import BaseSchemaProvider, SchemaSourceLoader
from .merger import merge, password_length_overrides
from .store import AttributeStore
from .types import EntityKind, MergedSchema, SchemaDocument, ValidatorOverride, VisibilityFilter
from .validation import validate_values

logger = logging.getLogger(__name__)

BaseSchema = Union[str, SchemaDocument, None]


class ProfileService:
    """Compose schema cache, merger and attribute store for callers."""

    def __init__(
        self,
        schema_cache: SchemaCache,
        store: AttributeStore,
        base_schemas: Optional[BaseSchemaProvider] = None,
        overrides: Iterable[ValidatorOverride] = (),
    ) -> None:
        self.schema_cache = schema_cache
        self.store = store
        self.base_schemas = base_schemas
        self.overrides = list(overrides)

    @classmethod
    def from_settings(cls) -> "ProfileService":
        """Build the process-wide service from Django settings."""
        loader = SchemaSourceLoader(settings.PROFILE_FIELDS_SCHEMA_ROOT)
        cache = SchemaCache(
            loader,
            cache=getattr(settings, "PROFILE_FIELDS_CACHE_ALIAS", "default"),
            timeout=getattr(settings, "PROFILE_FIELDS_CACHE_TIMEOUT", None),
        )
        store = AttributeStore(cache, getattr(settings, "PROFILE_FIELDS_ENTITY_MODELS", None))
        overrides = password_length_overrides(
            getattr(settings, "SITE_PASSWORD_MIN_LENGTH", None),
            getattr(settings, "SITE_PASSWORD_MAX_LENGTH", None),
        )
        return cls(
            cache,
            store,
            base_schemas=BaseSchemaProvider(settings.PROFILE_FIELDS_BASE_SCHEMA_ROOT),
            overrides=overrides,
        )

    # ---------- schema ----------

    def _resolve_base(self, base: BaseSchema) -> Optional[SchemaDocument]:
        if base is None or isinstance(base, SchemaDocument):
            return base
        if self.base_schemas is None:
            raise ValueError("No base schema provider configured; pass a SchemaDocument instead.")
        return self.base_schemas.get(base)

    def fields_schema(self, kind, base: BaseSchema = None) -> MergedSchema:
        """Merged request schema for `kind` (see module docstring)."""
        return merge(self._resolve_base(base), self.schema_cache.get_or_load(kind), self.overrides)

    def invalidate(self, kind=None) -> None:
        self.schema_cache.invalidate(kind)

    def validate(
        self,
        kind,
        data: Mapping[str, Any],
        base: BaseSchema = None,
        partial: bool = False,
    ) -> Dict[str, Any]:
        """
        Validate request data against the merged schema.

        Raises:
            ProfileValidationError: aggregated field errors.
        """
        schema = self.fields_schema(kind, base)
        return validate_values(schema, data, partial=partial)

    # ---------- values ----------

    def kind_for(self, entity: models.Model) -> EntityKind:
        return self.store.kind_for(entity)

    def profile(self, entity: models.Model, visibility=VisibilityFilter.ALL) -> Dict[str, Any]:
        """Current values of `entity`'s custom fields."""
        return self.store.get_values(entity.pk, self.kind_for(entity), visibility)

    def update_profile(self, entity: models.Model, data: Mapping[str, Any]) -> Dict[str, Any]:
        """
        Persist the custom-field subset of `data` for `entity`.

        Call inside the caller's `transaction.atomic()` block when the entity
        itself is written in the same request.
        """
        kind = self.kind_for(entity)
        schema = self.schema_cache.get_or_load(kind)
        known = {name: value for name, value in data.items() if name in schema}
        ignored = set(data) - set(known)
        if ignored:
            logger.debug("Ignoring non-profile keys for %s %s: %s", kind, entity.pk, sorted(ignored))
        return self.store.set_values(entity.pk, kind, known, schema=schema)
