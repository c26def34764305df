"""
Process-wide cache for parsed custom field documents.

Lifecycle
---------
- Populated lazily: the first `get_or_load(kind)` in a process reads the
  source through the loader and stores the parsed document.
- Cleared only by `invalidate(kind)` (e.g. from the
  `invalidate_profile_schema` management command after an admin edit); there
  is no file-change detection.

Consistency
-----------
- One document is stored as one cache value, so replacing an entry is an
  atomic swap: readers see the previous or the new document, never a mix.
- Loader errors are not cached; the next call tries the source again.
"""

from __future__ import annotations

import logging
from typing import Optional

from django.core.cache import BaseCache, caches

from .loader import SchemaSourceLoader
from .types import EntityKind, SchemaDocument, as_entity_kind

logger = logging.getLogger(__name__)

# Sentinel so a cached empty document is distinguishable from a miss.
_MISSING = object()


class SchemaCache:
    """
    Memoize `SchemaDocument`s per entity kind on a Django cache backend.

    Args:
        loader: Source loader used on a miss.
        cache: Backend instance or alias (defaults to the "default" alias).
        timeout: Seconds to keep entries; None keeps them until invalidated.
        key_prefix: Namespace for cache keys; the kind is appended.
    """

    def __init__(
        self,
        loader: SchemaSourceLoader,
        cache: Optional[BaseCache | str] = None,
        timeout: Optional[int] = None,
        key_prefix: str = "profiles:schema",
    ) -> None:
        if cache is None or isinstance(cache, str):
            cache = caches[cache or "default"]
        self.loader = loader
        self.cache = cache
        self.timeout = timeout
        self.key_prefix = key_prefix

    def key_for(self, kind) -> str:
        return f"{self.key_prefix}:{as_entity_kind(kind).value}"

    def get_or_load(self, kind) -> SchemaDocument:
        """Return the cached document for `kind`, loading it on a miss."""
        kind = as_entity_kind(kind)
        key = self.key_for(kind)
        document = self.cache.get(key, _MISSING)
        if document is not _MISSING:
            return document
        logger.debug("Profile schema cache miss for %s", kind)
        document = self.loader.load(kind)
        self.cache.set(key, document, self.timeout)
        return document

    def invalidate(self, kind=None) -> None:
        """Drop the entry for `kind`, or for every kind when `kind` is None."""
        kinds = [as_entity_kind(kind)] if kind is not None else list(EntityKind)
        self.cache.delete_many([self.key_for(k) for k in kinds])
        logger.debug("Profile schema cache invalidated for %s", ", ".join(k.value for k in kinds))
