"""Shared fixtures for profile tests: temporary schema trees and isolated services."""

from __future__ import annotations

import tempfile
import textwrap
import uuid
from pathlib import Path
from typing import Iterable, Optional

from django.core.cache.backends.locmem import LocMemCache

from profiles.cache import SchemaCache
from profiles.loader import BaseSchemaProvider, SchemaSourceLoader
from profiles.service import ProfileService
from profiles.store import AttributeStore
from profiles.types import ValidatorOverride

USER_FIELDS = """
nickname:
  type: string
  validators:
    length: {max: 10}
  default: anon
  visibility: public
age:
  type: number
  validators:
    - integer
    - range: {min: 0, max: 150}
  visibility: private
"""

GROUP_FIELDS = """
color:
  type: string
  validators: {}
  default: "#000000"
"""


class SchemaTree:
    """A throwaway schema root with `userProfile/`, `groupProfile/` and `requests/`."""

    def __init__(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name)
        self.requests = self.root / "requests"
        for sub in ("userProfile", "groupProfile", "requests"):
            (self.root / sub).mkdir()

    def write(self, relative: str, text: str) -> Path:
        path = self.root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(textwrap.dedent(text), encoding="utf-8")
        return path

    def cleanup(self) -> None:
        self._tmp.cleanup()


def fresh_cache() -> LocMemCache:
    """A private local-memory backend (LocMem shares storage by name)."""
    return LocMemCache(f"profiles-test-{uuid.uuid4().hex}", {})


def build_service(
    tree: SchemaTree,
    overrides: Iterable[ValidatorOverride] = (),
    cache: Optional[LocMemCache] = None,
) -> ProfileService:
    schema_cache = SchemaCache(SchemaSourceLoader(tree.root), cache=cache or fresh_cache())
    return ProfileService(
        schema_cache,
        AttributeStore(schema_cache),
        base_schemas=BaseSchemaProvider(tree.requests),
        overrides=overrides,
    )
