from __future__ import annotations

"""
Drop cached custom field documents after an administrative schema edit.

Overview
--------
- Schema documents are cached process-wide until invalidated; there is no
  file-change detection, so run this after editing the YAML sources.
- `--check` reloads the documents right away and reports their field counts,
  turning a broken source into a command failure instead of a request error.

Usage
-----
    python manage.py invalidate_profile_schema
    python manage.py invalidate_profile_schema --kind group --check

Notes
-----
- Only caches shared across processes (e.g. Redis via `CACHE_URL`) are cleared
  for every worker; a local-memory cache only affects this process.
"""

from django.core.management.base import BaseCommand, CommandError

from profiles import get_service
from profiles.exceptions import ProfileError
from profiles.types import EntityKind


class Command(BaseCommand):
    """Django management command wrapping `ProfileService.invalidate()`."""
    help = "Invalidate cached custom profile field schemas (optionally reload to check them)."

    def add_arguments(self, parser):
        parser.add_argument(
            "--kind",
            choices=EntityKind.values,
            help="Only invalidate this entity kind (default: all kinds).",
        )
        parser.add_argument(
            "--check",
            action="store_true",
            help="Reload the schema after invalidating and report field counts.",
        )

    def handle(self, *args, **options):
        service = get_service()
        kind = options.get("kind")
        kinds = [EntityKind(kind)] if kind else list(EntityKind)

        service.invalidate(kind)
        self.stdout.write(self.style.SUCCESS(
            f"Invalidated profile schema cache for: {', '.join(k.value for k in kinds)}."
        ))

        if not options["check"]:
            return
        for k in kinds:
            try:
                schema = service.schema_cache.get_or_load(k)
            except ProfileError as exc:
                raise CommandError(f"{k.value} profile schema is invalid: {exc}") from exc
            self.stdout.write(f"{k.value}: {len(schema)} field(s) ({', '.join(schema.names()) or '-'})")
