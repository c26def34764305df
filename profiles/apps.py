"""
AppConfig for the `profiles` app (custom profile fields).

Startup responsibilities
------------------------
- Import **signals** (required): group deletions must remove their profile
  values.
- Build the process-wide `ProfileService` from settings and keep it on the
  config instance (`profiles.get_service()`); the schema cache it owns is
  populated lazily on first access.

Reliability notes
-----------------
- Django's autoreloader may call `ready()` more than once; receivers use
  `dispatch_uid` and the service is rebuilt with an identical configuration.
"""

from __future__ import annotations

import logging
from importlib import import_module

from django.apps import AppConfig

logger = logging.getLogger(__name__)


class ProfilesConfig(AppConfig):
    """App configuration holding the wired profile service."""
    default_auto_field = "django.db.models.BigAutoField"
    name = "profiles"

    service = None

    def ready(self) -> None:
        try:
            import_module("profiles.signals")
        except Exception:
            logger.exception("Failed to import startup module: profiles.signals")
            raise

        from .service import ProfileService

        self.service = ProfileService.from_settings()
