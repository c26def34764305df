"""AppConfig for the `core` app.

Scope
-----
Shared infrastructure used across the project:
- request-id logging helpers and middleware,
- the DRF exception handler that maps profile errors to API responses.
"""

from django.apps import AppConfig


class CoreConfig(AppConfig):
    """Standard Django AppConfig; keep defaults lightweight."""
    default_auto_field = "django.db.models.BigAutoField"
    name = "core"
