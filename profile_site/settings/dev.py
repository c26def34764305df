"""
Developer settings (extends base).

Defaults
--------
- DEBUG defaults True (overridable via env).
- SQLite and a local-memory cache unless `DATABASE_URL` / `CACHE_URL` are set.
- Profile subsystem logs at DEBUG so schema loads, cache misses and skipped
  overrides are visible while editing field definitions.

Security
--------
- Do not use these settings in production; use `prod.py` for hardened defaults.
"""

from .base import *  # noqa

DEBUG = env.bool("DEBUG", True)

# Console email backend for dev
EMAIL_BACKEND = "django.core.mail.backends.console.EmailBackend"

# SPA dev servers need to read csrftoken to attach X-CSRFToken on unsafe methods.
CSRF_COOKIE_HTTPONLY = False

LOGGING["loggers"]["profiles"]["level"] = env("PROFILES_LOG_LEVEL", default="DEBUG")  # type: ignore[name-defined]
