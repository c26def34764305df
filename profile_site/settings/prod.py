"""
Production settings (extends base).

- Secrets, hosts and the database must come from the environment.
- A shared cache (`CACHE_URL`, e.g. Redis) is strongly recommended so
  `invalidate_profile_schema` reaches every worker process.
"""

from .base import *  # noqa

DEBUG = False

# Require an explicit secret in prod
SECRET_KEY = env("SECRET_KEY")

ALLOWED_HOSTS = env.list("ALLOWED_HOSTS", default=[])
CSRF_TRUSTED_ORIGINS = env.list("CSRF_TRUSTED_ORIGINS", default=[])

# Database must NOT default to SQLite in prod
DATABASES = {
    "default": env.db("DATABASE_URL")
}

STATIC_ROOT = BASE_DIR / "staticfiles"

# ----------------------------------------------------------------------
# Security hardening (Django deploy checklist)
# ----------------------------------------------------------------------
SECURE_SSL_REDIRECT = env.bool("SECURE_SSL_REDIRECT", True)
SESSION_COOKIE_SECURE = True
CSRF_COOKIE_SECURE = True
CSRF_COOKIE_HTTPONLY = True
SECURE_HSTS_SECONDS = env.int("SECURE_HSTS_SECONDS", 60 * 60 * 24 * 7)  # 1 week
SECURE_HSTS_INCLUDE_SUBDOMAINS = True
SECURE_CONTENT_TYPE_NOSNIFF = True
SECURE_REFERRER_POLICY = "same-origin"
SECURE_PROXY_SSL_HEADER = ("HTTP_X_FORWARDED_PROTO", "https")

# Keep request lines and profile errors; drop DEBUG noise.
LOGGING["loggers"]["profiles"]["level"] = env("PROFILES_LOG_LEVEL", default="INFO")  # type: ignore[name-defined]
LOGGING["loggers"]["django.request"] = {  # type: ignore[name-defined]
    "handlers": ["console"],
    "level": "WARNING",
    "propagate": False,
}
