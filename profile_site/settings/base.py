"""
Base Django settings for the custom profile fields site.

Layout
------
- Split settings: `base.py` (shared), `dev.py` (developer overrides), `prod.py` (hardened).
- `environ` is used to source configuration; a local `.env` is optional in dev.

API stack
---------
- Django 5.x + DRF + drf-spectacular.
- SessionAuthentication with CSRF (kept enabled).
- Profile errors are mapped to API responses by `core.exceptions.api_exception_handler`.

Custom profile fields
---------------------
- `PROFILE_FIELDS_SCHEMA_ROOT` holds `userProfile/` and `groupProfile/` YAML
  documents; `PROFILE_FIELDS_BASE_SCHEMA_ROOT` holds base request schemas.
- Parsed documents are cached in the `PROFILE_FIELDS_CACHE_ALIAS` cache until
  `manage.py invalidate_profile_schema` runs (timeout `None`), or for
  `PROFILE_FIELDS_CACHE_TIMEOUT` seconds when set to a positive value.
- `SITE_PASSWORD_MIN_LENGTH` / `SITE_PASSWORD_MAX_LENGTH` are injected into the
  `password`/`passwordc` validators of merged request schemas.

Observability
-------------
- `core.middleware.RequestIDLogMiddleware` logs a single structured line per
  request; `profiles.*` loggers share the request id through
  `core.logging.RequestIDFilter`.
"""

from pathlib import Path
import environ

# ---------------------------------------------------------------------
# Paths & Env
# ---------------------------------------------------------------------
BASE_DIR = Path(__file__).resolve().parent.parent.parent
env = environ.Env(DEBUG=(bool, False))
env_file = BASE_DIR / ".env"
if env_file.exists():
    environ.Env.read_env(str(env_file))

# ---------------------------------------------------------------------
# Core
# ---------------------------------------------------------------------
SECRET_KEY = env("SECRET_KEY", default="dev-insecure-change-me")
DEBUG = env.bool("DEBUG", False)

ALLOWED_HOSTS = env.list("ALLOWED_HOSTS", default=["127.0.0.1", "localhost", "testserver"])
CSRF_TRUSTED_ORIGINS = env.list(
    "CSRF_TRUSTED_ORIGINS",
    default=["http://127.0.0.1:8000", "http://localhost:8000"],
)

# ---------------------------------------------------------------------
# Applications
# ---------------------------------------------------------------------
INSTALLED_APPS = [
    # Django apps
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",

    # Third-party
    "rest_framework",
    "drf_spectacular",

    # Local apps
    "accounts",
    "core",
    "profiles",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
    # Observability: request-id + structured request log (one line per request)
    "core.middleware.RequestIDLogMiddleware",
]

ROOT_URLCONF = "profile_site.urls"

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.request",
                "django.contrib.auth.context_processors.auth",
                "django.contrib.messages.context_processors.messages",
            ],
        },
    },
]

WSGI_APPLICATION = "profile_site.wsgi.application"

# ---------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------
DATABASES = {
    "default": env.db(
        "DATABASE_URL",
        default=f"sqlite:///{BASE_DIR / 'db.sqlite3'}",
    )
}

# ---------------------------------------------------------------------
# Cache (schema documents live here)
# ---------------------------------------------------------------------
# LocMem by default; set CACHE_URL (e.g. redis://...) to share invalidation
# across worker processes.
CACHES = {
    "default": env.cache("CACHE_URL", default="locmemcache://profiles"),
}

# ---------------------------------------------------------------------
# Password validation
# ---------------------------------------------------------------------
AUTH_PASSWORD_VALIDATORS = [
    {"NAME": "django.contrib.auth.password_validation.UserAttributeSimilarityValidator"},
    {"NAME": "django.contrib.auth.password_validation.MinimumLengthValidator"},
    {"NAME": "django.contrib.auth.password_validation.CommonPasswordValidator"},
    {"NAME": "django.contrib.auth.password_validation.NumericPasswordValidator"},
]

# ---------------------------------------------------------------------
# Internationalization
# ---------------------------------------------------------------------
LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = True
USE_TZ = True

# ---------------------------------------------------------------------
# Static
# ---------------------------------------------------------------------
STATIC_URL = "static/"
DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# ---------------------------------------------------------------------
# DRF & API Schema
# ---------------------------------------------------------------------
REST_FRAMEWORK = {
    "DEFAULT_AUTHENTICATION_CLASSES": [
        "rest_framework.authentication.SessionAuthentication",
    ],
    "DEFAULT_PERMISSION_CLASSES": [
        "rest_framework.permissions.IsAuthenticated",
    ],
    "DEFAULT_SCHEMA_CLASS": "drf_spectacular.openapi.AutoSchema",
    "EXCEPTION_HANDLER": "core.exceptions.api_exception_handler",
}

SPECTACULAR_SETTINGS = {
    "TITLE": "Custom Profile Fields API",
    "DESCRIPTION": "Administrator-defined profile attributes for users and groups.",
    "VERSION": "0.1.0",
    "OPERATION_ID_DUPLICATE_MODE": "suffix",
    "LICENSE": {"name": "MIT"},
}

# ---------------------------------------------------------------------
# Custom profile fields
# ---------------------------------------------------------------------
PROFILE_FIELDS_SCHEMA_ROOT = Path(env("PROFILE_FIELDS_SCHEMA_ROOT", default=str(BASE_DIR / "profiles" / "schema")))
PROFILE_FIELDS_BASE_SCHEMA_ROOT = Path(
    env("PROFILE_FIELDS_BASE_SCHEMA_ROOT", default=str(PROFILE_FIELDS_SCHEMA_ROOT / "requests"))
)
PROFILE_FIELDS_CACHE_ALIAS = env("PROFILE_FIELDS_CACHE_ALIAS", default="default")
# 0 (the default) means "until invalidated".
PROFILE_FIELDS_CACHE_TIMEOUT = env.int("PROFILE_FIELDS_CACHE_TIMEOUT", default=0) or None
PROFILE_FIELDS_ENTITY_MODELS = {
    "user": "accounts.User",
    "group": "auth.Group",
}

# Site configuration injected into merged request schemas.
SITE_PASSWORD_MIN_LENGTH = env.int("SITE_PASSWORD_MIN_LENGTH", default=8)
SITE_PASSWORD_MAX_LENGTH = env.int("SITE_PASSWORD_MAX_LENGTH", default=100)

# ---------------------------------------------------------------------
# Security defaults (safe baseline; prod hardening in prod.py)
# ---------------------------------------------------------------------
SESSION_COOKIE_SAMESITE = "Lax"
CSRF_COOKIE_SAMESITE = "Lax"
X_FRAME_OPTIONS = "DENY"

# ---------------------------------------------------------------------
# Auth model
# ---------------------------------------------------------------------
AUTH_USER_MODEL = "accounts.User"

# ---------------------------------------------------------------------
# Logging (observability)
# ---------------------------------------------------------------------
# The RequestIDFilter injects `request_id` even for logs outside HTTP contexts.
LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "filters": {
        "request_id": {"()": "core.logging.RequestIDFilter"},
    },
    "formatters": {
        "request": {
            "format": "level=%(levelname)s logger=%(name)s request_id=%(request_id)s "
                      "method=%(method)s path=%(path)s status=%(status)s user_id=%(user_id)s "
                      "duration_ms=%(duration_ms)s message=%(message)s"
        },
        "structured": {
            "format": "level=%(levelname)s logger=%(name)s request_id=%(request_id)s message=%(message)s"
        },
    },
    "handlers": {
        "request_console": {
            "class": "logging.StreamHandler",
            "filters": ["request_id"],
            "formatter": "request",
        },
        "console": {
            "class": "logging.StreamHandler",
            "filters": ["request_id"],
            "formatter": "structured",
        },
    },
    "loggers": {
        # The middleware logs one line per request to this logger.
        "profiles.request": {
            "handlers": ["request_console"],
            "level": "INFO",
            "propagate": False,
        },
        "profiles": {
            "handlers": ["console"],
            "level": env("PROFILES_LOG_LEVEL", default="INFO"),
            "propagate": False,
        },
        "core": {
            "handlers": ["console"],
            "level": "INFO",
            "propagate": False,
        },
    },
}
