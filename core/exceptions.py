"""
DRF exception handler mapping profile subsystem errors to API responses.

Mapping
-------
- `ProfileValidationError` -> 400 `{"detail", "code": "invalid", "errors": {field: [msg]}}`
- `UnknownFieldError`      -> 400 `{"detail", "code": "unknown_field", "fields": [...]}`
- `SchemaLoadError` / `SchemaConflictError` -> 500 `{"detail", "code": "profile_schema_error"}`;
  these are configuration faults, logged with a traceback and never retried.
- Everything else falls through to DRF's default handler.

Configured via `REST_FRAMEWORK["EXCEPTION_HANDLER"]`.
"""

from __future__ import annotations

import logging

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

from profiles.exceptions import (
    ProfileValidationError,
    SchemaConflictError,
    SchemaLoadError,
    UnknownFieldError,
)

logger = logging.getLogger(__name__)


def api_exception_handler(exc, context):
    if isinstance(exc, ProfileValidationError):
        return Response(
            {"detail": "Invalid profile data.", "code": "invalid", "errors": exc.errors},
            status=status.HTTP_400_BAD_REQUEST,
        )
    if isinstance(exc, UnknownFieldError):
        return Response(
            {"detail": str(exc), "code": "unknown_field", "fields": exc.fields},
            status=status.HTTP_400_BAD_REQUEST,
        )
    if isinstance(exc, (SchemaLoadError, SchemaConflictError)):
        view = context.get("view")
        logger.exception("Profile schema error in %s", type(view).__name__ if view else "-", exc_info=exc)
        return Response(
            {"detail": "Profile field configuration error.", "code": "profile_schema_error"},
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )
    return exception_handler(exc, context)
