"""
Observability middleware.

`RequestIDLogMiddleware`
    * Reads a safe `X-Request-ID` from the client or generates one.
    * Binds it to `core.logging.request_id_var` so profile-subsystem logs
      emitted while serving the request carry the same id.
    * Echoes it in the response and logs one structured line per request on
      the `profiles.request` logger (method, path, status, user, latency).
"""

from __future__ import annotations

import logging
import re
import time
import uuid
from typing import Callable

from django.http import HttpRequest, HttpResponse

from .logging import request_id_var

logger = logging.getLogger("profiles.request")

_ALLOWED_CHARS = re.compile(r"^[A-Za-z0-9._\-]{1,200}$")


def _coerce_request_id(raw: str | None) -> str:
    """Keep a safe client-provided id, otherwise generate a uuid4 hex."""
    if raw and _ALLOWED_CHARS.match(raw):
        return raw
    return uuid.uuid4().hex


class RequestIDLogMiddleware:

    def __init__(self, get_response: Callable[[HttpRequest], HttpResponse]) -> None:
        self.get_response = get_response

    def __call__(self, request: HttpRequest) -> HttpResponse:
        rid = _coerce_request_id(request.headers.get("X-Request-ID"))
        request.request_id = rid
        token = request_id_var.set(rid)

        start = time.perf_counter()
        try:
            response = self.get_response(request)
        finally:
            duration_ms = int((time.perf_counter() - start) * 1000)
            request_id_var.reset(token)

        response.headers["X-Request-ID"] = rid

        user = getattr(request, "user", None)
        user_id = getattr(user, "id", None) if getattr(user, "is_authenticated", False) else None
        logger.info(
            "request",
            extra={
                "request_id": rid,
                "method": request.method,
                "path": request.path,
                "status": getattr(response, "status_code", 0),
                "user_id": user_id,
                "duration_ms": duration_ms,
            },
        )
        return response
