"""
Request-scoped log correlation.

- `request_id_var` holds the id of the request being served; it is set by
  `core.middleware.RequestIDLogMiddleware`.
- `RequestIDFilter` copies it onto every `LogRecord` so formatters using
  `%(request_id)s` work everywhere, including management commands such as
  `invalidate_profile_schema` where no request exists (a dash is used).

Configure the filter on handlers in the Django `LOGGING` setting.
"""

from __future__ import annotations

import logging
from contextvars import ContextVar

request_id_var: ContextVar[str] = ContextVar("request_id", default="-")


class RequestIDFilter(logging.Filter):
    """Ensure `request_id` exists on every record passing through a handler."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "request_id"):
            record.request_id = request_id_var.get()
        return True
