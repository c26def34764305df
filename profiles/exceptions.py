"""
Error taxonomy for the profile subsystem.

- `SchemaLoadError` / `SchemaConflictError` are configuration faults: not
  user-correctable, never retried, surfaced as server errors.
- `UnknownFieldError` / `ProfileValidationError` are recoverable and describe
  problems with the submitted data.
"""

from __future__ import annotations

from typing import Dict, Iterable, List


class ProfileError(Exception):
    """Base class for all profile subsystem errors."""


class SchemaLoadError(ProfileError):
    """A field-definition source is missing or malformed."""


class SchemaConflictError(ProfileError):
    """Two schema sources declare the same field with different types."""

    def __init__(self, field: str, base_type: str, custom_type: str) -> None:
        self.field = field
        self.base_type = base_type
        self.custom_type = custom_type
        super().__init__(
            f"Field '{field}' is declared as '{base_type}' in the base schema "
            f"and as '{custom_type}' in the custom schema."
        )


class UnknownFieldError(ProfileError):
    """Attempt to store attribute names the current schema does not define."""

    def __init__(self, fields: Iterable[str]) -> None:
        self.fields = sorted(fields)
        super().__init__(f"Unknown profile field(s): {', '.join(self.fields)}")


class ProfileValidationError(ProfileError):
    """Submitted values failed field-level validation; `errors` is per field."""

    def __init__(self, errors: Dict[str, List[str]]) -> None:
        self.errors = errors
        super().__init__(f"Invalid profile values for: {', '.join(sorted(errors))}")
