"""Custom user model.

Why a custom user?
------------------
- Keeps Django's default authentication behavior via `AbstractUser` while
  giving us a model we own, so profile values can hang off it.

Custom profile fields
---------------------
- Administrator-defined attributes are not columns: they live in
  `profiles.ProfileValue` rows and are read/written through
  `profiles.get_service()`.
- `profile_values` is a `GenericRelation` so deleting a user also deletes
  their stored attribute values.
"""

from django.contrib.auth.models import AbstractUser
from django.contrib.contenttypes.fields import GenericRelation


class User(AbstractUser):
    """Project's custom user model."""

    profile_values = GenericRelation("profiles.ProfileValue")
