"""
Persistence for custom profile attribute values.

`ProfileValue` stores one attribute of one entity: the owner is addressed
generically through (`content_type`, `object_id`) so users and groups share a
single table, and `value` keeps the typed JSON value.

Ownership
---------
- Only `profiles.store.AttributeStore` reads or writes these rows.
- Rows disappear with their owner: `accounts.User.profile_values` is a
  `GenericRelation` (cascading delete), group rows are removed by
  `profiles.signals`.
"""

from django.contrib.contenttypes.fields import GenericForeignKey
from django.contrib.contenttypes.models import ContentType
from django.db import models


class ProfileValue(models.Model):
    content_type = models.ForeignKey(ContentType, on_delete=models.CASCADE)
    object_id = models.PositiveBigIntegerField()
    owner = GenericForeignKey("content_type", "object_id")

    # Field name from the schema document.
    slug = models.CharField(max_length=100)
    value = models.JSONField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=["content_type", "object_id", "slug"],
                name="uniq_profile_value_per_owner_slug",
            )
        ]
        indexes = [
            models.Index(fields=["content_type", "object_id"], name="profiles_pv_owner_idx"),
        ]
        ordering = ("content_type", "object_id", "slug")

    def __str__(self) -> str:
        return f"{self.content_type.model}:{self.object_id} {self.slug}={self.value!r}"
