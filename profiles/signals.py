"""
Profile value cleanup for owners without a `GenericRelation`.

Users cascade through `accounts.User.profile_values`; `auth.Group` is a
Django model we cannot extend, so its rows are removed here through the
attribute store. The handler is idempotent and only deletes rows of the
deleted group.
"""

from __future__ import annotations

import logging

from django.contrib.auth.models import Group
from django.db.models.signals import post_delete
from django.dispatch import receiver

from . import get_service
from .types import EntityKind

logger = logging.getLogger(__name__)


@receiver(post_delete, sender=Group, dispatch_uid="profiles.group_delete_profile_values")
def group_delete_profile_values(sender, instance: Group, **kwargs):
    """Delete custom profile values of a deleted group."""
    deleted = get_service().store.delete_values(instance.pk, EntityKind.GROUP)
    if deleted:
        logger.debug("Deleted %d profile value(s) of group %s", deleted, instance.pk)
