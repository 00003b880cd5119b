"""
Model mixins shared by the domain apps.

Available Mixins:
    UUIDPrimaryKeyMixin: Use UUID as primary key
    VersionedMixin: Integer version bumped on every update, used with
        escrow.locks.check_version for optimistic concurrency

Usage:
    class RefundRequest(UUIDPrimaryKeyMixin, VersionedMixin, BaseModel):
        ...

    # Caller read version 3; fails if someone else saved in between
    check_version(RefundRequest, request_id, expected_version=3)
"""

from __future__ import annotations

import uuid

from django.db import models
from django.db.models import F


class UUIDPrimaryKeyMixin(models.Model):
    """
    Use UUID as primary key instead of auto-increment integer.

    Escrow, refund and wallet identifiers are exposed in URLs and must not
    reveal volume or order.
    """

    id = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False,
        help_text="Unique identifier for this record",
    )

    class Meta:
        abstract = True


class VersionedMixin(models.Model):
    """
    Optimistic locking counter.

    The version is incremented in the database with an F() expression on
    every update and read back, so concurrent writers observe the bump.
    """

    version = models.PositiveIntegerField(
        default=1,
        help_text="Version for optimistic locking - incremented on each save",
    )

    class Meta:
        abstract = True

    def save(self, *args, **kwargs):
        is_update = not self._state.adding and not kwargs.get("force_insert", False)
        if is_update:
            self.version = F("version") + 1
            update_fields = kwargs.get("update_fields")
            if update_fields is not None and "version" not in update_fields:
                kwargs["update_fields"] = [*update_fields, "version"]
        super().save(*args, **kwargs)
        if is_update:
            self.refresh_from_db(fields=["version"])
