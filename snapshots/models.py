"""
Snapshots — Snapshot Record Model
===================================
The single storage unit of the snapshot store.

A snapshot is a checksummed copy of one object's serialized state,
keyed by the object's source identity (source_class + source_id).

RULES:
- History is append-only: (source_class, source_id) is NOT unique
- checksum is recomputed every time data is assigned on an instance;
  QuerySet.update(data=...) bypasses instances and is rejected
- version defaults to 1 and is never incremented by capture logic
- create_time orders history ("latest" = greatest create_time)

This file contains NO capture logic.
"""

from django.core.serializers.json import DjangoJSONEncoder
from django.db import models
from django.db.models.query_utils import DeferredAttribute

from snapshots.hashing import CHECKSUM_LENGTH, compute_checksum


# ══════════════════════════════════════════════════════════════
# CHECKSUMMED DATA FIELD
# ══════════════════════════════════════════════════════════════

class ChecksummedDataAttribute(DeferredAttribute):
    """
    Data descriptor: assigning the payload recomputes the checksum.

    Rows loaded from the database pass through here as well, so a
    loaded record's checksum always reflects its loaded data.
    """

    def __set__(self, instance, value):
        instance.__dict__[self.field.attname] = value
        instance.__dict__[self.field.checksum_attname] = (
            compute_checksum(value) if value is not None else ""
        )


class ChecksummedJSONField(models.JSONField):
    """JSONField whose assignment keeps a sibling checksum column in sync."""

    descriptor_class = ChecksummedDataAttribute
    checksum_attname = "checksum"


# ══════════════════════════════════════════════════════════════
# QUERYSET
# ══════════════════════════════════════════════════════════════

class SnapshotQuerySet(models.QuerySet):
    """Bulk writes that keep checksum consistent with data."""

    def update(self, **kwargs):
        if "data" in kwargs:
            raise ValueError(
                "Snapshot data cannot be changed through QuerySet.update(); "
                "assign it on the instance so the checksum follows."
            )
        return super().update(**kwargs)

    def bulk_update(self, objs, fields, batch_size=None):
        fields = list(fields)
        if "data" in fields and "checksum" not in fields:
            fields.append("checksum")
        return super().bulk_update(objs, fields, batch_size=batch_size)


# ══════════════════════════════════════════════════════════════
# SNAPSHOT RECORD
# ══════════════════════════════════════════════════════════════

class Snapshot(models.Model):
    """
    Entity Snapshot Record
    ======================
    Field groups:
        Source Identity
        Integrity
        Payload
        Versioning & Temporal
    """

    # ── Source Identity ───────────────────────────────────────
    source_class = models.CharField(
        max_length=255,
        help_text="Stable type tag of the captured object (app_label.ModelName).",
    )

    source_id = models.CharField(
        max_length=255,
        help_text=(
            "Identity of the captured object within its type. "
            "Composite identities use canonical JSON."
        ),
    )

    # ── Integrity ─────────────────────────────────────────────
    # Declared before data: Model.__init__ assigns fields in order and
    # the checksum default must not overwrite the computed value.
    checksum = models.CharField(
        max_length=CHECKSUM_LENGTH,
        editable=False,
        help_text="MD5 of the canonical JSON form of data.",
    )

    # ── Payload ───────────────────────────────────────────────
    data = ChecksummedJSONField(
        blank=True,
        encoder=DjangoJSONEncoder,
        help_text="Serialized state of the captured object.",
    )

    metadata = models.JSONField(
        null=True,
        blank=True,
        encoder=DjangoJSONEncoder,
        help_text="Free-form capture context (e.g. serializer context used).",
    )

    # ── Versioning & Temporal ─────────────────────────────────
    version = models.PositiveIntegerField(
        default=1,
        help_text="Reserved for format evolution. Not auto-incremented.",
    )

    create_time = models.DateTimeField(
        help_text="When the snapshot was captured. Orders history.",
    )

    objects = SnapshotQuerySet.as_manager()

    class Meta:
        db_table = "entity_snapshot"
        ordering = ["-create_time", "-id"]
        indexes = [
            models.Index(
                fields=["source_class", "source_id"],
                name="idx_snapshot_source",
            ),
            models.Index(
                fields=["create_time"],
                name="idx_snapshot_create_time",
            ),
        ]

    def __str__(self):
        created = (
            self.create_time.strftime("%Y-%m-%d %H:%M:%S")
            if self.create_time is not None
            else "-"
        )
        return f"Snapshot[{self.source_class}#{self.source_id}]@{created}"
