"""
Snapshots — App Configuration
===============================
Connects the capture receiver to pre_save once every model module
(and therefore every @snapshot_fields registration) has been imported,
and clears the default manager's unit of work when a request ends.
"""

from django.apps import AppConfig
from django.core.signals import request_finished

DISCARD_PENDING_DISPATCH_UID = "snapshots.discard_pending"


class SnapshotsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "snapshots"
    label = "snapshots"
    verbose_name = "Entity Snapshots"

    def ready(self):
        from snapshots.listener import connect_receiver
        from snapshots.service import discard_pending_snapshots

        connect_receiver()
        request_finished.connect(
            discard_pending_snapshots,
            weak=False,
            dispatch_uid=DISCARD_PENDING_DISPATCH_UID,
        )
