"""
Snapshots — purge_snapshots management command
================================================
Deletes snapshots older than a cutoff in one bulk operation.

Usage:
    python manage.py purge_snapshots --days 90
    python manage.py purge_snapshots --before 2025-01-01T00:00:00Z --dry-run
"""

from datetime import timedelta, timezone as dt_timezone

from django.core.management.base import BaseCommand, CommandError
from django.utils import timezone
from django.utils.dateparse import parse_datetime

from snapshots.models import Snapshot
from snapshots.persistence import SnapshotRepository


class Command(BaseCommand):
    help = "Delete snapshots created before a cutoff."

    def add_arguments(self, parser):
        cutoff = parser.add_mutually_exclusive_group(required=True)
        cutoff.add_argument(
            "--days",
            type=int,
            help="Delete snapshots older than this many days.",
        )
        cutoff.add_argument(
            "--before",
            help="Delete snapshots created before this ISO-8601 timestamp.",
        )
        parser.add_argument(
            "--dry-run",
            action="store_true",
            help="Report how many snapshots would be deleted.",
        )

    def _cutoff(self, options):
        if options["days"] is not None:
            if options["days"] < 0:
                raise CommandError("--days must be >= 0.")
            return timezone.now() - timedelta(days=options["days"])

        before = parse_datetime(options["before"])
        if before is None:
            raise CommandError(f"Invalid --before timestamp: {options['before']!r}")
        if timezone.is_naive(before):
            before = timezone.make_aware(before, dt_timezone.utc)
        return before

    def handle(self, *args, **options):
        before = self._cutoff(options)

        if options["dry_run"]:
            count = Snapshot.objects.filter(create_time__lt=before).count()
            self.stdout.write(
                f"{count} snapshot(s) created before {before.isoformat()} would be deleted."
            )
            return

        deleted = SnapshotRepository().delete_old_snapshots(before)
        self.stdout.write(
            self.style.SUCCESS(
                f"Deleted {deleted} snapshot(s) created before {before.isoformat()}."
            )
        )
