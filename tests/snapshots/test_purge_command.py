"""
Tests for the purge_snapshots management command.
"""

from datetime import datetime, timezone
from io import StringIO

import pytest
from django.core.management import call_command
from django.core.management.base import CommandError

from snapshots.models import Snapshot

pytestmark = pytest.mark.django_db(transaction=True)


def _store(year: int) -> Snapshot:
    return Snapshot.objects.create(
        source_class="testapp.Product",
        source_id="1",
        data={"year": year},
        create_time=datetime(year, 6, 1, tzinfo=timezone.utc),
    )


def test_purge_before_timestamp() -> None:
    _store(2020)
    _store(2021)
    kept = _store(2026)
    out = StringIO()

    call_command("purge_snapshots", before="2025-01-01T00:00:00Z", stdout=out)

    assert "Deleted 2 snapshot(s)" in out.getvalue()
    assert list(Snapshot.objects.values_list("pk", flat=True)) == [kept.pk]


def test_naive_timestamp_treated_as_utc() -> None:
    _store(2020)
    out = StringIO()

    call_command("purge_snapshots", before="2021-01-01 00:00:00", stdout=out)

    assert "2021-01-01T00:00:00+00:00" in out.getvalue()
    assert Snapshot.objects.count() == 0


def test_purge_by_days() -> None:
    _store(2020)
    out = StringIO()

    call_command("purge_snapshots", days=30, stdout=out)

    assert "Deleted 1 snapshot(s)" in out.getvalue()
    assert Snapshot.objects.count() == 0


def test_dry_run_deletes_nothing() -> None:
    _store(2020)
    _store(2021)
    out = StringIO()

    call_command("purge_snapshots", before="2025-01-01T00:00:00Z", dry_run=True, stdout=out)

    assert "2 snapshot(s) created before" in out.getvalue()
    assert "would be deleted" in out.getvalue()
    assert Snapshot.objects.count() == 2


def test_cutoff_required() -> None:
    with pytest.raises(CommandError):
        call_command("purge_snapshots")


def test_invalid_timestamp() -> None:
    with pytest.raises(CommandError, match="Invalid --before"):
        call_command("purge_snapshots", before="yesterday")


def test_negative_days() -> None:
    with pytest.raises(CommandError, match="--days"):
        call_command("purge_snapshots", days=-1)
