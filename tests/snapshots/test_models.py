"""
Tests for snapshots.models — Snapshot record behavior.
"""

from datetime import datetime, timezone

import pytest
from django.core.exceptions import ValidationError

from snapshots.hashing import compute_checksum
from snapshots.models import Snapshot


def _snapshot(**overrides) -> Snapshot:
    values = {
        "source_class": "testapp.Product",
        "source_id": "1",
        "data": {"name": "Product 1"},
        "create_time": datetime(2026, 1, 1, 8, 30, 5, tzinfo=timezone.utc),
    }
    values.update(overrides)
    return Snapshot(**values)


class TestChecksum:
    def test_constructor_computes_checksum(self):
        snapshot = _snapshot()
        assert snapshot.checksum == compute_checksum({"name": "Product 1"})

    def test_assigning_data_recomputes_checksum(self):
        snapshot = _snapshot()
        snapshot.data = {"name": "Product 2"}
        assert snapshot.checksum == compute_checksum({"name": "Product 2"})

    def test_equal_data_equal_checksum_across_instances(self):
        first = _snapshot(source_id="1")
        second = _snapshot(source_id="2")
        third = _snapshot(data={"name": "Product 2"})

        assert first.checksum == second.checksum
        assert first.checksum != third.checksum

    def test_missing_data_has_empty_checksum(self):
        snapshot = Snapshot(source_class="testapp.Product", source_id="1")
        assert snapshot.data is None
        assert snapshot.checksum == ""

    @pytest.mark.django_db
    def test_loaded_row_checksum_matches_data(self):
        snapshot = _snapshot(data={"name": "Product 1", "tags": ["a", "b"]})
        snapshot.save()

        loaded = Snapshot.objects.get(pk=snapshot.pk)
        assert loaded.data == {"name": "Product 1", "tags": ["a", "b"]}
        assert loaded.checksum == snapshot.checksum

    @pytest.mark.django_db
    def test_deferred_data_reload_keeps_checksum(self):
        snapshot = _snapshot()
        snapshot.save()

        loaded = Snapshot.objects.only("source_class").get(pk=snapshot.pk)
        assert loaded.data == {"name": "Product 1"}
        assert loaded.checksum == snapshot.checksum


class TestDefaults:
    def test_version_defaults_to_one(self):
        assert _snapshot().version == 1

    def test_version_adjustable(self):
        snapshot = _snapshot()
        snapshot.version = 3
        assert snapshot.version == 3
        assert snapshot.checksum == compute_checksum({"name": "Product 1"})

    def test_metadata_optional(self):
        assert _snapshot().metadata is None


class TestStr:
    def test_contains_source_and_time(self):
        assert str(_snapshot()) == "Snapshot[testapp.Product#1]@2026-01-01 08:30:05"

    def test_without_create_time(self):
        assert str(_snapshot(create_time=None)) == "Snapshot[testapp.Product#1]@-"


class TestValidation:
    def test_valid_record(self):
        _snapshot().full_clean()

    def test_empty_data_allowed(self):
        _snapshot(data={}).full_clean()

    def test_blank_source_id_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            _snapshot(source_id="").full_clean()
        assert "source_id" in exc_info.value.message_dict

    def test_source_class_length_limit(self):
        with pytest.raises(ValidationError) as exc_info:
            _snapshot(source_class="x" * 256).full_clean()
        assert "source_class" in exc_info.value.message_dict



@pytest.mark.django_db
class TestBulkWrites:
    def test_queryset_update_of_data_rejected(self):
        snapshot = _snapshot()
        snapshot.save()

        with pytest.raises(ValueError, match="QuerySet.update"):
            Snapshot.objects.filter(pk=snapshot.pk).update(data={"name": "Product 2"})

        loaded = Snapshot.objects.get(pk=snapshot.pk)
        assert loaded.data == {"name": "Product 1"}

    def test_queryset_update_of_version_allowed(self):
        snapshot = _snapshot()
        snapshot.save()

        assert Snapshot.objects.filter(pk=snapshot.pk).update(version=2) == 1
        assert Snapshot.objects.get(pk=snapshot.pk).version == 2

    def test_bulk_update_of_data_writes_checksum(self):
        snapshot = _snapshot()
        snapshot.save()

        snapshot.data = {"name": "Product 2"}
        Snapshot.objects.bulk_update([snapshot], ["data"])

        stored = Snapshot.objects.values("checksum").get(pk=snapshot.pk)
        assert stored["checksum"] == compute_checksum({"name": "Product 2"})

    def test_save_with_update_fields_keeps_checksum_in_sync(self):
        snapshot = _snapshot()
        snapshot.save()

        snapshot.data = {"name": "Product 2"}
        snapshot.save(update_fields=["data", "checksum"])

        stored = Snapshot.objects.values("checksum").get(pk=snapshot.pk)
        assert stored["checksum"] == compute_checksum({"name": "Product 2"})
