from datetime import datetime, timezone

import pytest

from snapshots.clock import FixedClock
from snapshots.conf import SnapshotSettings


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(datetime(2026, 1, 1, 12, 0, 0, tzinfo=timezone.utc))


@pytest.fixture
def manager(clock):
    """Default-wired manager installed as the current thread's manager."""
    from snapshots.service import SnapshotManager, set_snapshot_manager

    manager = SnapshotManager.from_settings(settings=SnapshotSettings(), clock=clock)
    set_snapshot_manager(manager)
    yield manager
    set_snapshot_manager(None)
