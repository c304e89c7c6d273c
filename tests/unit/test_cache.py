from __future__ import annotations

import pytest

from ttrpg_client.domain.cache import EntitySnapshotCache
from ttrpg_client.domain.exceptions import StaleTargetError
from ttrpg_client.obs import metrics as obs_metrics


def _stale_count(entity: str) -> float:
	return obs_metrics.STALE_RESPONSES.labels(entity=entity)._value.get()


def test_put_and_get_for_focused_entity():
	cache: EntitySnapshotCache[str] = EntitySnapshotCache("test")
	cache.focus(5)
	cache.put(5, "five")
	assert cache.get() == "five"
	assert cache.get(5) == "five"
	assert cache.target_id == 5


def test_write_for_unfocused_entity_is_rejected():
	cache: EntitySnapshotCache[str] = EntitySnapshotCache("stale-test")
	before = _stale_count("stale-test")
	cache.focus(5)
	cache.focus(7)
	cache.put(7, "seven")
	with pytest.raises(StaleTargetError):
		cache.put(5, "five")
	assert cache.get(7) == "seven"
	assert cache.get(5) is None
	assert _stale_count("stale-test") == before + 1


def test_focus_switch_drops_other_snapshots():
	cache: EntitySnapshotCache[str] = EntitySnapshotCache("test")
	cache.focus(1)
	cache.put(1, "one")
	cache.focus(2)
	assert cache.get(1) is None
	assert cache.get() is None


def test_refocus_same_entity_keeps_snapshot():
	cache: EntitySnapshotCache[str] = EntitySnapshotCache("test")
	cache.focus(1)
	cache.put(1, "one")
	cache.focus(1)
	assert cache.get() == "one"


def test_teardown_rejects_late_responses():
	cache: EntitySnapshotCache[str] = EntitySnapshotCache("test")
	cache.focus(3)
	cache.put(3, "three")
	cache.teardown()
	assert cache.target_id is None
	assert cache.get(3) is None
	with pytest.raises(StaleTargetError):
		cache.update(3, lambda snap: "late")


def test_update_passes_current_snapshot_to_reducer():
	cache: EntitySnapshotCache[list[int]] = EntitySnapshotCache("test")
	cache.focus(4)
	cache.update(4, lambda snap: (snap or []) + [1])
	cache.update(4, lambda snap: (snap or []) + [2])
	assert cache.get() == [1, 2]
