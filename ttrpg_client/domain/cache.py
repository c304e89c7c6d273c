"""Disposable per-page snapshot cache with stale-response rejection."""

from __future__ import annotations

import logging
from typing import Callable, Generic, Optional, TypeVar

from ttrpg_client.domain.exceptions import StaleTargetError
from ttrpg_client.obs import metrics as obs_metrics

_LOG = logging.getLogger(__name__)

S = TypeVar("S")


class EntitySnapshotCache(Generic[S]):
	"""Holds snapshots keyed by entity id and tracks which id is in focus.

	Only the focused entity accepts writes. A response that resolves after the
	user navigated elsewhere (or after teardown) raises :class:`StaleTargetError`
	instead of touching the cache.
	"""

	def __init__(self, entity: str) -> None:
		self.entity = entity
		self._snapshots: dict[int, S] = {}
		self._target_id: Optional[int] = None

	@property
	def target_id(self) -> Optional[int]:
		return self._target_id

	def focus(self, entity_id: int) -> None:
		"""Switch the current target; snapshots of other entities are dropped."""
		if self._target_id != entity_id:
			self._snapshots = {k: v for k, v in self._snapshots.items() if k == entity_id}
		self._target_id = entity_id

	def teardown(self) -> None:
		self._snapshots.clear()
		self._target_id = None

	def is_current(self, entity_id: int) -> bool:
		return self._target_id is not None and self._target_id == entity_id

	def get(self, entity_id: int | None = None) -> Optional[S]:
		key = self._target_id if entity_id is None else entity_id
		if key is None:
			return None
		return self._snapshots.get(key)

	def ensure_current(self, entity_id: int) -> None:
		if not self.is_current(entity_id):
			obs_metrics.inc_stale_response(self.entity)
			_LOG.debug(
				"discarding stale response",
				extra={"entity": self.entity, "target_id": entity_id, "focused_id": self._target_id},
			)
			raise StaleTargetError()

	def put(self, entity_id: int, snapshot: S) -> S:
		self.ensure_current(entity_id)
		self._snapshots[entity_id] = snapshot
		return snapshot

	def update(self, entity_id: int, reducer: Callable[[Optional[S]], S]) -> S:
		"""Apply ``reducer`` to the focused snapshot (last write wins)."""
		self.ensure_current(entity_id)
		updated = reducer(self._snapshots.get(entity_id))
		self._snapshots[entity_id] = updated
		return updated
