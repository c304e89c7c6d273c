"""Uniform async-action runner shared by every store handler."""

from __future__ import annotations

import inspect
import logging
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Generic, Hashable, Optional, TypeVar

import pydantic

from ttrpg_client.domain.exceptions import EngineError, ErrorKind, StaleTargetError, USER_MESSAGES
from ttrpg_client.infra.http import ApiResponse
from ttrpg_client.obs import logging as obs_logging
from ttrpg_client.obs import metrics as obs_metrics
from ttrpg_client.settings import Settings, settings as default_settings

_LOG = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_LOADING_KEY = "is_loading"


@dataclass(slots=True)
class ActionResult(Generic[T]):
	"""Envelope handed back to the presentation layer."""

	success: bool
	data: Optional[T] = None
	error: Optional[str] = None
	# The remote call succeeded but its target was no longer focused.
	stale: bool = False


class StoreState:
	"""Named loading flags plus the single shared error slot."""

	def __init__(self) -> None:
		self.loading: dict[str, bool] = {}
		self.error: Optional[str] = None

	def is_loading(self, key: str = DEFAULT_LOADING_KEY) -> bool:
		return self.loading.get(key, False)

	@property
	def any_loading(self) -> bool:
		return any(self.loading.values())

	def clear_error(self) -> None:
		self.error = None

	def reset(self) -> None:
		self.loading.clear()
		self.error = None


class ActionOrchestrator:
	"""Runs a remote operation and normalises every outcome to :class:`ActionResult`.

	Sequence per call: optional in-flight check, loading flag on, error slot cleared,
	local ``guard`` (precondition / transition check), remote ``call``, then
	``on_success`` with the reply data (may be a coroutine, e.g. a cascading re-fetch).
	Declared failures, local precondition errors and transport or parse faults all
	land in the shared error slot. The loading flag is released in every case.
	"""

	def __init__(
		self,
		state: StoreState,
		*,
		config: Settings | None = None,
		default_error: str | None = None,
		guard_inflight: bool | None = None,
		entity: str | None = None,
		focused_id: Callable[[], Optional[int]] | None = None,
		user_id: Callable[[], Optional[int]] | None = None,
	) -> None:
		self.state = state
		self.config = config or default_settings
		self.default_error = default_error
		self.guard_inflight = self.config.inflight_guard_enabled if guard_inflight is None else guard_inflight
		# Log context bound around every action.
		self.entity = entity
		self._focused_id = focused_id
		self._user_id = user_id
		self._inflight: set[Hashable] = set()

	def in_flight(self, key: Hashable) -> bool:
		return key in self._inflight

	async def run(
		self,
		action: str,
		call: Callable[[], Awaitable[ApiResponse[T]]],
		*,
		loading_key: str = DEFAULT_LOADING_KEY,
		guard: Callable[[], None] | None = None,
		on_success: Callable[[Optional[T]], Any] | None = None,
		default_error: str | None = None,
		dedupe_key: Hashable | None = None,
	) -> ActionResult[T]:
		inflight_key = (action, dedupe_key) if dedupe_key is not None and self.guard_inflight else None
		if inflight_key is not None and inflight_key in self._inflight:
			obs_metrics.inc_action_duplicate(action)
			_LOG.info("duplicate action ignored", extra={"action_name": action, "dedupe_key": str(dedupe_key)})
			return ActionResult(success=False, error=USER_MESSAGES["action_in_flight"])

		tokens = obs_logging.bind_context(
			action=action,
			entity=self.entity,
			entity_id=self._focused_id() if self._focused_id else None,
			user_id=self._user_id() if self._user_id else None,
		)
		if inflight_key is not None:
			self._inflight.add(inflight_key)
		self.state.loading[loading_key] = True
		self.state.error = None
		started = time.perf_counter()
		outcome = "fault"
		data: Optional[T] = None
		try:
			if guard is not None:
				guard()
			response = await call()
			if not response.success:
				outcome = "failure"
				message = response.message or self._fallback(default_error)
				self.state.error = message
				return ActionResult(success=False, error=message)
			data = response.data
			if on_success is not None:
				result = on_success(data)
				if inspect.isawaitable(result):
					await result
			outcome = "success"
			return ActionResult(success=True, data=data)
		except StaleTargetError:
			outcome = "stale"
			return ActionResult(success=True, data=data, stale=True)
		except EngineError as exc:
			if exc.kind == ErrorKind.TRANSPORT:
				outcome = "fault"
			else:
				outcome = "rejected"
				obs_metrics.inc_transition_reject(action, exc.detail)
			message = exc.user_message or self._fallback(default_error)
			self.state.error = message
			_LOG.info("action failed", extra={"detail": exc.detail, "kind": exc.kind.value})
			return ActionResult(success=False, error=message)
		except pydantic.ValidationError:
			_LOG.warning("unparseable api response", exc_info=True)
			message = self._fallback(default_error)
			self.state.error = message
			return ActionResult(success=False, error=message)
		finally:
			self.state.loading[loading_key] = False
			if inflight_key is not None:
				self._inflight.discard(inflight_key)
			obs_metrics.observe_action(action, outcome, time.perf_counter() - started)
			obs_logging.reset_context(tokens)

	def _fallback(self, default_error: str | None) -> str:
		return default_error or self.default_error or self.config.default_error_message
