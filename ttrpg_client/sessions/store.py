"""Presentation-facing session store.

Mirrors :mod:`ttrpg_client.campaigns.store` for the session page. Participation
(``is_participant``) comes from raw roster presence and is independent of the
resolved role: a campaign GM without a Participant row manages the session but
still sees it in PREVIEW mode.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from ttrpg_client.campaigns.models import Campaign
from ttrpg_client.domain.access import AccessMode, is_session_participant, resolve_access_mode
from ttrpg_client.domain.cache import EntitySnapshotCache
from ttrpg_client.domain.exceptions import NotFoundError
from ttrpg_client.domain.orchestrator import ActionOrchestrator, ActionResult, StoreState
from ttrpg_client.domain.roles import Role, can_manage, resolve_session_role
from ttrpg_client.infra.auth import AuthenticatedUser
from ttrpg_client.settings import Settings
from ttrpg_client.sessions import policies
from ttrpg_client.sessions.api import SessionApi
from ttrpg_client.sessions.models import (
	Participant,
	Session,
	SessionCreateRequest,
	SessionJoinRequest,
	SessionListQuery,
	SessionStatus,
	SessionUpdateRequest,
)
from ttrpg_client.sessions.reducer import (
	ParticipantJoined,
	ParticipantLeft,
	ParticipantRemoved,
	ParticipantsLoaded,
	ParticipantStatusChanged,
	SessionDeleted,
	SessionEvent,
	SessionLoaded,
	SessionSnapshot,
	SessionUpdated,
	reduce_session,
)

_LOG = logging.getLogger(__name__)

LOADING_KEY = "is_loading"
PARTICIPANTS_LOADING_KEY = "is_loading_participants"


class SessionStore:
	def __init__(
		self,
		api: SessionApi,
		user: AuthenticatedUser | None = None,
		*,
		orchestrator: ActionOrchestrator | None = None,
		config: Settings | None = None,
	) -> None:
		self.api = api
		self.user = user
		self.state = StoreState()
		self.cache: EntitySnapshotCache[SessionSnapshot] = EntitySnapshotCache("session")
		self.orchestrator = orchestrator or ActionOrchestrator(
			self.state,
			config=config,
			entity="session",
			focused_id=lambda: self.cache.target_id,
			user_id=lambda: self.user.id if self.user else None,
		)
		# Id whose last load finished, successfully or not.
		self._settled_id: Optional[int] = None
		self.sessions: list[Session] = []

	@property
	def snapshot(self) -> Optional[SessionSnapshot]:
		return self.cache.get()

	@property
	def session(self) -> Optional[Session]:
		snapshot = self.snapshot
		return snapshot.session if snapshot else None

	@property
	def participants(self) -> tuple[Participant, ...]:
		snapshot = self.snapshot
		return snapshot.participants if snapshot else ()

	@property
	def effective_role(self) -> Role | None:
		return resolve_session_role(self.session, self.user)

	@property
	def is_participant(self) -> bool:
		return is_session_participant(self.session, self.user)

	@property
	def can_manage(self) -> bool:
		return can_manage(self.effective_role)

	@property
	def access_mode(self) -> AccessMode:
		pending = self.session is None and (self.cache.target_id is None or self._settled_id != self.cache.target_id)
		return resolve_access_mode(self.is_participant, pending)

	@property
	def can_join(self) -> bool:
		return policies.can_join_session(self.session, self.user)

	@property
	def player_count(self) -> int:
		session = self.session
		return session.player_count if session else 0

	@property
	def seats_left(self) -> int | None:
		session = self.session
		return session.seats_left if session else None

	@property
	def error(self) -> Optional[str]:
		return self.state.error

	@property
	def is_loading(self) -> bool:
		return self.state.is_loading(LOADING_KEY)

	def set_user(self, user: AuthenticatedUser | None) -> None:
		self.user = user

	async def open(self, session_id: int) -> ActionResult[Session]:
		self.cache.focus(session_id)
		self._settled_id = None
		return await self.fetch_session(session_id)

	def close(self) -> None:
		_LOG.debug("session page closed", extra={"session_id": self.cache.target_id})
		self.cache.teardown()
		self._settled_id = None
		self.state.clear_error()

	def clear_error(self) -> None:
		self.state.clear_error()

	def reset(self) -> None:
		self.cache.teardown()
		self._settled_id = None
		self.state.reset()
		self.sessions = []

	def _apply(self, session_id: int, event: SessionEvent) -> SessionSnapshot:
		return self.cache.update(session_id, lambda snap: reduce_session(snap, event, session_id=session_id))

	def _require_loaded(self) -> Session:
		session = self.session
		if session is None:
			raise NotFoundError("session_not_loaded")
		return session

	def _replace_listed(self, session: Session) -> None:
		self.sessions = [session if s.id == session.id else s for s in self.sessions]

	# ---- lists ---------------------------------------------------------

	async def fetch_my_sessions(self, query: SessionListQuery | None = None) -> ActionResult[list[Session]]:
		def on_success(data: Optional[list[Session]]) -> None:
			self.sessions = list(data or [])

		return await self.orchestrator.run(
			"fetch_my_sessions",
			lambda: self.api.list_my_sessions(query),
			on_success=on_success,
		)

	async def fetch_campaign_sessions(
		self,
		campaign_id: int,
		query: SessionListQuery | None = None,
	) -> ActionResult[list[Session]]:
		def on_success(data: Optional[list[Session]]) -> None:
			self.sessions = list(data or [])

		return await self.orchestrator.run(
			"fetch_campaign_sessions",
			lambda: self.api.list_campaign_sessions(campaign_id, query),
			on_success=on_success,
		)

	async def create_session(self, payload: SessionCreateRequest, *, campaign: Campaign | None = None) -> ActionResult[Session]:
		def on_success(data: Optional[Session]) -> None:
			if data is not None:
				self.sessions = [*self.sessions, data]

		return await self.orchestrator.run(
			"create_session",
			lambda: self.api.create_session(payload),
			guard=lambda: policies.ensure_can_create_session(self.user, campaign),
			on_success=on_success,
		)

	# ---- focused session -----------------------------------------------

	async def fetch_session(self, session_id: int) -> ActionResult[Session]:
		def on_success(data: Optional[Session]) -> None:
			if data is not None:
				self._apply(session_id, SessionLoaded(data))

		result = await self.orchestrator.run(
			"fetch_session",
			lambda: self.api.get_session(session_id),
			on_success=on_success,
		)
		if not result.stale and self.cache.is_current(session_id):
			self._settled_id = session_id
		return result

	async def update_session(self, payload: SessionUpdateRequest) -> ActionResult[Session]:
		session_id = self.cache.target_id

		def guard() -> None:
			session = self._require_loaded()
			policies.ensure_can_update_session(self.effective_role, session, payload.status)

		def on_success(data: Optional[Session]) -> None:
			if data is None:
				return
			self._replace_listed(data)
			self._apply(session_id, SessionUpdated(data))

		return await self.orchestrator.run(
			"update_session",
			lambda: self.api.update_session(session_id, payload),
			guard=guard,
			on_success=on_success,
			dedupe_key=session_id,
		)

	async def change_session_status(self, status: SessionStatus) -> ActionResult[Session]:
		session_id = self.cache.target_id

		def guard() -> None:
			session = self._require_loaded()
			policies.ensure_can_change_session_status(self.effective_role, session, status)

		def on_success(data: Optional[Session]) -> None:
			if data is None:
				data = self._require_loaded().model_copy(update={"status": status})
			self._replace_listed(data)
			self._apply(session_id, SessionUpdated(data))

		return await self.orchestrator.run(
			"change_session_status",
			lambda: self.api.update_session(session_id, SessionUpdateRequest(status=status)),
			guard=guard,
			on_success=on_success,
			dedupe_key=session_id,
		)

	async def delete_session(self) -> ActionResult[None]:
		session_id = self.cache.target_id

		def guard() -> None:
			self._require_loaded()
			policies.ensure_can_delete_session(self.effective_role)

		def on_success(_: None) -> None:
			self.sessions = [s for s in self.sessions if s.id != session_id]
			self._apply(session_id, SessionDeleted(session_id))

		return await self.orchestrator.run(
			"delete_session",
			lambda: self.api.delete_session(session_id),
			guard=guard,
			on_success=on_success,
			dedupe_key=session_id,
		)

	# ---- participants --------------------------------------------------

	async def fetch_participants(self) -> ActionResult[list[Participant]]:
		session_id = self.cache.target_id

		def guard() -> None:
			self._require_loaded()

		def on_success(data: Optional[list[Participant]]) -> None:
			self._apply(session_id, ParticipantsLoaded(tuple(data or ())))

		return await self.orchestrator.run(
			"fetch_participants",
			lambda: self.api.list_participants(session_id),
			loading_key=PARTICIPANTS_LOADING_KEY,
			guard=guard,
			on_success=on_success,
		)

	async def join_session(self, character_name: str | None = None) -> ActionResult[Participant]:
		"""Join the focused session, then re-fetch it so seat counts match the server."""
		session_id = self.cache.target_id

		def guard() -> None:
			session = self._require_loaded()
			policies.ensure_can_join_session(session, self.user)

		async def on_success(data: Optional[Participant]) -> None:
			if data is not None:
				self._apply(session_id, ParticipantJoined(data))
			await self.fetch_session(session_id)

		return await self.orchestrator.run(
			"join_session",
			lambda: self.api.join_session(session_id, SessionJoinRequest(character_name=character_name or None)),
			guard=guard,
			on_success=on_success,
			dedupe_key=session_id,
		)

	async def leave_session(self) -> ActionResult[None]:
		session_id = self.cache.target_id

		def guard() -> None:
			session = self._require_loaded()
			policies.ensure_can_leave_session(session, self.user)

		async def on_success(_: None) -> None:
			self._apply(session_id, ParticipantLeft(self.user.id))
			await self.fetch_session(session_id)

		return await self.orchestrator.run(
			"leave_session",
			lambda: self.api.leave_session(session_id),
			guard=guard,
			on_success=on_success,
			dedupe_key=session_id,
		)

	async def update_participant_status(self, participant_id: int, status: Any) -> ActionResult[Participant]:
		session_id = self.cache.target_id
		resolved: dict[str, Any] = {}

		def guard() -> None:
			session = self._require_loaded()
			participant = policies.find_participant(session, participant_id)
			resolved["status"] = policies.ensure_can_set_participant_status(self.effective_role, participant, status)
			resolved["participant"] = participant

		def on_success(data: Optional[Participant]) -> None:
			if data is None:
				data = resolved["participant"].model_copy(update={"status": resolved["status"]})
			self._apply(session_id, ParticipantStatusChanged(data))

		return await self.orchestrator.run(
			"update_participant_status",
			lambda: self.api.update_participant_status(session_id, participant_id, resolved["status"]),
			guard=guard,
			on_success=on_success,
			dedupe_key=(session_id, participant_id),
		)

	async def remove_participant(self, participant_id: int) -> ActionResult[None]:
		session_id = self.cache.target_id

		def guard() -> None:
			session = self._require_loaded()
			participant = policies.find_participant(session, participant_id)
			policies.ensure_can_remove_participant(self.effective_role, participant, self.user)

		return await self.orchestrator.run(
			"remove_participant",
			lambda: self.api.remove_participant(session_id, participant_id),
			guard=guard,
			on_success=lambda _: self._apply(session_id, ParticipantRemoved(participant_id)),
			dedupe_key=(session_id, participant_id),
		)
