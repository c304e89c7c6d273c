"""Presentation-facing campaign store.

Holds the focused campaign snapshot plus the user's campaign list and exposes
derived state (role, access mode, eligibility) together with one handler per
lifecycle action. Every handler goes through :class:`ActionOrchestrator` and
returns its :class:`ActionResult`.
"""

from __future__ import annotations

import logging
from typing import Optional

from ttrpg_client.campaigns import policies
from ttrpg_client.campaigns.api import CampaignApi, JoinOutcome
from ttrpg_client.campaigns.models import (
	Campaign,
	CampaignCreateRequest,
	CampaignRoleFilter,
	CampaignUpdateRequest,
	InviteCode,
	JoinRequest,
	JoinRequestStatus,
	Member,
)
from ttrpg_client.campaigns.reducer import (
	CampaignDeleted,
	CampaignEvent,
	CampaignLoaded,
	CampaignSnapshot,
	CampaignUpdated,
	InviteCodeRotated,
	JoinRequestReviewed,
	JoinRequestsLoaded,
	JoinRequestSubmitted,
	MemberAdded,
	MemberRemoved,
	MemberRoleChanged,
	MembersLoaded,
	reduce_campaign,
)
from ttrpg_client.domain.access import AccessMode, is_campaign_member, resolve_access_mode
from ttrpg_client.domain.cache import EntitySnapshotCache
from ttrpg_client.domain.exceptions import NotFoundError, ValidationError
from ttrpg_client.domain.orchestrator import ActionOrchestrator, ActionResult, StoreState
from ttrpg_client.domain.roles import Role, can_manage, resolve_campaign_role
from ttrpg_client.infra.auth import AuthenticatedUser
from ttrpg_client.settings import Settings

_LOG = logging.getLogger(__name__)

LOADING_KEY = "is_loading"
MEMBERS_LOADING_KEY = "is_loading_members"
REQUESTS_LOADING_KEY = "is_loading_requests"


class CampaignStore:
	def __init__(
		self,
		api: CampaignApi,
		user: AuthenticatedUser | None = None,
		*,
		orchestrator: ActionOrchestrator | None = None,
		config: Settings | None = None,
	) -> None:
		self.api = api
		self.user = user
		self.state = StoreState()
		self.cache: EntitySnapshotCache[CampaignSnapshot] = EntitySnapshotCache("campaign")
		self.orchestrator = orchestrator or ActionOrchestrator(
			self.state,
			config=config,
			entity="campaign",
			focused_id=self._focused_id,
			user_id=lambda: self.user.id if self.user else None,
		)
		# Id whose last load finished, successfully or not.
		self._settled_id: Optional[int] = None
		self.campaigns: list[Campaign] = []

	# ---- derived state -------------------------------------------------

	@property
	def snapshot(self) -> Optional[CampaignSnapshot]:
		return self.cache.get()

	@property
	def campaign(self) -> Optional[Campaign]:
		snapshot = self.snapshot
		return snapshot.campaign if snapshot else None

	@property
	def members(self) -> tuple[Member, ...]:
		snapshot = self.snapshot
		return snapshot.members if snapshot else ()

	@property
	def join_requests(self) -> tuple[JoinRequest, ...]:
		snapshot = self.snapshot
		return snapshot.join_requests if snapshot else ()

	@property
	def pending_requests(self) -> tuple[JoinRequest, ...]:
		snapshot = self.snapshot
		return snapshot.pending_requests if snapshot else ()

	@property
	def effective_role(self) -> Role | None:
		return resolve_campaign_role(self.campaign, self.user)

	@property
	def is_member(self) -> bool:
		return is_campaign_member(self.campaign, self.user)

	@property
	def is_owner(self) -> bool:
		return self.effective_role == Role.OWNER

	@property
	def can_manage(self) -> bool:
		return can_manage(self.effective_role)

	@property
	def access_mode(self) -> AccessMode:
		pending = self.campaign is None and (self.cache.target_id is None or self._settled_id != self.cache.target_id)
		return resolve_access_mode(self.is_member, pending)

	@property
	def can_join(self) -> bool:
		if not policies.can_submit_join_request(self.campaign, self.user):
			return False
		return policies.find_pending_request(self.join_requests, self.user.id) is None

	@property
	def error(self) -> Optional[str]:
		return self.state.error

	@property
	def is_loading(self) -> bool:
		return self.state.is_loading(LOADING_KEY)

	# ---- page lifecycle ------------------------------------------------

	def set_user(self, user: AuthenticatedUser | None) -> None:
		self.user = user

	async def open(self, campaign_id: int) -> ActionResult[Campaign]:
		"""Focus ``campaign_id`` and load it; members follow once membership is known."""
		self.cache.focus(campaign_id)
		self._settled_id = None
		result = await self.fetch_campaign(campaign_id)
		if result.success and not result.stale and self.is_member:
			await self.fetch_members(campaign_id)
		return result

	def close(self) -> None:
		_LOG.debug("campaign page closed", extra={"campaign_id": self.cache.target_id})
		self.cache.teardown()
		self._settled_id = None
		self.state.clear_error()

	def clear_error(self) -> None:
		self.state.clear_error()

	def reset(self) -> None:
		self.cache.teardown()
		self._settled_id = None
		self.state.reset()
		self.campaigns = []

	# ---- internals -----------------------------------------------------

	def _apply(self, campaign_id: int, event: CampaignEvent) -> CampaignSnapshot:
		return self.cache.update(campaign_id, lambda snap: reduce_campaign(snap, event, campaign_id=campaign_id))

	def _focused_id(self) -> int | None:
		return self.cache.target_id

	def _require_loaded(self) -> Campaign:
		campaign = self.campaign
		if campaign is None:
			raise NotFoundError("campaign_not_loaded")
		return campaign

	def _known_campaign(self, campaign_id: int) -> Campaign | None:
		if self.cache.is_current(campaign_id) and self.campaign is not None:
			return self.campaign
		for campaign in self.campaigns:
			if campaign.id == campaign_id:
				return campaign
		return None

	def _replace_listed(self, campaign: Campaign) -> None:
		self.campaigns = [campaign if c.id == campaign.id else c for c in self.campaigns]

	# ---- campaign list -------------------------------------------------

	async def fetch_my_campaigns(self, role: CampaignRoleFilter = CampaignRoleFilter.ALL) -> ActionResult[list[Campaign]]:
		def on_success(data: Optional[list[Campaign]]) -> None:
			self.campaigns = list(data or [])

		return await self.orchestrator.run(
			"fetch_my_campaigns",
			lambda: self.api.list_my_campaigns(role),
			on_success=on_success,
		)

	async def create_campaign(self, payload: CampaignCreateRequest) -> ActionResult[Campaign]:
		def on_success(data: Optional[Campaign]) -> None:
			if data is not None:
				self.campaigns = [*self.campaigns, data]

		return await self.orchestrator.run(
			"create_campaign",
			lambda: self.api.create_campaign(payload),
			guard=lambda: policies.require_user(self.user),
			on_success=on_success,
		)

	# ---- focused campaign ----------------------------------------------

	async def fetch_campaign(self, campaign_id: int) -> ActionResult[Campaign]:
		def on_success(data: Optional[Campaign]) -> None:
			if data is not None:
				self._apply(campaign_id, CampaignLoaded(data))

		result = await self.orchestrator.run(
			"fetch_campaign",
			lambda: self.api.get_campaign(campaign_id),
			on_success=on_success,
		)
		if not result.stale and self.cache.is_current(campaign_id):
			self._settled_id = campaign_id
		return result

	async def update_campaign(self, campaign_id: int, payload: CampaignUpdateRequest) -> ActionResult[Campaign]:
		def guard() -> None:
			known = self._known_campaign(campaign_id)
			if known is not None:
				policies.assert_is_owner(resolve_campaign_role(known, self.user))

		def on_success(data: Optional[Campaign]) -> None:
			if data is None:
				return
			self._replace_listed(data)
			if self.cache.is_current(campaign_id):
				self._apply(campaign_id, CampaignUpdated(data))

		return await self.orchestrator.run(
			"update_campaign",
			lambda: self.api.update_campaign(campaign_id, payload),
			guard=guard,
			on_success=on_success,
			dedupe_key=campaign_id,
		)

	async def delete_campaign(self, campaign_id: int) -> ActionResult[None]:
		def guard() -> None:
			known = self._known_campaign(campaign_id)
			if known is not None:
				policies.assert_is_owner(resolve_campaign_role(known, self.user))

		def on_success(_: None) -> None:
			self.campaigns = [c for c in self.campaigns if c.id != campaign_id]
			if self.cache.is_current(campaign_id):
				self._apply(campaign_id, CampaignDeleted(campaign_id))

		return await self.orchestrator.run(
			"delete_campaign",
			lambda: self.api.delete_campaign(campaign_id),
			guard=guard,
			on_success=on_success,
			dedupe_key=campaign_id,
		)

	# ---- members -------------------------------------------------------

	async def fetch_members(self, campaign_id: int | None = None) -> ActionResult[list[Member]]:
		target = campaign_id if campaign_id is not None else self._focused_id()

		def guard() -> None:
			if target is None:
				raise NotFoundError("campaign_not_loaded")

		def on_success(data: Optional[list[Member]]) -> None:
			self._apply(target, MembersLoaded(tuple(data or ())))

		return await self.orchestrator.run(
			"fetch_members",
			lambda: self.api.list_members(target),
			loading_key=MEMBERS_LOADING_KEY,
			guard=guard,
			on_success=on_success,
		)

	async def add_member(self, user_id: int, role: Role = Role.PLAYER) -> ActionResult[Member]:
		campaign_id = self._focused_id()

		def guard() -> None:
			campaign = self._require_loaded()
			policies.ensure_can_add_member(self.effective_role, campaign, user_id, role)

		def on_success(data: Optional[Member]) -> None:
			if data is not None:
				self._apply(campaign_id, MemberAdded(data))

		return await self.orchestrator.run(
			"add_member",
			lambda: self.api.add_member(campaign_id, user_id, role),
			guard=guard,
			on_success=on_success,
			dedupe_key=(campaign_id, user_id),
		)

	async def remove_member(self, member_id: int) -> ActionResult[None]:
		campaign_id = self._focused_id()

		def guard() -> None:
			campaign = self._require_loaded()
			member = policies.find_member(self.members, member_id)
			policies.ensure_can_remove_member(self.effective_role, campaign, member, self.user)

		return await self.orchestrator.run(
			"remove_member",
			lambda: self.api.remove_member(campaign_id, member_id),
			guard=guard,
			on_success=lambda _: self._apply(campaign_id, MemberRemoved(member_id)),
			dedupe_key=(campaign_id, member_id),
		)

	async def leave_campaign(self) -> ActionResult[None]:
		"""Remove the caller's own Member row; the owner can never leave."""
		campaign_id = self._focused_id()
		campaign = self.campaign
		member = campaign.member_for(self.user.id) if campaign is not None and self.user is not None else None

		def guard() -> None:
			loaded = self._require_loaded()
			user = policies.require_user(self.user)
			if loaded.owner_id == user.id:
				raise ValidationError("owner_cannot_be_removed")
			policies.ensure_can_remove_member(self.effective_role, loaded, member, user)

		def on_success(_: None) -> None:
			self.campaigns = [c for c in self.campaigns if c.id != campaign_id]
			self._apply(campaign_id, MemberRemoved(member.id))

		return await self.orchestrator.run(
			"leave_campaign",
			lambda: self.api.remove_member(campaign_id, member.id),
			guard=guard,
			on_success=on_success,
			dedupe_key=campaign_id,
		)

	async def change_member_role(self, member_id: int, role: Role) -> ActionResult[Member]:
		campaign_id = self._focused_id()

		def guard() -> None:
			campaign = self._require_loaded()
			member = policies.find_member(self.members, member_id)
			policies.ensure_can_change_member_role(self.effective_role, campaign, member, role)

		def on_success(data: Optional[Member]) -> None:
			if data is not None:
				self._apply(campaign_id, MemberRoleChanged(data))

		return await self.orchestrator.run(
			"change_member_role",
			lambda: self.api.change_member_role(campaign_id, member_id, role),
			guard=guard,
			on_success=on_success,
			dedupe_key=(campaign_id, member_id),
		)

	# ---- invite code ---------------------------------------------------

	async def regenerate_invite_code(self) -> ActionResult[InviteCode]:
		campaign_id = self._focused_id()

		def guard() -> None:
			self._require_loaded()
			policies.ensure_can_rotate_invite_code(self.effective_role)

		def on_success(data: Optional[InviteCode]) -> None:
			if data is None:
				return
			self.campaigns = [
				c.model_copy(update={"invite_code": data.invite_code}) if c.id == campaign_id else c
				for c in self.campaigns
			]
			self._apply(campaign_id, InviteCodeRotated(data.invite_code))

		return await self.orchestrator.run(
			"regenerate_invite_code",
			lambda: self.api.regenerate_invite_code(campaign_id),
			guard=guard,
			on_success=on_success,
			dedupe_key=campaign_id,
		)

	async def join_by_invite_code(self, invite_code: str | None) -> ActionResult[Member]:
		def guard() -> None:
			policies.require_user(self.user)
			policies.ensure_invite_code(invite_code)

		def on_success(data: Optional[Member]) -> None:
			# Joining from outside the campaign page is legitimate; only the focused snapshot is patched.
			if data is not None and data.campaign_id is not None and self.cache.is_current(data.campaign_id):
				self._apply(data.campaign_id, MemberAdded(data))

		code = (invite_code or "").strip()
		return await self.orchestrator.run(
			"join_by_invite_code",
			lambda: self.api.join_by_invite_code(code),
			guard=guard,
			on_success=on_success,
			dedupe_key=code or None,
		)

	# ---- join requests -------------------------------------------------

	async def submit_join_request(self, message: str = "") -> ActionResult[JoinOutcome]:
		"""Ask to join the focused campaign.

		The server decides from the campaign's visibility whether the reply is an
		immediate Member row or a PENDING request; the store applies either.
		"""
		campaign_id = self._focused_id()

		def guard() -> None:
			campaign = self._require_loaded()
			policies.ensure_can_submit_join_request(campaign, self.join_requests, self.user)

		def on_success(data: Optional[JoinOutcome]) -> None:
			if isinstance(data, Member):
				self._apply(campaign_id, MemberAdded(data))
			elif isinstance(data, JoinRequest):
				self._apply(campaign_id, JoinRequestSubmitted(data))

		return await self.orchestrator.run(
			"submit_join_request",
			lambda: self.api.submit_join_request(campaign_id, message),
			guard=guard,
			on_success=on_success,
			dedupe_key=campaign_id,
		)

	async def fetch_join_requests(self) -> ActionResult[list[JoinRequest]]:
		campaign_id = self._focused_id()

		def guard() -> None:
			self._require_loaded()
			policies.assert_can_manage(self.effective_role)

		def on_success(data: Optional[list[JoinRequest]]) -> None:
			self._apply(campaign_id, JoinRequestsLoaded(tuple(data or ())))

		return await self.orchestrator.run(
			"fetch_join_requests",
			lambda: self.api.list_join_requests(campaign_id),
			loading_key=REQUESTS_LOADING_KEY,
			guard=guard,
			on_success=on_success,
		)

	async def approve_join_request(self, request_id: int, role: Role = Role.PLAYER) -> ActionResult[Member]:
		campaign_id = self._focused_id()

		def guard() -> None:
			campaign = self._require_loaded()
			request = self.snapshot.request_by_id(request_id)
			policies.ensure_can_review_join_request(
				self.effective_role,
				campaign,
				request,
				JoinRequestStatus.APPROVED,
				approve_as=role,
			)

		async def on_success(data: Optional[Member]) -> None:
			self._apply(campaign_id, JoinRequestReviewed(request_id, JoinRequestStatus.APPROVED, data))
			if data is None:
				await self.fetch_members(campaign_id)

		return await self.orchestrator.run(
			"approve_join_request",
			lambda: self.api.approve_join_request(request_id, role),
			guard=guard,
			on_success=on_success,
			dedupe_key=request_id,
		)

	async def reject_join_request(self, request_id: int) -> ActionResult[JoinRequest]:
		campaign_id = self._focused_id()

		def guard() -> None:
			campaign = self._require_loaded()
			request = self.snapshot.request_by_id(request_id)
			policies.ensure_can_review_join_request(self.effective_role, campaign, request, JoinRequestStatus.REJECTED)

		return await self.orchestrator.run(
			"reject_join_request",
			lambda: self.api.reject_join_request(request_id),
			guard=guard,
			on_success=lambda _: self._apply(
				campaign_id, JoinRequestReviewed(request_id, JoinRequestStatus.REJECTED)
			),
			dedupe_key=request_id,
		)
