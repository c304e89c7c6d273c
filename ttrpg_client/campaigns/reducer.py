"""Snapshot reducer for the campaign page.

``reduce_campaign(snapshot, event)`` is the only place a campaign snapshot changes.
Merges are idempotent: replaying an event (a double-clicked action whose second
reply also succeeded) converges to the same snapshot, last write wins.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Optional, Union

from ttrpg_client.campaigns.models import Campaign, JoinRequest, JoinRequestStatus, Member


@dataclass(frozen=True, slots=True)
class CampaignSnapshot:
	campaign_id: int
	campaign: Optional[Campaign] = None
	members: tuple[Member, ...] = ()
	join_requests: tuple[JoinRequest, ...] = ()

	@property
	def pending_requests(self) -> tuple[JoinRequest, ...]:
		return tuple(r for r in self.join_requests if r.status == JoinRequestStatus.PENDING)

	def request_by_id(self, request_id: int) -> JoinRequest | None:
		for request in self.join_requests:
			if request.id == request_id:
				return request
		return None


@dataclass(frozen=True, slots=True)
class CampaignLoaded:
	campaign: Campaign


@dataclass(frozen=True, slots=True)
class CampaignUpdated:
	campaign: Campaign


@dataclass(frozen=True, slots=True)
class CampaignDeleted:
	campaign_id: int


@dataclass(frozen=True, slots=True)
class MembersLoaded:
	members: tuple[Member, ...]


@dataclass(frozen=True, slots=True)
class MemberAdded:
	member: Member


@dataclass(frozen=True, slots=True)
class MemberRemoved:
	member_id: int


@dataclass(frozen=True, slots=True)
class MemberRoleChanged:
	member: Member


@dataclass(frozen=True, slots=True)
class InviteCodeRotated:
	invite_code: str


@dataclass(frozen=True, slots=True)
class JoinRequestsLoaded:
	requests: tuple[JoinRequest, ...]


@dataclass(frozen=True, slots=True)
class JoinRequestSubmitted:
	request: JoinRequest


@dataclass(frozen=True, slots=True)
class JoinRequestReviewed:
	request_id: int
	status: JoinRequestStatus
	member: Optional[Member] = field(default=None)


CampaignEvent = Union[
	CampaignLoaded,
	CampaignUpdated,
	CampaignDeleted,
	MembersLoaded,
	MemberAdded,
	MemberRemoved,
	MemberRoleChanged,
	InviteCodeRotated,
	JoinRequestsLoaded,
	JoinRequestSubmitted,
	JoinRequestReviewed,
]


def _merge_member(members: tuple[Member, ...], member: Member) -> tuple[Member, ...]:
	# One row per user; a replayed add replaces instead of duplicating.
	kept = tuple(m for m in members if m.user_id != member.user_id and m.id != member.id)
	return kept + (member,)


def _with_members(snapshot: CampaignSnapshot, members: tuple[Member, ...]) -> CampaignSnapshot:
	campaign = snapshot.campaign
	if campaign is not None:
		campaign = campaign.model_copy(update={"members": list(members)})
	return replace(snapshot, campaign=campaign, members=members)


def _merge_request(requests: tuple[JoinRequest, ...], request: JoinRequest) -> tuple[JoinRequest, ...]:
	kept = tuple(r for r in requests if r.id != request.id)
	return kept + (request,)


def reduce_campaign(snapshot: CampaignSnapshot | None, event: CampaignEvent, *, campaign_id: int) -> CampaignSnapshot:
	base = snapshot or CampaignSnapshot(campaign_id=campaign_id)

	if isinstance(event, CampaignLoaded):
		incoming = event.campaign
		return replace(
			base,
			campaign=incoming,
			members=tuple(incoming.members),
			join_requests=tuple(incoming.join_requests),
		)

	if isinstance(event, CampaignUpdated):
		incoming = event.campaign
		if base.campaign is not None and not incoming.members:
			# Update replies omit relations; keep the cached ones.
			incoming = incoming.model_copy(
				update={
					"members": list(base.members),
					"sessions": base.campaign.sessions,
					"join_requests": base.campaign.join_requests,
				}
			)
		return replace(base, campaign=incoming, members=tuple(incoming.members))

	if isinstance(event, CampaignDeleted):
		return CampaignSnapshot(campaign_id=event.campaign_id)

	if isinstance(event, MembersLoaded):
		return _with_members(base, tuple(event.members))

	if isinstance(event, (MemberAdded, MemberRoleChanged)):
		return _with_members(base, _merge_member(base.members, event.member))

	if isinstance(event, MemberRemoved):
		return _with_members(base, tuple(m for m in base.members if m.id != event.member_id))

	if isinstance(event, InviteCodeRotated):
		if base.campaign is None:
			return base
		return replace(base, campaign=base.campaign.model_copy(update={"invite_code": event.invite_code}))

	if isinstance(event, JoinRequestsLoaded):
		return replace(base, join_requests=tuple(event.requests))

	if isinstance(event, JoinRequestSubmitted):
		return replace(base, join_requests=_merge_request(base.join_requests, event.request))

	if isinstance(event, JoinRequestReviewed):
		requests = tuple(
			r.model_copy(update={"status": event.status}) if r.id == event.request_id else r
			for r in base.join_requests
		)
		updated = replace(base, join_requests=requests)
		if event.member is not None:
			updated = _with_members(updated, _merge_member(updated.members, event.member))
		return updated

	raise TypeError(f"unsupported campaign event: {type(event).__name__}")
