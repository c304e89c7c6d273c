"""Effective-role resolution for campaigns and sessions.

A user's role against an entity is the first match of an ordered rule table.
Each rule inspects one relation (ownership, membership, participation, authorship)
and either returns a role or passes. Order is fixed:

Campaign
	1. campaign_owner     campaign.owner_id == user.id         -> OWNER
	2. campaign_member    Member row for user                  -> member.role

Session
	1. campaign_owner     parent campaign.owner_id == user.id  -> OWNER
	2. campaign_gm        parent campaign Member row, role GM  -> GM
	3. participant        Participant row for user             -> participant.role or PLAYER
	4. one_shot_creator   no campaign and creator_id == user.id -> GM

Rules are pure; resolution never touches the network or the cache.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Callable, Generic, Optional, Sequence, TypeVar

if TYPE_CHECKING:
	from ttrpg_client.campaigns.models import Campaign
	from ttrpg_client.infra.auth import AuthenticatedUser
	from ttrpg_client.sessions.models import Session


class Role(str, Enum):
	OWNER = "OWNER"
	GM = "GM"
	PLAYER = "PLAYER"


MANAGER_ROLES = frozenset({Role.OWNER, Role.GM})

E = TypeVar("E")


@dataclass(frozen=True, slots=True)
class RoleRule(Generic[E]):
	name: str
	match: Callable[[E, "AuthenticatedUser"], Optional[Role]]


def can_manage(role: Role | None) -> bool:
	return role in MANAGER_ROLES


def resolve_role(rules: Sequence[RoleRule[E]], entity: E | None, user: AuthenticatedUser | None) -> Role | None:
	if entity is None or user is None:
		return None
	for rule in rules:
		role = rule.match(entity, user)
		if role is not None:
			return role
	return None


def _campaign_owner(campaign: Campaign, user: AuthenticatedUser) -> Role | None:
	return Role.OWNER if campaign.owner_id == user.id else None


def _campaign_member(campaign: Campaign, user: AuthenticatedUser) -> Role | None:
	member = campaign.member_for(user.id)
	return member.role if member else None


def _session_campaign_owner(session: Session, user: AuthenticatedUser) -> Role | None:
	if session.campaign is None:
		return None
	return Role.OWNER if session.campaign.owner_id == user.id else None


def _session_campaign_gm(session: Session, user: AuthenticatedUser) -> Role | None:
	if session.campaign is None:
		return None
	member = session.campaign.member_for(user.id)
	if member is not None and member.role == Role.GM:
		return Role.GM
	return None


def _session_participant(session: Session, user: AuthenticatedUser) -> Role | None:
	participant = session.participant_for(user.id)
	if participant is None:
		return None
	if participant.role is None:
		return Role.PLAYER
	return Role(participant.role.value)


def _one_shot_creator(session: Session, user: AuthenticatedUser) -> Role | None:
	if session.campaign_id is None and session.creator_id == user.id:
		return Role.GM
	return None


CAMPAIGN_ROLE_RULES: tuple[RoleRule[Campaign], ...] = (
	RoleRule("campaign_owner", _campaign_owner),
	RoleRule("campaign_member", _campaign_member),
)

SESSION_ROLE_RULES: tuple[RoleRule[Session], ...] = (
	RoleRule("campaign_owner", _session_campaign_owner),
	RoleRule("campaign_gm", _session_campaign_gm),
	RoleRule("participant", _session_participant),
	RoleRule("one_shot_creator", _one_shot_creator),
)


def resolve_campaign_role(campaign: Campaign | None, user: AuthenticatedUser | None) -> Role | None:
	return resolve_role(CAMPAIGN_ROLE_RULES, campaign, user)


def resolve_session_role(session: Session | None, user: AuthenticatedUser | None) -> Role | None:
	return resolve_role(SESSION_ROLE_RULES, session, user)
