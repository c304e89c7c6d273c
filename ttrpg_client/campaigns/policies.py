"""Authorization and lifecycle policies for campaign operations.

Every check here runs locally against the cached snapshot before the remote call
is attempted. A failing check raises and leaves the snapshot untouched.
"""

from __future__ import annotations

from typing import Iterable

from ttrpg_client.campaigns.models import Campaign, JoinRequest, JoinRequestStatus, Member
from ttrpg_client.domain.access import is_campaign_member
from ttrpg_client.domain.exceptions import ConflictError, ForbiddenError, InvalidTransition, NotFoundError, ValidationError
from ttrpg_client.domain.roles import Role, can_manage
from ttrpg_client.infra.auth import AuthenticatedUser

JOIN_REQUEST_TRANSITIONS: dict[JoinRequestStatus, frozenset[JoinRequestStatus]] = {
	JoinRequestStatus.PENDING: frozenset({JoinRequestStatus.APPROVED, JoinRequestStatus.REJECTED}),
	JoinRequestStatus.APPROVED: frozenset(),
	JoinRequestStatus.REJECTED: frozenset(),
}

ASSIGNABLE_ROLES = frozenset({Role.GM, Role.PLAYER})


def require_user(user: AuthenticatedUser | None) -> AuthenticatedUser:
	if user is None:
		raise ForbiddenError("not_authenticated")
	return user


def assert_can_manage(role: Role | None) -> None:
	if not can_manage(role):
		raise ForbiddenError("manager_role_required")


def assert_is_owner(role: Role | None) -> None:
	if role != Role.OWNER:
		raise ForbiddenError("owner_role_required")


def ensure_role_assignable(role: Role) -> None:
	if role not in ASSIGNABLE_ROLES:
		raise ValidationError("invalid_member_role")


def ensure_join_request_transition(current: JoinRequestStatus, target: JoinRequestStatus) -> None:
	if target not in JOIN_REQUEST_TRANSITIONS[current]:
		raise InvalidTransition("join_request_already_processed")


def find_pending_request(requests: Iterable[JoinRequest], user_id: int) -> JoinRequest | None:
	for request in requests:
		if request.user_id == user_id and request.status == JoinRequestStatus.PENDING:
			return request
	return None


def find_member(members: Iterable[Member], member_id: int) -> Member | None:
	for member in members:
		if member.id == member_id:
			return member
	return None


def can_submit_join_request(campaign: Campaign | None, user: AuthenticatedUser | None) -> bool:
	"""Eligibility for the preview page's request button.

	Visibility is server policy; any signed-in non-member is offered the action.
	"""
	if campaign is None or user is None:
		return False
	return not is_campaign_member(campaign, user)


def ensure_can_submit_join_request(
	campaign: Campaign | None,
	requests: Iterable[JoinRequest],
	user: AuthenticatedUser | None,
) -> None:
	user = require_user(user)
	if campaign is not None and is_campaign_member(campaign, user):
		raise ConflictError("already_member")
	if find_pending_request(requests, user.id) is not None:
		raise ConflictError("join_request_pending")


def ensure_can_review_join_request(
	actor_role: Role | None,
	campaign: Campaign | None,
	request: JoinRequest | None,
	target: JoinRequestStatus,
	*,
	approve_as: Role | None = None,
) -> None:
	"""Guard for approve/reject. Unknown requests are left to the server."""
	assert_can_manage(actor_role)
	if approve_as is not None:
		ensure_role_assignable(approve_as)
	if request is None:
		return
	ensure_join_request_transition(request.status, target)
	if target == JoinRequestStatus.APPROVED and campaign is not None and campaign.member_for(request.user_id):
		raise ConflictError("already_member")


def ensure_can_rotate_invite_code(actor_role: Role | None) -> None:
	assert_can_manage(actor_role)


def ensure_invite_code(code: str | None) -> str:
	cleaned = (code or "").strip()
	if not cleaned:
		raise ValidationError("invite_code_required")
	return cleaned


def ensure_can_add_member(actor_role: Role | None, campaign: Campaign | None, user_id: int, role: Role) -> None:
	assert_can_manage(actor_role)
	ensure_role_assignable(role)
	if campaign is not None and (campaign.owner_id == user_id or campaign.member_for(user_id)):
		raise ConflictError("already_member")


def ensure_can_remove_member(
	actor_role: Role | None,
	campaign: Campaign | None,
	member: Member | None,
	user: AuthenticatedUser | None,
) -> None:
	user = require_user(user)
	if member is None:
		raise NotFoundError("member_not_found")
	is_self = member.user_id == user.id
	if member.role == Role.OWNER or (campaign is not None and campaign.owner_id == member.user_id):
		raise ValidationError("owner_cannot_be_removed")
	if not is_self:
		assert_can_manage(actor_role)


def ensure_can_change_member_role(
	actor_role: Role | None,
	campaign: Campaign | None,
	member: Member | None,
	role: Role,
) -> None:
	assert_is_owner(actor_role)
	ensure_role_assignable(role)
	if member is None:
		raise NotFoundError("member_not_found")
	if member.role == Role.OWNER or (campaign is not None and campaign.owner_id == member.user_id):
		raise ValidationError("owner_role_immutable")
