"""Lifecycle guards for sessions and participant records.

Session status only moves forward: PLANNED -> ACTIVE -> FINISHED, or
PLANNED -> CANCELLED. Participant status values are independent tags that a
manager may set in any order.
"""

from __future__ import annotations

from typing import Any

from ttrpg_client.campaigns.models import Campaign
from ttrpg_client.campaigns.policies import assert_can_manage, require_user
from ttrpg_client.domain.exceptions import ConflictError, InvalidTransition, NotFoundError, ValidationError
from ttrpg_client.domain.roles import Role, resolve_campaign_role
from ttrpg_client.infra.auth import AuthenticatedUser
from ttrpg_client.sessions.models import Participant, ParticipantRole, ParticipantStatus, Session, SessionStatus

SESSION_STATUS_TRANSITIONS: dict[SessionStatus, frozenset[SessionStatus]] = {
	SessionStatus.PLANNED: frozenset({SessionStatus.ACTIVE, SessionStatus.CANCELLED}),
	SessionStatus.ACTIVE: frozenset({SessionStatus.FINISHED}),
	SessionStatus.FINISHED: frozenset(),
	SessionStatus.CANCELLED: frozenset(),
}


def ensure_session_transition(current: SessionStatus, target: SessionStatus) -> None:
	if current == target:
		raise InvalidTransition("session_status_unchanged")
	if target not in SESSION_STATUS_TRANSITIONS[current]:
		raise InvalidTransition("invalid_session_transition")


def ensure_can_change_session_status(actor_role: Role | None, session: Session, target: SessionStatus) -> None:
	assert_can_manage(actor_role)
	ensure_session_transition(session.status, target)


def ensure_can_update_session(actor_role: Role | None, session: Session, status: SessionStatus | None = None) -> None:
	assert_can_manage(actor_role)
	if status is not None and status != session.status:
		ensure_session_transition(session.status, status)


def ensure_can_delete_session(actor_role: Role | None) -> None:
	assert_can_manage(actor_role)


def ensure_can_create_session(user: AuthenticatedUser | None, campaign: Campaign | None = None) -> None:
	"""One-shots are open to any signed-in user; campaign sessions need OWNER or GM.

	Without a cached parent campaign the role check is left to the server.
	"""
	user = require_user(user)
	if campaign is not None:
		assert_can_manage(resolve_campaign_role(campaign, user))


def has_free_seat(session: Session) -> bool:
	seats = session.seats_left
	return seats is None or seats > 0


def can_join_session(session: Session | None, user: AuthenticatedUser | None) -> bool:
	if session is None or user is None:
		return False
	if session.participant_for(user.id) is not None:
		return False
	if session.status != SessionStatus.PLANNED:
		return False
	return has_free_seat(session)


def ensure_can_join_session(session: Session, user: AuthenticatedUser | None) -> None:
	user = require_user(user)
	if session.participant_for(user.id) is not None:
		raise ConflictError("already_participant")
	if session.status != SessionStatus.PLANNED:
		raise ValidationError("session_not_open")
	if not has_free_seat(session):
		raise ValidationError("session_full")


def ensure_can_leave_session(session: Session, user: AuthenticatedUser | None) -> Participant:
	user = require_user(user)
	participant = session.participant_for(user.id)
	if participant is None:
		raise ValidationError("not_participant")
	if session.status != SessionStatus.PLANNED:
		raise ValidationError("session_locked")
	if participant.role == ParticipantRole.GM and session.creator_id == user.id:
		raise ValidationError("session_creator_cannot_leave")
	return participant


def find_participant(session: Session, participant_id: int) -> Participant | None:
	for participant in session.participants:
		if participant.id == participant_id:
			return participant
	return None


def ensure_can_remove_participant(
	actor_role: Role | None,
	participant: Participant | None,
	user: AuthenticatedUser | None,
) -> None:
	# Forced removal is allowed in any session status.
	user = require_user(user)
	assert_can_manage(actor_role)
	if participant is None:
		raise NotFoundError("participant_not_found")
	if participant.user_id == user.id:
		raise ValidationError("cannot_remove_self")


def coerce_participant_status(status: Any) -> ParticipantStatus:
	try:
		return ParticipantStatus(status)
	except ValueError:
		raise ValidationError("invalid_participant_status") from None


def ensure_can_set_participant_status(
	actor_role: Role | None,
	participant: Participant | None,
	status: Any,
) -> ParticipantStatus:
	assert_can_manage(actor_role)
	if participant is None:
		raise NotFoundError("participant_not_found")
	return coerce_participant_status(status)
