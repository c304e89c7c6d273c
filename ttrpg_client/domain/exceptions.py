"""Custom exceptions for the role and membership engine."""

from __future__ import annotations

from enum import Enum

import httpx


class ErrorKind(str, Enum):
	VALIDATION = "validation"
	AUTHORIZATION = "authorization"
	TRANSPORT = "transport"
	STALE = "stale"


# Inline texts for precondition failures raised before any network call.
USER_MESSAGES = {
	"already_member": "You are already a member of this campaign",
	"join_request_pending": "You have already submitted a request to join this campaign",
	"join_request_already_processed": "This join request has already been processed",
	"join_request_not_found": "Join request not found",
	"invalid_member_role": "Invalid role",
	"owner_role_immutable": "The owner's role cannot be changed",
	"owner_cannot_be_removed": "The owner cannot be removed from the campaign",
	"member_not_found": "Member not found",
	"invite_code_required": "Invite code is required",
	"already_participant": "You have already joined this session",
	"not_participant": "You are not a participant of this session",
	"session_not_open": "This session is no longer open for joining",
	"session_full": "No seats left in this session",
	"session_locked": "You can only leave a session that has not started yet",
	"session_creator_cannot_leave": "The game master cannot leave their own session",
	"participant_not_found": "Participant not found",
	"cannot_remove_self": "Use leave to remove yourself from the session",
	"invalid_participant_status": "Invalid participant status",
	"invalid_session_transition": "This status change is not allowed",
	"session_status_unchanged": "The session already has this status",
	"campaign_not_loaded": "The campaign is not loaded yet",
	"session_not_loaded": "The session is not loaded yet",
	"action_in_flight": "This action is already in progress",
	"not_authenticated": "You need to sign in first",
}

GENERIC_DENIAL = "You do not have permission to perform this action"


class EngineError(Exception):
	"""Base class for engine errors; every subclass is recoverable."""

	status_code: int = httpx.codes.BAD_REQUEST
	detail: str = "engine_error"
	kind: ErrorKind = ErrorKind.VALIDATION

	def __init__(self, detail: str | None = None) -> None:
		super().__init__(detail or self.detail)
		if detail:
			self.detail = detail

	@property
	def user_message(self) -> str:
		return USER_MESSAGES.get(self.detail, self.detail)


class ValidationError(EngineError):
	"""Raised when a lifecycle precondition does not hold."""

	status_code = httpx.codes.UNPROCESSABLE_ENTITY
	detail = "validation_error"


class InvalidTransition(ValidationError):
	"""Raised when a state machine is asked for a transition it does not define."""

	detail = "invalid_transition"


class ConflictError(EngineError):
	"""Raised for duplicate membership rows or pending requests."""

	status_code = httpx.codes.CONFLICT
	detail = "conflict"


class NotFoundError(EngineError):
	"""Thrown when a row referenced by an action is missing from the snapshot."""

	status_code = httpx.codes.NOT_FOUND
	detail = "not_found"


class ForbiddenError(EngineError):
	"""Raised when the effective role is insufficient for an action."""

	status_code = httpx.codes.FORBIDDEN
	detail = "forbidden"
	kind = ErrorKind.AUTHORIZATION

	@property
	def user_message(self) -> str:
		return GENERIC_DENIAL


class TransportError(EngineError):
	"""Raised for server or network failures; safe to retry manually."""

	status_code = httpx.codes.BAD_GATEWAY
	detail = "transport_error"
	kind = ErrorKind.TRANSPORT


class StaleTargetError(EngineError):
	"""Raised when a response targets an entity that is no longer focused."""

	status_code = httpx.codes.GONE
	detail = "stale_target"
	kind = ErrorKind.STALE
