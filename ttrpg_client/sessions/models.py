"""Domain models for game sessions and their participants."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import Field, field_serializer, field_validator

from ttrpg_client.campaigns.models import Member, UserSummary
from ttrpg_client.infra.http import ApiModel


class SessionStatus(str, Enum):
	PLANNED = "PLANNED"
	ACTIVE = "ACTIVE"
	FINISHED = "FINISHED"
	CANCELLED = "CANCELLED"

	@classmethod
	def _missing_(cls, value):
		# The server spells it with one L.
		if isinstance(value, str) and value.upper() == "CANCELED":
			return cls.CANCELLED
		return None

	@property
	def wire_value(self) -> str:
		return "CANCELED" if self is SessionStatus.CANCELLED else self.value


class ParticipantRole(str, Enum):
	GM = "GM"
	PLAYER = "PLAYER"


class ParticipantStatus(str, Enum):
	PENDING = "PENDING"
	CONFIRMED = "CONFIRMED"
	DECLINED = "DECLINED"
	ATTENDED = "ATTENDED"
	NO_SHOW = "NO_SHOW"


class Participant(ApiModel):
	id: int
	session_id: Optional[int] = None
	user_id: int
	role: Optional[ParticipantRole] = ParticipantRole.PLAYER
	status: ParticipantStatus = ParticipantStatus.PENDING
	character_name: Optional[str] = None
	user: Optional[UserSummary] = None


class SessionCampaign(ApiModel):
	"""Parent campaign as embedded in a session reply."""

	id: int
	title: Optional[str] = None
	owner_id: Optional[int] = None
	members: list[Member] = Field(default_factory=list)

	def member_for(self, user_id: int) -> Member | None:
		for member in self.members:
			if member.user_id == user_id:
				return member
		return None


class Session(ApiModel):
	"""Represents a scheduled game session; ``campaign_id`` is None for one-shots."""

	id: int
	campaign_id: Optional[int] = None
	creator_id: int
	title: str
	description: Optional[str] = None
	system: Optional[str] = None
	status: SessionStatus = SessionStatus.PLANNED
	date: Optional[datetime] = None
	duration: Optional[int] = None
	max_players: Optional[int] = Field(default=None, ge=0)
	participants: list[Participant] = Field(default_factory=list)
	campaign: Optional[SessionCampaign] = None
	creator: Optional[UserSummary] = None
	created_at: Optional[datetime] = None
	updated_at: Optional[datetime] = None

	@field_validator("status", mode="before")
	@classmethod
	def _normalize_status(cls, value):
		if isinstance(value, str):
			return SessionStatus(value.upper())
		return value

	def participant_for(self, user_id: int) -> Participant | None:
		for participant in self.participants:
			if participant.user_id == user_id:
				return participant
		return None

	@property
	def player_count(self) -> int:
		# A roster row without a role counts as a player.
		return sum(1 for p in self.participants if p.role in (None, ParticipantRole.PLAYER))

	@property
	def seats_left(self) -> int | None:
		"""Free PLAYER seats, or None when the session has no player cap."""
		if self.max_players is None:
			return None
		return max(self.max_players - self.player_count, 0)


class SessionCreateRequest(ApiModel):
	title: str = Field(..., min_length=1, max_length=120)
	description: Optional[str] = Field(default=None, max_length=4000)
	system: Optional[str] = None
	date: datetime
	duration: Optional[int] = Field(default=None, ge=1)
	max_players: Optional[int] = Field(default=None, ge=1)
	campaign_id: Optional[int] = None


class SessionUpdateRequest(ApiModel):
	title: Optional[str] = Field(default=None, min_length=1, max_length=120)
	description: Optional[str] = Field(default=None, max_length=4000)
	system: Optional[str] = None
	date: Optional[datetime] = None
	duration: Optional[int] = Field(default=None, ge=1)
	max_players: Optional[int] = Field(default=None, ge=1)
	status: Optional[SessionStatus] = None

	@field_serializer("status")
	def _serialize_status(self, status: Optional[SessionStatus]) -> Optional[str]:
		return status.wire_value if status is not None else None


class SessionJoinRequest(ApiModel):
	character_name: Optional[str] = Field(default=None, max_length=120)


class SessionListQuery(ApiModel):
	status: Optional[SessionStatus] = None
	role: Optional[str] = None
	limit: Optional[int] = Field(default=None, ge=1)
	offset: Optional[int] = Field(default=None, ge=0)

	@field_serializer("status")
	def _serialize_status(self, status: Optional[SessionStatus]) -> Optional[str]:
		return status.wire_value if status is not None else None
