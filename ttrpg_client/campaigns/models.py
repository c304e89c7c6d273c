"""Domain models for campaigns, members and join requests."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import Field

from ttrpg_client.domain.roles import Role
from ttrpg_client.infra.http import ApiModel


class Visibility(str, Enum):
	PUBLIC = "PUBLIC"
	PRIVATE = "PRIVATE"
	LINK_ONLY = "LINK_ONLY"


class JoinRequestStatus(str, Enum):
	PENDING = "PENDING"
	APPROVED = "APPROVED"
	REJECTED = "REJECTED"


class CampaignRoleFilter(str, Enum):
	ALL = "all"
	OWNER = "owner"
	GM = "gm"
	PLAYER = "player"


class UserSummary(ApiModel):
	id: int
	username: Optional[str] = None
	display_name: Optional[str] = None
	avatar_url: Optional[str] = None


class Member(ApiModel):
	"""Represents a campaign membership row."""

	id: int
	campaign_id: Optional[int] = None
	user_id: int
	role: Role = Role.PLAYER
	joined_at: Optional[datetime] = None
	user: Optional[UserSummary] = None


class JoinRequest(ApiModel):
	"""Represents a request by a non-member to join a campaign."""

	id: int
	campaign_id: int
	user_id: int
	message: Optional[str] = None
	status: JoinRequestStatus = JoinRequestStatus.PENDING
	created_at: Optional[datetime] = None
	user: Optional[UserSummary] = None


class CampaignSessionSummary(ApiModel):
	id: int
	title: str
	date: Optional[datetime] = None
	status: Optional[str] = None
	max_players: Optional[int] = None


class Campaign(ApiModel):
	"""Represents a campaign as cached from the API server."""

	id: int
	title: str
	description: Optional[str] = None
	system: Optional[str] = None
	image_url: Optional[str] = None
	visibility: Visibility = Visibility.PRIVATE
	owner_id: int
	invite_code: Optional[str] = None
	members: list[Member] = Field(default_factory=list)
	sessions: list[CampaignSessionSummary] = Field(default_factory=list)
	join_requests: list[JoinRequest] = Field(default_factory=list)
	created_at: Optional[datetime] = None
	updated_at: Optional[datetime] = None

	def member_for(self, user_id: int) -> Member | None:
		for member in self.members:
			if member.user_id == user_id:
				return member
		return None


class CampaignCreateRequest(ApiModel):
	title: str = Field(..., min_length=1, max_length=120)
	description: Optional[str] = Field(default=None, max_length=4000)
	system: Optional[str] = None
	image_url: Optional[str] = None
	visibility: Visibility = Visibility.PRIVATE


class CampaignUpdateRequest(ApiModel):
	title: Optional[str] = Field(default=None, min_length=1, max_length=120)
	description: Optional[str] = Field(default=None, max_length=4000)
	system: Optional[str] = None
	image_url: Optional[str] = None
	visibility: Optional[Visibility] = None


class InviteCode(ApiModel):
	invite_code: str
