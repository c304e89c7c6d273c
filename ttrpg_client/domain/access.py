"""Preview/full access-mode derivation."""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
	from ttrpg_client.campaigns.models import Campaign
	from ttrpg_client.infra.auth import AuthenticatedUser
	from ttrpg_client.sessions.models import Session


class AccessMode(str, Enum):
	LOADING = "LOADING"
	PREVIEW = "PREVIEW"
	FULL = "FULL"


def resolve_access_mode(is_member: bool, is_loading: bool) -> AccessMode:
	"""Pick the page mode; nothing is decided before the snapshot arrives."""
	if is_loading:
		return AccessMode.LOADING
	return AccessMode.FULL if is_member else AccessMode.PREVIEW


def is_campaign_member(campaign: Campaign | None, user: AuthenticatedUser | None) -> bool:
	if campaign is None or user is None:
		return False
	if campaign.owner_id == user.id:
		return True
	return campaign.member_for(user.id) is not None


def is_session_participant(session: Session | None, user: AuthenticatedUser | None) -> bool:
	# Raw roster presence only: a campaign GM without a Participant row is not a participant.
	if session is None or user is None:
		return False
	return session.participant_for(user.id) is not None
