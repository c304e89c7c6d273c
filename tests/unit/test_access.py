from __future__ import annotations

import pytest

from ttrpg_client.campaigns.models import Campaign, Member
from ttrpg_client.domain.access import AccessMode, is_campaign_member, is_session_participant, resolve_access_mode
from ttrpg_client.domain.roles import Role, resolve_session_role
from ttrpg_client.infra.auth import AuthenticatedUser
from ttrpg_client.sessions.models import Participant, Session, SessionCampaign


@pytest.mark.parametrize(
	"is_member,is_loading,expected",
	[
		(True, True, AccessMode.LOADING),
		(False, True, AccessMode.LOADING),
		(True, False, AccessMode.FULL),
		(False, False, AccessMode.PREVIEW),
	],
)
def test_resolve_access_mode(is_member, is_loading, expected):
	assert resolve_access_mode(is_member, is_loading) == expected


def test_campaign_membership_counts_owner_without_member_row():
	owner = AuthenticatedUser(id=1)
	campaign = Campaign(id=5, title="Campaign", owner_id=owner.id)
	assert is_campaign_member(campaign, owner)
	assert not is_campaign_member(campaign, AuthenticatedUser(id=2))
	assert not is_campaign_member(None, owner)


def test_campaign_membership_from_member_row():
	user = AuthenticatedUser(id=2)
	campaign = Campaign(id=5, title="Campaign", owner_id=1, members=[Member(id=9, user_id=2, role=Role.PLAYER)])
	assert is_campaign_member(campaign, user)


def test_campaign_gm_without_participant_row_sees_preview():
	gm = AuthenticatedUser(id=2)
	session = Session(
		id=7,
		campaign_id=5,
		creator_id=1,
		title="Session",
		campaign=SessionCampaign(id=5, owner_id=1, members=[Member(id=3, user_id=gm.id, role=Role.GM)]),
		participants=[Participant(id=1, user_id=1)],
	)
	assert resolve_session_role(session, gm) == Role.GM
	assert is_session_participant(session, gm) is False
	assert resolve_access_mode(is_session_participant(session, gm), False) == AccessMode.PREVIEW
