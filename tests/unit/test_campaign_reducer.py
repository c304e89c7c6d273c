from __future__ import annotations

import pytest

from ttrpg_client.campaigns.models import Campaign, JoinRequest, JoinRequestStatus, Member
from ttrpg_client.campaigns.reducer import (
	CampaignLoaded,
	CampaignSnapshot,
	CampaignUpdated,
	InviteCodeRotated,
	JoinRequestReviewed,
	JoinRequestSubmitted,
	MemberAdded,
	MemberRemoved,
	MembersLoaded,
	reduce_campaign,
)
from ttrpg_client.domain.roles import Role


def _campaign(**overrides) -> Campaign:
	data = {"id": 5, "title": "Waterdeep", "owner_id": 1, "invite_code": "OLD"}
	data.update(overrides)
	return Campaign(**data)


def _loaded(**overrides) -> CampaignSnapshot:
	return reduce_campaign(None, CampaignLoaded(_campaign(**overrides)), campaign_id=5)


def test_loaded_takes_embedded_members_and_requests():
	member = Member(id=1, user_id=2, role=Role.GM)
	request = JoinRequest(id=3, campaign_id=5, user_id=4)
	snapshot = _loaded(members=[member], join_requests=[request])
	assert snapshot.members == (member,)
	assert snapshot.pending_requests == (request,)


def test_member_added_twice_yields_one_row():
	member = Member(id=9, user_id=4, role=Role.PLAYER)
	snapshot = _loaded()
	once = reduce_campaign(snapshot, MemberAdded(member), campaign_id=5)
	twice = reduce_campaign(once, MemberAdded(member), campaign_id=5)
	assert twice == once
	assert len(twice.members) == 1
	assert twice.campaign.member_for(4) == member


def test_member_removed_keeps_campaign_in_sync():
	member = Member(id=9, user_id=4)
	snapshot = reduce_campaign(_loaded(), MembersLoaded((member,)), campaign_id=5)
	snapshot = reduce_campaign(snapshot, MemberRemoved(9), campaign_id=5)
	assert snapshot.members == ()
	assert snapshot.campaign.member_for(4) is None


def test_invite_code_rotation_replaces_code():
	snapshot = reduce_campaign(_loaded(), InviteCodeRotated("NEW"), campaign_id=5)
	assert snapshot.campaign.invite_code == "NEW"


def test_update_reply_without_relations_keeps_cached_members():
	member = Member(id=9, user_id=4)
	snapshot = _loaded(members=[member])
	snapshot = reduce_campaign(snapshot, CampaignUpdated(_campaign(title="Renamed")), campaign_id=5)
	assert snapshot.campaign.title == "Renamed"
	assert snapshot.members == (member,)


def test_approve_review_marks_request_and_adds_member():
	request = JoinRequest(id=3, campaign_id=5, user_id=4, message="hi")
	snapshot = reduce_campaign(_loaded(), JoinRequestSubmitted(request), campaign_id=5)
	member = Member(id=20, campaign_id=5, user_id=4, role=Role.PLAYER)

	approved = reduce_campaign(snapshot, JoinRequestReviewed(3, JoinRequestStatus.APPROVED, member), campaign_id=5)
	replayed = reduce_campaign(approved, JoinRequestReviewed(3, JoinRequestStatus.APPROVED, member), campaign_id=5)

	assert approved.request_by_id(3).status == JoinRequestStatus.APPROVED
	assert approved.pending_requests == ()
	assert replayed.members == (member,)


def test_unknown_event_is_a_programming_error():
	with pytest.raises(TypeError):
		reduce_campaign(None, object(), campaign_id=5)
