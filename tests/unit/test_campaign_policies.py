from __future__ import annotations

import pytest

from ttrpg_client.campaigns import policies
from ttrpg_client.campaigns.models import Campaign, JoinRequest, JoinRequestStatus, Member
from ttrpg_client.domain.exceptions import ConflictError, ForbiddenError, InvalidTransition, NotFoundError, ValidationError
from ttrpg_client.domain.roles import Role
from ttrpg_client.infra.auth import AuthenticatedUser

OWNER = AuthenticatedUser(id=1)
GM = AuthenticatedUser(id=2)
PLAYER = AuthenticatedUser(id=3)
OUTSIDER = AuthenticatedUser(id=4)


@pytest.fixture
def campaign() -> Campaign:
	return Campaign(
		id=5,
		title="Waterdeep",
		owner_id=OWNER.id,
		members=[
			Member(id=10, user_id=OWNER.id, role=Role.OWNER),
			Member(id=11, user_id=GM.id, role=Role.GM),
			Member(id=12, user_id=PLAYER.id, role=Role.PLAYER),
		],
	)


def test_join_request_transition_table():
	policies.ensure_join_request_transition(JoinRequestStatus.PENDING, JoinRequestStatus.APPROVED)
	policies.ensure_join_request_transition(JoinRequestStatus.PENDING, JoinRequestStatus.REJECTED)
	for terminal in (JoinRequestStatus.APPROVED, JoinRequestStatus.REJECTED):
		for target in JoinRequestStatus:
			with pytest.raises(InvalidTransition):
				policies.ensure_join_request_transition(terminal, target)


def test_submit_rejected_for_members_and_duplicate_pending(campaign):
	with pytest.raises(ConflictError) as exc:
		policies.ensure_can_submit_join_request(campaign, [], PLAYER)
	assert exc.value.detail == "already_member"

	pending = JoinRequest(id=1, campaign_id=5, user_id=OUTSIDER.id)
	with pytest.raises(ConflictError) as exc:
		policies.ensure_can_submit_join_request(campaign, [pending], OUTSIDER)
	assert exc.value.detail == "join_request_pending"

	rejected = pending.model_copy(update={"status": JoinRequestStatus.REJECTED})
	policies.ensure_can_submit_join_request(campaign, [rejected], OUTSIDER)


def test_submit_requires_user(campaign):
	with pytest.raises(ForbiddenError):
		policies.ensure_can_submit_join_request(campaign, [], None)


def test_review_requires_manager_and_pending(campaign):
	request = JoinRequest(id=1, campaign_id=5, user_id=OUTSIDER.id)
	policies.ensure_can_review_join_request(Role.GM, campaign, request, JoinRequestStatus.APPROVED, approve_as=Role.PLAYER)

	with pytest.raises(ForbiddenError):
		policies.ensure_can_review_join_request(Role.PLAYER, campaign, request, JoinRequestStatus.REJECTED)

	approved = request.model_copy(update={"status": JoinRequestStatus.APPROVED})
	with pytest.raises(InvalidTransition) as exc:
		policies.ensure_can_review_join_request(Role.OWNER, campaign, approved, JoinRequestStatus.APPROVED)
	assert exc.value.detail == "join_request_already_processed"


def test_review_cannot_approve_as_owner(campaign):
	request = JoinRequest(id=1, campaign_id=5, user_id=OUTSIDER.id)
	with pytest.raises(ValidationError):
		policies.ensure_can_review_join_request(Role.OWNER, campaign, request, JoinRequestStatus.APPROVED, approve_as=Role.OWNER)


def test_approving_existing_member_is_a_conflict(campaign):
	request = JoinRequest(id=1, campaign_id=5, user_id=PLAYER.id)
	with pytest.raises(ConflictError):
		policies.ensure_can_review_join_request(Role.OWNER, campaign, request, JoinRequestStatus.APPROVED)


def test_invite_code_rules():
	policies.ensure_can_rotate_invite_code(Role.GM)
	with pytest.raises(ForbiddenError):
		policies.ensure_can_rotate_invite_code(Role.PLAYER)
	assert policies.ensure_invite_code("  ABC123 ") == "ABC123"
	with pytest.raises(ValidationError):
		policies.ensure_invite_code("   ")


def test_add_member_rules(campaign):
	policies.ensure_can_add_member(Role.GM, campaign, OUTSIDER.id, Role.PLAYER)
	with pytest.raises(ConflictError):
		policies.ensure_can_add_member(Role.OWNER, campaign, PLAYER.id, Role.PLAYER)
	with pytest.raises(ForbiddenError):
		policies.ensure_can_add_member(Role.PLAYER, campaign, OUTSIDER.id, Role.PLAYER)


def test_remove_member_rules(campaign):
	player_row = campaign.member_for(PLAYER.id)
	owner_row = campaign.member_for(OWNER.id)

	policies.ensure_can_remove_member(Role.GM, campaign, player_row, GM)
	policies.ensure_can_remove_member(Role.PLAYER, campaign, player_row, PLAYER)

	with pytest.raises(ForbiddenError):
		policies.ensure_can_remove_member(Role.PLAYER, campaign, campaign.member_for(GM.id), PLAYER)
	with pytest.raises(ValidationError) as exc:
		policies.ensure_can_remove_member(Role.OWNER, campaign, owner_row, OWNER)
	assert exc.value.detail == "owner_cannot_be_removed"
	with pytest.raises(NotFoundError):
		policies.ensure_can_remove_member(Role.OWNER, campaign, None, OWNER)


def test_change_member_role_is_owner_only(campaign):
	policies.ensure_can_change_member_role(Role.OWNER, campaign, campaign.member_for(PLAYER.id), Role.GM)
	with pytest.raises(ForbiddenError):
		policies.ensure_can_change_member_role(Role.GM, campaign, campaign.member_for(PLAYER.id), Role.GM)
	with pytest.raises(ValidationError) as exc:
		policies.ensure_can_change_member_role(Role.OWNER, campaign, campaign.member_for(OWNER.id), Role.GM)
	assert exc.value.detail == "owner_role_immutable"


def test_can_submit_join_request_eligibility(campaign):
	assert policies.can_submit_join_request(campaign, OUTSIDER) is True
	assert policies.can_submit_join_request(campaign, OWNER) is False
	assert policies.can_submit_join_request(None, OUTSIDER) is False
