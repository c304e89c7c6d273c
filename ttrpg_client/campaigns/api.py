"""Remote campaign operations.

Each method performs one HTTP call and parses the ``{success, data, message}``
envelope into a typed :class:`ApiResponse`. No state is kept here.
"""

from __future__ import annotations

from typing import Any, Union

from ttrpg_client.campaigns.models import (
	Campaign,
	CampaignCreateRequest,
	CampaignRoleFilter,
	CampaignUpdateRequest,
	InviteCode,
	JoinRequest,
	Member,
)
from ttrpg_client.domain.roles import Role
from ttrpg_client.infra.http import ApiResponse, ApiTransport

JoinOutcome = Union[Member, JoinRequest]


def _parse_join_outcome(data: Any) -> JoinOutcome | None:
	"""Tell a Member row from a JoinRequest in a join-request reply.

	Open campaigns answer with the Member row instead of a pending request. The
	reply carries no type tag, so the shape decides: a request always has a
	``status``; a member has ``role`` or ``joinedAt`` and no ``status``.
	"""
	if not isinstance(data, dict):
		return None
	if "status" in data:
		return JoinRequest.model_validate(data)
	if "role" in data or "joinedAt" in data:
		return Member.model_validate(data)
	return JoinRequest.model_validate(data)


class CampaignApi:
	def __init__(self, transport: ApiTransport) -> None:
		self.transport = transport

	async def create_campaign(self, payload: CampaignCreateRequest) -> ApiResponse[Campaign]:
		body = await self.transport.post("/campaigns", json=payload.to_payload())
		return ApiResponse[Campaign].model_validate(body)

	async def list_my_campaigns(self, role: CampaignRoleFilter = CampaignRoleFilter.ALL) -> ApiResponse[list[Campaign]]:
		body = await self.transport.get("/campaigns", params={"role": role.value})
		return ApiResponse[list[Campaign]].model_validate(body)

	async def get_campaign(self, campaign_id: int) -> ApiResponse[Campaign]:
		body = await self.transport.get(f"/campaigns/{campaign_id}")
		return ApiResponse[Campaign].model_validate(body)

	async def update_campaign(self, campaign_id: int, payload: CampaignUpdateRequest) -> ApiResponse[Campaign]:
		body = await self.transport.put(f"/campaigns/{campaign_id}", json=payload.to_payload())
		return ApiResponse[Campaign].model_validate(body)

	async def delete_campaign(self, campaign_id: int) -> ApiResponse[None]:
		body = await self.transport.delete(f"/campaigns/{campaign_id}")
		return ApiResponse[None].model_validate(body)

	async def list_members(self, campaign_id: int) -> ApiResponse[list[Member]]:
		body = await self.transport.get(f"/campaigns/{campaign_id}/members")
		return ApiResponse[list[Member]].model_validate(body)

	async def add_member(self, campaign_id: int, user_id: int, role: Role = Role.PLAYER) -> ApiResponse[Member]:
		body = await self.transport.post(
			f"/campaigns/{campaign_id}/members",
			json={"newMemberId": user_id, "role": role.value},
		)
		return ApiResponse[Member].model_validate(body)

	async def remove_member(self, campaign_id: int, member_id: int) -> ApiResponse[None]:
		body = await self.transport.delete(f"/campaigns/{campaign_id}/members/{member_id}")
		return ApiResponse[None].model_validate(body)

	async def change_member_role(self, campaign_id: int, member_id: int, role: Role) -> ApiResponse[Member]:
		body = await self.transport.patch(
			f"/campaigns/{campaign_id}/members/{member_id}",
			json={"role": role.value},
		)
		return ApiResponse[Member].model_validate(body)

	async def regenerate_invite_code(self, campaign_id: int) -> ApiResponse[InviteCode]:
		body = await self.transport.post(f"/campaigns/{campaign_id}/invite")
		return ApiResponse[InviteCode].model_validate(body)

	async def join_by_invite_code(self, invite_code: str) -> ApiResponse[Member]:
		body = await self.transport.post(f"/campaigns/invite/{invite_code}")
		return ApiResponse[Member].model_validate(body)

	async def submit_join_request(self, campaign_id: int, message: str = "") -> ApiResponse[JoinOutcome]:
		body = await self.transport.post(f"/campaigns/{campaign_id}/requests", json={"message": message})
		return ApiResponse[JoinOutcome](
			success=bool(body.get("success")),
			data=_parse_join_outcome(body.get("data")),
			message=body.get("message"),
		)

	async def list_join_requests(self, campaign_id: int) -> ApiResponse[list[JoinRequest]]:
		body = await self.transport.get(f"/campaigns/{campaign_id}/requests")
		return ApiResponse[list[JoinRequest]].model_validate(body)

	async def approve_join_request(self, request_id: int, role: Role = Role.PLAYER) -> ApiResponse[Member]:
		body = await self.transport.post(f"/campaigns/requests/{request_id}/approve", json={"role": role.value})
		return ApiResponse[Member].model_validate(body)

	async def reject_join_request(self, request_id: int) -> ApiResponse[JoinRequest]:
		body = await self.transport.post(f"/campaigns/requests/{request_id}/reject")
		return ApiResponse[JoinRequest].model_validate(body)
