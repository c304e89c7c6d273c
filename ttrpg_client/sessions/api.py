"""Remote session operations."""

from __future__ import annotations

from ttrpg_client.infra.http import ApiResponse, ApiTransport
from ttrpg_client.sessions.models import (
	Participant,
	ParticipantStatus,
	Session,
	SessionCreateRequest,
	SessionJoinRequest,
	SessionListQuery,
	SessionUpdateRequest,
)


class SessionApi:
	def __init__(self, transport: ApiTransport) -> None:
		self.transport = transport

	async def create_session(self, payload: SessionCreateRequest) -> ApiResponse[Session]:
		body = await self.transport.post("/sessions", json=payload.to_payload())
		return ApiResponse[Session].model_validate(body)

	async def list_my_sessions(self, query: SessionListQuery | None = None) -> ApiResponse[list[Session]]:
		params = query.to_payload() if query is not None else None
		body = await self.transport.get("/sessions", params=params)
		return ApiResponse[list[Session]].model_validate(body)

	async def list_campaign_sessions(self, campaign_id: int, query: SessionListQuery | None = None) -> ApiResponse[list[Session]]:
		params = query.to_payload() if query is not None else None
		body = await self.transport.get(f"/campaigns/{campaign_id}/sessions", params=params)
		return ApiResponse[list[Session]].model_validate(body)

	async def get_session(self, session_id: int) -> ApiResponse[Session]:
		body = await self.transport.get(f"/sessions/{session_id}")
		return ApiResponse[Session].model_validate(body)

	async def update_session(self, session_id: int, payload: SessionUpdateRequest) -> ApiResponse[Session]:
		body = await self.transport.patch(f"/sessions/{session_id}", json=payload.to_payload())
		return ApiResponse[Session].model_validate(body)

	async def delete_session(self, session_id: int) -> ApiResponse[None]:
		body = await self.transport.delete(f"/sessions/{session_id}")
		return ApiResponse[None].model_validate(body)

	async def list_participants(self, session_id: int) -> ApiResponse[list[Participant]]:
		body = await self.transport.get(f"/sessions/{session_id}/participants")
		return ApiResponse[list[Participant]].model_validate(body)

	async def join_session(self, session_id: int, payload: SessionJoinRequest | None = None) -> ApiResponse[Participant]:
		json = payload.to_payload() if payload is not None else {}
		body = await self.transport.post(f"/sessions/{session_id}/join", json=json)
		return ApiResponse[Participant].model_validate(body)

	async def leave_session(self, session_id: int) -> ApiResponse[None]:
		body = await self.transport.post(f"/sessions/{session_id}/leave")
		return ApiResponse[None].model_validate(body)

	async def update_participant_status(
		self,
		session_id: int,
		participant_id: int,
		status: ParticipantStatus,
	) -> ApiResponse[Participant]:
		body = await self.transport.patch(
			f"/sessions/{session_id}/participants/{participant_id}",
			json={"status": status.value},
		)
		return ApiResponse[Participant].model_validate(body)

	async def remove_participant(self, session_id: int, participant_id: int) -> ApiResponse[None]:
		body = await self.transport.delete(f"/sessions/{session_id}/participants/{participant_id}")
		return ApiResponse[None].model_validate(body)
