from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, Mock

import pytest

from ttrpg_client.domain.exceptions import ConflictError, ForbiddenError, GENERIC_DENIAL, StaleTargetError, USER_MESSAGES
from ttrpg_client.domain.orchestrator import ActionOrchestrator, StoreState
from ttrpg_client.infra.http import ApiRequestError, ApiResponse
from ttrpg_client.settings import settings


def _ok(data=None):
	return ApiResponse(success=True, data=data)


@pytest.mark.asyncio
async def test_success_sets_and_releases_loading_flag():
	state = StoreState()
	orchestrator = ActionOrchestrator(state)
	seen = {}

	async def call():
		seen["loading"] = state.is_loading()
		return _ok({"id": 1})

	result = await orchestrator.run("fetch", call, on_success=lambda data: seen.update(data=data))

	assert result.success is True
	assert result.data == {"id": 1}
	assert seen == {"loading": True, "data": {"id": 1}}
	assert state.is_loading() is False
	assert state.error is None


@pytest.mark.asyncio
async def test_declared_failure_lands_in_error_slot():
	state = StoreState()
	state.error = "previous"
	orchestrator = ActionOrchestrator(state)

	result = await orchestrator.run("fetch", AsyncMock(return_value=ApiResponse(success=False, message="Nope")))

	assert result.success is False
	assert result.error == "Nope"
	assert state.error == "Nope"
	assert state.is_loading() is False


@pytest.mark.asyncio
async def test_declared_failure_without_message_uses_default():
	state = StoreState()
	orchestrator = ActionOrchestrator(state)

	result = await orchestrator.run(
		"fetch",
		AsyncMock(return_value=ApiResponse(success=False)),
		default_error="Could not load campaign",
	)

	assert result.error == "Could not load campaign"


@pytest.mark.asyncio
async def test_transport_fault_prefers_server_text_then_default():
	state = StoreState()
	orchestrator = ActionOrchestrator(state)

	with_text = await orchestrator.run(
		"join",
		AsyncMock(side_effect=ApiRequestError("http_400", status_code=400, server_error="Session is full")),
	)
	assert with_text.error == "Session is full"

	without_text = await orchestrator.run("join", AsyncMock(side_effect=ApiRequestError("request_timeout")))
	assert without_text.error == settings.default_error_message
	assert state.error == settings.default_error_message
	assert state.is_loading() is False


@pytest.mark.asyncio
async def test_guard_failure_skips_remote_call():
	state = StoreState()
	orchestrator = ActionOrchestrator(state)
	call = AsyncMock(return_value=_ok())

	def guard():
		raise ConflictError("already_member")

	result = await orchestrator.run("submit_join_request", call, guard=guard)

	call.assert_not_awaited()
	assert result.success is False
	assert result.error == USER_MESSAGES["already_member"]
	assert state.error == USER_MESSAGES["already_member"]


@pytest.mark.asyncio
async def test_authorization_failure_uses_generic_denial():
	state = StoreState()
	orchestrator = ActionOrchestrator(state)

	def guard():
		raise ForbiddenError("manager_role_required")

	result = await orchestrator.run("approve", AsyncMock(), guard=guard)
	assert result.error == GENERIC_DENIAL


@pytest.mark.asyncio
async def test_stale_target_is_silent():
	state = StoreState()
	orchestrator = ActionOrchestrator(state)

	def on_success(_):
		raise StaleTargetError()

	result = await orchestrator.run("fetch", AsyncMock(return_value=_ok({"id": 5})), on_success=on_success)

	assert result.success is True
	assert result.stale is True
	assert state.error is None


@pytest.mark.asyncio
async def test_async_success_callback_is_awaited():
	state = StoreState()
	orchestrator = ActionOrchestrator(state)
	cascade = AsyncMock()

	await orchestrator.run("approve", AsyncMock(return_value=_ok()), on_success=cascade)

	cascade.assert_awaited_once_with(None)


@pytest.mark.asyncio
async def test_unexpected_exception_propagates_but_releases_flag():
	state = StoreState()
	orchestrator = ActionOrchestrator(state)

	with pytest.raises(RuntimeError):
		await orchestrator.run("fetch", AsyncMock(side_effect=RuntimeError("boom")), loading_key="is_loading_members")
	assert state.is_loading("is_loading_members") is False


@pytest.mark.asyncio
async def test_independent_loading_keys_run_concurrently():
	state = StoreState()
	orchestrator = ActionOrchestrator(state)
	gate = asyncio.Event()

	async def slow():
		await gate.wait()
		return _ok()

	first = asyncio.create_task(orchestrator.run("fetch_campaign", slow))
	second = asyncio.create_task(orchestrator.run("fetch_members", slow, loading_key="is_loading_members"))
	await asyncio.sleep(0)
	assert state.is_loading() and state.is_loading("is_loading_members")
	gate.set()
	await asyncio.gather(first, second)
	assert not state.any_loading


@pytest.mark.asyncio
async def test_duplicate_in_flight_action_is_rejected_without_side_effects():
	state = StoreState()
	orchestrator = ActionOrchestrator(state)
	gate = asyncio.Event()
	call = Mock()

	async def slow():
		call()
		await gate.wait()
		return _ok()

	first = asyncio.create_task(orchestrator.run("approve_join_request", slow, dedupe_key=11))
	await asyncio.sleep(0)
	assert orchestrator.in_flight(("approve_join_request", 11))

	duplicate = await orchestrator.run("approve_join_request", slow, dedupe_key=11)
	assert duplicate.success is False
	assert duplicate.error == USER_MESSAGES["action_in_flight"]
	assert state.error is None
	assert state.is_loading() is True

	gate.set()
	assert (await first).success is True
	assert call.call_count == 1
	assert not orchestrator.in_flight(("approve_join_request", 11))


@pytest.mark.asyncio
async def test_in_flight_guard_can_be_disabled():
	orchestrator = ActionOrchestrator(StoreState(), guard_inflight=False)
	gate = asyncio.Event()

	async def slow():
		await gate.wait()
		return _ok()

	first = asyncio.create_task(orchestrator.run("join", slow, dedupe_key=1))
	second = asyncio.create_task(orchestrator.run("join", slow, dedupe_key=1))
	await asyncio.sleep(0)
	gate.set()
	results = await asyncio.gather(first, second)
	assert all(r.success for r in results)
