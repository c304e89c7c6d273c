"""HTTP transport for the remote campaign/session API.

Every endpoint answers with the same envelope, ``{"success": bool, "data": ...,
"message": str}``. Error replies use ``{"error": str}`` or ``{"errors": [...]}``
with a non-2xx status; both are folded into :class:`ApiRequestError` so callers
deal with one fault type.
"""

from __future__ import annotations

import logging
from typing import Any, Generic, Mapping, Optional, TypeVar

import httpx
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from ttrpg_client.domain.exceptions import TransportError
from ttrpg_client.settings import Settings, settings as default_settings

_LOG = logging.getLogger(__name__)

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
	"""Declared-outcome envelope returned by every remote operation."""

	success: bool
	data: Optional[T] = None
	message: Optional[str] = None


class ApiRequestError(TransportError):
	"""Non-2xx reply or network fault while talking to the API server."""

	def __init__(
		self,
		detail: str,
		*,
		status_code: int | None = None,
		server_error: str | None = None,
	) -> None:
		super().__init__(detail)
		if status_code is not None:
			self.status_code = status_code
		self.server_error = server_error

	@property
	def user_message(self) -> str:
		# Transport fault texts are not user-facing; the caller falls back to its default.
		return self.server_error or ""


def _server_error_text(response: httpx.Response) -> str | None:
	try:
		body = response.json()
	except ValueError:
		return None
	if not isinstance(body, dict):
		return None
	if body.get("error"):
		return str(body["error"])
	if body.get("message"):
		return str(body["message"])
	errors = body.get("errors")
	if isinstance(errors, list) and errors:
		parts = []
		for item in errors:
			if isinstance(item, dict):
				parts.append(str(item.get("message") or item.get("msg") or item))
			else:
				parts.append(str(item))
		return "; ".join(parts)
	return None


def build_http_client(
	config: Settings | None = None,
	*,
	transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
	cfg = config or default_settings
	return httpx.AsyncClient(
		base_url=cfg.api_base_url,
		timeout=cfg.request_timeout_seconds,
		headers={"Content-Type": "application/json", "Accept": "application/json"},
		transport=transport,
	)


class ApiTransport:
	"""Thin wrapper around ``httpx.AsyncClient`` that returns raw envelopes."""

	def __init__(self, http: httpx.AsyncClient) -> None:
		self.http = http

	async def request(
		self,
		method: str,
		path: str,
		*,
		json: Any | None = None,
		params: Mapping[str, Any] | None = None,
	) -> dict[str, Any]:
		try:
			response = await self.http.request(method, path, json=json, params=params)
		except httpx.TimeoutException as exc:
			_LOG.warning("api request timed out", extra={"method": method, "path": path})
			raise ApiRequestError("request_timeout") from exc
		except httpx.HTTPError as exc:
			_LOG.warning("api request failed", extra={"method": method, "path": path, "error": str(exc)})
			raise ApiRequestError(str(exc) or "network_error") from exc
		if response.is_error:
			server_error = _server_error_text(response)
			_LOG.info(
				"api request rejected",
				extra={"method": method, "path": path, "status": response.status_code},
			)
			raise ApiRequestError(
				f"http_{response.status_code}",
				status_code=response.status_code,
				server_error=server_error,
			)
		if not response.content:
			return {"success": True}
		try:
			body = response.json()
		except ValueError as exc:
			raise ApiRequestError("invalid_response_body", status_code=response.status_code) from exc
		if not isinstance(body, dict):
			raise ApiRequestError("invalid_response_body", status_code=response.status_code)
		return body

	async def get(self, path: str, *, params: Mapping[str, Any] | None = None) -> dict[str, Any]:
		return await self.request("GET", path, params=params)

	async def post(self, path: str, *, json: Any | None = None) -> dict[str, Any]:
		return await self.request("POST", path, json=json if json is not None else {})

	async def put(self, path: str, *, json: Any | None = None) -> dict[str, Any]:
		return await self.request("PUT", path, json=json)

	async def patch(self, path: str, *, json: Any | None = None) -> dict[str, Any]:
		return await self.request("PATCH", path, json=json)

	async def delete(self, path: str) -> dict[str, Any]:
		return await self.request("DELETE", path)

	async def aclose(self) -> None:
		await self.http.aclose()


class ApiModel(BaseModel):
	"""Base for entities exchanged with the API server (camelCase on the wire)."""

	model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

	def to_payload(self) -> dict[str, Any]:
		return self.model_dump(mode="json", by_alias=True, exclude_none=True)
