"""Application facade wiring settings, logging, transport and both stores."""

from __future__ import annotations

import logging
from typing import Optional

import httpx

from ttrpg_client import obs
from ttrpg_client.campaigns.api import CampaignApi
from ttrpg_client.campaigns.store import CampaignStore
from ttrpg_client.infra.auth import AuthenticatedUser
from ttrpg_client.infra.http import ApiTransport, build_http_client
from ttrpg_client.sessions.api import SessionApi
from ttrpg_client.sessions.store import SessionStore
from ttrpg_client.settings import Settings, settings as default_settings

_LOG = logging.getLogger(__name__)


class ClientApp:
	"""Owns the HTTP client and exposes ``campaigns`` and ``sessions`` stores.

	Usage::

		async with ClientApp(user=user) as app:
			await app.campaigns.open(7)
			if app.campaigns.can_join:
				await app.campaigns.submit_join_request("hi")
	"""

	def __init__(
		self,
		user: AuthenticatedUser | None = None,
		*,
		config: Settings | None = None,
		http: httpx.AsyncClient | None = None,
	) -> None:
		self.config = config or default_settings
		obs.init(self.config)
		self.transport = ApiTransport(http or build_http_client(self.config))
		self.campaigns = CampaignStore(CampaignApi(self.transport), user, config=self.config)
		self.sessions = SessionStore(SessionApi(self.transport), user, config=self.config)
		self._user: Optional[AuthenticatedUser] = user

	@property
	def user(self) -> Optional[AuthenticatedUser]:
		return self._user

	def set_user(self, user: AuthenticatedUser | None) -> None:
		"""Swap the signed-in user; cached snapshots belong to the previous one."""
		self._user = user
		for store in (self.campaigns, self.sessions):
			store.reset()
			store.set_user(user)
		_LOG.info("client user changed", extra={"user_id": user.id if user else None})

	async def aclose(self) -> None:
		self.campaigns.close()
		self.sessions.close()
		await self.transport.aclose()

	async def __aenter__(self) -> "ClientApp":
		return self

	async def __aexit__(self, exc_type, exc, tb) -> None:
		await self.aclose()
