"""Identity of the signed-in user as handed over by the external auth service."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional


@dataclass(frozen=True, slots=True)
class AuthenticatedUser:
	id: int
	username: Optional[str] = None
	display_name: Optional[str] = None

	@classmethod
	def from_payload(cls, payload: Mapping[str, Any]) -> "AuthenticatedUser":
		"""Build the user from the profile payload returned after login."""
		raw_id = payload.get("id")
		if raw_id is None:
			raise ValueError("user payload without id")
		return cls(
			id=int(raw_id),
			username=payload.get("username"),
			display_name=payload.get("displayName") or payload.get("display_name"),
		)
