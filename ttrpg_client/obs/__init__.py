"""Observability package bootstrap."""

from __future__ import annotations

from ttrpg_client.obs import logging as obs_logging
from ttrpg_client.settings import Settings, settings as default_settings

_initialised = False


def init(config: Settings | None = None) -> None:
	global _initialised
	if _initialised:
		return
	cfg = config or default_settings
	if not cfg.obs_enabled:
		return
	obs_logging.configure_logging(cfg)
	_initialised = True


__all__ = ["init"]
