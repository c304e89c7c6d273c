"""JSON logging for the client engine.

Everything is emitted under the ``ttrpg_client`` logger. The host application
keeps ownership of the root logger; :func:`configure_logging` only touches the
package logger and never propagates to root once installed.

Each orchestrated action binds ``action``, ``entity``, ``entity_id`` and
``user_id`` into context variables so every record logged while it runs carries
them.
"""

from __future__ import annotations

import json
import logging
import random
from contextvars import ContextVar, Token
from datetime import datetime, timezone
from typing import Any, Dict

from ttrpg_client.settings import Settings, settings as default_settings

LOGGER_NAME = "ttrpg_client"

_CONTEXT: Dict[str, ContextVar[Any]] = {
	"action": ContextVar("obs_action", default=None),
	"entity": ContextVar("obs_entity", default=None),
	"entity_id": ContextVar("obs_entity_id", default=None),
	"user_id": ContextVar("obs_user_id", default=None),
}

# Invite codes, join-request messages and character names are user content.
_REDACTED_KEYS = (
	"token",
	"secret",
	"authorization",
	"password",
	"cookie",
	"email",
	"invite_code",
	"message",
	"character_name",
)

_MAX_STRING_LENGTH = 256
_MAX_COLLECTION_ITEMS = 10

_RECORD_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", None, None))) | {"message", "asctime"}


def bind_context(**fields: Any) -> Dict[str, Token]:
	"""Bind the non-None ``fields`` and return the tokens needed to undo it."""
	tokens: Dict[str, Token] = {}
	for key, value in fields.items():
		if value is None:
			continue
		if key not in _CONTEXT:
			raise KeyError(f"unknown log context field: {key}")
		tokens[key] = _CONTEXT[key].set(value)
	return tokens


def reset_context(tokens: Dict[str, Token]) -> None:
	for key, token in tokens.items():
		_CONTEXT[key].reset(token)


def current_context() -> Dict[str, Any]:
	return {key: var.get() for key, var in _CONTEXT.items() if var.get() is not None}


def _scrub(key: str, value: Any) -> Any:
	if any(word in key.lower() for word in _REDACTED_KEYS):
		return "[redacted]"
	if isinstance(value, str):
		if len(value) > _MAX_STRING_LENGTH:
			return f"{value[:_MAX_STRING_LENGTH]}…"
		return value
	if isinstance(value, dict):
		scrubbed = {str(k): _scrub(str(k), v) for k, v in list(value.items())[:_MAX_COLLECTION_ITEMS]}
		if len(value) > _MAX_COLLECTION_ITEMS:
			scrubbed["…"] = f"+{len(value) - _MAX_COLLECTION_ITEMS} keys"
		return scrubbed
	if isinstance(value, (list, tuple, set)):
		items = [_scrub("", item) for item in list(value)[:_MAX_COLLECTION_ITEMS]]
		if len(value) > _MAX_COLLECTION_ITEMS:
			items.append("…")
		return items
	return value


class JSONLogFormatter(logging.Formatter):
	"""One JSON object per record: base fields, bound context, then scrubbed extras."""

	def __init__(self, config: Settings | None = None) -> None:
		super().__init__()
		self.config = config or default_settings

	def format(self, record: logging.LogRecord) -> str:  # noqa: A003 (match logging api)
		payload: Dict[str, Any] = {
			"ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
			"level": record.levelname.lower(),
			"msg": record.getMessage(),
			"logger": record.name,
			"service": self.config.service_name,
			"env": self.config.environment,
		}
		payload.update(current_context())
		if record.exc_info:
			payload["exc_info"] = self.formatException(record.exc_info)
		for key, value in vars(record).items():
			if key not in _RECORD_ATTRS:
				payload[key] = _scrub(key, value)
		return json.dumps(payload, separators=(",", ":"), default=str)


class InfoSamplingFilter(logging.Filter):
	"""Drop a share of INFO records; other levels always pass."""

	def __init__(self, config: Settings | None = None) -> None:
		super().__init__()
		self.config = config or default_settings

	def filter(self, record: logging.LogRecord) -> bool:  # noqa: A003
		if record.levelno != logging.INFO:
			return True
		rate = max(0.0, min(1.0, self.config.obs_log_sampling_rate_info))
		return rate >= 1.0 or random.random() < rate


def configure_logging(config: Settings | None = None) -> logging.Logger:
	"""Install the JSON handler on the package logger; safe to call again."""
	cfg = config or default_settings
	logger = logging.getLogger(LOGGER_NAME)
	for handler in list(logger.handlers):
		if isinstance(handler.formatter, JSONLogFormatter):
			logger.removeHandler(handler)
	handler = logging.StreamHandler()
	handler.setFormatter(JSONLogFormatter(cfg))
	handler.addFilter(InfoSamplingFilter(cfg))
	logger.addHandler(handler)
	logger.setLevel(cfg.obs_log_level.upper())
	logger.propagate = False
	return logger
