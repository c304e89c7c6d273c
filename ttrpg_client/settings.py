"""Settings for the tabletop client engine with observability configuration."""

from __future__ import annotations

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def _env_field(default, *env_names: str):
	if env_names:
		alias = AliasChoices(*env_names) if len(env_names) > 1 else env_names[0]
		return Field(default=default, validation_alias=alias)
	return Field(default=default)


class Settings(BaseSettings):
	api_base_url: str = _env_field("http://localhost:5000/api", "API_URL", "TTRPG_API_URL")
	request_timeout_seconds: float = _env_field(10.0, "REQUEST_TIMEOUT_SECONDS")

	environment: str = _env_field("production", "ENV", "APP_ENV", "ENVIRONMENT")
	obs_enabled: bool = _env_field(True, "OBS_ENABLED")
	obs_log_level: str = _env_field("INFO", "LOG_LEVEL")
	obs_log_sampling_rate_info: float = _env_field(1.0, "LOG_SAMPLING_RATE_INFO")
	service_name: str = _env_field("ttrpg-client", "SERVICE_NAME")

	default_error_message: str = _env_field("Something went wrong", "DEFAULT_ERROR_MESSAGE")
	# Rejects a second identical lifecycle action while the first is still in flight
	inflight_guard_enabled: bool = _env_field(True, "INFLIGHT_GUARD_ENABLED")

	model_config = SettingsConfigDict(
		env_prefix="",
		env_file=".env",
		case_sensitive=False,
		extra="ignore",
		populate_by_name=True,
	)


settings = Settings()
