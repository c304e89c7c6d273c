import pytest

from ttrpg_client.settings import settings


@pytest.fixture(autouse=True)
def force_test_settings():
	"""Pin settings the engine reads at call time so tests do not depend on the host env."""
	original = {
		"environment": settings.environment,
		"default_error_message": settings.default_error_message,
		"inflight_guard_enabled": settings.inflight_guard_enabled,
		"obs_log_sampling_rate_info": settings.obs_log_sampling_rate_info,
	}
	settings.environment = "dev"
	settings.default_error_message = "Something went wrong"
	settings.inflight_guard_enabled = True
	settings.obs_log_sampling_rate_info = 1.0
	try:
		yield
	finally:
		for key, value in original.items():
			setattr(settings, key, value)
