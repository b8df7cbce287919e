import pytest

from envato_auth.core.config import get_settings
from tests.fixtures.envato import (  # noqa: F401
    api_session,
    envato_options,
    strategy,
    verify,
)


@pytest.fixture(autouse=True)
def clear_settings_cache():
    """Keep cached settings from leaking between tests."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
