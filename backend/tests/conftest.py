"""
Shared test fixtures
"""
import os

import pytest

# Settings are read from the environment; keep tests off any real project
os.environ.setdefault("SUPABASE_URL", "https://test.supabase.co")
os.environ.setdefault("SUPABASE_SERVICE_KEY", "test-service-key")
os.environ.setdefault("VOICE_API_BASE_URL", "https://api.voice.test")


@pytest.fixture(autouse=True)
def reset_singletons():
    """Fresh settings and notification stores for every test"""
    from callboard.core.config import get_settings
    from callboard.domain.services import notification_store

    get_settings.cache_clear()
    notification_store._notification_stores.clear()
    yield
    get_settings.cache_clear()
    notification_store._notification_stores.clear()
