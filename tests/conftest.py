"""
Pytest configuration and shared fixtures.

Test environment variables are set here, before any gateway import, and the
settings cache is cleared so they take effect.
"""

import os

import pytest
from fastapi.testclient import TestClient

os.environ["SIGNING_KEY"] = "testsecret"
os.environ["LOG_LEVEL"] = "DEBUG"
os.environ["SPLUNK_URL"] = "https://splunk.test:8088"
os.environ["SPLUNK_TOKEN"] = "hec-token"
os.environ["TWILIO_ACCOUNT_SID"] = "ACtest"
os.environ["TWILIO_AUTH_TOKEN"] = "twilio-token"
os.environ["TWILIO_FROM_NUMBER"] = "+15550000001"
os.environ["TWILIO_TO_NUMBER"] = "+15550000002"

from zitadel_hooks.config import get_settings
get_settings.cache_clear()

from zitadel_hooks.main import app


@pytest.fixture(scope="function")
def client():
    """Create test client; dependency overrides are reset after each test."""
    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture
def override_settings():
    """Return a function that swaps in settings with the given fields changed."""
    def _override(**changes):
        settings = get_settings().model_copy(update=changes)
        app.dependency_overrides[get_settings] = lambda: settings
        return settings

    return _override
