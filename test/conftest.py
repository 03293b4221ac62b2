"""
Pytest configuration and fixtures for inventory portal tests
"""

import os
import sys

import pytest
from fastapi.testclient import TestClient

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))  # noqa: PTH100, PTH118, PTH120

# Settings() is instantiated at import time and requires a secret key
os.environ.setdefault("SECRET_KEY", "test-secret-key")

from inventory_portal.config import Settings  # noqa: E402
from main import create_app  # noqa: E402
from utils.backend import API_BASE_URL, ROOT_ORIGIN, TEST_SECRET_KEY, FakeBackend  # noqa: E402


@pytest.fixture
def portal_settings():
    """Settings pointed at the fake backend"""
    return Settings(
        secret_key=TEST_SECRET_KEY,
        api_base_url=API_BASE_URL,
        root_origin=ROOT_ORIGIN,
        log_json=False,
    )


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def make_client(portal_settings, backend):
    """Build a TestClient for a given request host; redirects are not followed."""

    def _make(host: str = "shop.localhost", **overrides) -> TestClient:
        settings = portal_settings.model_copy(update=overrides) if overrides else portal_settings
        app = create_app(settings, transport=backend.transport)
        return TestClient(app, base_url=f"http://{host}", follow_redirects=False)

    return _make
