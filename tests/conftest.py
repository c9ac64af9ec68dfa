"""Pytest configuration and fixtures.

Provides environment isolation, logging configuration, marker registration,
and an HTTP test double built on ``httpx.MockTransport``. Environment
fixtures are autouse unless noted.
"""

from __future__ import annotations

from contextlib import suppress
import logging
import os

import httpx
import pytest
import pytest_asyncio

from inflection_ai.provider import InflectionProvider, create_inflection
from tests.helpers import FakeInflectionAPI

# =============================================================================
# Test Doubles
# =============================================================================


@pytest.fixture
def fake_api() -> FakeInflectionAPI:
    return FakeInflectionAPI()


@pytest_asyncio.fixture
async def http_client(fake_api):
    async with httpx.AsyncClient(transport=httpx.MockTransport(fake_api)) as client:
        yield client


@pytest.fixture
def provider(http_client) -> InflectionProvider:
    """Provider wired to the fake API (not autouse)."""
    return create_inflection(
        api_key="test-key",
        base_url="https://inflection.test/api",
        http_client=http_client,
    )


# =============================================================================
# Environment Isolation (Autouse)
# =============================================================================


@pytest.fixture(autouse=True)
def block_dotenv(request, monkeypatch):
    """Prevent python-dotenv from loading project .env files during tests.

    Opt-out: @pytest.mark.allow_dotenv
    """
    if request.node.get_closest_marker("allow_dotenv"):
        return
    with suppress(Exception):
        monkeypatch.setattr(
            "dotenv.load_dotenv", lambda *_args, **_kwargs: False, raising=False
        )


@pytest.fixture(autouse=True)
def isolate_provider_env(request, monkeypatch):
    """Ensure a clean provider environment for each test.

    Clears INFLECTION_* env vars to prevent test pollution.
    Opt-out: @pytest.mark.allow_env_pollution
    """
    if request.node.get_closest_marker("allow_env_pollution"):
        return

    for key in list(os.environ.keys()):
        if key.startswith("INFLECTION_"):
            monkeypatch.delenv(key, raising=False)


# =============================================================================
# Logging
# =============================================================================


@pytest.fixture(scope="session", autouse=True)
def quiet_noisy_libraries():
    """Suppress noisy third-party loggers."""
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


# =============================================================================
# Pytest Hooks
# =============================================================================


def pytest_configure(config):
    """Configure custom markers for test organization."""
    markers = [
        "unit: Fast, isolated unit tests",
        "contract: Behavioral contracts of the public surface",
        "allow_dotenv: Let python-dotenv load project .env files",
        "allow_env_pollution: Keep INFLECTION_* environment variables",
    ]
    for marker in markers:
        config.addinivalue_line("markers", marker)
