"""Shared test fixtures for the n8n workflow assistant.

Provides settings isolation, a scripted chat model and an in-memory n8n
API served through ``httpx.MockTransport``.
"""

from collections.abc import Iterator

import pytest

from src.events import notifier
from src.n8n import N8nClient, N8nClientConfig
from src.settings import Settings, get_settings
from tests.helpers.llm import FakeChatModel
from tests.helpers.n8n import N8N_API_KEY, N8N_BASE_URL, FakeN8n

TEST_ENV = {
    "ENVIRONMENT": "testing",
    "LLM_PROVIDER": "openai",
    "LLM_API_KEY": "test-llm-key",
    "N8N_BASE_URL": N8N_BASE_URL,
    "N8N_API_KEY": N8N_API_KEY,
    "SEMANTIC_VALIDATION_ENABLED": "true",
}


# =============================================================================
# SETTINGS
# =============================================================================


@pytest.fixture(autouse=True)
def test_settings(monkeypatch: pytest.MonkeyPatch) -> Iterator[Settings]:
    """Provide test settings with safe defaults.

    Settings are read from the environment and cached, so the cache is
    cleared around every test.
    """
    for key, value in TEST_ENV.items():
        monkeypatch.setenv(key, value)
    get_settings.cache_clear()
    yield get_settings()
    get_settings.cache_clear()


# =============================================================================
# EVENTS
# =============================================================================


@pytest.fixture
def captured_events() -> Iterator[list[dict]]:
    """Collect every event published on the default notifier."""
    events: list[dict] = []
    unsubscribe = notifier.subscribe(events.append)
    yield events
    unsubscribe()


# =============================================================================
# CHAT MODEL
# =============================================================================


@pytest.fixture
def fake_llm() -> FakeChatModel:
    return FakeChatModel()


# =============================================================================
# N8N API
# =============================================================================


@pytest.fixture
def fake_n8n() -> FakeN8n:
    return FakeN8n()


@pytest.fixture
def n8n_client(fake_n8n: FakeN8n) -> N8nClient:
    """n8n client wired to the in-memory API."""
    config = N8nClientConfig(base_url=N8N_BASE_URL, api_key=N8N_API_KEY, timeout=5)
    return N8nClient(config, transport=fake_n8n.transport)
