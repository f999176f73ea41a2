"""Shared test fixtures for ccbridge tests.

Backends are never contacted: unit tests feed adapters payloads directly and
API tests mock the backend with pytest-httpx.
"""

from collections.abc import AsyncGenerator

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from pydantic import SecretStr

from ccbridge.adapters import OpenAIChatAdapter, OpenAIResponsesAdapter
from ccbridge.api.app import create_app
from ccbridge.config.settings import ProviderSettings, ServerSettings, Settings


CHAT_BASE_URL = "https://chat.backend.test/v1"
RESPONSES_BASE_URL = "https://responses.backend.test/v1"
CLAUDE_BASE_URL = "https://claude.backend.test/v1"


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
    """Keep config discovery and env overrides from leaking into tests."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    monkeypatch.delenv("CONFIG_FILE", raising=False)
    for name in ("SERVER__HOST", "SERVER__PORT", "SERVER__LOG_LEVEL", "DEFAULT_PROVIDER"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def chat_adapter() -> OpenAIChatAdapter:
    return OpenAIChatAdapter()


@pytest.fixture
def responses_adapter() -> OpenAIResponsesAdapter:
    return OpenAIResponsesAdapter()


@pytest.fixture
def test_settings() -> Settings:
    """Three providers, one per adapter, with the chat backend as default."""
    return Settings(
        server=ServerSettings(log_level="WARNING"),
        providers={
            "chat": ProviderSettings(
                adapter="openai", base_url=CHAT_BASE_URL, api_key=SecretStr("sk-chat")
            ),
            "responses": ProviderSettings(
                adapter="openai_responses",
                base_url=RESPONSES_BASE_URL,
                api_key=SecretStr("sk-responses"),
            ),
            "claude": ProviderSettings(
                adapter="passthrough",
                base_url=CLAUDE_BASE_URL,
                api_key=SecretStr("sk-claude"),
            ),
        },
        default_provider="chat",
        model_routes={"gpt-5": "responses", "claude-sonnet-4": "claude"},
    )


@pytest.fixture
def app(test_settings: Settings) -> FastAPI:
    return create_app(settings=test_settings)


@pytest_asyncio.fixture
async def async_client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Client talking to the app in-process; the app's own backend client is mocked."""
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as client:
        yield client
    backend_client = getattr(app.state, "http_client", None)
    if backend_client is not None:
        await backend_client.aclose()
