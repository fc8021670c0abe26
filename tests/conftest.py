"""Shared test fixtures for the chat backend."""

import asyncio
import os
from collections.abc import Callable, Sequence
from typing import Any

import pytest
from fastapi.testclient import TestClient

# Set required environment variables before importing src.main (it builds the app at import)
os.environ.setdefault("OPENAI_API_KEY", "test-openai-key")

from src.auth import Principal, get_principal
from src.config import Config
from src.main import create_app
from src.services.gateway import CompletionResult, GatewayFailure
from src.services.session_store import Message, SessionStore

# ============================================================================
# Fake gateways
# ============================================================================


class FakeCompletionGateway:
    """Completion gateway that records every transcript it receives.

    Replies come from `reply`, which may be a fixed string or a function of
    the transcript. Set `failure` to make every call raise it.
    """

    def __init__(self, reply: str | Callable[[Sequence[Message]], str] | None = None):
        self.reply = reply
        self.failure: Exception | None = None
        self.calls: list[list[Message]] = []

    async def complete(self, messages: Sequence[Message]) -> CompletionResult:
        self.calls.append(list(messages))
        # Yield to the event loop like a real network call would
        await asyncio.sleep(0)
        if self.failure is not None:
            raise self.failure
        if callable(self.reply):
            content = self.reply(messages)
        elif self.reply is not None:
            content = self.reply
        else:
            content = f"echo: {messages[-1].content}"
        return CompletionResult(content=content, model_name="fake-model", usage={"input_tokens": 1})


class FakeImageGateway:
    """Image gateway returning a canned payload."""

    def __init__(self):
        self.failure: Exception | None = None
        self.calls: list[tuple[str, str | None]] = []

    async def generate(self, prompt: str, size: str | None = None) -> dict[str, Any]:
        self.calls.append((prompt, size))
        if self.failure is not None:
            raise self.failure
        return {"created": 1700000000, "data": [{"url": "https://images.example/cat.png"}]}


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def test_config(tmp_path) -> Config:
    """Create a test Config with OAuth configured and a temp upload dir."""
    return Config(
        openai_api_key="test-openai-key",
        google_client_id="test-client-id",
        google_client_secret="test-client-secret",
        session_secret="test-session-secret",
        upload_dir=str(tmp_path / "uploads"),
    )


@pytest.fixture
def session_store() -> SessionStore:
    return SessionStore()


@pytest.fixture
def fake_gateway() -> FakeCompletionGateway:
    return FakeCompletionGateway()


@pytest.fixture
def fake_image_gateway() -> FakeImageGateway:
    return FakeImageGateway()


@pytest.fixture
def app(test_config, session_store, fake_gateway, fake_image_gateway):
    """Application wired to the in-memory store and fake gateways."""
    return create_app(
        test_config,
        store=session_store,
        chat_gateway=fake_gateway,
        image_gateway=fake_image_gateway,
    )


@pytest.fixture
def principal() -> Principal:
    return Principal(id="u1", name="Test User", email="test@example.com")


@pytest.fixture
def client(app, principal) -> TestClient:
    """Client whose requests resolve to an authenticated principal."""
    app.dependency_overrides[get_principal] = lambda: principal
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def anon_client(app) -> TestClient:
    """Client with no logged-in principal."""
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def gateway_failure() -> GatewayFailure:
    return GatewayFailure("Completion provider returned status 500", status_code=500)
