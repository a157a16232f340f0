"""Shared test fixtures for gworkspace tests.

This module provides common fixtures used across all test modules:
- A manual clock for deterministic TTL expiry
- A scripted in-memory transport standing in for the MCP server
- Workspace configuration with the required environment filled in

Usage:
    async def test_something(client, fake_transport):
        fake_transport.respond("list_gmail_labels", {"labels": []})
        ...
"""

import json
import logging
from pathlib import Path
from typing import Any

import pytest

from gworkspace.cache.store import CacheStore
from gworkspace.client import WorkspaceClient
from gworkspace.config_models import WorkspaceConfig
from gworkspace.session.manager import SessionManager
from gworkspace.session.models import ToolEnvelope


# ─────────────────────────────────────────────────────────────────────────────
# Test Doubles
# ─────────────────────────────────────────────────────────────────────────────


class ManualClock:
    """Monotonic clock advanced by hand."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeTransport:
    """In-memory transport recording every call.

    Responses are registered per tool; a tool without a registered response
    answers with an empty JSON object.
    """

    def __init__(self):
        self.calls: list[tuple[str, dict[str, Any]]] = []
        self.responses: dict[str, ToolEnvelope] = {}
        self.tools: list[dict[str, Any]] = []
        self.opened = 0
        self.closed = 0
        self.open_error: Exception | None = None
        self.call_error: Exception | None = None

    def respond(self, tool: str, value: Any) -> None:
        text = value if isinstance(value, str) else json.dumps(value)
        self.responses[tool] = ToolEnvelope(content=[{"type": "text", "text": text}])

    def fail(self, tool: str, message: str) -> None:
        self.responses[tool] = ToolEnvelope(
            is_error=True, content=[{"type": "text", "text": message}]
        )

    def calls_to(self, tool: str) -> list[dict[str, Any]]:
        return [params for name, params in self.calls if name == tool]

    async def open(self) -> None:
        self.opened += 1
        if self.open_error is not None:
            raise self.open_error

    async def call_tool(self, name: str, arguments: dict[str, Any]) -> ToolEnvelope:
        self.calls.append((name, arguments))
        if self.call_error is not None:
            raise self.call_error
        return self.responses.get(name, ToolEnvelope(content=[{"type": "text", "text": "{}"}]))

    async def list_tools(self) -> list[dict[str, Any]]:
        if self.call_error is not None:
            raise self.call_error
        return self.tools

    async def close(self) -> None:
        self.closed += 1


# ─────────────────────────────────────────────────────────────────────────────
# Environment Fixtures
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def server_environ(tmp_path: Path) -> dict:
    """Environment with every required OAuth variable set.

    Returns:
        dict usable as SessionManager(environ=...)
    """
    return {
        "GOOGLE_OAUTH_CLIENT_ID": "client-id",
        "GOOGLE_OAUTH_CLIENT_SECRET": "client-secret",
        "GOOGLE_MCP_CREDENTIALS_DIR": str(tmp_path / "credentials"),
    }


@pytest.fixture
def workspace_config() -> WorkspaceConfig:
    """Default configuration with a user identity."""
    return WorkspaceConfig(user_email="user@example.com")


# ─────────────────────────────────────────────────────────────────────────────
# Session & Client Fixtures
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def fake_transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def session(workspace_config, fake_transport, server_environ) -> SessionManager:
    """SessionManager wired to the fake transport."""
    return SessionManager(
        workspace_config,
        transport_factory=lambda server, env: fake_transport,
        environ=server_environ,
    )


@pytest.fixture
def cache(clock) -> CacheStore:
    return CacheStore(namespace="test-workspace", clock=clock)


@pytest.fixture
def client(session, cache) -> WorkspaceClient:
    """WorkspaceClient over the fake transport and a manual-clock cache."""
    return WorkspaceClient(session, cache)


# ─────────────────────────────────────────────────────────────────────────────
# Logging Fixtures
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture(autouse=True)
def restore_root_logging():
    """Remove handlers a test installs on the root logger and restore its level."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level

    yield root

    for handler in list(root.handlers):
        if handler not in handlers:
            root.removeHandler(handler)
    root.setLevel(level)
