"""
Session Manager for the workspace MCP server

Owns the one session every command in the process shares. The session is
established lazily on first use and lives until disconnect() or process
exit.

States:
    unconnected - nothing started yet
    connecting  - environment validated, transport handshake in progress
    connected   - calls are dispatched
    closed      - disconnected explicitly; invoke() refuses to reconnect

A connection error during a call drops the session back to unconnected, so
the following call starts a fresh server process.

Usage:
    from gworkspace.session.manager import SessionManager

    async with SessionManager(config) as session:
        result = await session.invoke("list_gmail_labels")

Required environment (checked before any process is spawned):
    GOOGLE_OAUTH_CLIENT_ID
    GOOGLE_OAUTH_CLIENT_SECRET
    GOOGLE_MCP_CREDENTIALS_DIR (derived from dirname(GOOGLE_OAUTH_TOKEN) if unset)
"""

from __future__ import annotations

import asyncio
import os
from collections.abc import Callable, Mapping
from typing import Any

from gworkspace.config_models import McpServerConfig, WorkspaceConfig
from gworkspace.errors import (
    ConfigurationError,
    RemoteError,
    SessionClosedError,
    WorkspaceConnectionError,
)
from gworkspace.logging_config import get_logger
from gworkspace.session.decorators import IdentityInjector, RequestDecorator, apply_decorators
from gworkspace.session.models import RemoteResult, SessionState, Transport, classify_envelope

logger = get_logger(__name__)

REQUIRED_ENV_VARS = (
    "GOOGLE_OAUTH_CLIENT_ID",
    "GOOGLE_OAUTH_CLIENT_SECRET",
    "GOOGLE_MCP_CREDENTIALS_DIR",
)

TransportFactory = Callable[[McpServerConfig, dict[str, str]], Transport]


def default_transport_factory(server: McpServerConfig, env: dict[str, str]) -> Transport:
    from gworkspace.session.transport import McpStdioTransport

    return McpStdioTransport(
        command=server.command,
        args=server.args,
        env=env,
        timeout_seconds=server.timeout_seconds,
    )


def build_server_environment(
    server: McpServerConfig,
    environ: Mapping[str, str] | None = None,
) -> dict[str, str]:
    """
    Build the server process environment and check required values.

    Raises:
        ConfigurationError: listing every missing variable
    """
    env = {**(os.environ if environ is None else environ), **server.env}

    if not env.get("GOOGLE_MCP_CREDENTIALS_DIR") and env.get("GOOGLE_OAUTH_TOKEN"):
        env["GOOGLE_MCP_CREDENTIALS_DIR"] = os.path.dirname(env["GOOGLE_OAUTH_TOKEN"])

    missing = [name for name in REQUIRED_ENV_VARS if not env.get(name)]
    if missing:
        raise ConfigurationError(
            f"Required environment variable(s) not set: {', '.join(missing)}",
            missing=missing,
        )
    return env


class SessionManager:
    """
    Single lazily-connected session to the workspace MCP server.

    Concurrent callers share one connect attempt. Every request passes through
    the decorator chain (identity injection by default) before dispatch.
    """

    def __init__(
        self,
        config: WorkspaceConfig,
        transport_factory: TransportFactory | None = None,
        decorators: list[RequestDecorator] | None = None,
        environ: Mapping[str, str] | None = None,
    ):
        self.config = config
        self._transport_factory = transport_factory or default_transport_factory
        if decorators is None:
            decorators = [IdentityInjector(config.user_email)]
        self.decorators = list(decorators)
        self._environ = environ
        self._transport: Transport | None = None
        self._state = SessionState.UNCONNECTED
        self._connect_lock = asyncio.Lock()

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def connected(self) -> bool:
        return self._state is SessionState.CONNECTED

    async def connect(self) -> None:
        """Connect if not already connected. Fails fast on missing configuration."""
        if self.connected:
            return

        async with self._connect_lock:
            if self.connected:
                return

            env = build_server_environment(self.config.mcp_server, self._environ)

            self._state = SessionState.CONNECTING
            transport = self._transport_factory(self.config.mcp_server, env)
            try:
                await transport.open()
            except WorkspaceConnectionError:
                self._state = SessionState.UNCONNECTED
                raise
            except Exception as e:
                self._state = SessionState.UNCONNECTED
                raise WorkspaceConnectionError(f"Failed to connect to MCP server: {e}") from e

            self._transport = transport
            self._state = SessionState.CONNECTED
            logger.info("Workspace session connected")

    async def disconnect(self) -> None:
        """Tear down the session. No-op when not connected."""
        if not self.connected:
            return

        transport, self._transport = self._transport, None
        try:
            if transport is not None:
                await transport.close()
        finally:
            self._state = SessionState.CLOSED
            logger.info("Workspace session closed")

    async def _abandon(self, transport: Transport, error: Exception) -> None:
        """Forget a transport whose server went away; the next call reconnects."""
        if self._transport is not transport:
            return
        self._transport = None
        self._state = SessionState.UNCONNECTED
        logger.warning(f"Workspace session lost: {error}")
        try:
            await transport.close()
        except Exception as close_error:
            logger.debug(f"Closing lost transport failed: {close_error!r}")

    async def _ensure_transport(self) -> Transport:
        if self._state is SessionState.CLOSED:
            raise SessionClosedError("Workspace session was closed")
        await self.connect()
        assert self._transport is not None
        return self._transport

    async def invoke(self, tool: str, params: dict[str, Any] | None = None) -> RemoteResult:
        """
        Call a remote tool.

        Args:
            tool: Remote tool name
            params: Remote field names and values

        Returns:
            Structured or Raw result

        Raises:
            ConfigurationError, WorkspaceConnectionError, RemoteError
        """
        transport = await self._ensure_transport()
        request = apply_decorators(params, self.decorators)

        logger.debug(f"Calling tool {tool}")
        try:
            envelope = await transport.call_tool(tool, request)
        except WorkspaceConnectionError as e:
            await self._abandon(transport, e)
            raise
        try:
            return classify_envelope(tool, envelope)
        except RemoteError as e:
            logger.warning(f"Tool {tool} failed: {e.message}")
            raise

    async def list_tools(self) -> list[dict[str, Any]]:
        transport = await self._ensure_transport()
        try:
            return await transport.list_tools()
        except WorkspaceConnectionError as e:
            await self._abandon(transport, e)
            raise

    async def __aenter__(self) -> SessionManager:
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.disconnect()


__all__ = [
    "REQUIRED_ENV_VARS",
    "SessionManager",
    "TransportFactory",
    "build_server_environment",
    "default_transport_factory",
]
