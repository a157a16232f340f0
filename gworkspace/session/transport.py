"""
Transport to the workspace MCP server.

The session manager only depends on the Transport protocol in
session/models.py. The production
implementation spawns the configured server command as a child process and
speaks MCP over its stdio using the official ``mcp`` SDK.

Dependencies:
    - mcp (pip install mcp)
"""

from __future__ import annotations

from contextlib import AsyncExitStack
from datetime import timedelta
from typing import Any

import anyio
from mcp import ClientSession, StdioServerParameters
from mcp.client.stdio import stdio_client
from mcp.shared.exceptions import McpError
from mcp.types import Implementation

from gworkspace import __version__
from gworkspace.errors import RemoteError, WorkspaceConnectionError
from gworkspace.logging_config import get_logger
from gworkspace.session.models import ToolEnvelope

logger = get_logger(__name__)

CLIENT_NAME = "google-workspace-cli"

# Raised by the SDK streams when the server process is gone
TRANSPORT_ERRORS = (
    anyio.ClosedResourceError,
    anyio.BrokenResourceError,
    anyio.EndOfStream,
    OSError,
)


class McpStdioTransport:
    """MCP client over the stdio of a spawned server process."""

    def __init__(
        self,
        command: str,
        args: list[str],
        env: dict[str, str],
        timeout_seconds: float | None = None,
    ):
        self.command = command
        self.args = list(args)
        self.env = dict(env)
        self.timeout_seconds = timeout_seconds
        self._stack: AsyncExitStack | None = None
        self._session: ClientSession | None = None

    async def open(self) -> None:
        params = StdioServerParameters(command=self.command, args=self.args, env=self.env)
        timeout = timedelta(seconds=self.timeout_seconds) if self.timeout_seconds else None

        stack = AsyncExitStack()
        try:
            read, write = await stack.enter_async_context(stdio_client(params))
            session = await stack.enter_async_context(
                ClientSession(
                    read,
                    write,
                    read_timeout_seconds=timeout,
                    client_info=Implementation(name=CLIENT_NAME, version=__version__),
                )
            )
            await session.initialize()
        except Exception as e:
            await stack.aclose()
            raise WorkspaceConnectionError(
                f"Failed to start MCP server '{self.command}': {e}"
            ) from e

        self._stack = stack
        self._session = session
        logger.info(f"MCP server started: {self.command} {' '.join(self.args)}")

    def _require_session(self) -> ClientSession:
        if self._session is None:
            raise WorkspaceConnectionError("MCP transport is not open")
        return self._session

    async def call_tool(self, name: str, arguments: dict[str, Any]) -> ToolEnvelope:
        session = self._require_session()
        try:
            result = await session.call_tool(name, arguments=arguments)
        except McpError as e:
            raise RemoteError(name, str(e)) from e
        except TRANSPORT_ERRORS as e:
            raise WorkspaceConnectionError(
                f"Lost connection to MCP server during {name}: {e!r}"
            ) from e

        return ToolEnvelope(
            is_error=bool(result.isError),
            content=[item.model_dump(mode="json", exclude_none=True) for item in result.content],
        )

    async def list_tools(self) -> list[dict[str, Any]]:
        session = self._require_session()
        try:
            result = await session.list_tools()
        except McpError as e:
            raise RemoteError("list_tools", str(e)) from e
        except TRANSPORT_ERRORS as e:
            raise WorkspaceConnectionError(
                f"Lost connection to MCP server during list_tools: {e!r}"
            ) from e
        return [{"name": tool.name, "description": tool.description} for tool in result.tools]

    async def close(self) -> None:
        stack, self._stack, self._session = self._stack, None, None
        if stack is not None:
            await stack.aclose()
            logger.info("MCP server stopped")


__all__ = ["CLIENT_NAME", "TRANSPORT_ERRORS", "McpStdioTransport"]
