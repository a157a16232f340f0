"""
Error types raised by gworkspace.

None of these are retried inside the package; retry policy belongs to the
caller.
"""

from __future__ import annotations


class WorkspaceError(Exception):
    """Base class for all gworkspace failures."""


class ConfigurationError(WorkspaceError):
    """A required setting is missing. Fatal, raised before any connection attempt."""

    def __init__(self, message: str, missing: list[str] | None = None):
        super().__init__(message)
        self.missing = list(missing or [])


class WorkspaceConnectionError(WorkspaceError, ConnectionError):
    """The transport to the workspace server could not be established."""


class SessionClosedError(WorkspaceConnectionError):
    """The session was shut down explicitly and will not reconnect on its own."""


class RemoteError(WorkspaceError):
    """The server reported a failure for a well-formed call."""

    def __init__(self, tool: str, message: str):
        super().__init__(message)
        self.tool = tool
        self.message = message

    def __str__(self) -> str:
        return f"{self.tool}: {self.message}"


class CommandError(WorkspaceError):
    """Command line arguments were rejected before reaching the server."""


__all__ = [
    "WorkspaceError",
    "ConfigurationError",
    "WorkspaceConnectionError",
    "SessionClosedError",
    "RemoteError",
    "CommandError",
]
