"""Persistent session to the workspace MCP server."""

from gworkspace.session.decorators import IdentityInjector, apply_decorators
from gworkspace.session.manager import SessionManager, build_server_environment
from gworkspace.session.models import (
    Raw,
    RemoteResult,
    SessionState,
    Structured,
    ToolEnvelope,
    Transport,
    classify_envelope,
)

__all__ = [
    "IdentityInjector",
    "apply_decorators",
    "SessionManager",
    "build_server_environment",
    "Raw",
    "RemoteResult",
    "SessionState",
    "Structured",
    "ToolEnvelope",
    "Transport",
    "classify_envelope",
]
