"""
Session states and remote response types.

Remote tool responses arrive as an envelope of content items. A successful
envelope is unwrapped into a tagged result so callers must handle both
shapes explicitly:

    Structured(value)  the first text item parsed as JSON, or the raw
                       content list when there is no text item or the
                       first one is empty
    Raw(text)          the first text item when it is not valid JSON

An error envelope becomes a RemoteError carrying the server's message.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Protocol

from gworkspace.errors import RemoteError


class SessionState(str, Enum):
    UNCONNECTED = "unconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    CLOSED = "closed"


@dataclass
class ToolEnvelope:
    """Transport-neutral tool call response."""

    is_error: bool = False
    content: list[dict[str, Any]] = field(default_factory=list)

    def first_text(self) -> str | None:
        """Text of the first text item, even if empty; None without one."""
        for item in self.content:
            if item.get("type") == "text":
                return item.get("text") or ""
        return None


@dataclass(frozen=True)
class Structured:
    value: Any

    def to_json(self) -> Any:
        return self.value


@dataclass(frozen=True)
class Raw:
    text: str

    def to_json(self) -> Any:
        return self.text


RemoteResult = Structured | Raw


class Transport(Protocol):
    """What the session manager needs from a connection to the server."""

    async def open(self) -> None: ...

    async def call_tool(self, name: str, arguments: dict[str, Any]) -> ToolEnvelope: ...

    async def list_tools(self) -> list[dict[str, Any]]: ...

    async def close(self) -> None: ...


def classify_envelope(tool: str, envelope: ToolEnvelope) -> RemoteResult:
    """
    Unwrap a tool response.

    Raises:
        RemoteError: if the envelope reports an error
    """
    text = envelope.first_text()

    if envelope.is_error:
        raise RemoteError(tool, text or "Tool call failed")

    if not text:
        return Structured(envelope.content)

    try:
        return Structured(json.loads(text))
    except ValueError:
        return Raw(text)


__all__ = [
    "SessionState",
    "ToolEnvelope",
    "Structured",
    "Raw",
    "RemoteResult",
    "Transport",
    "classify_envelope",
]
