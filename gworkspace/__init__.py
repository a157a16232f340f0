"""
gworkspace - Google Workspace operations over a persistent MCP session

Components:
- cache/: namespaced TTL read-through cache, key builder, invalidation rules
- session/: single lazily-connected session to the workspace MCP server
- client.py: cache-aware client exposing every workspace operation
- cli.py: command line entry point (`gworkspace`)

Usage:
    from gworkspace.client import WorkspaceClient

    client = WorkspaceClient.from_config()
    results = await client.search_gmail_messages("invoice")
    await client.close()
"""

from pathlib import Path

# Path constants
PROJECT_ROOT = Path(__file__).parent.parent
ARGS_DIR = PROJECT_ROOT / "args"
CONFIG_PATH = ARGS_DIR / "workspace.yaml"

__version__ = "1.0.0"

__all__ = [
    "PROJECT_ROOT",
    "ARGS_DIR",
    "CONFIG_PATH",
    "__version__",
]
