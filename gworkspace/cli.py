#!/usr/bin/env python3
"""
Google Workspace Command Line Interface

Main entry point for the `gworkspace` command. Every command runs against one
MCP session that is started on first use and closed before exit.

Usage:
    gworkspace search-gmail --query "invoice" --limit 10
    gworkspace read-sheet --id <spreadsheet-id> --range A1:D10
    gworkspace write-sheet --id <spreadsheet-id> --range A1 --values '[["x"]]'
    gworkspace --no-cache get-events --time-min 2026-01-01T00:00:00Z
    gworkspace list-tools

Output:
    Results are printed to stdout as indented JSON (plain text results as-is).
    Failures print {"error": "..."} to stderr and exit with status 1.

Environment:
    GOOGLE_OAUTH_CLIENT_ID, GOOGLE_OAUTH_CLIENT_SECRET, GOOGLE_MCP_CREDENTIALS_DIR
    GWORKSPACE_CONFIG      Path to the YAML config (default: args/workspace.yaml)
    GWORKSPACE_USER_EMAIL  Identity injected into every call
    GWORKSPACE_LOG_LEVEL   Log level (default: WARNING)
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from typing import Any

from gworkspace import __version__
from gworkspace import commands as cmd
from gworkspace.client import WorkspaceClient
from gworkspace.commands import bounded_int, non_empty, parse_bool
from gworkspace.errors import WorkspaceError
from gworkspace.logging_config import get_logger, setup_logging
from gworkspace.session.models import Raw, Structured

logger = get_logger(__name__)


def _add(subparsers, name: str, help_text: str, func) -> argparse.ArgumentParser:
    parser = subparsers.add_parser(name, help=help_text, description=help_text)
    parser.set_defaults(func=func)
    return parser


def _required(parser: argparse.ArgumentParser, flag: str, help_text: str, **kwargs) -> None:
    kwargs.setdefault("type", non_empty)
    parser.add_argument(flag, required=True, help=help_text, **kwargs)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gworkspace",
        description="Google Workspace operations via MCP",
    )
    parser.add_argument("--version", "-V", action="version", version=f"gworkspace {__version__}")
    parser.add_argument(
        "--no-cache", action="store_true", help="Bypass the cache and fetch fresh data"
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    _add(subparsers, "list-tools", "List all available MCP tools", cmd.cmd_list_tools)

    # ==================== Gmail ====================
    p = _add(subparsers, "search-gmail", "Search Gmail messages", cmd.cmd_search_gmail)
    _required(p, "--query", "Search query")
    p.add_argument("--limit", type=bounded_int(1, 500), help="Max results")

    p = _add(subparsers, "get-gmail-message", "Get a specific email", cmd.cmd_get_gmail_message)
    _required(p, "--id", "Message ID")

    p = _add(subparsers, "get-gmail-thread", "Get a full email thread", cmd.cmd_get_gmail_thread)
    _required(p, "--id", "Thread ID")

    _add(subparsers, "list-gmail-labels", "List Gmail labels", cmd.cmd_list_gmail_labels)

    p = _add(subparsers, "send-gmail", "Send an email", cmd.cmd_send_gmail)
    _required(p, "--to", "Recipient email")
    _required(p, "--subject", "Email subject")
    _required(p, "--body", "Email body")
    p.add_argument("--cc", help="CC recipients")
    p.add_argument("--bcc", help="BCC recipients")

    p = _add(subparsers, "create-gmail-draft", "Create a draft", cmd.cmd_create_gmail_draft)
    _required(p, "--to", "Recipient email")
    _required(p, "--subject", "Email subject")
    _required(p, "--body", "Email body")

    # ==================== Calendar ====================
    _add(subparsers, "list-calendars", "List available calendars", cmd.cmd_list_calendars)

    p = _add(subparsers, "get-events", "Get calendar events", cmd.cmd_get_events)
    p.add_argument("--calendar-id", help="Calendar ID")
    p.add_argument("--time-min", help="Events after this time (ISO 8601)")
    p.add_argument("--time-max", help="Events before this time (ISO 8601)")
    p.add_argument("--event-id", help="Filter to specific event ID")
    p.add_argument("--limit", type=bounded_int(1, 2500), help="Max results")

    p = _add(subparsers, "create-event", "Create a new event", cmd.cmd_create_event)
    _required(p, "--summary", "Event title")
    _required(p, "--start", "Event start (ISO 8601, include offset e.g. +00:00)")
    _required(p, "--end", "Event end (ISO 8601, include offset e.g. +00:00)")
    p.add_argument("--description", help="Event description")
    p.add_argument("--location", help="Event location")
    p.add_argument("--attendees", help="Comma-separated attendee emails")
    p.add_argument(
        "--timezone",
        help="IANA timezone (e.g. Europe/London). Only needed if start/end lack offset",
    )

    p = _add(subparsers, "delete-event", "Delete an event", cmd.cmd_delete_event)
    _required(p, "--id", "Event ID")
    p.add_argument("--calendar-id", help="Calendar ID")

    # ==================== Drive ====================
    p = _add(subparsers, "search-drive", "Search Drive files", cmd.cmd_search_drive)
    _required(p, "--query", "Search query")
    p.add_argument("--limit", type=bounded_int(1, 1000), help="Max results")

    p = _add(subparsers, "get-drive-content", "Get file content", cmd.cmd_get_drive_content)
    _required(p, "--id", "File ID")

    p = _add(subparsers, "list-drive-items", "List files in folder", cmd.cmd_list_drive_items)
    p.add_argument("--folder-id", help="Folder ID")

    # ==================== Docs ====================
    p = _add(subparsers, "search-docs", "Search Google Docs", cmd.cmd_search_docs)
    _required(p, "--query", "Search query")

    p = _add(subparsers, "get-doc-content", "Get document content", cmd.cmd_get_doc_content)
    _required(p, "--id", "Document ID")
    p.add_argument("--suggestions-mode", help="Suggestions view mode")

    p = _add(subparsers, "create-doc", "Create new document", cmd.cmd_create_doc)
    _required(p, "--title", "Document title")
    p.add_argument("--content", help="Initial content")

    p = _add(subparsers, "modify-doc-text", "Insert/replace/delete text", cmd.cmd_modify_doc_text)
    _required(p, "--id", "Document ID")
    p.add_argument(
        "--operation", required=True, choices=["insert", "replace", "delete"], help="Operation type"
    )
    p.add_argument("--index", type=bounded_int(1), help="Insert index")
    p.add_argument("--text", help="Text to insert/replace")
    p.add_argument("--start-index", type=bounded_int(1), help="Start index for replace/delete")
    p.add_argument("--end-index", type=bounded_int(1), help="End index for replace/delete")
    p.add_argument("--bold", type=parse_bool, help="Bold formatting")
    p.add_argument("--italic", type=parse_bool, help="Italic formatting")
    p.add_argument("--underline", type=parse_bool, help="Underline formatting")
    p.add_argument("--font-size", type=bounded_int(1), help="Font size in points")
    p.add_argument("--font-family", help="Font family name")

    p = _add(subparsers, "find-replace-doc", "Find and replace in document", cmd.cmd_find_replace_doc)
    _required(p, "--id", "Document ID")
    _required(p, "--find", "Text to find")
    _required(p, "--replace", "Replacement text")
    p.add_argument("--replace-all", type=parse_bool, help="Replace all occurrences (default: true)")

    # ==================== Sheets ====================
    _add(subparsers, "list-spreadsheets", "List spreadsheets", cmd.cmd_list_spreadsheets)

    p = _add(subparsers, "get-spreadsheet-info", "Get spreadsheet metadata", cmd.cmd_get_spreadsheet_info)
    _required(p, "--id", "Spreadsheet ID")

    p = _add(subparsers, "read-sheet", "Read sheet values", cmd.cmd_read_sheet)
    _required(p, "--id", "Spreadsheet ID")
    _required(p, "--range", "Sheet range (e.g., A1:D10)")

    p = _add(subparsers, "write-sheet", "Write sheet values", cmd.cmd_write_sheet)
    _required(p, "--id", "Spreadsheet ID")
    _required(p, "--range", "Sheet range")
    _required(p, "--values", "JSON array of values")

    p = _add(
        subparsers, "write-rich-text", "Write rich text with formatting/links to a cell",
        cmd.cmd_write_rich_text,
    )
    _required(p, "--id", "Spreadsheet ID")
    _required(p, "--cell", "Cell reference (e.g., AD2)")
    _required(p, "--segments", "JSON array of {text, url?, bold?, ...}")
    p.add_argument("--sheet-name", help="Sheet name")

    p = _add(
        subparsers, "write-rich-text-batch", "Write rich text to multiple cells",
        cmd.cmd_write_rich_text_batch,
    )
    _required(p, "--id", "Spreadsheet ID")
    _required(p, "--cells", "JSON array of {cell, segments}")
    p.add_argument("--sheet-name", help="Sheet name")

    p = _add(subparsers, "create-spreadsheet", "Create new spreadsheet", cmd.cmd_create_spreadsheet)
    _required(p, "--title", "Spreadsheet title")
    p.add_argument("--sheet-names", help="JSON array of sheet names")

    # ==================== Tasks ====================
    _add(subparsers, "list-task-lists", "List task lists", cmd.cmd_list_task_lists)

    p = _add(subparsers, "list-tasks", "List tasks", cmd.cmd_list_tasks)
    _required(p, "--id", "Task list ID")

    p = _add(subparsers, "create-task", "Create a task", cmd.cmd_create_task)
    _required(p, "--list-id", "Task list ID")
    _required(p, "--title", "Task title")
    p.add_argument("--notes", help="Task notes")
    p.add_argument("--due", help="Due date (ISO 8601)")

    p = _add(subparsers, "complete-task", "Mark task complete", cmd.cmd_complete_task)
    _required(p, "--list-id", "Task list ID")
    _required(p, "--id", "Task ID")

    # ==================== Comments ====================
    for kind, label, getter, creator, replier, resolver in (
        ("doc", "Document", cmd.cmd_get_doc_comments, cmd.cmd_create_doc_comment,
         cmd.cmd_reply_doc_comment, cmd.cmd_resolve_doc_comment),
        ("sheet", "Spreadsheet", cmd.cmd_get_sheet_comments, cmd.cmd_create_sheet_comment,
         cmd.cmd_reply_sheet_comment, cmd.cmd_resolve_sheet_comment),
        ("presentation", "Presentation", cmd.cmd_get_presentation_comments,
         cmd.cmd_create_presentation_comment, cmd.cmd_reply_presentation_comment,
         cmd.cmd_resolve_presentation_comment),
    ):
        noun = label.lower()
        p = _add(subparsers, f"get-{kind}-comments", f"Get {noun} comments", getter)
        _required(p, "--id", f"{label} ID")

        p = _add(subparsers, f"create-{kind}-comment", f"Create {noun} comment", creator)
        _required(p, "--id", f"{label} ID")
        if kind == "sheet":
            p.add_argument("--sheet-id", required=True, type=bounded_int(0), help="Sheet ID")
            p.add_argument("--row-index", required=True, type=bounded_int(0), help="Row index")
            p.add_argument("--column-index", required=True, type=bounded_int(0), help="Column index")
        elif kind == "presentation":
            _required(p, "--slide-id", "Slide ID")
        _required(p, "--text", "Comment text")
        if kind != "sheet":
            p.add_argument("--location", help="Location as JSON")

        p = _add(subparsers, f"reply-{kind}-comment", f"Reply to {noun} comment", replier)
        _required(p, "--id", f"{label} ID")
        _required(p, "--comment-id", "Comment ID")
        _required(p, "--text", "Reply text")

        p = _add(subparsers, f"resolve-{kind}-comment", f"Resolve {noun} comment", resolver)
        _required(p, "--id", f"{label} ID")
        _required(p, "--comment-id", "Comment ID")

    # ==================== Cache ====================
    _add(subparsers, "cache-stats", "Show cache hit/miss statistics", cmd.cmd_cache_stats)
    _add(subparsers, "cache-clear", "Clear all cached data", cmd.cmd_cache_clear)
    p = _add(subparsers, "cache-invalidate", "Invalidate one cache key", cmd.cmd_cache_invalidate)
    p.add_argument("key", type=non_empty, help="Cache key")

    return parser


def render(result: Any) -> str:
    """Render a command result for stdout."""
    if isinstance(result, Raw):
        return result.text
    if isinstance(result, Structured):
        result = result.value
    if isinstance(result, str):
        return result
    return json.dumps(result, indent=2, ensure_ascii=False, default=str)


async def run_command(args: argparse.Namespace, client: WorkspaceClient | None = None) -> int:
    """Execute one parsed command and always close the session afterwards."""
    client = client or WorkspaceClient.from_config()
    if args.no_cache:
        client.disable_cache()

    try:
        result = await args.func(args, client)
    except WorkspaceError as e:
        logger.debug(f"Command {args.command} failed: {e!r}")
        print(json.dumps({"error": str(e)}), file=sys.stderr)
        return 1
    finally:
        await client.close()

    print(render(result))
    return 0


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(level="DEBUG" if args.verbose else None)

    if not getattr(args, "func", None):
        parser.print_help()
        return 1

    return asyncio.run(run_command(args))


if __name__ == "__main__":
    sys.exit(main())
