"""
Command handlers and argument types for the gworkspace CLI.

Each handler takes the parsed argparse namespace and a WorkspaceClient and
returns whatever should be printed. Handlers translate command line option
names into client arguments; validation that argparse cannot express
(JSON payloads, datetime offsets) raises CommandError before any remote
call is made.
"""

from __future__ import annotations

import argparse
import json
import re
from collections.abc import Awaitable, Callable
from typing import Any

from gworkspace.client import WorkspaceClient
from gworkspace.errors import CommandError
from gworkspace.session.models import Structured

Handler = Callable[[argparse.Namespace, WorkspaceClient], Awaitable[Any]]

_OFFSET_RE = re.compile(r"(?:[+-]\d{2}:\d{2}|Z)$")
_TRUE = {"true", "1", "yes", "y", "on"}
_FALSE = {"false", "0", "no", "n", "off"}


# =============================================================================
# Argument types
# =============================================================================

def bounded_int(minimum: int, maximum: int | None = None) -> Callable[[str], int]:
    """argparse type accepting integers within [minimum, maximum]."""

    def parse(value: str) -> int:
        try:
            number = int(value)
        except ValueError:
            raise argparse.ArgumentTypeError(f"expected an integer, got {value!r}") from None
        if number < minimum or (maximum is not None and number > maximum):
            upper = "" if maximum is None else f"..{maximum}"
            raise argparse.ArgumentTypeError(f"{number} is out of range ({minimum}{upper})")
        return number

    parse.__name__ = "int"
    return parse


def parse_bool(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE:
        return True
    if lowered in _FALSE:
        return False
    raise argparse.ArgumentTypeError(f"expected true/false, got {value!r}")


def non_empty(value: str) -> str:
    if not value:
        raise argparse.ArgumentTypeError("must not be empty")
    return value


def parse_json_option(value: str | None, option: str, expect: type | None = None) -> Any:
    if value is None:
        return None
    try:
        parsed = json.loads(value)
    except ValueError as e:
        raise CommandError(f"--{option} is not valid JSON: {e}") from e
    if expect is not None and not isinstance(parsed, expect):
        raise CommandError(f"--{option} must be a JSON {expect.__name__}")
    return parsed


def has_utc_offset(value: str) -> bool:
    return bool(_OFFSET_RE.search(value))


# =============================================================================
# Tools & cache
# =============================================================================

async def cmd_list_tools(args, client: WorkspaceClient):
    tools = await client.list_tools()
    return [{"name": t.get("name"), "description": t.get("description")} for t in tools]


async def cmd_cache_stats(args, client: WorkspaceClient):
    stats = client.get_cache_stats().to_dict()
    stats["namespace"] = client.cache.namespace
    stats["enabled"] = client.cache.enabled
    stats["size"] = len(client.cache)
    return stats


async def cmd_cache_clear(args, client: WorkspaceClient):
    return {"cleared": client.clear_cache()}


async def cmd_cache_invalidate(args, client: WorkspaceClient):
    return {"key": args.key, "invalidated": client.invalidate_cache_key(args.key)}


# =============================================================================
# Gmail
# =============================================================================

async def cmd_search_gmail(args, client: WorkspaceClient):
    return await client.search_gmail_messages(args.query, args.limit)


async def cmd_get_gmail_message(args, client: WorkspaceClient):
    return await client.get_gmail_message(args.id)


async def cmd_get_gmail_thread(args, client: WorkspaceClient):
    return await client.get_gmail_thread(args.id)


async def cmd_list_gmail_labels(args, client: WorkspaceClient):
    return await client.list_gmail_labels()


async def cmd_send_gmail(args, client: WorkspaceClient):
    return await client.send_gmail_message(args.to, args.subject, args.body, args.cc, args.bcc)


async def cmd_create_gmail_draft(args, client: WorkspaceClient):
    return await client.create_gmail_draft(args.to, args.subject, args.body)


# =============================================================================
# Calendar
# =============================================================================

async def cmd_list_calendars(args, client: WorkspaceClient):
    return await client.list_calendars()


async def cmd_get_events(args, client: WorkspaceClient):
    result = await client.get_events(
        calendar_id=args.calendar_id,
        time_min=args.time_min,
        time_max=args.time_max,
        max_results=args.limit,
    )
    # Filtering happens locally so the cached listing is shared
    if args.event_id and isinstance(result, Structured) and isinstance(result.value, dict):
        events = result.value.get("events")
        if isinstance(events, list):
            filtered = [e for e in events if isinstance(e, dict) and e.get("id") == args.event_id]
            return Structured({**result.value, "events": filtered})
    return result


async def cmd_create_event(args, client: WorkspaceClient):
    if not (has_utc_offset(args.start) or has_utc_offset(args.end) or args.timezone):
        raise CommandError(
            "Start/end times must include timezone offset (e.g. +00:00) or use --timezone"
        )
    return await client.create_event(
        args.summary,
        args.start,
        args.end,
        description=args.description,
        location=args.location,
        attendees=args.attendees,
        timezone=args.timezone,
    )


async def cmd_delete_event(args, client: WorkspaceClient):
    return await client.delete_event(args.id, args.calendar_id)


# =============================================================================
# Drive
# =============================================================================

async def cmd_search_drive(args, client: WorkspaceClient):
    return await client.search_drive_files(args.query, args.limit)


async def cmd_get_drive_content(args, client: WorkspaceClient):
    return await client.get_drive_file_content(args.id)


async def cmd_list_drive_items(args, client: WorkspaceClient):
    return await client.list_drive_items(args.folder_id)


# =============================================================================
# Docs
# =============================================================================

async def cmd_search_docs(args, client: WorkspaceClient):
    return await client.search_docs(args.query)


async def cmd_get_doc_content(args, client: WorkspaceClient):
    return await client.get_doc_content(args.id, args.suggestions_mode)


async def cmd_create_doc(args, client: WorkspaceClient):
    return await client.create_doc(args.title, args.content)


async def cmd_modify_doc_text(args, client: WorkspaceClient):
    return await client.modify_doc_text(
        args.id,
        args.operation,
        index=args.index,
        text=args.text,
        start_index=args.start_index,
        end_index=args.end_index,
        bold=args.bold,
        italic=args.italic,
        underline=args.underline,
        font_size=args.font_size,
        font_family=args.font_family,
    )


async def cmd_find_replace_doc(args, client: WorkspaceClient):
    return await client.find_and_replace_doc(
        args.id, args.find, args.replace, replace_all=args.replace_all is not False
    )


# =============================================================================
# Sheets
# =============================================================================

async def cmd_list_spreadsheets(args, client: WorkspaceClient):
    return await client.list_spreadsheets()


async def cmd_get_spreadsheet_info(args, client: WorkspaceClient):
    return await client.get_spreadsheet_info(args.id)


async def cmd_read_sheet(args, client: WorkspaceClient):
    return await client.read_sheet_values(args.id, args.range)


async def cmd_write_sheet(args, client: WorkspaceClient):
    values = parse_json_option(args.values, "values", list)
    if not all(isinstance(row, list) for row in values):
        raise CommandError("--values must be a JSON array of rows (arrays)")
    return await client.write_sheet_values(args.id, args.range, values)


async def cmd_write_rich_text(args, client: WorkspaceClient):
    segments = parse_json_option(args.segments, "segments", list)
    return await client.write_rich_text_cell(args.id, args.cell, segments, args.sheet_name)


async def cmd_write_rich_text_batch(args, client: WorkspaceClient):
    cells = parse_json_option(args.cells, "cells", list)
    return await client.write_rich_text_cells(args.id, cells, args.sheet_name)


async def cmd_create_spreadsheet(args, client: WorkspaceClient):
    sheet_names = parse_json_option(args.sheet_names, "sheet-names", list)
    return await client.create_spreadsheet(args.title, sheet_names)


# =============================================================================
# Tasks
# =============================================================================

async def cmd_list_task_lists(args, client: WorkspaceClient):
    return await client.list_task_lists()


async def cmd_list_tasks(args, client: WorkspaceClient):
    return await client.list_tasks(args.id)


async def cmd_create_task(args, client: WorkspaceClient):
    return await client.create_task(args.list_id, args.title, args.notes, args.due)


async def cmd_complete_task(args, client: WorkspaceClient):
    return await client.complete_task(args.list_id, args.id)


# =============================================================================
# Comments
# =============================================================================

async def cmd_get_doc_comments(args, client: WorkspaceClient):
    return await client.get_document_comments(args.id)


async def cmd_create_doc_comment(args, client: WorkspaceClient):
    location = parse_json_option(args.location, "location", dict)
    return await client.create_document_comment(args.id, args.text, location)


async def cmd_reply_doc_comment(args, client: WorkspaceClient):
    return await client.reply_to_document_comment(args.id, args.comment_id, args.text)


async def cmd_resolve_doc_comment(args, client: WorkspaceClient):
    return await client.resolve_document_comment(args.id, args.comment_id)


async def cmd_get_sheet_comments(args, client: WorkspaceClient):
    return await client.get_spreadsheet_comments(args.id)


async def cmd_create_sheet_comment(args, client: WorkspaceClient):
    return await client.create_spreadsheet_comment(
        args.id, args.sheet_id, args.row_index, args.column_index, args.text
    )


async def cmd_reply_sheet_comment(args, client: WorkspaceClient):
    return await client.reply_to_spreadsheet_comment(args.id, args.comment_id, args.text)


async def cmd_resolve_sheet_comment(args, client: WorkspaceClient):
    return await client.resolve_spreadsheet_comment(args.id, args.comment_id)


async def cmd_get_presentation_comments(args, client: WorkspaceClient):
    return await client.get_presentation_comments(args.id)


async def cmd_create_presentation_comment(args, client: WorkspaceClient):
    location = parse_json_option(args.location, "location", dict)
    return await client.create_presentation_comment(args.id, args.slide_id, args.text, location)


async def cmd_reply_presentation_comment(args, client: WorkspaceClient):
    return await client.reply_to_presentation_comment(args.id, args.comment_id, args.text)


async def cmd_resolve_presentation_comment(args, client: WorkspaceClient):
    return await client.resolve_presentation_comment(args.id, args.comment_id)
