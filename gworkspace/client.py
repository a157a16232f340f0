"""
Google Workspace Client

Cache-aware access to Gmail, Calendar, Drive, Docs, Sheets, Tasks and
comments on Docs, Sheets and Slides, served by the workspace MCP server.

Every read goes through the read-through cache at a TTL tier chosen per
operation (labels and calendars rarely change, message and document
content can). Every mutation calls the server directly and, once it has
succeeded, invalidates the cached reads it declared in
gworkspace.cache.invalidation.

Usage:
    from gworkspace.client import WorkspaceClient

    client = WorkspaceClient.from_config()
    try:
        found = await client.search_gmail_messages("invoice", max_results=10)
        await client.send_gmail_message("a@example.com", "Hi", "Body")
    finally:
        await client.close()
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Literal

from gworkspace.cache.invalidation import InvalidationOrchestrator
from gworkspace.cache.keys import build_cache_key
from gworkspace.cache.store import CacheStats, CacheStore, TTLTier
from gworkspace.config_models import WorkspaceConfig, load_and_validate
from gworkspace.logging_config import get_logger
from gworkspace.session.manager import SessionManager
from gworkspace.session.models import RemoteResult

logger = get_logger(__name__)


def _compact(args: Mapping[str, Any]) -> dict[str, Any]:
    """Drop unset options so they are not sent to the server."""
    return {k: v for k, v in args.items() if v is not None}


class WorkspaceClient:
    """Remote workspace operations behind a read-through cache."""

    def __init__(
        self,
        session: SessionManager,
        cache: CacheStore,
        invalidation: InvalidationOrchestrator | None = None,
    ):
        self.session = session
        self.cache = cache
        self.invalidation = invalidation or InvalidationOrchestrator(cache)

    @classmethod
    def from_config(cls, config: WorkspaceConfig | None = None) -> WorkspaceClient:
        config = config or load_and_validate()
        cache = CacheStore(
            namespace=config.cache.namespace,
            default_ttl=config.cache.default_ttl,
            enabled=config.cache.enabled,
        )
        return cls(SessionManager(config), cache)

    async def close(self) -> None:
        await self.session.disconnect()

    async def __aenter__(self) -> WorkspaceClient:
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    # =========================================================================
    # Call orchestration
    # =========================================================================

    async def _read(
        self,
        family: str,
        key_params: Mapping[str, Any] | None,
        tool: str,
        args: Mapping[str, Any],
        ttl: TTLTier,
    ) -> RemoteResult:
        key = build_cache_key(family, dict(key_params or {}))
        return await self.cache.get_or_fetch(
            key,
            lambda: self.session.invoke(tool, _compact(args)),
            ttl=ttl,
        )

    async def _mutate(self, tool: str, args: Mapping[str, Any]) -> RemoteResult:
        request = _compact(args)
        result = await self.session.invoke(tool, request)
        self.invalidation.apply(tool, request)
        return result

    # =========================================================================
    # Cache control
    # =========================================================================

    def disable_cache(self) -> None:
        """Force fresh data for every subsequent read."""
        self.cache.disable()

    def enable_cache(self) -> None:
        self.cache.enable()

    def get_cache_stats(self) -> CacheStats:
        return self.cache.get_stats()

    def clear_cache(self) -> int:
        return self.cache.clear()

    def invalidate_cache_key(self, key: str) -> bool:
        return self.cache.invalidate(key)

    # =========================================================================
    # Tools
    # =========================================================================

    async def list_tools(self) -> list[dict[str, Any]]:
        return await self.session.list_tools()

    # =========================================================================
    # Gmail
    # =========================================================================

    async def search_gmail_messages(self, query: str, max_results: int | None = None) -> RemoteResult:
        """Search messages with Gmail query syntax (e.g. "from:user@example.com")."""
        return await self._read(
            "gmail_search",
            {"query": query, "max_results": max_results},
            "search_gmail_messages",
            {"query": query, "maxResults": max_results},
            TTLTier.SHORT,
        )

    async def get_gmail_message(self, message_id: str) -> RemoteResult:
        return await self._read(
            "gmail_message",
            {"id": message_id},
            "get_gmail_message_content",
            {"message_id": message_id},
            TTLTier.MEDIUM,
        )

    async def get_gmail_thread(self, thread_id: str) -> RemoteResult:
        return await self._read(
            "gmail_thread",
            {"id": thread_id},
            "get_gmail_thread_content",
            {"thread_id": thread_id},
            TTLTier.MEDIUM,
        )

    async def list_gmail_labels(self) -> RemoteResult:
        return await self._read("gmail_labels", None, "list_gmail_labels", {}, TTLTier.LONG)

    async def send_gmail_message(
        self,
        to: str,
        subject: str,
        body: str,
        cc: str | None = None,
        bcc: str | None = None,
    ) -> RemoteResult:
        return await self._mutate(
            "send_gmail_message",
            {"to": to, "subject": subject, "body": body, "cc": cc, "bcc": bcc},
        )

    async def create_gmail_draft(self, to: str, subject: str, body: str) -> RemoteResult:
        return await self._mutate(
            "draft_gmail_message",
            {"to": to, "subject": subject, "body": body},
        )

    # =========================================================================
    # Calendar
    # =========================================================================

    async def list_calendars(self) -> RemoteResult:
        return await self._read("calendars", None, "list_calendars", {}, TTLTier.LONG)

    async def get_events(
        self,
        calendar_id: str | None = None,
        time_min: str | None = None,
        time_max: str | None = None,
        max_results: int | None = None,
    ) -> RemoteResult:
        args = {
            "calendar_id": calendar_id,
            "time_min": time_min,
            "time_max": time_max,
            "max_results": max_results,
        }
        return await self._read("calendar_events", args, "get_events", args, TTLTier.MEDIUM)

    async def create_event(
        self,
        summary: str,
        start: str,
        end: str,
        description: str | None = None,
        location: str | None = None,
        attendees: str | None = None,
        timezone: str | None = None,
    ) -> RemoteResult:
        return await self._mutate(
            "create_event",
            {
                "summary": summary,
                "start_time": start,
                "end_time": end,
                "description": description,
                "location": location,
                "attendees": attendees,
                "timezone": timezone,
            },
        )

    async def delete_event(self, event_id: str, calendar_id: str | None = None) -> RemoteResult:
        return await self._mutate(
            "delete_event",
            {"event_id": event_id, "calendar_id": calendar_id},
        )

    # =========================================================================
    # Drive
    # =========================================================================

    async def search_drive_files(self, query: str, max_results: int | None = None) -> RemoteResult:
        return await self._read(
            "drive_search",
            {"query": query, "max_results": max_results},
            "search_drive_files",
            {"query": query, "maxResults": max_results},
            TTLTier.MEDIUM,
        )

    async def get_drive_file_content(self, file_id: str) -> RemoteResult:
        return await self._read(
            "drive_file",
            {"id": file_id},
            "get_drive_file_content",
            {"file_id": file_id},
            TTLTier.SHORT,
        )

    async def list_drive_items(self, folder_id: str | None = None) -> RemoteResult:
        return await self._read(
            "drive_items",
            {"folder": folder_id or "root"},
            "list_drive_items",
            {"folderId": folder_id},
            TTLTier.MEDIUM,
        )

    # =========================================================================
    # Docs
    # =========================================================================

    async def search_docs(self, query: str) -> RemoteResult:
        return await self._read(
            "docs_search", {"query": query}, "search_docs", {"query": query}, TTLTier.MEDIUM
        )

    async def get_doc_content(
        self,
        document_id: str,
        suggestions_view_mode: str | None = None,
    ) -> RemoteResult:
        return await self._read(
            "doc_content",
            {"id": document_id, "mode": suggestions_view_mode},
            "get_doc_content",
            {"document_id": document_id, "suggestions_view_mode": suggestions_view_mode},
            TTLTier.SHORT,
        )

    async def create_doc(self, title: str, content: str | None = None) -> RemoteResult:
        return await self._mutate("create_doc", {"title": title, "content": content})

    async def modify_doc_text(
        self,
        document_id: str,
        operation: Literal["insert", "replace", "delete"],
        index: int | None = None,
        text: str | None = None,
        start_index: int | None = None,
        end_index: int | None = None,
        bold: bool | None = None,
        italic: bool | None = None,
        underline: bool | None = None,
        font_size: int | None = None,
        font_family: str | None = None,
    ) -> RemoteResult:
        """Insert, replace or delete text in a document, optionally formatting it."""
        return await self._mutate(
            "modify_doc_text",
            {
                "document_id": document_id,
                "operation": operation,
                "index": index,
                "text": text or None,
                "start_index": start_index,
                "end_index": end_index,
                "bold": bold,
                "italic": italic,
                "underline": underline,
                "font_size": font_size,
                "font_family": font_family or None,
            },
        )

    async def find_and_replace_doc(
        self,
        document_id: str,
        find_text: str,
        replace_text: str,
        replace_all: bool = True,
    ) -> RemoteResult:
        return await self._mutate(
            "find_and_replace_doc",
            {
                "document_id": document_id,
                "find_text": find_text,
                "replace_text": replace_text,
                "replace_all": replace_all,
            },
        )

    # =========================================================================
    # Sheets
    # =========================================================================

    async def list_spreadsheets(self) -> RemoteResult:
        return await self._read("spreadsheets_list", None, "list_spreadsheets", {}, TTLTier.MEDIUM)

    async def get_spreadsheet_info(self, spreadsheet_id: str) -> RemoteResult:
        return await self._read(
            "spreadsheet_info",
            {"id": spreadsheet_id},
            "get_spreadsheet_info",
            {"spreadsheet_id": spreadsheet_id},
            TTLTier.MEDIUM,
        )

    async def read_sheet_values(self, spreadsheet_id: str, range_name: str) -> RemoteResult:
        return await self._read(
            "sheet_values",
            {"id": spreadsheet_id, "range": range_name},
            "read_sheet_values",
            {"spreadsheet_id": spreadsheet_id, "range_name": range_name},
            TTLTier.SHORT,
        )

    async def write_sheet_values(
        self,
        spreadsheet_id: str,
        range_name: str,
        values: list[list[Any]],
    ) -> RemoteResult:
        """Write values; cached reads of every range of the spreadsheet are dropped."""
        return await self._mutate(
            "modify_sheet_values",
            {"spreadsheet_id": spreadsheet_id, "range_name": range_name, "values": values},
        )

    async def write_rich_text_cell(
        self,
        spreadsheet_id: str,
        cell: str,
        segments: list[dict[str, Any]],
        sheet_name: str | None = None,
    ) -> RemoteResult:
        """
        Write rich text (several links or formats) into one cell.

        Args:
            spreadsheet_id: The spreadsheet ID
            cell: A1 reference, e.g. "AD2" or "Sheet1!B5"
            segments: [{"text": ..., "url"?: ..., "bold"?: ..., "foregroundColor"?: "#FF0000", ...}]
            sheet_name: Sheet name (default: first sheet)
        """
        return await self._mutate(
            "write_rich_text_cell",
            {
                "spreadsheet_id": spreadsheet_id,
                "cell": cell,
                "segments": segments,
                "sheet_name": sheet_name,
            },
        )

    async def write_rich_text_cells(
        self,
        spreadsheet_id: str,
        cells: list[dict[str, Any]],
        sheet_name: str | None = None,
    ) -> RemoteResult:
        """Write rich text to several cells ([{"cell": ..., "segments": [...]}]) in one call."""
        return await self._mutate(
            "write_rich_text_cells",
            {"spreadsheet_id": spreadsheet_id, "cells": cells, "sheet_name": sheet_name},
        )

    async def create_spreadsheet(
        self,
        title: str,
        sheet_names: list[str] | None = None,
    ) -> RemoteResult:
        return await self._mutate(
            "create_spreadsheet",
            {"title": title, "sheet_names": sheet_names},
        )

    # =========================================================================
    # Tasks
    # =========================================================================

    async def list_task_lists(self) -> RemoteResult:
        return await self._read("task_lists", None, "list_task_lists", {}, TTLTier.MEDIUM)

    async def list_tasks(self, task_list_id: str) -> RemoteResult:
        return await self._read(
            "tasks",
            {"list_id": task_list_id},
            "list_tasks",
            {"task_list_id": task_list_id},
            TTLTier.SHORT,
        )

    async def create_task(
        self,
        task_list_id: str,
        title: str,
        notes: str | None = None,
        due: str | None = None,
    ) -> RemoteResult:
        return await self._mutate(
            "create_task",
            {"task_list_id": task_list_id, "title": title, "notes": notes, "due": due},
        )

    async def complete_task(self, task_list_id: str, task_id: str) -> RemoteResult:
        return await self._mutate(
            "update_task",
            {"tasklist_id": task_list_id, "task_id": task_id, "status": "completed"},
        )

    # =========================================================================
    # Document comments
    # =========================================================================

    async def get_document_comments(self, document_id: str) -> RemoteResult:
        return await self._read(
            "doc_comments",
            {"id": document_id},
            "read_document_comments",
            {"document_id": document_id},
            TTLTier.MEDIUM,
        )

    async def create_document_comment(
        self,
        document_id: str,
        text: str,
        location: dict[str, Any] | None = None,
    ) -> RemoteResult:
        return await self._mutate(
            "create_document_comment",
            {"document_id": document_id, "text": text, "location": location},
        )

    async def reply_to_document_comment(self, document_id: str, comment_id: str, text: str) -> RemoteResult:
        return await self._mutate(
            "reply_to_document_comment",
            {"document_id": document_id, "comment_id": comment_id, "text": text},
        )

    async def resolve_document_comment(self, document_id: str, comment_id: str) -> RemoteResult:
        return await self._mutate(
            "resolve_document_comment",
            {"document_id": document_id, "comment_id": comment_id},
        )

    # =========================================================================
    # Spreadsheet comments
    # =========================================================================

    async def get_spreadsheet_comments(self, spreadsheet_id: str) -> RemoteResult:
        return await self._read(
            "sheet_comments",
            {"id": spreadsheet_id},
            "read_spreadsheet_comments",
            {"spreadsheet_id": spreadsheet_id},
            TTLTier.MEDIUM,
        )

    async def create_spreadsheet_comment(
        self,
        spreadsheet_id: str,
        sheet_id: int,
        row_index: int,
        column_index: int,
        text: str,
    ) -> RemoteResult:
        """
        Comment on one cell.

        Args:
            spreadsheet_id: The spreadsheet ID
            sheet_id: Numeric sheet ID (see get_spreadsheet_info)
            row_index: Zero-based row index
            column_index: Zero-based column index
            text: Comment text
        """
        return await self._mutate(
            "create_spreadsheet_comment",
            {
                "spreadsheet_id": spreadsheet_id,
                "sheet_id": sheet_id,
                "row_index": row_index,
                "column_index": column_index,
                "text": text,
            },
        )

    async def reply_to_spreadsheet_comment(self, spreadsheet_id: str, comment_id: str, text: str) -> RemoteResult:
        return await self._mutate(
            "reply_to_spreadsheet_comment",
            {"spreadsheet_id": spreadsheet_id, "comment_id": comment_id, "text": text},
        )

    async def resolve_spreadsheet_comment(self, spreadsheet_id: str, comment_id: str) -> RemoteResult:
        return await self._mutate(
            "resolve_spreadsheet_comment",
            {"spreadsheet_id": spreadsheet_id, "comment_id": comment_id},
        )

    # =========================================================================
    # Presentation comments
    # =========================================================================

    async def get_presentation_comments(self, presentation_id: str) -> RemoteResult:
        return await self._read(
            "presentation_comments",
            {"id": presentation_id},
            "read_presentation_comments",
            {"presentation_id": presentation_id},
            TTLTier.MEDIUM,
        )

    async def create_presentation_comment(
        self,
        presentation_id: str,
        slide_id: str,
        text: str,
        location: dict[str, Any] | None = None,
    ) -> RemoteResult:
        return await self._mutate(
            "create_presentation_comment",
            {
                "presentation_id": presentation_id,
                "slide_id": slide_id,
                "text": text,
                "location": location,
            },
        )

    async def reply_to_presentation_comment(
        self,
        presentation_id: str,
        comment_id: str,
        text: str,
    ) -> RemoteResult:
        return await self._mutate(
            "reply_to_presentation_comment",
            {"presentation_id": presentation_id, "comment_id": comment_id, "text": text},
        )

    async def resolve_presentation_comment(self, presentation_id: str, comment_id: str) -> RemoteResult:
        return await self._mutate(
            "resolve_presentation_comment",
            {"presentation_id": presentation_id, "comment_id": comment_id},
        )


__all__ = ["WorkspaceClient"]
