"""
Write-invalidation rules for cached workspace reads.

Every mutating remote tool declares, statically, which cached read families
it makes stale. The table below must be kept in sync whenever a mutating
tool is added, or a new cached read shares data with an existing mutation.

A target either names one exact key (``exact=True``: the key is rebuilt from
the mutation's parameters) or a family of keys: the whole family when it has
no scope, otherwise every key of the family carrying the scoped values
("every cached range of this spreadsheet").

Invalidation only ever runs after the mutation succeeded. A target that
matches nothing is the normal case and is not reported as an error.

Usage:
    from gworkspace.cache.invalidation import InvalidationOrchestrator

    invalidation = InvalidationOrchestrator(cache)
    result = await session.invoke("modify_sheet_values", args)
    invalidation.apply("modify_sheet_values", args)
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from gworkspace.cache.keys import build_cache_key, operation_pattern, scoped_pattern
from gworkspace.cache.store import CacheStore
from gworkspace.logging_config import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class InvalidationTarget:
    """
    One family of cached reads owned by a mutation.

    Attributes:
        family: Cache operation family, e.g. "sheet_values"
        scope: (read key field, mutation parameter) pairs narrowing the family
        exact: Rebuild a single key from the scope instead of matching a family
    """

    family: str
    scope: tuple[tuple[str, str], ...] = ()
    exact: bool = False

    def scope_values(self, params: Mapping[str, Any]) -> dict[str, Any] | None:
        """Resolve scope values from mutation params; None if any is missing."""
        values = {}
        for key_field, param_name in self.scope:
            value = params.get(param_name)
            if value is None:
                return None
            values[key_field] = value
        return values

    def apply(self, cache: CacheStore, params: Mapping[str, Any]) -> int:
        values = self.scope_values(params)
        if values is None:
            # Without the scoping value the safe choice is the whole family
            return cache.invalidate_pattern(operation_pattern(self.family))
        if self.exact:
            return int(cache.invalidate(build_cache_key(self.family, values)))
        if values:
            return cache.invalidate_pattern(scoped_pattern(self.family, **values))
        return cache.invalidate_pattern(operation_pattern(self.family))


def _family(name: str) -> InvalidationTarget:
    return InvalidationTarget(name)


def _scoped(name: str, **scope: str) -> InvalidationTarget:
    return InvalidationTarget(name, tuple(scope.items()))


def _exact(name: str, **scope: str) -> InvalidationTarget:
    return InvalidationTarget(name, tuple(scope.items()), exact=True)


# Remote mutating tool -> cached read families it invalidates
INVALIDATION_RULES: dict[str, tuple[InvalidationTarget, ...]] = {
    # Gmail
    "send_gmail_message": (_family("gmail_search"),),
    "draft_gmail_message": (),
    # Calendar
    "create_event": (_family("calendar_events"),),
    "delete_event": (_family("calendar_events"),),
    # Docs
    "create_doc": (_family("docs_search"),),
    "modify_doc_text": (_scoped("doc_content", id="document_id"),),
    "find_and_replace_doc": (_scoped("doc_content", id="document_id"),),
    # Sheets
    "modify_sheet_values": (_scoped("sheet_values", id="spreadsheet_id"),),
    "write_rich_text_cell": (_scoped("sheet_values", id="spreadsheet_id"),),
    "write_rich_text_cells": (_scoped("sheet_values", id="spreadsheet_id"),),
    "create_spreadsheet": (_family("spreadsheets_list"),),
    # Tasks (the remote API spells the list id differently per tool)
    "create_task": (_exact("tasks", list_id="task_list_id"),),
    "update_task": (_exact("tasks", list_id="tasklist_id"),),
    # Document comments
    "create_document_comment": (_exact("doc_comments", id="document_id"),),
    "reply_to_document_comment": (_exact("doc_comments", id="document_id"),),
    "resolve_document_comment": (_exact("doc_comments", id="document_id"),),
    # Spreadsheet comments
    "create_spreadsheet_comment": (_exact("sheet_comments", id="spreadsheet_id"),),
    "reply_to_spreadsheet_comment": (_exact("sheet_comments", id="spreadsheet_id"),),
    "resolve_spreadsheet_comment": (_exact("sheet_comments", id="spreadsheet_id"),),
    # Presentation comments
    "create_presentation_comment": (_exact("presentation_comments", id="presentation_id"),),
    "reply_to_presentation_comment": (_exact("presentation_comments", id="presentation_id"),),
    "resolve_presentation_comment": (_exact("presentation_comments", id="presentation_id"),),
}


class InvalidationOrchestrator:
    """Applies the declared invalidation targets of a completed mutation."""

    def __init__(
        self,
        cache: CacheStore,
        rules: Mapping[str, tuple[InvalidationTarget, ...]] | None = None,
    ):
        self.cache = cache
        self.rules = dict(INVALIDATION_RULES if rules is None else rules)

    def is_mutating(self, tool: str) -> bool:
        return tool in self.rules

    def targets_for(self, tool: str) -> tuple[InvalidationTarget, ...]:
        try:
            return self.rules[tool]
        except KeyError:
            raise KeyError(f"No invalidation rule declared for mutating tool '{tool}'") from None

    def apply(self, tool: str, params: Mapping[str, Any] | None = None) -> int:
        """
        Invalidate everything ``tool`` declared. Call only after it succeeded.

        Returns:
            Total number of cache entries removed
        """
        params = params or {}
        removed = sum(target.apply(self.cache, params) for target in self.targets_for(tool))
        logger.debug(f"Invalidation for {tool} removed {removed} entries")
        return removed


__all__ = ["INVALIDATION_RULES", "InvalidationOrchestrator", "InvalidationTarget"]
