"""
Cache key construction.

A key is the operation family name, optionally followed by ``:`` and the
canonical JSON of its parameters:

    gmail_labels
    gmail_search:{"max_results":10,"query":"invoice"}
    sheet_values:{"id":"1AbC","range":"A1:D10"}

Canonical JSON sorts object keys and drops ``None`` values at every depth,
so construction order never matters and an omitted parameter is the same as
an explicit ``None``. Two bags with identical canonical JSON share a key;
that is the intended equality, not a collision.

Because the family name is a literal prefix, invalidating "everything for
one operation" is a prefix match (``operation_pattern``) and invalidating
"everything for one resource" is a field match (``scoped_pattern``).
"""

from __future__ import annotations

import json
import re
from typing import Any


SEPARATOR = ":"


def _canonical(value: Any) -> Any:
    if isinstance(value, dict):
        return {str(k): _canonical(v) for k, v in value.items() if v is not None}
    if isinstance(value, (list, tuple)):
        return [_canonical(v) for v in value]
    return value


def _dumps(value: Any) -> str:
    return json.dumps(
        value,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        default=str,
    )


def _check_operation(operation: str) -> None:
    if not operation or SEPARATOR in operation:
        raise ValueError(f"Invalid cache operation name: {operation!r}")


def build_cache_key(operation: str, params: dict[str, Any] | None = None) -> str:
    """
    Build the cache key for an operation and its parameter bag.

    Args:
        operation: Operation family name (no ``:``)
        params: Parameters that distinguish one read from another

    Returns:
        Deterministic key string
    """
    _check_operation(operation)
    canonical = _canonical(params or {})
    if not canonical:
        return operation
    return f"{operation}{SEPARATOR}{_dumps(canonical)}"


def operation_pattern(operation: str) -> re.Pattern[str]:
    """Pattern matching every key of one operation family."""
    _check_operation(operation)
    return re.compile(rf"^{re.escape(operation)}(?:{SEPARATOR}|$)")


def scoped_pattern(operation: str, **scope: Any) -> re.Pattern[str]:
    """
    Pattern matching keys of ``operation`` whose top-level parameters include
    every ``scope`` field with exactly the given value.

    Example:
        scoped_pattern("sheet_values", id="1AbC") matches the cached reads of
        spreadsheet 1AbC for every range.
    """
    _check_operation(operation)
    scope = {k: v for k, v in scope.items() if v is not None}
    if not scope:
        return operation_pattern(operation)

    lookaheads = []
    for field_name in sorted(scope):
        fragment = f"{_dumps(field_name)}:{_dumps(_canonical(scope[field_name]))}"
        lookaheads.append(rf"(?=.*[{{,]{re.escape(fragment)}[,}}])")
    return re.compile(rf"^{re.escape(operation)}{SEPARATOR}{''.join(lookaheads)}")


__all__ = ["build_cache_key", "operation_pattern", "scoped_pattern"]
