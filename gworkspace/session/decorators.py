"""
Request decoration applied to every remote call before dispatch.

A decorator takes the caller's parameter dict and returns the dict to send.
Decorators never mutate their input.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

RequestDecorator = Callable[[dict[str, Any]], dict[str, Any]]

IDENTITY_FIELD = "user_google_email"


class IdentityInjector:
    """Fill in the process-wide user identity unless the caller supplied one."""

    def __init__(self, user_email: str | None, field: str = IDENTITY_FIELD):
        self.user_email = user_email
        self.field = field

    def __call__(self, params: dict[str, Any]) -> dict[str, Any]:
        if not self.user_email or params.get(self.field):
            return dict(params)
        return {**params, self.field: self.user_email}

    def __repr__(self) -> str:
        return f"IdentityInjector(field={self.field!r}, user_email={self.user_email!r})"


def apply_decorators(
    params: dict[str, Any] | None,
    decorators: list[RequestDecorator],
) -> dict[str, Any]:
    request = dict(params or {})
    for decorate in decorators:
        request = decorate(request)
    return request


__all__ = ["IDENTITY_FIELD", "IdentityInjector", "RequestDecorator", "apply_decorators"]
