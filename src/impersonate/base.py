"""Shared types and the error taxonomy for impersonate.

Every error raised by the manager and its collaborators derives from
ImpersonateError so hosts can translate them in one place.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Protocol, Union, runtime_checkable

# Identifiers are whatever the host uses as a primary key (int, UUID string, ...)
Identifier = Union[int, str]


@runtime_checkable
class Authenticatable(Protocol):
    """A user entity with a stable unique identifier."""

    def get_auth_identifier(self) -> Identifier: ...


class ImpersonateError(Exception):
    """Base exception for impersonation operations."""

    def __init__(self, message: str, sqlstate: str | None = None):
        super().__init__(message)
        self.sqlstate = sqlstate


class AuthError(ImpersonateError):
    """Raised when no identity is authenticated."""

    pass


class SelfImpersonationError(ImpersonateError):
    """Raised when impersonator and impersonated are the same account."""

    pass


class AuthorizationError(ImpersonateError):
    """Raised when either capability check denies the impersonation."""

    pass


class NotFoundError(ImpersonateError):
    """Raised when an identifier does not resolve to a user."""

    pass


class StateError(ImpersonateError):
    """Raised when stored impersonation state is missing or inconsistent."""

    pass


def is_identifier(ref: Any) -> bool:
    """True for bare identifiers (bool is excluded, it is an int subclass)."""
    return isinstance(ref, (int, str)) and not isinstance(ref, bool)


def identifier_of(user: Any) -> Identifier:
    """Extract the unique identifier from a resolved user.

    Accepts objects implementing get_auth_identifier(), objects with an
    ``id`` attribute, and mappings with an ``id`` key (psycopg rows).
    """
    if isinstance(user, Authenticatable):
        return user.get_auth_identifier()
    if isinstance(user, Mapping):
        if "id" in user:
            return user["id"]
    elif hasattr(user, "id"):
        return user.id
    raise TypeError(f"Cannot determine identifier for {type(user).__name__}")
