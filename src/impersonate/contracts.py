"""
Collaborator contracts.

The manager only talks to these protocols. Default implementations live in
repository.py, storage.py and guards.py; hosts can supply their own.
"""

from __future__ import annotations

from typing import Any, Optional, Protocol

from .base import Identifier


class UserProvider(Protocol):
    """Looks user records up by identifier."""

    def find_by_id(self, identifier: Identifier) -> Optional[Any]:
        """Return the user, or None if no such user exists."""
        ...


class Storage(Protocol):
    """Session-scoped holder of the impersonator/impersonated pair."""

    def set_impersonator_identifier(self, user: Any) -> "Storage": ...

    def set_impersonated_identifier(self, user: Any) -> "Storage": ...

    def set_state(self, impersonator: Any, impersonated: Any) -> "Storage": ...

    def clear_storage(self) -> None: ...

    def is_in_impersonating_mode(self) -> bool: ...

    def is_inconsistent(self) -> bool: ...

    def get_impersonator_identifier(self) -> Identifier: ...

    def get_impersonated_identifier(self) -> Identifier: ...


class StatefulGuard(Protocol):
    """Tracks who is authenticated right now and can swap it."""

    def login(self, user: Any) -> None: ...

    def user(self) -> Optional[Any]: ...

    def check(self) -> bool: ...
