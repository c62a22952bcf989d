"""Active-identity guards.

A guard answers "who is logged in right now" and can swap that identity.
SessionGuard keeps the identifier in a session mapping, the way browser
logins store ``session["user_id"]``.
"""

from __future__ import annotations

from collections.abc import MutableMapping
from typing import Any, Callable, Optional

from .base import identifier_of
from .contracts import StatefulGuard, UserProvider

GuardFactory = Callable[[], StatefulGuard]


class SessionGuard:
    """Guard storing the authenticated user's id under a session key."""

    def __init__(
        self,
        session: MutableMapping[str, Any],
        provider: UserProvider,
        key: str = "user_id",
    ) -> None:
        self.session = session
        self.provider = provider
        self.key = key
        self._user: Any = None

    def login(self, user: Any) -> None:
        self.session[self.key] = identifier_of(user)
        self._user = user

    def logout(self) -> None:
        self.session.pop(self.key, None)
        self._user = None

    def id(self) -> Optional[Any]:
        return self.session.get(self.key)

    def user(self) -> Optional[Any]:
        """Return the current user, resolving it once per guard instance."""
        identifier = self.id()
        if identifier is None:
            return None
        if self._user is None or identifier_of(self._user) != identifier:
            self._user = self.provider.find_by_id(identifier)
        return self._user

    def check(self) -> bool:
        return self.user() is not None


class GuardRegistry:
    """Named guard factories; the configured name picks the active one."""

    def __init__(self) -> None:
        self._factories: dict[str, GuardFactory] = {}

    def register(self, name: str, factory: GuardFactory) -> None:
        self._factories[name] = factory

    def names(self) -> list[str]:
        return sorted(self._factories)

    def resolve(self, name: str) -> StatefulGuard:
        try:
            factory = self._factories[name]
        except KeyError:
            raise ValueError(
                f"Unknown guard: {name!r} (registered: {', '.join(self.names()) or 'none'})"
            ) from None
        return factory()
