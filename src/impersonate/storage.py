"""Session-backed impersonation state.

SessionStorage works over any MutableMapping: Flask's ``session`` in a web
request, a plain dict in tests. Both ids live under separate keys and are
written and removed together.

Concurrent requests within one session are not synchronized: the last write
wins. Hosts needing single-flight semantics must serialize requests per session.
"""

from __future__ import annotations

from collections.abc import MutableMapping
from typing import Any

from .base import Identifier, StateError, identifier_of, is_identifier
from .config import ImpersonateConfig


def _to_identifier(user: Any) -> Identifier:
    if is_identifier(user):
        return user
    return identifier_of(user)


class SessionStorage:
    """Impersonation state kept in a session mapping."""

    def __init__(
        self,
        session: MutableMapping[str, Any],
        config: ImpersonateConfig | None = None,
    ) -> None:
        config = config or ImpersonateConfig()
        self.session = session
        self.impersonator_key = config.impersonator_key
        self.impersonated_key = config.impersonated_key

    def _present(self, key: str) -> bool:
        return self.session.get(key) not in (None, "")

    def set_impersonator_identifier(self, user: Any) -> "SessionStorage":
        self.session[self.impersonator_key] = _to_identifier(user)
        return self

    def set_impersonated_identifier(self, user: Any) -> "SessionStorage":
        self.session[self.impersonated_key] = _to_identifier(user)
        return self

    def set_state(self, impersonator: Any, impersonated: Any) -> "SessionStorage":
        """Write both ids. Identifiers are computed before either key is touched."""
        impersonator_id = _to_identifier(impersonator)
        impersonated_id = _to_identifier(impersonated)
        self.session[self.impersonator_key] = impersonator_id
        self.session[self.impersonated_key] = impersonated_id
        return self

    def clear_storage(self) -> None:
        self.session.pop(self.impersonator_key, None)
        self.session.pop(self.impersonated_key, None)

    def is_in_impersonating_mode(self) -> bool:
        return self._present(self.impersonator_key) and self._present(
            self.impersonated_key
        )

    def is_inconsistent(self) -> bool:
        """True if exactly one of the two ids is present."""
        return self._present(self.impersonator_key) != self._present(
            self.impersonated_key
        )

    def get_impersonator_identifier(self) -> Identifier:
        if not self._present(self.impersonator_key):
            raise StateError("No impersonator stored in session")
        return self.session[self.impersonator_key]

    def get_impersonated_identifier(self) -> Identifier:
        if not self._present(self.impersonated_key):
            raise StateError("No impersonated user stored in session")
        return self.session[self.impersonated_key]
