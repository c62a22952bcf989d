"""
Impersonation state machine.

States: Normal (no stored pair) and Impersonating (both ids stored).

    manager.take(admin, "user-42")   # Normal -> Impersonating
    manager.take(admin, "user-43")   # Impersonating -> Impersonating, admin kept
    manager.leave()                  # Impersonating -> Normal

Chains never nest: while impersonating, the impersonator passed to take() is
replaced by the one already stored, so the original actor is the only one
ever recorded.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from .authorization import ImpersonateAuthorization
from .base import (
    AuthError,
    AuthorizationError,
    SelfImpersonationError,
    StateError,
    identifier_of,
)
from .config import ImpersonateConfig
from .contracts import StatefulGuard, Storage
from .events import BeginImpersonation, EventDispatcher, LeaveImpersonation
from .guards import GuardRegistry
from .repository import ImpersonateRepository

log = logging.getLogger(__name__)

VERSION = "3.0.0"


def _short(user: Any) -> str:
    return str(identifier_of(user))[:8]


class ImpersonateManager:
    """Orchestrates storage, guard, authorization and events.

    All collaborators are passed in; nothing is looked up globally. One
    manager serves one session (in Flask: one per request, see flask.py).
    """

    def __init__(
        self,
        storage: Storage,
        guard: StatefulGuard,
        repository: ImpersonateRepository,
        authorization: ImpersonateAuthorization | None = None,
        events: EventDispatcher | None = None,
        config: ImpersonateConfig | None = None,
        guards: GuardRegistry | None = None,
    ) -> None:
        self._storage = storage
        self._guard = guard
        self.repository = repository
        self._authorization = authorization or ImpersonateAuthorization()
        self.events = events or EventDispatcher()
        self.config = config or ImpersonateConfig()
        self.guards = guards

    def version(self) -> str:
        return VERSION

    def enabled(self) -> bool:
        """Global kill-switch. Consulted by the host, not by take()/leave()."""
        return self.config.enabled

    def storage(self) -> Storage:
        return self._storage

    def authorization(self) -> ImpersonateAuthorization:
        return self._authorization

    def guard(self, name: str) -> "ImpersonateManager":
        """Rebind to a named guard from the registry."""
        if self.guards is None:
            raise ValueError("No guard registry configured")
        self._guard = self.guards.resolve(name)
        return self

    def authorized(self) -> bool:
        """Check if the current user (or the stored impersonator) may impersonate."""
        return self._guard.check() and self._authorization.check_impersonator(
            self.get_impersonator()
        )

    def take(self, impersonator: Any, impersonated: Any) -> Any:
        """
        Impersonate a user.

        Args:
            impersonator: User or identifier of the acting user. Ignored when
                already impersonating; the stored impersonator is kept.
            impersonated: User or identifier of the user to act as.

        Returns:
            The impersonated user

        Raises:
            AuthError: Nobody is logged in.
            NotFoundError: An identifier does not resolve to a user.
            SelfImpersonationError: Both sides are the same user.
            AuthorizationError: Either capability check failed.
        """
        if not self._guard.check():
            raise AuthError("You must be logged in to impersonate.")

        impersonator = self.repository.resolve(impersonator)
        impersonated = self.repository.resolve(impersonated)

        if self.is_in_impersonation():
            impersonator = self.get_impersonator()

        self._check(impersonator, impersonated)

        previous = self._stored_pair()
        self._storage.set_state(impersonator, impersonated)
        try:
            self._guard.login(impersonated)
        except Exception:
            # Identity never switched: put the stored pair back as it was
            if previous is None:
                self._storage.clear_storage()
            else:
                self._storage.set_state(*previous)
            raise

        log.info(
            f"Impersonation started: impersonator={_short(impersonator)}... "
            f"impersonated={_short(impersonated)}..."
        )
        self.events.dispatch(BeginImpersonation(impersonator, impersonated))

        return impersonated

    def leave(self) -> bool:
        """
        Leave impersonation mode. No-op when not impersonating.

        Raises:
            StateError: Only one of the two ids is stored.
        """
        if self._storage.is_inconsistent():
            raise StateError("Impersonation storage is inconsistent")

        if self.is_in_impersonation():
            impersonator = self.get_impersonator()
            impersonated = self.get_impersonated()

            # Restore the original actor before dropping the stored pair
            self._guard.login(impersonator)
            self._storage.clear_storage()

            log.info(
                f"Impersonation ended: impersonator={_short(impersonator)}... "
                f"impersonated={_short(impersonated)}..."
            )
            self.events.dispatch(LeaveImpersonation(impersonator, impersonated))

        return True

    def is_in_impersonation(self) -> bool:
        return self._storage.is_in_impersonating_mode()

    def get_current_user(self) -> Any:
        """Get the authenticated user (the impersonated one while impersonating)."""
        user: Optional[Any] = self._guard.user()
        if user is None:
            raise AuthError("Not logged in.")
        return user

    def get_impersonator(self) -> Any:
        """Stored impersonator, or the current user outside impersonation."""
        if self.is_in_impersonation():
            return self.repository.get_impersonator_in_storage()
        return self.get_current_user()

    def get_impersonated(self) -> Any:
        return self.repository.get_impersonated_in_storage()

    def _stored_pair(self) -> Optional[tuple[Any, Any]]:
        if not self.is_in_impersonation():
            return None
        return (
            self._storage.get_impersonator_identifier(),
            self._storage.get_impersonated_identifier(),
        )

    def _check(self, impersonator: Any, impersonated: Any) -> None:
        if identifier_of(impersonator) == identifier_of(impersonated):
            raise SelfImpersonationError("You cannot impersonate yourself.")

        if not self._authorization.check_impersonator(impersonator):
            log.debug(f"Impersonation denied for impersonator={_short(impersonator)}...")
            raise AuthorizationError("You don't have the ability to impersonate.")

        if not self._authorization.check_impersonated(impersonated):
            log.debug(f"Impersonation denied for impersonated={_short(impersonated)}...")
            raise AuthorizationError("You can't impersonate this user.")
