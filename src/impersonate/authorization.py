"""
Capability checks for impersonation.

Usage:
    authorization = ImpersonateAuthorization()

    @authorization.impersonator
    def can_impersonate(user):
        return user["role"] == "admin"

    @authorization.impersonated
    def can_be_impersonated(user):
        return user["role"] != "admin"
"""

from __future__ import annotations

from typing import Any, Callable, Optional

Predicate = Callable[[Any], Any]


def _deny(user: Any) -> bool:
    return False


def _allow(user: Any) -> bool:
    return True


class ImpersonateAuthorization:
    """Holds the two predicates the manager treats as opaque gates.

    Nobody may impersonate until an impersonator predicate is registered;
    everybody may be impersonated until an impersonated predicate is.
    """

    def __init__(
        self,
        impersonator: Optional[Predicate] = None,
        impersonated: Optional[Predicate] = None,
    ) -> None:
        self._impersonator = impersonator or _deny
        self._impersonated = impersonated or _allow

    def impersonator(self, fn: Predicate) -> Predicate:
        """Register the "may act as impersonator" predicate."""
        self._impersonator = fn
        return fn

    def impersonated(self, fn: Predicate) -> Predicate:
        """Register the "may be impersonated" predicate."""
        self._impersonated = fn
        return fn

    def check_impersonator(self, user: Any) -> bool:
        return bool(self._impersonator(user))

    def check_impersonated(self, user: Any) -> bool:
        return bool(self._impersonated(user))
