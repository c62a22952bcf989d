"""Tests for active-identity guards and policy predicates."""

import pytest

from impersonate import GuardRegistry, ImpersonateAuthorization, SessionGuard
from tests.conftest import ADMIN, ALICE


class TestSessionGuard:
    def test_login_stores_identifier(self, guard, session, provider):
        guard.login(provider.find_by_id(ALICE))

        assert session["user_id"] == ALICE
        assert guard.check()
        assert guard.user()["email"] == "alice@example.com"

    def test_not_authenticated(self, guard):
        assert guard.user() is None
        assert not guard.check()

    def test_user_resolved_from_session(self, session, provider):
        """A fresh guard resolves the id already in the session."""
        session["user_id"] = ADMIN

        assert SessionGuard(session, provider).user()["id"] == ADMIN

    def test_stale_identifier(self, session, provider):
        """An id with no matching user is not authenticated."""
        session["user_id"] = 999

        assert not SessionGuard(session, provider).check()

    def test_logout(self, guard, session, provider):
        guard.login(provider.find_by_id(ALICE))

        guard.logout()

        assert "user_id" not in session
        assert not guard.check()

    def test_external_session_change_is_seen(self, guard, session, provider):
        guard.login(provider.find_by_id(ALICE))
        session["user_id"] = ADMIN

        assert guard.user()["id"] == ADMIN


class TestGuardRegistry:
    def test_resolve_calls_factory(self, guard):
        registry = GuardRegistry()
        registry.register("session", lambda: guard)

        assert registry.resolve("session") is guard
        assert registry.names() == ["session"]

    def test_unknown_guard(self):
        with pytest.raises(ValueError, match="Unknown guard"):
            GuardRegistry().resolve("api")


class TestImpersonateAuthorization:
    def test_defaults(self):
        """Nobody may impersonate by default; anyone may be impersonated."""
        authorization = ImpersonateAuthorization()

        assert not authorization.check_impersonator({"id": 1})
        assert authorization.check_impersonated({"id": 1})

    def test_register_as_decorators(self):
        authorization = ImpersonateAuthorization()

        @authorization.impersonator
        def is_staff(user):
            return user.get("staff")

        @authorization.impersonated
        def not_staff(user):
            return not user.get("staff")

        assert authorization.check_impersonator({"staff": True})
        assert not authorization.check_impersonated({"staff": True})
        assert is_staff({"staff": True})

    def test_results_are_bools(self):
        authorization = ImpersonateAuthorization(impersonator=lambda user: user.get("role"))

        assert authorization.check_impersonator({"role": "admin"}) is True
        assert authorization.check_impersonator({}) is False
