"""Tests for session-backed impersonation storage."""

import pytest

from impersonate import ImpersonateConfig, SessionStorage, StateError


class TestSessionStorage:
    def test_empty_session_is_not_impersonating(self, storage):
        assert not storage.is_in_impersonating_mode()
        assert not storage.is_inconsistent()

    def test_set_state_writes_both_ids(self, storage, session):
        storage.set_state({"id": 1}, {"id": 2})

        assert session == {"impersonate.impersonator": 1, "impersonate.impersonated": 2}
        assert storage.is_in_impersonating_mode()
        assert storage.get_impersonator_identifier() == 1
        assert storage.get_impersonated_identifier() == 2

    def test_setters_are_chainable(self, storage):
        result = storage.set_impersonator_identifier(1).set_impersonated_identifier(2)

        assert result is storage
        assert storage.is_in_impersonating_mode()

    def test_one_id_is_not_active(self, storage):
        """Active requires both ids."""
        storage.set_impersonator_identifier(1)

        assert not storage.is_in_impersonating_mode()
        assert storage.is_inconsistent()

    def test_empty_values_count_as_absent(self, session, storage):
        session["impersonate.impersonator"] = ""
        session["impersonate.impersonated"] = 2

        assert not storage.is_in_impersonating_mode()

    def test_clear_removes_both(self, storage, session):
        session["other"] = "kept"
        storage.set_state(1, 2)

        storage.clear_storage()

        assert session == {"other": "kept"}
        assert not storage.is_in_impersonating_mode()

    def test_clear_on_empty_session(self, storage):
        storage.clear_storage()
        assert not storage.is_inconsistent()

    def test_missing_ids_raise_state_error(self, storage):
        with pytest.raises(StateError):
            storage.get_impersonator_identifier()
        with pytest.raises(StateError):
            storage.get_impersonated_identifier()

    def test_accepts_authenticatable_objects(self, storage):
        class Account:
            def __init__(self, pk):
                self.pk = pk

            def get_auth_identifier(self):
                return self.pk

        storage.set_state(Account("a-1"), Account("b-2"))

        assert storage.get_impersonator_identifier() == "a-1"
        assert storage.get_impersonated_identifier() == "b-2"

    def test_unidentifiable_user_writes_nothing(self, storage, session):
        """set_state computes both ids before writing either."""
        with pytest.raises(TypeError):
            storage.set_state({"id": 1}, object())

        assert session == {}

    def test_keys_follow_config_prefix(self, session):
        storage = SessionStorage(session, ImpersonateConfig(session_prefix="support"))

        storage.set_state(1, 2)

        assert set(session) == {"support.impersonator", "support.impersonated"}
