"""Shared pytest fixtures for impersonate tests."""

import pytest

from impersonate import (
    BeginImpersonation,
    EventDispatcher,
    ImpersonateAuthorization,
    ImpersonateManager,
    ImpersonateRepository,
    LeaveImpersonation,
    MappingUserProvider,
    SessionGuard,
    SessionStorage,
)

ADMIN = 1
ALICE = 2
BOB = 3
SUPPORT = 4


@pytest.fixture
def provider():
    """In-memory users: two admins who may impersonate, two regular users."""
    return MappingUserProvider(
        {
            ADMIN: {"id": ADMIN, "email": "admin@example.com", "role": "admin"},
            ALICE: {"id": ALICE, "email": "alice@example.com", "role": "user"},
            BOB: {"id": BOB, "email": "bob@example.com", "role": "user"},
            SUPPORT: {"id": SUPPORT, "email": "support@example.com", "role": "admin"},
        }
    )


@pytest.fixture
def session():
    """A plain dict standing in for the Flask session."""
    return {}


@pytest.fixture
def storage(session):
    return SessionStorage(session)


@pytest.fixture
def guard(session, provider):
    return SessionGuard(session, provider)


@pytest.fixture
def authorization():
    """Admins may impersonate; admins may not be impersonated."""
    return ImpersonateAuthorization(
        impersonator=lambda user: user["role"] == "admin",
        impersonated=lambda user: user["role"] != "admin",
    )


@pytest.fixture
def events():
    return EventDispatcher(raise_errors=True)


@pytest.fixture
def recorded(events):
    """Every dispatched event, in order."""
    seen = []
    events.listen(BeginImpersonation, seen.append)
    events.listen(LeaveImpersonation, seen.append)
    return seen


@pytest.fixture
def manager(storage, guard, provider, authorization, events):
    return ImpersonateManager(
        storage=storage,
        guard=guard,
        repository=ImpersonateRepository(provider, storage),
        authorization=authorization,
        events=events,
    )


@pytest.fixture
def as_admin(manager, guard, provider):
    """Manager whose session is logged in as ADMIN."""
    guard.login(provider.find_by_id(ADMIN))
    return manager
