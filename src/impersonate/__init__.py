"""impersonate - let privileged users act as another account and switch back."""

from impersonate.authorization import ImpersonateAuthorization
from impersonate.base import (
    AuthError,
    Authenticatable,
    AuthorizationError,
    Identifier,
    ImpersonateError,
    NotFoundError,
    SelfImpersonationError,
    StateError,
)
from impersonate.config import ImpersonateConfig
from impersonate.events import BeginImpersonation, EventDispatcher, LeaveImpersonation
from impersonate.guards import GuardRegistry, SessionGuard
from impersonate.manager import VERSION, ImpersonateManager
from impersonate.repository import (
    ImpersonateRepository,
    MappingUserProvider,
    PostgresUserProvider,
)
from impersonate.storage import SessionStorage

__version__ = VERSION

__all__ = [
    "ImpersonateManager",
    "ImpersonateAuthorization",
    "ImpersonateConfig",
    "ImpersonateRepository",
    "MappingUserProvider",
    "PostgresUserProvider",
    "SessionStorage",
    "SessionGuard",
    "GuardRegistry",
    "EventDispatcher",
    "BeginImpersonation",
    "LeaveImpersonation",
    "Identifier",
    "Authenticatable",
    "ImpersonateError",
    "AuthError",
    "AuthorizationError",
    "NotFoundError",
    "SelfImpersonationError",
    "StateError",
]
