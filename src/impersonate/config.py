"""Configuration for impersonate.

Values come from the environment (IMPERSONATE_*) or from a Flask app.config
mapping carrying the same keys.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

TRUTHY = ("1", "true", "yes", "on")


def _as_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).lower().strip() in TRUTHY


@dataclass(frozen=True)
class ImpersonateConfig:
    """Recognized options.

    guard: name of the active-identity mechanism to bind to
    enabled: global kill-switch, consulted by the host (not by take/leave)
    session_prefix: prefix for the session keys holding impersonation state
    url_prefix: mount point of the Flask blueprint
    redirect_to: where browser requests land after take/leave
    """

    guard: str = "session"
    enabled: bool = False
    session_prefix: str = "impersonate"
    url_prefix: str = "/impersonate"
    redirect_to: str = "/"

    @property
    def impersonator_key(self) -> str:
        return f"{self.session_prefix}.impersonator"

    @property
    def impersonated_key(self) -> str:
        return f"{self.session_prefix}.impersonated"

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> "ImpersonateConfig":
        """Build from a mapping with IMPERSONATE_* keys (e.g. app.config)."""
        defaults = cls()
        return cls(
            guard=values.get("IMPERSONATE_GUARD") or defaults.guard,
            enabled=_as_bool(values.get("IMPERSONATE_ENABLED", defaults.enabled)),
            session_prefix=values.get("IMPERSONATE_SESSION_PREFIX")
            or defaults.session_prefix,
            url_prefix=values.get("IMPERSONATE_URL_PREFIX") or defaults.url_prefix,
            redirect_to=values.get("IMPERSONATE_REDIRECT_TO") or defaults.redirect_to,
        )

    @classmethod
    def from_env(cls) -> "ImpersonateConfig":
        return cls.from_mapping(os.environ)
