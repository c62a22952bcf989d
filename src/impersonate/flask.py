"""
Flask integration.

Usage:
    from impersonate.flask import Impersonate, can_impersonate, get_manager

    impersonate = Impersonate(provider=lambda: PostgresUserProvider(get_db().cursor()))

    @impersonate.authorization.impersonator
    def is_support(user):
        return user["role"] == "support"

    def create_app():
        app = Flask(__name__)
        app.config["IMPERSONATE_ENABLED"] = True
        impersonate.init_app(app)
        return app

Routes (prefix from IMPERSONATE_URL_PREFIX, default /impersonate):
    POST /take   body {"user_id": ...}
    POST /leave

API requests get JSON; browser requests are redirected to
IMPERSONATE_REDIRECT_TO.
"""

from __future__ import annotations

import logging
import os
from collections import ChainMap
from functools import wraps
from typing import Any, Callable, Optional, TypeVar, Union

from flask import (
    Blueprint,
    Flask,
    abort,
    current_app,
    g,
    has_request_context,
    jsonify,
    redirect,
    request,
    session,
)
from pydantic import ValidationError
from werkzeug.local import LocalProxy

from .authorization import ImpersonateAuthorization
from .base import (
    AuthError,
    AuthorizationError,
    ImpersonateError,
    NotFoundError,
    SelfImpersonationError,
    StateError,
    identifier_of,
)
from .config import ImpersonateConfig
from .contracts import UserProvider
from .events import EventDispatcher
from .guards import GuardRegistry, SessionGuard
from .manager import ImpersonateManager
from .repository import ImpersonateRepository
from .schemas import TakeRequest
from .storage import SessionStorage

log = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable)

ProviderSource = Union[UserProvider, Callable[[], UserProvider]]

# Most specific first
ERROR_STATUS: list[tuple[type[ImpersonateError], int]] = [
    (AuthError, 401),
    (SelfImpersonationError, 403),
    (AuthorizationError, 403),
    (NotFoundError, 404),
    (StateError, 409),
]


def _is_api_request() -> bool:
    """Check if request expects JSON response."""
    return request.accept_mimetypes.best == "application/json" or request.is_json


def _error_response(code: int, message: str):
    """Return JSON for API requests, plain text otherwise."""
    if _is_api_request():
        return jsonify({"error": message}), code
    return message, code


def status_for(error: ImpersonateError) -> int:
    for error_class, code in ERROR_STATUS:
        if isinstance(error, error_class):
            return code
    return 400


class Impersonate:
    """Flask extension wiring an ImpersonateManager into each request."""

    def __init__(
        self,
        app: Optional[Flask] = None,
        provider: Optional[ProviderSource] = None,
        authorization: Optional[ImpersonateAuthorization] = None,
        events: Optional[EventDispatcher] = None,
    ) -> None:
        self.provider = provider
        self.authorization = authorization or ImpersonateAuthorization()
        self.events = events or EventDispatcher()
        self.guards = GuardRegistry()
        self.guards.register(
            "session", lambda: SessionGuard(session, self.get_provider())
        )
        self.config = ImpersonateConfig()
        if app is not None:
            self.init_app(app)

    def init_app(self, app: Flask) -> None:
        self.config = ImpersonateConfig.from_mapping(ChainMap(app.config, os.environ))
        app.extensions["impersonate"] = self

        app.register_blueprint(self._create_blueprint())
        app.register_error_handler(ImpersonateError, self._handle_error)

        @app.context_processor
        def inject_impersonation():
            # Templates rendered outside a request (mail jobs, CLI) have no session
            if not has_request_context():
                return {}

            def impersonator():
                manager = get_manager()
                if manager.is_in_impersonation():
                    return manager.get_impersonator()
                return None

            # Resolved on first use so templates ignoring them never hit the provider
            return {
                "is_impersonating": LocalProxy(
                    lambda: get_manager().is_in_impersonation()
                ),
                "impersonator": LocalProxy(impersonator),
            }

        log.info(
            f"Impersonation configured: guard={self.config.guard} "
            f"enabled={self.config.enabled}"
        )

    def register_guard(self, name: str, factory: Callable[[], Any]) -> None:
        """Register an alternative guard, selected with IMPERSONATE_GUARD."""
        self.guards.register(name, factory)

    def get_provider(self) -> UserProvider:
        if self.provider is None:
            raise RuntimeError("Impersonate requires a user provider")
        if hasattr(self.provider, "find_by_id"):
            return self.provider
        return self.provider()

    def create_manager(self) -> ImpersonateManager:
        storage = SessionStorage(session, self.config)
        return ImpersonateManager(
            storage=storage,
            guard=self.guards.resolve(self.config.guard),
            repository=ImpersonateRepository(self.get_provider(), storage),
            authorization=self.authorization,
            events=self.events,
            config=self.config,
            guards=self.guards,
        )

    def _handle_error(self, e: ImpersonateError):
        code = status_for(e)
        log.debug(f"Impersonation error ({code}): {e}")
        return _error_response(code, str(e))

    def _create_blueprint(self) -> Blueprint:
        bp = Blueprint("impersonate", __name__, url_prefix=self.config.url_prefix)

        @bp.post("/take")
        def take():
            manager = get_manager()
            if not manager.enabled():
                abort(404)

            data = request.get_json(silent=True) or request.form.to_dict()
            try:
                body = TakeRequest.model_validate(data)
            except ValidationError:
                return _error_response(422, "user_id required")

            impersonated = manager.take(manager.get_current_user(), body.user_id)

            if _is_api_request():
                return jsonify(
                    {
                        "impersonator": identifier_of(manager.get_impersonator()),
                        "impersonated": identifier_of(impersonated),
                    }
                )
            return redirect(self.config.redirect_to)

        @bp.post("/leave")
        def leave():
            manager = get_manager()
            if not manager.enabled():
                abort(404)

            manager.leave()

            if _is_api_request():
                return jsonify({"impersonating": manager.is_in_impersonation()})
            return redirect(self.config.redirect_to)

        return bp


def get_manager() -> ImpersonateManager:
    """Get the ImpersonateManager for the current request."""
    if "impersonate_manager" not in g:
        ext: Impersonate = current_app.extensions["impersonate"]
        g.impersonate_manager = ext.create_manager()
    return g.impersonate_manager


def can_impersonate(f: F) -> F:
    """Require the feature enabled and the current user allowed to impersonate."""

    @wraps(f)
    def wrapper(*args, **kwargs):
        manager = get_manager()
        if not manager.enabled():
            abort(404)
        if not manager.authorized():
            return _error_response(403, "forbidden")
        return f(*args, **kwargs)

    return wrapper


def impersonation_required(f: F) -> F:
    """Only allow the view while impersonating."""

    @wraps(f)
    def wrapper(*args, **kwargs):
        if not get_manager().is_in_impersonation():
            return _error_response(403, "not impersonating")
        return f(*args, **kwargs)

    return wrapper
