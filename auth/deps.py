from contextvars import ContextVar
from functools import wraps
from typing import Callable, Optional

import azure.functions as func

from auth.token import Identity, TokenIssuer
from models.user import UserRole
from services.exceptions import Forbidden, Unauthorized

_current_identity: ContextVar[Optional[Identity]] = ContextVar("current_identity", default=None)


def has_role(role: UserRole, required: UserRole) -> bool:
    """Role check used by every role-gated route."""
    if required == UserRole.USER:
        return role in (UserRole.USER, UserRole.ADMIN)
    return role == required


def bearer_token(req) -> Optional[str]:
    auth = req.headers.get("Authorization", "")
    if not auth.startswith("Bearer "):
        return None
    token = auth[7:].strip()
    return token or None


def identity_from_request(req, issuer: TokenIssuer) -> Identity:
    token = bearer_token(req)
    if not token:
        raise Unauthorized("No token provided")
    identity = issuer.verify(token)
    if identity is None:
        raise Unauthorized("Invalid token")
    return identity


def current_identity() -> Identity:
    """Identity attached by ``require_auth`` for the request being handled."""
    identity = _current_identity.get()
    if identity is None:
        raise Unauthorized("No token provided")
    return identity


def _token_issuer() -> TokenIssuer:
    from services.container import get_services
    return get_services().tokens


def require_auth(f: Callable) -> Callable:
    """
    Decorator that verifies the bearer token and exposes the caller through
    ``current_identity()`` while the handler runs.
    """
    @wraps(f)
    def decorated_function(req: func.HttpRequest) -> func.HttpResponse:
        # Handle OPTIONS requests
        if req.method == "OPTIONS":
            return f(req)

        identity = identity_from_request(req, _token_issuer())
        reset = _current_identity.set(identity)
        try:
            return f(req)
        finally:
            _current_identity.reset(reset)

    return decorated_function


def admin_required(f: Callable) -> Callable:
    """
    Decorator that requires admin access
    """
    @require_auth
    @wraps(f)
    def decorated_function(req: func.HttpRequest) -> func.HttpResponse:
        if req.method == "OPTIONS":
            return f(req)

        if not has_role(current_identity().role, UserRole.ADMIN):
            raise Forbidden("Access denied: Admins only")

        return f(req)

    return decorated_function
