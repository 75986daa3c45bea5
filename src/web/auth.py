"""Authentication and authorization dependencies for routes."""

from dataclasses import dataclass, field
from typing import Callable, List, Optional

from fastapi import Request

from ..lib.errors import ApiError, ConfigurationError, DiscordAPIError, NotFoundError
from ..lib.logging import get_logger
from ..models.discord_user import DiscordUser
from ..models.pin import Pin
from ..models.role import Permission, Role, is_moderator_or_admin

logger = get_logger(__name__)

SESSION_KEY = "sid"


class LoginRequired(Exception):
    """Unauthenticated page navigation; rendered as a redirect to login."""

    def __init__(self, return_to: str):
        super().__init__(return_to)
        self.return_to = return_to


@dataclass
class AuthContext:
    """Authenticated caller attached to a request."""

    user: DiscordUser
    role: Optional[Role] = None
    permissions: List[str] = field(default_factory=list)


def is_api_request(request: Request) -> bool:
    return request.url.path.startswith("/api/")


def _original_url(request: Request) -> str:
    path = request.url.path
    if request.url.query:
        path = f"{path}?{request.url.query}"
    return path


def get_current_user(request: Request) -> Optional[DiscordUser]:
    """
    User of the request's session, or None.

    A cookie pointing at an expired or deleted session is dropped.
    """
    if hasattr(request.state, "user"):
        return request.state.user

    session_id = request.session.get(SESSION_KEY)
    user = request.app.state.session_store.get(session_id) if session_id else None
    if session_id and user is None:
        request.session.pop(SESSION_KEY, None)
    request.state.user = user
    return user


def require_auth(request: Request) -> DiscordUser:
    """
    Dependency: the caller must be logged in.

    Raises:
        ApiError: 401 for API calls
        LoginRequired: for page navigations
    """
    user = get_current_user(request)
    if user is not None:
        return user
    if is_api_request(request):
        raise ApiError(
            401,
            "Discord authentication required",
            "Please login with Discord to access this resource",
        )
    raise LoginRequired(_original_url(request))


def resolve_role(request: Request, user: DiscordUser) -> Role:
    """
    Resolve and remember the caller's role.

    Upstream and configuration failures become a 500, never a denial.
    """
    if getattr(request.state, "role", None) is not None:
        return request.state.role
    try:
        role = request.app.state.role_resolver.resolve_role(user.user_id)
    except (DiscordAPIError, ConfigurationError) as e:
        logger.error("role_resolution_failed", user_id=user.user_id, error=str(e))
        raise ApiError(500, "Authentication error", "Failed to verify permissions") from e
    request.state.role = role
    return role


def _context(request: Request, user: DiscordUser, role: Optional[Role]) -> AuthContext:
    checker = request.app.state.permission_checker
    permissions = checker.list_permissions(role) if role is not None else []
    return AuthContext(user=user, role=role, permissions=permissions)


def _deny(request: Request, user: DiscordUser, role: Optional[Role], required: str, message: str):
    logger.warning(
        "access_denied",
        user_id=user.user_id,
        role=role.value if role else None,
        required=required,
        path=request.url.path,
    )
    request.app.state.telemetry.emit(
        "access_denied",
        user_id=user.user_id,
        role=role.value if role else None,
        required=required,
        path=request.url.path,
    )
    extra = {"currentRole": role.value} if role is not None else {}
    raise ApiError(403, "Access denied", message, extra)


def authorize_permission(request: Request, permission: Permission) -> AuthContext:
    user = require_auth(request)
    role = resolve_role(request, user)
    checker = request.app.state.permission_checker
    if not checker.has_permission(role, permission):
        _deny(request, user, role, permission.value, checker.get_permission_error_message(permission))
    return _context(request, user, role)


def authorize_role(request: Request, minimum: Role) -> AuthContext:
    user = require_auth(request)
    role = resolve_role(request, user)
    checker = request.app.state.permission_checker
    if not checker.has_role(role, minimum):
        _deny(request, user, role, minimum.value, checker.get_role_error_message(minimum))
    return _context(request, user, role)


def require_permission(permission: Permission) -> Callable[[Request], AuthContext]:
    """Dependency factory: the caller's role must grant ``permission``."""

    def dependency(request: Request) -> AuthContext:
        return authorize_permission(request, permission)

    return dependency


def require_role(minimum: Role) -> Callable[[Request], AuthContext]:
    """Dependency factory: the caller's role must be at least ``minimum``."""

    def dependency(request: Request) -> AuthContext:
        return authorize_role(request, minimum)

    return dependency


def require_owner_or_moderator(pin_id: str, request: Request) -> AuthContext:
    """
    Dependency: the caller owns the pin or is a moderator/admin.

    Loads the pin into ``request.state.resource``. Ownership is checked
    before the role so that owners do not need a Discord lookup.

    Raises:
        NotFoundError: If the pin does not exist
    """
    user = require_auth(request)
    pin: Optional[Pin] = request.app.state.pin_storage.get_pin(pin_id)
    if pin is None:
        raise NotFoundError(f"Pin {pin_id} not found")
    request.state.resource = pin

    if pin.owner_id == user.user_id:
        return AuthContext(user=user)

    role = resolve_role(request, user)
    if not is_moderator_or_admin(role):
        _deny(request, user, role, "owner_or_moderator", "You can only modify your own pins")
    return _context(request, user, role)
