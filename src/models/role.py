"""Roles, permissions and the static role-to-permission table."""

from enum import Enum
from typing import Dict, FrozenSet


class Role(str, Enum):
    """Access role derived from Discord guild membership, lowest first."""

    PUBLIC = "public"
    READER = "reader"
    WRITER = "writer"
    MODERATOR = "moderator"
    ADMIN = "admin"


class Permission(str, Enum):
    """Actions gated by role."""

    VIEW_GAME_PAGE = "view_game_page"
    VIEW_MAP_PAGE = "view_map_page"

    CREATE_CHARACTER = "create_character"
    CREATE_MAP_PIN = "create_map_pin"
    EDIT_OWN_CHARACTER = "edit_own_character"
    EDIT_OWN_MAP_PIN = "edit_own_map_pin"

    MODERATE_CONTENT = "moderate_content"
    EDIT_DISTRICTS = "edit_districts"
    VIEW_DASHBOARD = "view_dashboard"
    MANAGE_QUIZ = "manage_quiz"
    APPROVE_CHARACTER = "approve_character"

    MANAGE_ROLES = "manage_roles"
    SYSTEM_CONFIG = "system_config"


ROLE_PRECEDENCE = (Role.PUBLIC, Role.READER, Role.WRITER, Role.MODERATOR, Role.ADMIN)

_PUBLIC = frozenset({Permission.VIEW_GAME_PAGE, Permission.VIEW_MAP_PAGE})
_READER = _PUBLIC
_WRITER = _READER | {
    Permission.CREATE_CHARACTER,
    Permission.CREATE_MAP_PIN,
    Permission.EDIT_OWN_CHARACTER,
    Permission.EDIT_OWN_MAP_PIN,
}
_MODERATOR = _WRITER | {
    Permission.MODERATE_CONTENT,
    Permission.EDIT_DISTRICTS,
    Permission.VIEW_DASHBOARD,
    Permission.MANAGE_QUIZ,
    Permission.APPROVE_CHARACTER,
}
_ADMIN = _MODERATOR | {Permission.MANAGE_ROLES, Permission.SYSTEM_CONFIG}

ROLE_PERMISSIONS: Dict[Role, FrozenSet[Permission]] = {
    Role.PUBLIC: _PUBLIC,
    Role.READER: _READER,
    Role.WRITER: _WRITER,
    Role.MODERATOR: _MODERATOR,
    Role.ADMIN: _ADMIN,
}


def role_rank(role: Role) -> int:
    return ROLE_PRECEDENCE.index(Role(role))


def role_at_least(role: Role, minimum: Role) -> bool:
    """True if ``role`` is ``minimum`` or higher in the precedence order."""
    return role_rank(role) >= role_rank(minimum)


def is_moderator_or_admin(role: Role) -> bool:
    return role_at_least(role, Role.MODERATOR)
