"""Permission checker service for role-based access control."""

from typing import FrozenSet, List

from ..models.role import Permission, Role, ROLE_PERMISSIONS, role_at_least
from ..lib.logging import get_logger

logger = get_logger(__name__)


class PermissionChecker:
    """
    Permission checker service for role-based access control.

    Roles are ordered public < reader < writer < moderator < admin and
    each role's permissions include everything granted to the roles below:
    - Public/Reader: view the map
    - Writer: create pins, edit own pins
    - Moderator: moderate any pin, edit districts
    - Admin: manage roles, system configuration
    """

    def permissions_for(self, role: Role) -> FrozenSet[Permission]:
        try:
            return ROLE_PERMISSIONS[Role(role)]
        except ValueError:
            return frozenset()

    def has_permission(self, role: Role, permission: Permission) -> bool:
        """
        Check if a role grants a permission.

        Args:
            role: Resolved user role
            permission: Permission being requested

        Returns:
            True if the role grants the permission, False otherwise
        """
        try:
            permission = Permission(permission)
        except ValueError:
            return False
        return permission in self.permissions_for(role)

    def has_role(self, role: Role, minimum: Role) -> bool:
        """True if ``role`` is at least ``minimum``."""
        return role_at_least(role, minimum)

    def list_permissions(self, role: Role) -> List[str]:
        return sorted(p.value for p in self.permissions_for(role))

    def get_permission_error_message(self, permission: Permission) -> str:
        """
        Get user-facing error message for a denied permission.

        Args:
            permission: Permission that was denied

        Returns:
            Error message string
        """
        return f"You need {Permission(permission).value} permission to access this resource"

    def get_role_error_message(self, role: Role) -> str:
        return f"You need {Role(role).value} role to access this resource"


def create_permission_checker() -> PermissionChecker:
    """
    Create a permission checker instance.

    Returns:
        PermissionChecker instance
    """
    return PermissionChecker()
