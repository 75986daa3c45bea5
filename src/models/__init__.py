"""Data models for the map server."""

from .discord_user import DiscordUser
from .district import DISTRICTS, DistrictConfig, DistrictConfigUpdate, DistrictDefinition
from .pin import Pin, PinCreate, PinUpdate, Position
from .role import Permission, Role, ROLE_PERMISSIONS

__all__ = [
    "DiscordUser",
    "DISTRICTS",
    "DistrictConfig",
    "DistrictConfigUpdate",
    "DistrictDefinition",
    "Pin",
    "PinCreate",
    "PinUpdate",
    "Position",
    "Permission",
    "Role",
    "ROLE_PERMISSIONS",
]
