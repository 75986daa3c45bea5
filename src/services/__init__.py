"""Services for the map server."""

from .district_storage import DistrictConfigStorage, create_district_storage
from .map_asset_store import MapAsset, MapAssetStore, create_map_asset_store
from .oauth import DiscordOAuthClient, create_oauth_client
from .permission_checker import PermissionChecker, create_permission_checker
from .pin_storage import DuplicatePinError, PinStorage, create_pin_storage
from .role_cache import RoleCache
from .role_resolver import DiscordRoleResolver, create_role_resolver
from .session_store import SessionStore, create_session_store
from .telemetry import TelemetryClient, create_telemetry_client

__all__ = [
    "DistrictConfigStorage",
    "create_district_storage",
    "MapAsset",
    "MapAssetStore",
    "create_map_asset_store",
    "DiscordOAuthClient",
    "create_oauth_client",
    "PermissionChecker",
    "create_permission_checker",
    "DuplicatePinError",
    "PinStorage",
    "create_pin_storage",
    "RoleCache",
    "DiscordRoleResolver",
    "create_role_resolver",
    "SessionStore",
    "create_session_store",
    "TelemetryClient",
    "create_telemetry_client",
]
