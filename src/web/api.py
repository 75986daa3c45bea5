"""JSON API routes: user, pins, districts, roles and the map model."""

from datetime import datetime
from email.utils import format_datetime, parsedate_to_datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import Response, StreamingResponse

from ..lib.errors import ConflictError, NotFoundError
from ..lib.logging import get_logger
from ..models.district import DISTRICTS, DistrictConfigUpdate
from ..models.pin import Pin, PinCreate, PinUpdate
from ..models.role import Permission, Role, is_moderator_or_admin
from ..services.geometry import MapBounds, locate_district
from ..services.map_asset_store import MapAsset
from ..services.pin_storage import DuplicatePinError
from .auth import (
    AuthContext,
    get_current_user,
    require_owner_or_moderator,
    require_permission,
    resolve_role,
)

logger = get_logger(__name__)

router = APIRouter(prefix="/api")


def _pin_json(pin: Pin) -> dict:
    return pin.model_dump(mode="json")


@router.get("/me")
def me(request: Request):
    """Current user, role and permissions (public role when logged out)."""
    checker = request.app.state.permission_checker
    user = get_current_user(request)
    if user is None:
        return {
            "authenticated": False,
            "user": None,
            "role": Role.PUBLIC.value,
            "permissions": checker.list_permissions(Role.PUBLIC),
            "canEditDistricts": False,
        }

    role = resolve_role(request, user)
    return {
        "authenticated": True,
        "user": {
            "id": user.user_id,
            "username": user.username,
            "discriminator": user.discriminator,
            "avatar": user.avatar,
            "displayName": user.display_name,
        },
        "role": role.value,
        "permissions": checker.list_permissions(role),
        "canEditDistricts": checker.has_permission(role, Permission.EDIT_DISTRICTS),
    }


# Districts

@router.get("/districts")
def list_districts():
    return {"districts": [d.model_dump(mode="json") for d in DISTRICTS]}


@router.get("/districts/config")
def get_district_config(request: Request):
    return request.app.state.district_storage.load().model_dump(mode="json")


@router.put("/districts/config")
def save_district_config(
    body: DistrictConfigUpdate,
    request: Request,
    auth: AuthContext = Depends(require_permission(Permission.EDIT_DISTRICTS)),
):
    config = request.app.state.district_storage.save(body, user_id=auth.user.user_id)
    request.app.state.telemetry.emit(
        "districts_saved",
        user_id=auth.user.user_id,
        districts=len(config.centers),
    )
    return config.model_dump(mode="json")


@router.get("/districts/locate")
def locate(
    request: Request,
    x: float = Query(..., description="World-space X"),
    z: float = Query(..., description="World-space Z"),
):
    """District containing a world-space ground point, if exactly one does."""
    config = request.app.state.district_storage.load()
    if config.bounds is None:
        return {"district": None, "boundsKnown": False}
    district = locate_district(config, MapBounds.from_footprint(config.bounds), x, z)
    return {"district": district, "boundsKnown": True}


# Pins

@router.get("/pins")
def list_pins(request: Request, district: Optional[str] = Query(None)):
    pins = request.app.state.pin_storage.list_pins(district=district)
    return {"pins": [_pin_json(p) for p in pins]}


@router.get("/pins/{pin_id}")
def get_pin(pin_id: str, request: Request):
    pin = request.app.state.pin_storage.get_pin(pin_id)
    if pin is None:
        raise NotFoundError(f"Pin {pin_id} not found")
    return _pin_json(pin)


@router.post("/pins")
def create_pin(
    body: PinCreate,
    request: Request,
    auth: AuthContext = Depends(require_permission(Permission.CREATE_MAP_PIN)),
):
    district = body.district
    if district is None:
        config = request.app.state.district_storage.load()
        if config.bounds is not None:
            district = locate_district(
                config, MapBounds.from_footprint(config.bounds), body.pos.x, body.pos.z
            )

    pin = Pin(
        id=body.id,
        name=body.name,
        type=body.type,
        description=body.description,
        district=district,
        pos=body.pos,
        owner_id=auth.user.user_id,
        owner_name=auth.user.display_name,
    )
    try:
        request.app.state.pin_storage.create_pin(pin)
    except DuplicatePinError as e:
        raise ConflictError(str(e)) from e

    request.app.state.telemetry.emit("pin_created", pin_id=pin.id, user_id=pin.owner_id, district=pin.district)
    return _pin_json(pin)


@router.put("/pins/{pin_id}")
def update_pin(
    pin_id: str,
    body: PinUpdate,
    request: Request,
    auth: AuthContext = Depends(require_owner_or_moderator),
):
    changes = body.changes()
    if not changes:
        return _pin_json(request.state.resource)

    pin = request.app.state.pin_storage.update_pin(pin_id, changes)
    if pin is None:
        raise NotFoundError(f"Pin {pin_id} not found")
    logger.info(
        "pin_edit_authorized",
        pin_id=pin_id,
        user_id=auth.user.user_id,
        as_moderator=auth.role is not None and is_moderator_or_admin(auth.role),
    )
    return _pin_json(pin)


@router.delete("/pins/{pin_id}")
def delete_pin(
    pin_id: str,
    request: Request,
    auth: AuthContext = Depends(require_owner_or_moderator),
):
    if not request.app.state.pin_storage.delete_pin(pin_id):
        raise NotFoundError(f"Pin {pin_id} not found")
    request.app.state.telemetry.emit("pin_deleted", pin_id=pin_id, user_id=auth.user.user_id)
    return {"ok": True, "id": pin_id}


# Roles

@router.delete("/roles/cache/{user_id}")
def clear_role_cache(
    user_id: str,
    request: Request,
    auth: AuthContext = Depends(require_permission(Permission.MANAGE_ROLES)),
):
    removed = request.app.state.role_resolver.clear_user(user_id)
    return {"ok": True, "userId": user_id, "removed": removed}


# Map model

def _etag_matches(header: str, etag: str) -> bool:
    for token in header.split(","):
        token = token.strip()
        if token == "*":
            return True
        if token.startswith("W/"):
            token = token[2:]
        if token == etag:
            return True
    return False


def is_not_modified(request: Request, asset: MapAsset) -> bool:
    """
    Conditional GET check.

    If-None-Match takes precedence; If-Modified-Since is only consulted
    when no If-None-Match header is sent.
    """
    if_none_match = request.headers.get("if-none-match")
    if if_none_match is not None:
        return _etag_matches(if_none_match, asset.etag)

    if_modified_since = request.headers.get("if-modified-since")
    if if_modified_since:
        try:
            since: datetime = parsedate_to_datetime(if_modified_since)
        except (TypeError, ValueError):
            return False
        if since.tzinfo is None:
            return False
        # HTTP dates have one-second resolution
        return asset.last_modified.replace(microsecond=0) <= since
    return False


@router.get("/map.glb")
def map_glb(request: Request):
    asset = request.app.state.asset_store.open()
    if asset is None:
        raise NotFoundError("Map GLB not found in GridFS")

    headers = {
        "ETag": asset.etag,
        "Last-Modified": format_datetime(asset.last_modified, usegmt=True),
        "Cache-Control": "public, max-age=3600",
    }
    if is_not_modified(request, asset):
        asset.close()
        return Response(status_code=304, headers=headers)

    logger.info("map_glb_served", length=asset.length, etag=asset.etag)
    headers["Content-Length"] = str(asset.length)
    return StreamingResponse(asset.iter_chunks(), media_type=asset.content_type, headers=headers)
