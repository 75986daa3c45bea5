"""FastAPI web application for the Dark City map."""

from typing import Callable, Optional
from urllib.parse import quote

from fastapi import FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import FileResponse, JSONResponse, PlainTextResponse, RedirectResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.sessions import SessionMiddleware
import uvicorn

from ..lib.config import PORT, SESSION_COOKIE_NAME, STATIC_DIR, Settings, load_settings
from ..lib.errors import ApiError, DiscordAPIError
from ..lib.logging import get_logger
from ..models.role import Role
from ..services.database import get_database
from ..services.district_storage import create_district_storage
from ..services.map_asset_store import create_map_asset_store
from ..services.oauth import DiscordOAuthClient, create_oauth_client
from ..services.permission_checker import create_permission_checker
from ..services.pin_storage import create_pin_storage
from ..services.role_resolver import create_role_resolver
from ..services.session_store import create_session_store
from ..services.telemetry import create_telemetry_client
from .api import router as api_router
from .auth import SESSION_KEY, LoginRequired, authorize_role, is_api_request

logger = get_logger(__name__)


def safe_return_to(value: Optional[str]) -> str:
    """Only same-site relative paths are allowed as post-login targets."""
    if not value or not value.startswith("/") or value.startswith("//") or "\\" in value:
        return "/"
    return value


def _validation_message(exc: RequestValidationError) -> str:
    parts = []
    for error in exc.errors():
        loc = [str(p) for p in error.get("loc", ()) if p not in ("body", "query", "path")]
        field = ".".join(loc) or "body"
        parts.append(f"{field}: {error.get('msg', 'invalid value')}")
    return "; ".join(parts) or "Invalid request"


def _register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(ApiError)
    async def api_error_handler(request: Request, exc: ApiError):
        if exc.status_code == 403 and not is_api_request(request):
            return PlainTextResponse("Access denied", status_code=403)
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(LoginRequired)
    async def login_required_handler(request: Request, exc: LoginRequired):
        return RedirectResponse(f"/auth/discord?returnTo={quote(exc.return_to, safe='')}", status_code=302)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=400,
            content={"error": "Bad request", "message": _validation_message(exc)},
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": str(exc.detail)},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception):
        logger.error(
            "request_failed",
            path=request.url.path,
            method=request.method,
            error=str(exc),
            exc_info=exc,
        )
        return JSONResponse(
            status_code=500,
            content={"error": "Internal server error", "message": "Unexpected server error"},
        )


def _register_auth_routes(app: FastAPI) -> None:
    @app.get("/auth/discord")
    def login(request: Request, returnTo: Optional[str] = Query(None)):
        """Start Discord login."""
        oauth: DiscordOAuthClient = request.app.state.oauth_client_factory()
        url, state = oauth.authorization_url()
        request.session["oauth_state"] = state
        request.session["return_to"] = safe_return_to(returnTo)
        return RedirectResponse(url, status_code=302)

    @app.get("/auth/discord/callback")
    def login_callback(
        request: Request,
        code: Optional[str] = Query(None),
        state: Optional[str] = Query(None),
        error: Optional[str] = Query(None),
    ):
        """Finish Discord login and create the server-side session."""
        expected_state = request.session.pop("oauth_state", None)
        return_to = safe_return_to(request.session.pop("return_to", None))

        if error:
            logger.info("discord_login_declined", error=error)
            return RedirectResponse(f"/?loginError={quote(error, safe='')}", status_code=302)
        if not code or not state or state != expected_state:
            raise ApiError(400, "Bad request", "Invalid or expired OAuth state")

        oauth: DiscordOAuthClient = request.app.state.oauth_client_factory()
        try:
            user = oauth.fetch_user(code, state)
        except DiscordAPIError as e:
            raise ApiError(500, "Authentication error", "Discord login failed") from e

        store = request.app.state.session_store
        previous = request.session.get(SESSION_KEY)
        if previous:
            store.delete(previous)
        request.session[SESSION_KEY] = store.create(user)

        logger.info("user_logged_in", user_id=user.user_id, username=user.username)
        request.app.state.telemetry.emit("login", user_id=user.user_id)
        return RedirectResponse(return_to, status_code=302)

    @app.post("/auth/logout")
    def logout(request: Request):
        session_id = request.session.pop(SESSION_KEY, None)
        if session_id:
            user = request.app.state.session_store.get(session_id)
            request.app.state.session_store.delete(session_id)
            if user is not None:
                logger.info("user_logged_out", user_id=user.user_id)
                request.app.state.telemetry.emit("logout", user_id=user.user_id)
        request.session.clear()
        return {"ok": True}


def _register_page_routes(app: FastAPI) -> None:
    @app.get("/")
    def index(request: Request, edit: Optional[str] = Query(None)):
        """Serve the app shell; edit mode is for moderators and admins."""
        if edit == "1":
            authorize_role(request, Role.MODERATOR)
        return FileResponse(STATIC_DIR / "index.html", media_type="text/html")

    @app.get("/api/health")
    def health_check(request: Request):
        """Health check endpoint."""
        database = request.app.state.database
        try:
            database.command("ping")
            db_status = "ok"
        except Exception as e:
            logger.warning("health_database_unavailable", error=str(e))
            db_status = "unavailable"
        return {"status": "healthy" if db_status == "ok" else "degraded", "database": db_status}


def create_app(
    settings: Optional[Settings] = None,
    *,
    database=None,
    role_resolver=None,
    oauth_client_factory: Optional[Callable[[], DiscordOAuthClient]] = None,
    asset_store=None,
    telemetry=None,
) -> FastAPI:
    """
    Build the application.

    Collaborators default to the real MongoDB, Discord and telemetry
    clients built from ``settings``; tests pass their own.

    Args:
        settings: Application settings (loaded from the environment if omitted)
        database: pymongo Database
        role_resolver: Object with ``resolve_role(user_id)`` and ``clear_user(user_id)``
        oauth_client_factory: Callable returning a Discord OAuth client
        asset_store: Object with ``open()`` returning the map model or None
        telemetry: Telemetry client

    Raises:
        ConfigurationError: If a required setting is missing
    """
    settings = settings or load_settings()
    if database is None:
        database = get_database(settings)

    app = FastAPI(
        title="Dark City Map",
        description="District and pin API for the Dark City 3D map",
        version="0.1.0",
    )

    session_secret = settings.resolve_session_secret()
    if not settings.session_secret:
        logger.warning("session_secret_fallback", detail="using development session secret")
    app.add_middleware(
        SessionMiddleware,
        secret_key=session_secret,
        session_cookie=SESSION_COOKIE_NAME,
        max_age=settings.session_ttl_seconds,
        same_site="lax",
        https_only=settings.is_production,
    )

    app.state.settings = settings
    app.state.database = database
    app.state.pin_storage = create_pin_storage(database)
    app.state.district_storage = create_district_storage(database)
    app.state.session_store = create_session_store(database, settings.session_ttl_seconds)
    app.state.permission_checker = create_permission_checker()
    app.state.role_resolver = role_resolver or create_role_resolver(settings)
    app.state.oauth_client_factory = oauth_client_factory or (lambda: create_oauth_client(settings))
    app.state.asset_store = asset_store or create_map_asset_store(
        database, settings.gridfs_bucket, settings.map_glb_filename
    )
    app.state.telemetry = telemetry or create_telemetry_client(settings.telemetry_url, settings.telemetry_token)

    app.state.pin_storage.ensure_indexes()
    app.state.session_store.ensure_indexes()

    _register_error_handlers(app)
    _register_auth_routes(app)
    _register_page_routes(app)
    app.include_router(api_router)
    app.mount("/static", StaticFiles(directory=str(STATIC_DIR)), name="static")

    logger.info("app_created", env=settings.app_env, telemetry=app.state.telemetry.enabled)
    return app


def run_server(
    host: str = "0.0.0.0",
    port: int = PORT,
    reload: bool = False
):
    """Run the FastAPI server."""
    uvicorn.run(
        "src.web.app:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload
    )


if __name__ == "__main__":
    run_server()
