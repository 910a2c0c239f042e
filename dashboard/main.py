"""
Home Dashboard - FastAPI Application
======================================
Creates and configures the FastAPI web application.

Responsibilities:
    - Resolve project directories (data/, public/) from config.yaml
    - Initialize all manager instances (events, users, sessions, blobs, devices)
    - Mount static assets (public/scripts, public/styles, public/images)
    - Register page, auth and API routes
    - Translate LoginRequired / ApiError into redirects and JSON errors

Directory layout:
    <project>/
      config.yaml          <- optional overrides (see config.py DEFAULTS)
      .env                 <- SESSION_SECRET
      users.json           <- accounts
      devices.json         <- device registry
      data/<key>.json      <- blob store
      data/logs/           <- per-day event logs
      public/static/       <- HTML pages (+ mobile/ variants)
      public/scripts/      <- client scripts
"""

import os
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, RedirectResponse
from fastapi.staticfiles import StaticFiles

from dashboard.config import ConfigManager
from dashboard.devices import DeviceManager
from dashboard.eventlog import EventLog
from dashboard.pages import create_page_router
from dashboard.routes import create_api_router, create_auth_router
from dashboard.sessions import ApiError, LoginRequired, SessionManager
from dashboard.storage import BlobStore
from dashboard.users import UserStore


STATIC_ASSET_DIRS = ("scripts", "styles", "images")


def create_app(project_dir: str | None = None) -> FastAPI:
    """
    Application factory: create and configure the FastAPI instance.

    Args:
        project_dir: Root directory of the dashboard project.
                     If None, auto-detected from this file's location.

    Returns:
        Configured FastAPI application ready to run with uvicorn.
    """
    # -- Resolve directories ---------------------------------------------------
    if project_dir is None:
        project_dir = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
    project_dir = str(project_dir)

    config_manager = ConfigManager(project_dir)
    config = config_manager.load()

    data_dir = config_manager.resolve_path(config, "data_dir")
    public_dir = config_manager.resolve_path(config, "public_dir")
    static_dir = os.path.join(public_dir, "static")
    os.makedirs(data_dir, exist_ok=True)

    # -- Initialize managers ---------------------------------------------------
    events = EventLog(os.path.join(data_dir, "logs"))
    if "_config_error" in config:
        events.warning(f"config.yaml ignored: {config['_config_error']}")

    secret = config_manager.session_secret()
    if not secret:
        events.warning("SESSION_SECRET is not set; using a random secret for this run")

    session_cfg = config["session"]
    session_manager = SessionManager(
        secret,
        max_age=int(session_cfg["max_age"]),
        cookie_name=session_cfg["cookie_name"],
        cookie_secure=bool(session_cfg["cookie_secure"]),
    )
    user_store = UserStore(
        config_manager.resolve_path(config, "users_file"),
        events,
        bcrypt_rounds=int(config["auth"]["bcrypt_rounds"]),
    )
    blob_store = BlobStore(data_dir)
    device_manager = DeviceManager(config_manager.resolve_path(config, "devices_file"), events)

    # -- Create FastAPI app ----------------------------------------------------
    app = FastAPI(
        title="Home Dashboard",
        description="Home automation dashboard with per-key JSON storage",
        version="1.0.0",
        docs_url=None,
        redoc_url=None,
    )

    # -- Store managers on app state -------------------------------------------
    app.state.config = config
    app.state.events = events
    app.state.session_manager = session_manager
    app.state.user_store = user_store
    app.state.blob_store = blob_store
    app.state.device_manager = device_manager

    # -- Error translation -----------------------------------------------------
    @app.exception_handler(LoginRequired)
    async def login_required_handler(request: Request, exc: LoginRequired):
        return RedirectResponse(url="/login", status_code=303)

    @app.exception_handler(ApiError)
    async def api_error_handler(request: Request, exc: ApiError):
        return JSONResponse({"error": exc.tag}, status_code=exc.status_code)

    # -- Register routes -------------------------------------------------------
    app.include_router(create_page_router(session_manager, static_dir))
    app.include_router(create_auth_router(user_store, session_manager, events))
    app.include_router(
        create_api_router(
            blob_store=blob_store,
            device_manager=device_manager,
            session_manager=session_manager,
            events=events,
            require_login=bool(config["api"]["require_login"]),
        )
    )

    # -- Mount static assets ---------------------------------------------------
    for name in STATIC_ASSET_DIRS:
        asset_dir = os.path.join(public_dir, name)
        if os.path.isdir(asset_dir):
            app.mount(f"/{name}", StaticFiles(directory=asset_dir), name=name)

    return app
