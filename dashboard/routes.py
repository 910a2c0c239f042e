"""
Home Dashboard - Auth & API Routes
====================================
Form endpoints for the login page and the JSON API used by the pages.

Route groups:
    /login, /signup (POST)      - Credential check / account creation
    /logout                     - Ends the session
    /api/storage/{key}          - Per-key JSON blob store (GET/POST/DELETE)
    /api/status                 - Uptime, last event, device counts
    /api/devices/*              - Device list, power toggle, brightness

The auth endpoints answer with short HTML fragments (they are posted
from a plain HTML form). API endpoints answer with JSON and report
failures as {"error": "<tag>"}.

When api.require_login is enabled (the default) every /api route needs
a logged-in session.
"""

import json
from typing import Any

from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import HTMLResponse, RedirectResponse

from dashboard.devices import DeviceManager
from dashboard.eventlog import EventLog
from dashboard.jsonfile import reject_constant
from dashboard.sessions import ApiError, SessionManager, require_api_session
from dashboard.storage import BlobStore, InvalidKeyError
from dashboard.users import UserExistsError, UserStore


# =============================================================================
# Auth Router - HTML form posts
# =============================================================================

def create_auth_router(
    user_store: UserStore,
    session_manager: SessionManager,
    events: EventLog,
) -> APIRouter:
    """
    Create the router handling login, signup and logout.

    Args:
        user_store:      Account storage and password verification.
        session_manager: Issues and destroys login sessions.
        events:          Event log for auth activity.

    Returns:
        APIRouter with the auth endpoints registered.
    """
    router = APIRouter()

    @router.post("/login")
    async def login(username: str = Form(""), password: str = Form("")):
        """
        Check credentials. On success start a session and go to /home.
        """
        username = username.strip()
        user = user_store.find(username)
        if not user or not user.get("password"):
            events.warning(f"Login attempt for unknown user '{username}'")
            return HTMLResponse('Invalid login. <a href="/login">Try again</a>')

        if user_store.verify(username, password) is None:
            events.warning(f"Wrong password for '{username}'")
            return HTMLResponse('Invalid password. <a href="/login">Try again</a>')

        _, token = session_manager.create(username)
        events.info("AUTH", f"{username} logged in")

        response = RedirectResponse(url="/home", status_code=303)
        session_manager.set_cookie(response, token)
        return response

    @router.post("/signup")
    async def signup(
        username: str = Form(""),
        password: str = Form(""),
        email: str = Form(""),
    ):
        """
        Create a new account. Rejects usernames that are already taken.
        """
        username = username.strip()
        try:
            user_store.create(username, password, email.strip())
        except UserExistsError:
            return HTMLResponse('User already exists. <a href="/signup">Try again</a>')
        except ValueError as e:
            return HTMLResponse(f'{e} <a href="/signup">Try again</a>')
        except OSError as e:
            events.error("SIGNUP", f"Could not save users file: {e}")
            return HTMLResponse(
                'Signup failed, please try again later. <a href="/signup">Try again</a>',
                status_code=500,
            )

        return HTMLResponse('Signup successful! <a href="/login">Login here</a>')

    @router.get("/logout")
    async def logout(request: Request):
        """End the current session and return to the login page."""
        session = session_manager.destroy(request.cookies.get(session_manager.cookie_name))
        if session is not None:
            events.info("LOGOUT", f"{session.username} logged out")

        response = RedirectResponse(url="/login", status_code=303)
        session_manager.clear_cookie(response)
        return response

    return router


# =============================================================================
# API Router - JSON endpoints
# =============================================================================

async def _read_json_body(request: Request, error_tag: str) -> Any:
    """Parse the request body as JSON or raise ApiError(400, error_tag)."""
    raw = await request.body()
    try:
        return json.loads(raw, parse_constant=reject_constant)
    except ValueError:
        # JSONDecodeError, UnicodeDecodeError and NaN/Infinity tokens
        raise ApiError(400, error_tag)


def create_api_router(
    blob_store: BlobStore,
    device_manager: DeviceManager,
    session_manager: SessionManager,
    events: EventLog,
    require_login: bool = True,
) -> APIRouter:
    """
    Create the JSON API router.

    Args:
        blob_store:      Per-key JSON document storage.
        device_manager:  Device registry and mutations.
        session_manager: Resolves sessions for the API gate.
        events:          Event log for storage failures.
        require_login:   Whether /api routes need a logged-in session.

    Returns:
        APIRouter mounted under /api.
    """
    router = APIRouter(
        prefix="/api",
        dependencies=[Depends(require_api_session(session_manager, enabled=require_login))],
    )

    # =========================================================================
    # STORAGE ROUTES
    # =========================================================================

    @router.get("/storage/{key}")
    async def read_blob(key: str):
        """
        Return the JSON document stored under 'key', or null if none.
        """
        try:
            return blob_store.get(key)
        except InvalidKeyError:
            raise ApiError(400, "invalid_key")
        except (ValueError, OSError) as e:
            events.error("STORAGE", f"Read failed for key '{key}': {e}")
            raise ApiError(500, "read_failed")

    @router.post("/storage/{key}")
    async def write_blob(key: str, request: Request):
        """
        Store the request body (any JSON value) under 'key'.
        """
        try:
            blob_store.path_for(key)
        except InvalidKeyError:
            raise ApiError(400, "invalid_key")

        value = await _read_json_body(request, "invalid_json")
        try:
            blob_store.put(key, value)
        except OSError as e:
            events.error("STORAGE", f"Write failed for key '{key}': {e}")
            raise ApiError(500, "write_failed")
        return {"ok": True}

    @router.delete("/storage/{key}")
    async def delete_blob(key: str):
        """
        Delete the document under 'key'. Deleting a missing key is a no-op.
        """
        try:
            blob_store.delete(key)
        except InvalidKeyError:
            raise ApiError(400, "invalid_key")
        except OSError as e:
            events.error("STORAGE", f"Delete failed for key '{key}': {e}")
            raise ApiError(500, "write_failed")
        return {"ok": True}

    # =========================================================================
    # DEVICE ROUTES
    # =========================================================================

    @router.get("/status")
    async def get_status():
        """Uptime in ms, last event text, device and active counts."""
        return device_manager.status

    @router.get("/devices")
    async def list_devices():
        """All devices in display order."""
        return device_manager.list()

    @router.post("/devices/{device_id}/toggle")
    async def toggle_device(device_id: str):
        """Flip a device on/off."""
        try:
            device = device_manager.toggle(device_id)
        except KeyError:
            raise ApiError(404, "not_found")
        except OSError as e:
            events.error("DEVICES", f"Could not save devices file: {e}")
            raise ApiError(500, "write_failed")
        return {"ok": True, "id": device["id"], "on": device["on"]}

    @router.post("/devices/{device_id}/brightness")
    async def set_brightness(device_id: str, request: Request):
        """
        Set a device's brightness. Body: {"value": 0..100}.
        Out-of-range values are clamped.
        """
        body = await _read_json_body(request, "invalid_value")
        if not isinstance(body, dict) or "value" not in body:
            raise ApiError(400, "invalid_value")

        try:
            device = device_manager.set_brightness(device_id, body["value"])
        except KeyError:
            raise ApiError(404, "not_found")
        except ValueError:
            raise ApiError(400, "invalid_value")
        except OSError as e:
            events.error("DEVICES", f"Could not save devices file: {e}")
            raise ApiError(500, "write_failed")
        return {"ok": True, "id": device["id"], "brightness": device["brightness"]}

    return router
