"""
Home Dashboard - Page Routes
==============================
Serves the static HTML pages of the dashboard.

Every gated page exists in up to two variants:
    public/static/<file>          <- desktop (required)
    public/static/mobile/<file>   <- mobile (optional)

Phones and tablets (detected from the User-Agent header) get the mobile
variant when one exists and fall back to the desktop file otherwise.
Pages other than /login and /signup require a logged-in session; visitors
without one are redirected to /login.
"""

import os
import re

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import FileResponse, RedirectResponse

from dashboard.sessions import SessionManager, require_page_session


MOBILE_UA_PATTERN = re.compile(
    r"Android|webOS|iPhone|iPad|iPod|BlackBerry|IEMobile|Opera Mini|Mobile",
    re.IGNORECASE,
)

# Route path -> file name under public/static/
GATED_PAGES = {
    "/home": "home.html",
    "/standby": "standbyclock.html",
    "/main": "main.html",
    "/flashcards": "flashcards.html",
    "/lexipractice": "LexiPractice.html",
    "/lexicon-mastery": "Lexicon Mastery.html",
    "/dialogue": "dialogue.html",
}

LOGIN_PAGE = "loginsignup.html"


def is_mobile(user_agent: str | None) -> bool:
    """True if the User-Agent string looks like a phone or tablet."""
    return bool(user_agent) and MOBILE_UA_PATTERN.search(user_agent) is not None


def select_variant(static_dir: str, filename: str, user_agent: str | None) -> str | None:
    """
    Pick the file to serve for a page.

    Args:
        static_dir: Directory holding the desktop pages.
        filename:   Page file name (e.g. "home.html").
        user_agent: Request User-Agent header.

    Returns:
        Absolute path of the mobile variant (mobile client, file present),
        else of the desktop file if it exists, else None.
    """
    if is_mobile(user_agent):
        mobile_path = os.path.join(static_dir, "mobile", filename)
        if os.path.isfile(mobile_path):
            return mobile_path

    desktop_path = os.path.join(static_dir, filename)
    if os.path.isfile(desktop_path):
        return desktop_path
    return None


def create_page_router(session_manager: SessionManager, static_dir: str) -> APIRouter:
    """
    Create the router for all HTML page routes.

    Args:
        session_manager: Resolves the login session for gated pages.
        static_dir:      Directory holding the HTML files (public/static).

    Returns:
        APIRouter with /, /login, /signup and the gated page routes.
    """
    router = APIRouter()
    logged_in = Depends(require_page_session(session_manager))

    def _serve(request: Request, filename: str) -> FileResponse:
        path = select_variant(static_dir, filename, request.headers.get("user-agent"))
        if path is None:
            raise HTTPException(status_code=404, detail=f"Page '{filename}' not found")
        return FileResponse(path, media_type="text/html")

    @router.get("/")
    async def index():
        """Root route: everything starts at the login page."""
        return RedirectResponse(url="/login", status_code=303)

    @router.get("/login")
    async def login_page(request: Request):
        """Combined login/signup page."""
        return _serve(request, LOGIN_PAGE)

    @router.get("/signup")
    async def signup_page(request: Request):
        """Same page as /login; the form switches mode client-side."""
        return _serve(request, LOGIN_PAGE)

    def _add_gated(path: str, filename: str) -> None:
        async def page(request: Request):
            return _serve(request, filename)

        page.__name__ = "page_" + path.strip("/").replace("-", "_")
        router.add_api_route(path, page, methods=["GET"], dependencies=[logged_in])

    for path, filename in GATED_PAGES.items():
        _add_gated(path, filename)

    return router
