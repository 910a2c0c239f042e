"""
Home Dashboard - Session Manager
==================================
Server-held login sessions tied to a browser cookie.

Security model:
- Session state ({username, logged_in, expiry}) lives in server memory
- The browser only holds an HTTP-only cookie with a signed JWT whose
  "sid" claim points at the server-side session
- Sessions expire after a fixed time-to-live (session.max_age, 1 hour
  by default); logout destroys them immediately
- The signing secret comes from SESSION_SECRET (.env)

Login flow:
    1. POST /login with valid credentials
    2. SessionManager.create() stores a Session and returns a token
    3. The token is set as the session cookie, browser goes to /home
    4. Gated routes call current() to resolve the cookie back to a Session
"""

import threading
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import bcrypt
from fastapi import Request, Response
from jose import jwt, JWTError


JWT_ALGORITHM = "HS256"


class LoginRequired(Exception):
    """Raised by page dependencies when no valid session exists."""


class ApiError(Exception):
    """
    JSON API failure carrying the error tag returned to the client.

    Rendered by the app as {"error": tag} with the given status code.
    """

    def __init__(self, status_code: int, tag: str):
        super().__init__(tag)
        self.status_code = status_code
        self.tag = tag


@dataclass
class Session:
    """A single server-side login session."""
    session_id: str
    username: str
    created_at: datetime
    expires_at: datetime
    logged_in: bool = True

    def is_expired(self, now: datetime | None = None) -> bool:
        return (now or datetime.now(timezone.utc)) >= self.expires_at


class SessionManager:
    """
    Issues, resolves and destroys login sessions.

    Attributes:
        secret:        HMAC key for signing session tokens.
        max_age:       Session lifetime in seconds.
        cookie_name:   Name of the session cookie.
        cookie_secure: Whether the cookie is marked Secure (HTTPS only).
    """

    def __init__(
        self,
        secret: str | None,
        max_age: int = 3600,
        cookie_name: str = "dashboard_session",
        cookie_secure: bool = False,
    ):
        """
        Initialize the manager.

        Args:
            secret:        Signing secret. When None, a random one is
                           generated and sessions do not survive restarts.
            max_age:       Session lifetime in seconds.
            cookie_name:   Cookie name used for the token.
            cookie_secure: Set the Secure flag on the cookie.
        """
        self.ephemeral_secret = not secret
        self.secret = secret or bcrypt.gensalt().decode("utf-8")
        self.max_age = max_age
        self.cookie_name = cookie_name
        self.cookie_secure = cookie_secure
        self._sessions: dict[str, Session] = {}
        self._lock = threading.Lock()

    @property
    def active_count(self) -> int:
        """Number of sessions currently held (expired ones included until purged)."""
        return len(self._sessions)

    def create(self, username: str) -> tuple[Session, str]:
        """
        Start a new session for 'username'.

        Returns:
            The Session and the signed token to place in the cookie.
        """
        self.purge_expired()
        now = datetime.now(timezone.utc)
        session = Session(
            session_id=uuid.uuid4().hex,
            username=username,
            created_at=now,
            expires_at=now + timedelta(seconds=self.max_age),
        )
        with self._lock:
            self._sessions[session.session_id] = session

        payload = {
            "sid": session.session_id,
            "sub": username,
            "iat": now,
            "exp": session.expires_at,
        }
        token = jwt.encode(payload, self.secret, algorithm=JWT_ALGORITHM)
        return session, token

    def resolve(self, token: str | None) -> Session | None:
        """
        Map a cookie token back to its live Session.

        Returns:
            The Session, or None if the token is missing, forged, expired,
            or refers to a session that no longer exists.
        """
        if not token:
            return None
        try:
            payload = jwt.decode(token, self.secret, algorithms=[JWT_ALGORITHM])
        except JWTError:
            return None

        sid = payload.get("sid")
        with self._lock:
            session = self._sessions.get(sid) if sid else None
            if session is None:
                return None
            if session.is_expired():
                del self._sessions[sid]
                return None
        if not session.logged_in or session.username != payload.get("sub"):
            return None
        return session

    def destroy(self, token: str | None) -> Session | None:
        """
        End the session referenced by 'token'.

        Returns:
            The destroyed Session, or None if there was none.
        """
        session = self.resolve(token)
        if session is None:
            return None
        with self._lock:
            self._sessions.pop(session.session_id, None)
        session.logged_in = False
        return session

    def purge_expired(self) -> int:
        """Drop all expired sessions. Returns how many were removed."""
        now = datetime.now(timezone.utc)
        with self._lock:
            expired = [sid for sid, s in self._sessions.items() if s.is_expired(now)]
            for sid in expired:
                del self._sessions[sid]
        return len(expired)

    # -- Request helpers -------------------------------------------------------

    def current(self, request: Request) -> Session | None:
        """Resolve the session for an incoming request."""
        return self.resolve(request.cookies.get(self.cookie_name))

    def set_cookie(self, response: Response, token: str) -> None:
        """Attach the session cookie to a response."""
        response.set_cookie(
            self.cookie_name,
            token,
            max_age=self.max_age,
            httponly=True,
            secure=self.cookie_secure,
            samesite="lax",
        )

    def clear_cookie(self, response: Response) -> None:
        """Remove the session cookie from the browser."""
        response.delete_cookie(self.cookie_name, httponly=True, samesite="lax")


def require_page_session(session_manager: SessionManager):
    """
    Create a FastAPI dependency that gates HTML pages.

    Without a valid session it raises LoginRequired, which the app turns
    into a redirect to /login.

    Usage in routes:
        @router.get("/home")
        async def home(session: Session = Depends(require_page_session(sm))): ...
    """
    async def _verify(request: Request) -> Session:
        session = session_manager.current(request)
        if session is None:
            raise LoginRequired()
        return session

    return _verify


def require_api_session(session_manager: SessionManager, enabled: bool = True):
    """
    Create a FastAPI dependency that gates JSON API routes.

    Without a valid session it raises ApiError(401, "unauthorized").
    When 'enabled' is False the API is open and the dependency returns
    whatever session is present (possibly None).
    """
    async def _verify(request: Request) -> Session | None:
        session = session_manager.current(request)
        if session is None and enabled:
            raise ApiError(401, "unauthorized")
        return session

    return _verify
