"""
Tests for signup / login / logout and session gating.
"""

import json
import os
from datetime import datetime, timedelta, timezone

from jose import jwt

from conftest import login, signup
from dashboard.sessions import JWT_ALGORITHM, SessionManager


def _users(project_dir):
    with open(os.path.join(project_dir, "users.json"), encoding="utf-8") as f:
        return json.load(f)


class TestSignup:
    def test_signup_persists_hashed_user(self, client, project_dir):
        response = signup(client)
        assert response.status_code == 200
        assert "Signup successful" in response.text

        users = _users(project_dir)
        assert len(users) == 1
        user = users[0]
        assert user["username"] == "alice"
        assert user["email"] == "alice@example.com"
        assert user["password"] != "s3cret"
        assert user["password"].startswith("$2")
        assert user["id"]

    def test_email_is_optional(self, client, project_dir):
        client.post("/signup", data={"username": "bob", "password": "pw"})
        assert _users(project_dir)[0]["email"] == ""

    def test_duplicate_username_rejected(self, client, project_dir):
        signup(client)
        response = signup(client, password="other")
        assert "User already exists" in response.text
        assert len(_users(project_dir)) == 1

    def test_blank_credentials_rejected(self, client, project_dir):
        response = client.post("/signup", data={"username": "  ", "password": "x"})
        assert "required" in response.text
        assert not os.path.exists(os.path.join(project_dir, "users.json"))

    def test_users_survive_restart(self, client, project_dir):
        from dashboard.main import create_app
        from fastapi.testclient import TestClient

        signup(client)
        fresh = TestClient(create_app(str(project_dir)))
        assert login(fresh).status_code == 303


class TestLogin:
    def test_signup_then_login_succeeds(self, client):
        signup(client)
        response = login(client)
        assert response.status_code == 303
        assert response.headers["location"] == "/home"
        assert "dashboard_session" in response.headers["set-cookie"]
        assert "httponly" in response.headers["set-cookie"].lower()

        home = client.get("/home")
        assert home.status_code == 200
        assert "desktop home" in home.text

    def test_wrong_password_fails(self, client):
        signup(client)
        response = login(client, password="wrong")
        assert response.status_code == 200
        assert "Invalid password" in response.text
        assert client.get("/home", follow_redirects=False).status_code == 303

    def test_username_whitespace_is_ignored(self, client):
        signup(client, username=" bob ")
        response = login(client, username=" bob ")
        assert response.status_code == 303
        assert response.headers["location"] == "/home"
        assert login(client, username="bob").status_code == 303

    def test_unknown_user_fails(self, client):
        response = login(client, username="nobody")
        assert "Invalid login" in response.text

    def test_login_records_last_event(self, auth_client):
        status = auth_client.get("/api/status").json()
        assert status["lastEvent"] == "alice logged in"


class TestLogout:
    def test_logout_ends_session(self, auth_client, app):
        response = auth_client.get("/logout", follow_redirects=False)
        assert response.status_code == 303
        assert response.headers["location"] == "/login"
        assert app.state.session_manager.active_count == 0
        assert auth_client.get("/home", follow_redirects=False).status_code == 303

    def test_logout_without_session_redirects(self, client):
        response = client.get("/logout", follow_redirects=False)
        assert response.status_code == 303


class TestSessionManager:
    def test_resolve_round_trip(self):
        manager = SessionManager("secret", max_age=60)
        session, token = manager.create("alice")
        resolved = manager.resolve(token)
        assert resolved is session
        assert resolved.username == "alice"
        assert resolved.logged_in

    def test_forged_token_rejected(self):
        manager = SessionManager("secret")
        session, _ = manager.create("alice")
        forged = jwt.encode(
            {"sid": session.session_id, "sub": "alice"},
            "other-secret",
            algorithm=JWT_ALGORITHM,
        )
        assert manager.resolve(forged) is None

    def test_expired_session_is_purged(self):
        manager = SessionManager("secret", max_age=60)
        session, token = manager.create("alice")
        session.expires_at = datetime.now(timezone.utc) - timedelta(seconds=1)
        assert manager.resolve(token) is None
        assert manager.active_count == 0

    def test_purge_expired(self):
        manager = SessionManager("secret", max_age=60)
        old, _ = manager.create("alice")
        manager.create("bob")
        old.expires_at = datetime.now(timezone.utc) - timedelta(seconds=1)
        assert manager.purge_expired() == 1
        assert manager.active_count == 1

    def test_destroyed_session_cannot_be_reused(self):
        manager = SessionManager("secret")
        _, token = manager.create("alice")
        assert manager.destroy(token) is not None
        assert manager.resolve(token) is None
        assert manager.destroy(token) is None

    def test_missing_secret_generates_one(self):
        manager = SessionManager(None)
        assert manager.ephemeral_secret
        assert manager.secret
