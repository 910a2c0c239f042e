"""
Shared fixtures: every test gets its own project directory under tmp_path
(users.json, devices.json, data/, public/static/) and a fresh app.
"""

import os

import pytest
from fastapi.testclient import TestClient

from dashboard.main import create_app


PAGES = {
    "loginsignup.html": "<html>login page</html>",
    "home.html": "<html>desktop home</html>",
    "standbyclock.html": "<html>standby clock</html>",
    "main.html": "<html>desktop main</html>",
    "flashcards.html": "<html>flashcards</html>",
    "LexiPractice.html": "<html>lexipractice</html>",
    "Lexicon Mastery.html": "<html>lexicon mastery</html>",
    "dialogue.html": "<html>dialogue</html>",
}

MOBILE_PAGES = {
    "home.html": "<html>mobile home</html>",
}


def write_config(project_dir, text: str) -> None:
    with open(os.path.join(project_dir, "config.yaml"), "w", encoding="utf-8") as f:
        f.write(text)


@pytest.fixture
def project_dir(tmp_path, monkeypatch):
    """A throwaway project root with static pages and fast bcrypt."""
    monkeypatch.setenv("SESSION_SECRET", "test-secret")

    static_dir = tmp_path / "public" / "static"
    (static_dir / "mobile").mkdir(parents=True)
    for name, body in PAGES.items():
        (static_dir / name).write_text(body, encoding="utf-8")
    for name, body in MOBILE_PAGES.items():
        (static_dir / "mobile" / name).write_text(body, encoding="utf-8")

    write_config(tmp_path, "auth:\n  bcrypt_rounds: 4\n")
    return tmp_path


@pytest.fixture
def app(project_dir):
    return create_app(str(project_dir))


@pytest.fixture
def client(app):
    return TestClient(app)


def signup(client, username="alice", password="s3cret", email="alice@example.com"):
    return client.post(
        "/signup",
        data={"username": username, "password": password, "email": email},
    )


def login(client, username="alice", password="s3cret"):
    return client.post(
        "/login",
        data={"username": username, "password": password},
        follow_redirects=False,
    )


@pytest.fixture
def auth_client(client):
    """A client holding a logged-in session for user 'alice'."""
    signup(client)
    response = login(client)
    assert response.status_code == 303
    return client
