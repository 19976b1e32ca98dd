from __future__ import annotations

import os
import sys

# Ensure the app package is importable when tests change directories
BASE_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
sys.path.insert(0, BASE_DIR)

import pytest  # noqa: E402
from flask_migrate import upgrade  # noqa: E402

from app import create_admin_user, create_app, db  # noqa: E402
from app.models import Customer  # noqa: E402
from tests.utils import login  # noqa: E402


@pytest.fixture
def app(tmp_path, monkeypatch):
    monkeypatch.setenv("SECRET_KEY", "testsecret")
    monkeypatch.setenv("ADMIN_EMAIL", "admin@example.com")
    monkeypatch.setenv("ADMIN_PASS", "adminpass")
    monkeypatch.setenv("RATELIMIT_ENABLED", "0")
    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.delenv("DATABASE_PATH", raising=False)

    # Ensure a clean database for each test within the temp directory
    cwd = os.getcwd()
    os.chdir(tmp_path)
    try:
        app = create_app(["--demo"])
    finally:
        os.chdir(cwd)

    app.config.update({"TESTING": True, "WTF_CSRF_ENABLED": False})

    with app.app_context():
        upgrade()
        create_admin_user()

        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def auth_client(client):
    """A test client logged in as the seeded admin user."""
    login(client, "admin@example.com", "adminpass")
    return client


@pytest.fixture
def customers(app):
    """Two customers, returned as ``(id, name)`` pairs ordered by name."""
    with app.app_context():
        amy = Customer(name="Amy Burns", email="amy@burns.com")
        lee = Customer(name="Lee Robinson", email="lee@robinson.com")
        db.session.add_all([amy, lee])
        db.session.commit()
        return [(amy.id, amy.name), (lee.id, lee.name)]
