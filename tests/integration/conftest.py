"""
Live account service fixtures for integration tests.

Starts the local account service on a background thread so fresh users
are provisioned over real HTTP, exactly as they would be against a
remote server.

Key SDET Concepts Demonstrated:
- Live server fixture with a real port (werkzeug, threaded)
- Per-run temporary database so runs never see each other's accounts
- Session-scoped start/clean/stop of the fresh user registry
"""

from __future__ import annotations

import os
import tempfile
import threading
from collections.abc import Generator
from pathlib import Path

import pytest
import requests
from werkzeug.serving import make_server

os.environ["FLASK_ENV"] = "testing"
_db_dir = Path(tempfile.mkdtemp(prefix="fresh-users-"))
os.environ["TEST_ACCOUNT_DATABASE_URL"] = (
    f"sqlite:///{_db_dir / 'accounts.db'}?check_same_thread=False"
)

from account_service import create_app
from fresh_users import FreshRegistry, FreshSession, HttpStoryRunner, HttpUserProvisioner
from fresh_users import config as settings
from fresh_users.config import USERS_KEY


@pytest.fixture(scope="session")
def account_app():
    """Provide the account service app for the whole test session."""
    return create_app("testing")


@pytest.fixture
def api_client(account_app):
    """Flask test client for direct endpoint checks."""
    with account_app.test_client() as client:
        yield client


@pytest.fixture(scope="session")
def live_server(account_app) -> Generator[str, None, None]:
    """
    Serve the account service on a free local port.

    Yields:
        str: Base URL of the running server.
    """
    server = make_server("127.0.0.1", 0, account_app, threaded=True)
    server_thread = threading.Thread(target=server.serve_forever, daemon=True)
    server_thread.start()

    base_url = f"http://127.0.0.1:{server.server_port}"
    response = requests.get(f"{base_url}/api/auth/health", timeout=5)
    assert response.status_code == 200

    yield base_url

    server.shutdown()
    server_thread.join(timeout=5)


@pytest.fixture
def story_config(live_server: str) -> dict:
    """Story config pointing at the live account service."""
    return {
        "base_url": live_server,
        USERS_KEY: [
            ("alice", {"username": "alice", "password": "makota"}),
            ("bob", {"username": "bob", "password": "makrolika"}),
        ],
    }


@pytest.fixture
def live_session(live_server: str) -> Generator[FreshSession, None, None]:
    """A fresh session with its own registry, cleaned after each test."""
    session = FreshSession(
        HttpUserProvisioner(base_url=live_server, settings=settings.TestingConfig),
        HttpStoryRunner(settings=settings.TestingConfig),
        registry=FreshRegistry(),
    )
    session.start()
    yield session
    session.clean()
    session.stop()
