"""
Shared pytest fixtures for the fresh-users test suite.

Key Concepts Demonstrated:
- Test data factories (Faker-generated user templates)
- Mocked collaborators standing in for the account service
- Per-test registries so tests never share tracked state
"""

from __future__ import annotations

import os
from typing import Any
from unittest.mock import MagicMock

import pytest
from faker import Faker

os.environ.setdefault("FRESH_USERS_ENV", "testing")

from fresh_users import FreshRegistry, FreshSession
from fresh_users.config import USERS_KEY

fake = Faker()


def enrich(story_config: dict[str, Any], specs: list[tuple[str, dict[str, Any]]]) -> dict[str, Any]:
    """Imitate the account service: return a config with server-assigned data."""
    fresh_config = dict(story_config)
    fresh_config[USERS_KEY] = [
        (role, {**user, "user_id": index + 1, "token": f"token-{user['username']}"})
        for index, (role, user) in enumerate(specs)
    ]
    return fresh_config


# -----------------------------------------------------------------------------
# Config Fixtures
# -----------------------------------------------------------------------------

@pytest.fixture
def base_config() -> dict[str, Any]:
    """A story config with three user templates and an unrelated setting."""
    return {
        "base_url": "http://accounts.test",
        USERS_KEY: [
            ("alice", {"username": "alice", "password": "makota", "resource": "res1"}),
            ("bob", {"username": "bob", "password": "makrolika"}),
            ("carol", {"username": "carol", "password": "jinglebells"}),
        ],
    }


@pytest.fixture
def user_template_factory():
    """Factory for random ``(role, user)`` templates."""

    def _make(role: str | None = None) -> tuple[str, dict[str, Any]]:
        name = role or fake.unique.user_name()
        return name, {"username": name, "password": fake.password(length=12)}

    return _make


# -----------------------------------------------------------------------------
# Collaborator Fixtures
# -----------------------------------------------------------------------------

@pytest.fixture
def provisioner() -> MagicMock:
    """Provisioning collaborator whose ``create_users`` echoes enriched specs."""
    mock = MagicMock(name="provisioner")
    mock.create_users.side_effect = enrich
    mock.delete_users.return_value = None
    return mock


@pytest.fixture
def runner() -> MagicMock:
    """Story runner that calls the story with one stand-in client per role."""
    mock = MagicMock(name="runner")

    def _run(fresh_config, roles, story_fn):
        users = dict(fresh_config[USERS_KEY])
        return story_fn(*[users[role] for role in roles])

    mock.run.side_effect = _run
    return mock


@pytest.fixture
def registry(provisioner: MagicMock):
    """A started registry that is shut down after the test."""
    reg = FreshRegistry(provisioner)
    reg.ensure_storage_present()
    yield reg
    reg.shutdown()


@pytest.fixture
def session(provisioner: MagicMock, runner: MagicMock, registry: FreshRegistry) -> FreshSession:
    return FreshSession(provisioner, runner, registry=registry)
