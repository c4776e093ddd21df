"""
Pytest fixtures for fresh users.

Enable them from a top-level conftest::

    pytest_plugins = ["fresh_users.pytest_plugin"]

Key SDET Concepts Demonstrated:
- Session-scoped setup/teardown of shared state (start -> clean -> stop)
- Factory fixtures that hand each test its own accounts
"""

from __future__ import annotations

from collections.abc import Callable, Generator, Sequence
from typing import Any

import pytest

from .session import FreshSession, default_session
from .specs import RoleRequest


@pytest.fixture(scope="session")
def fresh_session() -> Generator[FreshSession, None, None]:
    """
    Provide the default fresh session for the whole test run.

    The registry is started before the first test and every account it
    tracked is deleted after the last one.
    """
    session = default_session()
    session.start()
    try:
        yield session
    finally:
        try:
            session.clean()
        finally:
            session.stop()


@pytest.fixture
def fresh_config_factory(
    fresh_session: FreshSession,
) -> Callable[[dict[str, Any], Sequence[RoleRequest]], dict[str, Any]]:
    """Factory creating fresh users: ``fresh_config_factory(config, ["alice"])``."""

    def _make(story_config: dict[str, Any], roles: Sequence[RoleRequest]) -> dict[str, Any]:
        return fresh_session.create_users(story_config, roles)

    return _make
