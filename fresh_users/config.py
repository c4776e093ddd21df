"""
Configuration for the fresh-users helpers.

Follows the usual environment-class pattern: a shared ``Config`` base
class holds defaults read from environment variables, and
environment-specific subclasses override only what differs.
``get_config`` resolves the class from ``FRESH_USERS_ENV``.

Story configurations themselves are plain dictionaries.  They are read
through :func:`get_config_value` so every lookup fails the same way when
a required section is absent.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from typing import Any

# Section of a story config that holds the user templates
USERS_KEY = "users"
# Optional story config override for the account service location
BASE_URL_KEY = "base_url"

_MISSING = object()


def _env_flag(name: str, default: bool) -> bool:
    """Read a boolean environment variable ("1", "true", "yes" are truthy)."""
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


class Config:
    """Base configuration shared by all environments."""

    BASE_URL: str = os.environ.get("FRESH_USERS_BASE_URL", "http://localhost:5000")
    # Seconds before an account-service request is abandoned
    TIMEOUT: float = float(os.environ.get("FRESH_USERS_TIMEOUT", "5"))
    EMAIL_DOMAIN: str = os.environ.get("FRESH_USERS_EMAIL_DOMAIN", "example.com")
    DEFAULT_PASSWORD: str = os.environ.get("FRESH_USERS_DEFAULT_PASSWORD", "FreshPass123!")
    # Record every created config so clean() can delete the accounts later
    TRACK_USERS: bool = _env_flag("FRESH_USERS_TRACK", True)


class DevelopmentConfig(Config):
    """Local runs against a developer's own stack."""

    DEBUG: bool = True


class TestingConfig(Config):
    """Configuration for the automated test suite."""

    DEBUG: bool = True
    TIMEOUT: float = float(os.environ.get("TEST_FRESH_USERS_TIMEOUT", "2"))


class ProductionConfig(Config):
    """
    Configuration for CI runs against a shared environment.

    Tracking is always on here: accounts left behind on a shared server
    are never reaped by anyone else.
    """

    DEBUG: bool = False
    TRACK_USERS: bool = True


config = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
    "default": DevelopmentConfig,
}


def get_config(env: str | None = None) -> type[Config]:
    """
    Get the configuration class for the specified environment.

    Args:
        env: Environment name (development, testing, production).
             If None, uses the FRESH_USERS_ENV environment variable.

    Returns:
        Configuration class for the specified environment.
    """
    if env is None:
        env = os.environ.get("FRESH_USERS_ENV", "development")
    return config.get(env, config["default"])


def get_config_value(key: str, story_config: Mapping[str, Any], default: Any = _MISSING) -> Any:
    """
    Look up ``key`` in a story configuration.

    Raises:
        KeyError: If ``key`` is absent and no ``default`` was given.
    """
    try:
        return story_config[key]
    except KeyError:
        if default is _MISSING:
            raise KeyError(f"story config has no {key!r} section") from None
        return default
