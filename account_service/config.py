"""
Configuration for the local account service.

The account service is the server that fresh users are provisioned
against in this repository's integration suite.  Settings follow the
environment-class pattern: a ``Config`` base with defaults and
``Development``/``Testing`` subclasses overriding what differs.

JWT keys come from ``ACCOUNT_JWT_PRIVATE_KEY``/``ACCOUNT_JWT_PUBLIC_KEY``
(raw PEM) or the matching ``*_PATH`` variables.  In testing, a key pair
is generated in memory when neither is set.
"""

from __future__ import annotations

import os
import threading
from pathlib import Path

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

BASE_DIR = Path(__file__).resolve().parent

_generated_keys: tuple[str, str] | None = None
_generated_keys_lock = threading.Lock()


def generate_rsa_key_pair() -> tuple[str, str]:
    """Generate an in-memory RSA private/public key pair as PEM strings."""
    private_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    private_pem = private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode("utf-8")
    public_pem = private_key.public_key().public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    ).decode("utf-8")
    return private_pem, public_pem


def _load_key(raw_env_var: str, path_env_var: str) -> str | None:
    """Load a PEM key from a raw environment variable or a file-path variable."""
    raw_key = os.environ.get(raw_env_var, "").strip()
    if raw_key:
        return raw_key

    key_path = os.environ.get(path_env_var, "").strip()
    if key_path:
        try:
            return Path(key_path).read_text(encoding="utf-8")
        except OSError as exc:
            raise RuntimeError(
                f"Unable to read JWT key file at '{key_path}' from {path_env_var}."
            ) from exc
    return None


def load_account_keys(*, testing: bool) -> tuple[str, str]:
    """
    Resolve the JWT private/public key pair.

    In testing mode a key pair is generated once per process when no key
    source is configured, so the suite runs without any key files.
    """
    global _generated_keys

    private_key = _load_key("ACCOUNT_JWT_PRIVATE_KEY", "ACCOUNT_JWT_PRIVATE_KEY_PATH")
    public_key = _load_key("ACCOUNT_JWT_PUBLIC_KEY", "ACCOUNT_JWT_PUBLIC_KEY_PATH")
    if private_key and public_key:
        return private_key, public_key

    if not testing:
        raise RuntimeError(
            "Missing JWT key configuration: set ACCOUNT_JWT_PRIVATE_KEY and "
            "ACCOUNT_JWT_PUBLIC_KEY (or their *_PATH variants)."
        )

    with _generated_keys_lock:
        if _generated_keys is None:
            _generated_keys = generate_rsa_key_pair()
    return _generated_keys


class Config:
    """Base configuration shared by all environments."""

    SQLALCHEMY_TRACK_MODIFICATIONS: bool = False
    SQLALCHEMY_DATABASE_URI: str = os.environ.get(
        "ACCOUNT_DATABASE_URL",
        f"sqlite:///{BASE_DIR / 'instance' / 'accounts.db'}",
    )

    JWT_EXPIRY_HOURS: int = int(os.environ.get("ACCOUNT_JWT_EXPIRY_HOURS", "24"))
    # Seconds of tolerance for clock differences between issuer and verifier
    JWT_CLOCK_SKEW_SECONDS: int = int(os.environ.get("ACCOUNT_JWT_CLOCK_SKEW_SECONDS", "30"))


class DevelopmentConfig(Config):
    """Configuration for running the account service by hand."""

    DEBUG: bool = True
    TESTING: bool = False


class TestingConfig(Config):
    """
    Configuration for the automated test suite.

    ``check_same_thread=False`` lets the background server thread and the
    test thread share the SQLite database.
    """

    DEBUG: bool = True
    TESTING: bool = True
    SQLALCHEMY_DATABASE_URI: str = os.environ.get(
        "TEST_ACCOUNT_DATABASE_URL",
        f"sqlite:///{BASE_DIR / 'instance' / 'test_accounts.db'}?check_same_thread=False",
    )
    SQLALCHEMY_ENGINE_OPTIONS: dict = {"pool_pre_ping": True}
    JWT_EXPIRY_HOURS: int = 1


config = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "default": DevelopmentConfig,
}


def get_config(env: str | None = None) -> type[Config]:
    """
    Resolve a configuration class by environment name.

    When ``env`` is None the ``FLASK_ENV`` environment variable is used,
    falling back to ``"development"``.
    """
    if env is None:
        env = os.environ.get("FLASK_ENV", "development")
    return config.get(env, config["default"])
