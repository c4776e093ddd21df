"""
RS256 bearer tokens for the account service.

Claims: ``user_id``, ``username``, ``iat`` and ``exp``.  Only the
service holds the private key; anyone with the public key can verify.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

import jwt

REQUIRED_TOKEN_CLAIMS = ["user_id", "username", "iat", "exp"]


def create_token(user_id: int, username: str, private_key: str, expiry_hours: int) -> str:
    """
    Create an RS256-signed JWT for an account.

    Raises:
        ValueError: If ``user_id`` is not positive or ``username`` is blank.
    """
    if int(user_id) <= 0:
        raise ValueError("user_id must be a positive integer")
    if not isinstance(username, str) or not username.strip():
        raise ValueError("username must be a non-empty string")

    now = datetime.now(timezone.utc)
    payload: dict[str, Any] = {
        "user_id": int(user_id),
        "username": username,
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(hours=int(expiry_hours))).timestamp()),
    }
    return jwt.encode(payload, private_key, algorithm="RS256")


def decode_token(token: str, public_key: str, leeway: int = 30) -> dict[str, Any]:
    """
    Verify a token and return its claims.

    Raises:
        jwt.InvalidTokenError: If the token is expired, malformed, badly
            signed, or carries unusable identity claims.
    """
    payload = jwt.decode(
        token,
        public_key,
        algorithms=["RS256"],
        options={"require": REQUIRED_TOKEN_CLAIMS},
        leeway=leeway,
    )
    if not isinstance(payload.get("user_id"), int) or payload["user_id"] <= 0:
        raise jwt.InvalidTokenError("Invalid user_id claim")
    if not isinstance(payload.get("username"), str) or not payload["username"].strip():
        raise jwt.InvalidTokenError("Invalid username claim")
    return payload
