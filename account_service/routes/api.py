"""
Account service API endpoints.

Mounted under ``/api/auth`` by the application factory.

Endpoints:
    GET    /health            -- Liveness probe.
    POST   /register          -- Create an account.
    POST   /login             -- Authenticate and receive a JWT.
    GET    /verify            -- Return the identity behind a bearer token.
    DELETE /users/<username>  -- Delete the caller's own account.
"""

from __future__ import annotations

import logging
from typing import Any

import jwt as pyjwt
from flask import Blueprint, Response, current_app, jsonify, request
from sqlalchemy import select

from .. import db
from ..jwt import create_token, decode_token
from ..models import Account

api_bp = Blueprint("account_api", __name__)

logger = logging.getLogger(__name__)


# =====================================================================
# Helper Functions
# =====================================================================


def _json_error(message: str, status_code: int) -> tuple[Response, int]:
    """Build the ``{"error": "..."}`` envelope shared by every endpoint."""
    return jsonify({"error": message}), status_code


def _validate_required_fields(data: dict[str, Any], required_fields: list[str]) -> str | None:
    """Return a message for the first missing or blank field, or ``None``."""
    for field in required_fields:
        value = data.get(field)
        if not isinstance(value, str) or not value.strip():
            return f"'{field}' is required"
    return None


def _extract_bearer_token() -> str | None:
    auth_header = request.headers.get("Authorization", "")
    if not auth_header.startswith("Bearer "):
        return None
    token = auth_header[7:].strip()
    return token or None


def _authenticated_claims() -> dict[str, Any] | None:
    """Return the claims of the request's bearer token, or ``None`` if invalid."""
    token = _extract_bearer_token()
    if token is None:
        return None
    try:
        return decode_token(
            token,
            current_app.config["JWT_PUBLIC_KEY"],
            leeway=current_app.config.get("JWT_CLOCK_SKEW_SECONDS", 30),
        )
    except pyjwt.InvalidTokenError:
        return None


def _find_account(username: str) -> Account | None:
    return db.session.scalar(select(Account).where(Account.username == username))


# =====================================================================
# API Endpoints
# =====================================================================


@api_bp.route("/health", methods=["GET"])
def health_check() -> tuple[Response, int]:
    return jsonify({"status": "healthy", "service": "account-service"}), 200


@api_bp.route("/register", methods=["POST"])
def register() -> tuple[Response, int]:
    """
    Register a new account.

    Returns:
        201 with the created account on success.
        400 if required fields are missing or too long.
        409 if the username or email is already taken.
    """
    data = request.get_json(silent=True) or {}
    missing = _validate_required_fields(data, ["username", "email", "password"])
    if missing:
        return _json_error(missing, 400)

    username = data["username"].strip()
    email = data["email"].strip()

    if len(username) > 80:
        return _json_error("username must be 80 characters or less", 400)
    if len(email) > 120:
        return _json_error("email must be 120 characters or less", 400)

    if _find_account(username):
        return _json_error("Username already exists", 409)
    if db.session.scalar(select(Account).where(Account.email == email)):
        return _json_error("Email already exists", 409)

    account = Account(username=username, email=email)
    account.set_password(data["password"])
    db.session.add(account)
    db.session.commit()

    logger.info("Registered account %s", username)
    return jsonify({"user": account.to_dict()}), 201


@api_bp.route("/login", methods=["POST"])
def login() -> tuple[Response, int]:
    """
    Authenticate an account and issue a JWT.

    Returns:
        200 with ``token`` and ``user`` on success.
        400 if required fields are missing.
        401 if the credentials are wrong.
    """
    data = request.get_json(silent=True) or {}
    missing = _validate_required_fields(data, ["username", "password"])
    if missing:
        return _json_error(missing, 400)

    account = _find_account(data["username"].strip())
    if not account or not account.check_password(data["password"]):
        return _json_error("Invalid username or password", 401)

    token = create_token(
        user_id=account.id,
        username=account.username,
        private_key=current_app.config["JWT_PRIVATE_KEY"],
        expiry_hours=current_app.config["JWT_EXPIRY_HOURS"],
    )
    return jsonify({"token": token, "user": account.to_dict()}), 200


@api_bp.route("/verify", methods=["GET"])
def verify() -> tuple[Response, int]:
    claims = _authenticated_claims()
    if claims is None:
        return _json_error("Invalid or expired token", 401)
    return jsonify({"user_id": claims["user_id"], "username": claims["username"]}), 200


@api_bp.route("/users/<username>", methods=["DELETE"])
def delete_account(username: str) -> tuple[Response, int]:
    """
    Delete an account.  Accounts can only delete themselves.

    Returns:
        200 when the account was deleted.
        401 without a valid bearer token.
        403 when the token belongs to another account.
        404 when no such account exists.
    """
    claims = _authenticated_claims()
    if claims is None:
        return _json_error("Invalid or expired token", 401)

    account = _find_account(username)
    if account is None:
        return _json_error("User not found", 404)
    if claims["user_id"] != account.id:
        return _json_error("Cannot delete another user's account", 403)

    db.session.delete(account)
    db.session.commit()

    logger.info("Deleted account %s", username)
    return jsonify({"deleted": username}), 200
