"""
HTTP provisioning collaborator for fresh users.

Creates and deletes accounts through the account service's REST API:

    POST   /api/auth/register          -- create the account
    POST   /api/auth/login             -- obtain a bearer token
    DELETE /api/auth/users/<username>  -- remove the account (self-service)

The configuration returned by :meth:`HttpUserProvisioner.create_users`
carries the server-assigned ``user_id`` and ``token`` of every user, so
stories and cleanup can act as those users without logging in again.
"""

from __future__ import annotations

import logging
from typing import Any, Protocol

import requests

from .config import BASE_URL_KEY, USERS_KEY, Config, get_config, get_config_value
from .errors import DeletionFailure, ProvisioningFailure
from .specs import UserSpec

logger = logging.getLogger(__name__)


class UserProvisioner(Protocol):
    def create_users(self, story_config: dict[str, Any], specs: list[UserSpec]) -> dict[str, Any]: ...

    def delete_users(self, story_config: dict[str, Any], specs: list[UserSpec]) -> None: ...


def _safe_json(response: requests.Response) -> dict[str, Any]:
    """Return response JSON as a dict, or ``{}`` if parsing fails."""
    try:
        data = response.json()
    except ValueError:
        return {}

    if isinstance(data, dict):
        return data
    return {}


def _error_message(response: requests.Response) -> str:
    return _safe_json(response).get("error") or response.reason or "no error message"


def auth_headers(token: str) -> dict[str, str]:
    """Build common JSON API headers with bearer token auth."""
    return {
        "Authorization": f"Bearer {token}",
        "Content-Type": "application/json",
        "Accept": "application/json",
    }


class HttpUserProvisioner:
    """
    Account service client implementing the provisioning collaborator.

    Args:
        base_url: Account service root.  A story config's ``base_url``
            entry takes precedence over this value.
        timeout: Per-request timeout in seconds.
        session: Optional ``requests.Session`` to reuse connections.
        settings: Configuration class; defaults to :func:`get_config`.
    """

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        session: requests.Session | None = None,
        settings: type[Config] | None = None,
    ):
        self.settings = settings or get_config()
        self.base_url = (base_url or self.settings.BASE_URL).rstrip("/")
        self.timeout = timeout if timeout is not None else self.settings.TIMEOUT
        self.session = session or requests.Session()

    def _url(self, story_config: dict[str, Any], path: str) -> str:
        base = get_config_value(BASE_URL_KEY, story_config, self.base_url).rstrip("/")
        return f"{base}{path}"

    def _credentials(self, user: dict[str, Any]) -> tuple[str, str]:
        return user["username"], user.get("password", self.settings.DEFAULT_PASSWORD)

    def _login(self, story_config: dict[str, Any], user: dict[str, Any]) -> dict[str, Any]:
        username, password = self._credentials(user)
        try:
            response = self.session.post(
                self._url(story_config, "/api/auth/login"),
                json={"username": username, "password": password},
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise ProvisioningFailure(f"login for {username!r} failed: {exc}", username=username) from exc

        if response.status_code != 200:
            raise ProvisioningFailure(
                f"login for {username!r} returned {response.status_code}: {_error_message(response)}",
                username=username,
                status_code=response.status_code,
            )

        body = _safe_json(response)
        token = body.get("token")
        if not isinstance(token, str) or not token:
            raise ProvisioningFailure(f"login response for {username!r} has no token", username=username)
        return body

    def register_user(self, story_config: dict[str, Any], user: dict[str, Any]) -> dict[str, Any]:
        """Register one account and return the user dict with its credentials filled in."""
        username, password = self._credentials(user)
        email = user.get("email") or f"{username}@{self.settings.EMAIL_DOMAIN}"
        try:
            response = self.session.post(
                self._url(story_config, "/api/auth/register"),
                json={"username": username, "email": email, "password": password},
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise ProvisioningFailure(f"registering {username!r} failed: {exc}", username=username) from exc

        if response.status_code != 201:
            raise ProvisioningFailure(
                f"registering {username!r} returned {response.status_code}: {_error_message(response)}",
                username=username,
                status_code=response.status_code,
            )

        fresh_user = dict(user)
        fresh_user.update({"email": email, "password": password})
        logger.debug("Registered fresh user %s", username)
        return fresh_user

    def login_user(self, story_config: dict[str, Any], user: dict[str, Any]) -> None:
        """Log a registered user in and store its ``user_id`` and ``token``."""
        login = self._login(story_config, user)
        user.update({"user_id": login.get("user", {}).get("id"), "token": login["token"]})

    def create_users(self, story_config: dict[str, Any], specs: list[UserSpec]) -> dict[str, Any]:
        """
        Create every account described by ``specs``.

        Returns:
            A copy of ``story_config`` whose users section holds ``specs``
            enriched with each account's ``user_id`` and ``token``.

        Raises:
            ProvisioningFailure: On the first account the server refuses.
                Accounts already registered by this call are deleted first.
        """
        created: list[UserSpec] = []
        try:
            for role, user in specs:
                fresh_user = self.register_user(story_config, user)
                created.append((role, fresh_user))
                self.login_user(story_config, fresh_user)
        except ProvisioningFailure:
            self._discard(story_config, created)
            raise
        logger.info("Provisioned %d fresh user(s)", len(created))
        fresh_config = dict(story_config)
        fresh_config[USERS_KEY] = created
        return fresh_config

    def _discard(self, story_config: dict[str, Any], created: list[UserSpec]) -> None:
        """Delete accounts left over from a failed ``create_users`` call."""
        for _, user in created:
            try:
                self.delete_user(story_config, user)
            except DeletionFailure as exc:
                logger.warning("Could not remove partially provisioned user %s: %s", user["username"], exc)

    def delete_user(self, story_config: dict[str, Any], user: dict[str, Any]) -> None:
        """Delete one account; an account that is already gone counts as deleted."""
        username = user["username"]
        token = user.get("token")
        try:
            if not token:
                token = self._login(story_config, user)["token"]
            response = self.session.delete(
                self._url(story_config, f"/api/auth/users/{username}"),
                headers=auth_headers(token),
                timeout=self.timeout,
            )
        except ProvisioningFailure as exc:
            raise DeletionFailure(
                f"cannot authenticate {username!r} for deletion: {exc}",
                username=username,
                status_code=exc.status_code,
            ) from exc
        except requests.RequestException as exc:
            raise DeletionFailure(f"deleting {username!r} failed: {exc}", username=username) from exc

        if response.status_code == 404:
            logger.debug("Fresh user %s was already deleted", username)
            return
        if response.status_code != 200:
            raise DeletionFailure(
                f"deleting {username!r} returned {response.status_code}: {_error_message(response)}",
                username=username,
                status_code=response.status_code,
            )
        logger.debug("Deleted fresh user %s", username)

    def delete_users(self, story_config: dict[str, Any], specs: list[UserSpec]) -> None:
        """Delete every account described by ``specs``, stopping at the first failure."""
        for _, user in specs:
            self.delete_user(story_config, user)
        logger.info("Deleted %d fresh user(s)", len(specs))
