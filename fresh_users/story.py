"""
Story execution against the account service.

A story is a callable taking one client per requested role, in the
order the roles were requested::

    def story(alice, bob):
        assert alice.get("/api/auth/verify").json()["username"] == alice.username

The runner builds those clients from a fresh configuration and closes
them once the story returns or raises.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from contextlib import ExitStack
from typing import Any, Protocol

import requests

from .config import BASE_URL_KEY, Config, get_config, get_config_value
from .errors import IncompleteProvisioningRequest
from .provisioning import auth_headers
from .specs import RoleRequest, get_user_specs, role_name, role_names

logger = logging.getLogger(__name__)


class StoryRunner(Protocol):
    def run(self, fresh_config: dict[str, Any], roles: Sequence[RoleRequest], story_fn: Callable[..., Any]) -> Any: ...


class UserClient:
    """
    HTTP client acting as one fresh user.

    Wraps a ``requests.Session`` preloaded with the user's bearer token.
    Paths passed to the request helpers are relative to ``base_url``.
    """

    def __init__(self, role: str, user: dict[str, Any], base_url: str, timeout: float):
        self.role = role
        self.user = user
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = requests.Session()
        if user.get("token"):
            self.session.headers.update(auth_headers(user["token"]))

    @property
    def username(self) -> str:
        return self.user["username"]

    @property
    def user_id(self) -> int | None:
        return self.user.get("user_id")

    def request(self, method: str, path: str, **kwargs: Any) -> requests.Response:
        kwargs.setdefault("timeout", self.timeout)
        return self.session.request(method, f"{self.base_url}{path}", **kwargs)

    def get(self, path: str, **kwargs: Any) -> requests.Response:
        return self.request("GET", path, **kwargs)

    def post(self, path: str, **kwargs: Any) -> requests.Response:
        return self.request("POST", path, **kwargs)

    def put(self, path: str, **kwargs: Any) -> requests.Response:
        return self.request("PUT", path, **kwargs)

    def delete(self, path: str, **kwargs: Any) -> requests.Response:
        return self.request("DELETE", path, **kwargs)

    def close(self) -> None:
        self.session.close()

    def __repr__(self) -> str:
        return f"<UserClient {self.role}: {self.username}>"


class HttpStoryRunner:
    """Runs stories with one :class:`UserClient` per requested role."""

    def __init__(self, timeout: float | None = None, settings: type[Config] | None = None):
        self.settings = settings or get_config()
        self.timeout = timeout if timeout is not None else self.settings.TIMEOUT

    def run(self, fresh_config: dict[str, Any], roles: Sequence[RoleRequest], story_fn: Callable[..., Any]) -> Any:
        for role in roles:
            if not isinstance(role, str) and role[1] != 1:
                raise ValueError(f"role {role[0]!r} requested {role[1]} accounts; only one per role is supported")

        users = dict(get_user_specs(fresh_config))
        missing = [name for name in role_names(roles) if name not in users]
        if missing:
            raise IncompleteProvisioningRequest(role_names(roles), missing)

        base_url = get_config_value(BASE_URL_KEY, fresh_config, self.settings.BASE_URL)
        with ExitStack() as stack:
            clients = []
            for role in roles:
                name = role_name(role)
                client = UserClient(name, users[name], base_url, self.timeout)
                stack.callback(client.close)
                clients.append(client)
            logger.debug("Running story %s with %s", getattr(story_fn, "__name__", story_fn), clients)
            return story_fn(*clients)
