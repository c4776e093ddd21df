"""
Building freshened user specs from a story configuration.

A user spec is a ``(role, user_config)`` pair, for example
``("alice", {"username": "alice", "password": "secret"})``.  Freshening
a spec appends the story suffix to its username so that stories running
side by side never share an account.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from typing import Any, Union

from .config import USERS_KEY, get_config_value
from .errors import MissingUsernameField

UserSpec = tuple[str, dict[str, Any]]
# Stories may request roles as plain names or as (name, count) pairs
RoleRequest = Union[str, tuple[str, int]]


def role_name(request: RoleRequest) -> str:
    """Return the role identifier of a role request."""
    if isinstance(request, str):
        return request
    return request[0]


def role_names(roles: Iterable[RoleRequest]) -> list[str]:
    return [role_name(role) for role in roles]


def get_user_specs(story_config: Mapping[str, Any]) -> list[UserSpec]:
    """Return every user template defined in ``story_config``."""
    return [(role, user) for role, user in get_config_value(USERS_KEY, story_config)]


def select_specs(roles: Iterable[RoleRequest], all_specs: Sequence[UserSpec]) -> list[UserSpec]:
    """
    Keep the specs whose role was requested.

    The order of ``all_specs`` wins over the order of ``roles``; roles
    with no matching spec are dropped without complaint.
    """
    wanted = set(role_names(roles))
    return [spec for spec in all_specs if spec[0] in wanted]


def missing_roles(story_config: Mapping[str, Any], roles: Iterable[RoleRequest]) -> list[str]:
    """Return the requested roles that have no user template, in request order."""
    known = {role for role, _ in get_user_specs(story_config)}
    return [name for name in role_names(roles) if name not in known]


def duplicate_roles(roles: Iterable[RoleRequest]) -> list[str]:
    """Return the roles requested more than once, in order of first repeat."""
    seen: set[str] = set()
    duplicates: list[str] = []
    for name in role_names(roles):
        if name in seen and name not in duplicates:
            duplicates.append(name)
        seen.add(name)
    return duplicates


def make_fresh_username(spec: UserSpec, suffix: str) -> UserSpec:
    """
    Return a copy of ``spec`` whose username ends with ``suffix``.

    No separator is inserted.  Every other field keeps its value and
    position.

    Raises:
        MissingUsernameField: If the spec has no ``username`` field.
    """
    role, user = spec
    if "username" not in user:
        raise MissingUsernameField(role)
    fresh_user = dict(user)
    fresh_user["username"] = f"{user['username']}{suffix}"
    return role, fresh_user


def fresh_specs(story_config: Mapping[str, Any], roles: Iterable[RoleRequest], suffix: str) -> list[UserSpec]:
    """Select the requested user templates and freshen their usernames."""
    selected = select_specs(roles, get_user_specs(story_config))
    return [make_fresh_username(spec, suffix) for spec in selected]
