"""
Fresh session facade.

Ties the suffix generator, the spec builder, the registry and the
external collaborators together:

    suffix -> fresh specs -> provisioner.create_users -> registry.record

Test code usually goes through the module-level helpers, which share a
lazily built default session::

    from fresh_users import story

    def test_alice_can_verify(base_config):
        def scenario(alice):
            assert alice.get("/api/auth/verify").status_code == 200

        story(base_config, ["alice"], scenario)
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Sequence
from typing import Any

from .config import Config, get_config
from .errors import IncompleteProvisioningRequest
from .provisioning import HttpUserProvisioner, UserProvisioner
from .registry import FreshRegistry, default_registry
from .specs import RoleRequest, duplicate_roles, fresh_specs, missing_roles, role_names
from .story import HttpStoryRunner, StoryRunner
from .suffix import fresh_suffix

logger = logging.getLogger(__name__)


class FreshSession:
    """
    Entry points for running stories with freshly created users.

    Args:
        provisioner: Creates and deletes accounts.
        runner: Executes story functions against a fresh configuration.
        registry: Where created configurations are tracked for cleanup.
            A new :class:`FreshRegistry` is built when omitted.
        track: Record created configurations so :meth:`clean` can delete
            them.  Without tracking, accounts outlive the test run.
    """

    def __init__(
        self,
        provisioner: UserProvisioner,
        runner: StoryRunner | None = None,
        registry: FreshRegistry | None = None,
        track: bool = True,
    ):
        self.provisioner = provisioner
        self.runner = runner
        self.registry = registry if registry is not None else FreshRegistry()
        self.registry.bind_deleter(provisioner)
        self.track = track

    def create_users(self, story_config: dict[str, Any], roles: Sequence[RoleRequest]) -> dict[str, Any]:
        """
        Create fresh accounts for ``roles`` and return the updated config.

        Raises:
            IncompleteProvisioningRequest: If a role has no user template or
                is requested twice.  Nothing is created in that case.
        """
        suffix = fresh_suffix()
        specs = fresh_specs(story_config, roles, suffix)
        if len(specs) != len(roles):
            raise IncompleteProvisioningRequest(
                role_names(roles), missing_roles(story_config, roles), duplicate_roles(roles)
            )

        fresh_config = self.provisioner.create_users(story_config, specs)
        if self.track:
            self.registry.ensure_storage_present()
            self.registry.record(suffix, fresh_config)
        logger.info("Created %d fresh user(s) with suffix %s", len(specs), suffix)
        return fresh_config

    def _require_runner(self) -> StoryRunner:
        if self.runner is None:
            raise RuntimeError("FreshSession has no story runner configured")
        return self.runner

    def story(self, story_config: dict[str, Any], roles: Sequence[RoleRequest], story_fn: Callable[..., Any]) -> Any:
        """Run ``story_fn`` with one client per role, using fresh users."""
        runner = self._require_runner()
        return runner.run(self.create_users(story_config, roles), roles, story_fn)

    def story_with_config(
        self, story_config: dict[str, Any], roles: Sequence[RoleRequest], story_fn: Callable[..., Any]
    ) -> Any:
        """
        Like :meth:`story`, but pass the fresh config as the first argument.

        Stories that look users up in the config they were given should
        use this variant: the original config still holds the template
        usernames, not the fresh ones.
        """
        runner = self._require_runner()
        fresh_config = self.create_users(story_config, roles)

        def with_config(*clients: Any) -> Any:
            return story_fn(fresh_config, *clients)

        return runner.run(fresh_config, roles, with_config)

    def start(self, story_config: dict[str, Any] | None = None) -> None:
        self.registry.ensure_storage_present()

    def stop(self, story_config: dict[str, Any] | None = None) -> None:
        self.registry.shutdown()

    def clean(self) -> None:
        self.registry.clean()


_default_session: FreshSession | None = None
_default_session_lock = threading.Lock()


def build_default_session(settings: type[Config] | None = None) -> FreshSession:
    """Build a session backed by the HTTP collaborators and the process-wide registry."""
    settings = settings or get_config()
    return FreshSession(
        HttpUserProvisioner(settings=settings),
        HttpStoryRunner(settings=settings),
        registry=default_registry(),
        track=settings.TRACK_USERS,
    )


def default_session() -> FreshSession:
    global _default_session
    if _default_session is None:
        with _default_session_lock:
            if _default_session is None:
                _default_session = build_default_session()
    return _default_session


def create_users(story_config: dict[str, Any], roles: Sequence[RoleRequest]) -> dict[str, Any]:
    return default_session().create_users(story_config, roles)


def story(story_config: dict[str, Any], roles: Sequence[RoleRequest], story_fn: Callable[..., Any]) -> Any:
    return default_session().story(story_config, roles, story_fn)


def story_with_config(story_config: dict[str, Any], roles: Sequence[RoleRequest], story_fn: Callable[..., Any]) -> Any:
    return default_session().story_with_config(story_config, roles, story_fn)


def start(story_config: dict[str, Any] | None = None) -> None:
    default_session().start(story_config)


def stop(story_config: dict[str, Any] | None = None) -> None:
    default_session().stop(story_config)


def clean() -> None:
    default_session().clean()
