"""
Fresh users for end-to-end stories.

Creates uniquely named accounts per story so concurrently running tests
never share account state, and deletes them again on ``clean()``.
"""

from __future__ import annotations

from .errors import (
    CleanupError,
    DeletionFailure,
    FreshUsersError,
    IncompleteProvisioningRequest,
    MissingUsernameField,
    ProvisioningFailure,
    StorageAbsent,
)
from .provisioning import HttpUserProvisioner
from .registry import FreshRegistry, default_registry
from .session import (
    FreshSession,
    clean,
    create_users,
    default_session,
    start,
    stop,
    story,
    story_with_config,
)
from .specs import fresh_specs
from .story import HttpStoryRunner, UserClient
from .suffix import fresh_suffix

__all__ = [
    "CleanupError",
    "DeletionFailure",
    "FreshRegistry",
    "FreshSession",
    "FreshUsersError",
    "HttpStoryRunner",
    "HttpUserProvisioner",
    "IncompleteProvisioningRequest",
    "MissingUsernameField",
    "ProvisioningFailure",
    "StorageAbsent",
    "UserClient",
    "clean",
    "create_users",
    "default_registry",
    "default_session",
    "fresh_specs",
    "fresh_suffix",
    "start",
    "stop",
    "story",
    "story_with_config",
]
