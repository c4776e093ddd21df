"""
Registry of fresh configurations created during a test run.

Every successful ``create_users`` call records the configuration it
produced under the suffix it used.  ``clean`` later walks those entries
and asks the provisioning collaborator to delete the accounts they
describe.

Key Concepts:
- Storage is created lazily and can be torn down and recreated
- A single lock guards inserts and the snapshot taken by ``clean``
- Deletions run outside the lock so they never stall concurrent stories
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Protocol

from .config import USERS_KEY, get_config_value
from .errors import CleanupError, StorageAbsent
from .specs import UserSpec

logger = logging.getLogger(__name__)


class UserDeleter(Protocol):
    def delete_users(self, story_config: dict[str, Any], specs: list[UserSpec]) -> None: ...


class FreshRegistry:
    """
    Thread-safe ``suffix -> fresh config`` store with an explicit lifecycle.

    Args:
        deleter: Collaborator whose ``delete_users(config, specs)`` removes
            accounts from the server.  Only ``clean`` needs it, so it may be
            supplied later through :meth:`bind_deleter`.
    """

    def __init__(self, deleter: UserDeleter | None = None):
        self._deleter = deleter
        self._lock = threading.Lock()
        self._entries: dict[str, dict[str, Any]] | None = None

    def bind_deleter(self, deleter: UserDeleter, replace: bool = False) -> None:
        """
        Set the collaborator used by ``clean``.

        A deleter that is already bound is kept unless ``replace`` is set, so
        a second session sharing this registry cannot take over the cleanup
        of entries recorded by the first.
        """
        with self._lock:
            if self._deleter is not None and self._deleter is not deleter and not replace:
                logger.debug("Keeping the deleter already bound to the fresh user registry")
                return
            self._deleter = deleter

    @property
    def is_present(self) -> bool:
        return self._entries is not None

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries) if self._entries is not None else 0

    def ensure_storage_present(self) -> None:
        """Create the storage if it does not exist yet."""
        with self._lock:
            if self._entries is None:
                self._entries = {}
                logger.debug("Fresh user registry storage created")

    def record(self, suffix: str, fresh_config: dict[str, Any]) -> None:
        """
        Track ``fresh_config`` under ``suffix``, replacing any previous entry.

        Raises:
            StorageAbsent: If the storage was never created or was shut down.
        """
        with self._lock:
            if self._entries is None:
                raise StorageAbsent(
                    "fresh user registry is not started; call start() before creating users"
                )
            self._entries[suffix] = fresh_config

    def entries(self) -> dict[str, dict[str, Any]]:
        """Return a snapshot of the tracked entries."""
        with self._lock:
            return dict(self._entries or {})

    def clean(self) -> None:
        """
        Delete every tracked account and drop the entries that were cleaned.

        Each entry gets its own deletion attempt.  Entries whose deletion
        failed stay tracked so a later ``clean`` can retry them, and a
        :class:`CleanupError` naming them is raised once all entries were
        tried.
        """
        snapshot = self.entries()
        if not snapshot:
            return
        if self._deleter is None:
            raise RuntimeError("fresh user registry has no deleter bound")

        logger.info("Cleaning %d fresh user configuration(s)", len(snapshot))
        failures: dict[str, BaseException] = {}
        cleaned: list[str] = []
        for suffix, fresh_config in snapshot.items():
            try:
                specs = get_config_value(USERS_KEY, fresh_config)
                self._deleter.delete_users(fresh_config, specs)
            except Exception as exc:
                logger.warning("Failed to delete fresh users for suffix %s: %s", suffix, exc)
                failures[suffix] = exc
            else:
                cleaned.append(suffix)

        with self._lock:
            if self._entries is not None:
                for suffix in cleaned:
                    # Only drop the object we deleted, not a newer record
                    if self._entries.get(suffix) is snapshot[suffix]:
                        del self._entries[suffix]

        if failures:
            raise CleanupError(failures) from next(iter(failures.values()))

    def shutdown(self) -> None:
        """Release the storage; ``ensure_storage_present`` can recreate it."""
        with self._lock:
            if self._entries:
                logger.warning(
                    "Shutting down fresh user registry with %d uncleaned entr%s",
                    len(self._entries),
                    "y" if len(self._entries) == 1 else "ies",
                )
            self._entries = None


_default_registry: FreshRegistry | None = None
_default_registry_lock = threading.Lock()


def default_registry() -> FreshRegistry:
    """Return the process-wide registry, creating it on first use."""
    global _default_registry
    if _default_registry is None:
        with _default_registry_lock:
            if _default_registry is None:
                _default_registry = FreshRegistry()
    return _default_registry
