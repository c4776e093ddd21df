"""Exceptions raised by the fresh-users helpers."""

from __future__ import annotations


class FreshUsersError(Exception):
    """Base class for every error raised by this package."""


class IncompleteProvisioningRequest(FreshUsersError):
    """
    Raised when the requested roles cannot be matched one-to-one with templates.

    Attributes:
        requested: The role identifiers the caller asked for.
        missing: The subset of ``requested`` with no matching template.
        duplicates: Roles requested more than once.
    """

    def __init__(self, requested: list[str], missing: list[str], duplicates: list[str] | None = None):
        self.requested = list(requested)
        self.missing = list(missing)
        self.duplicates = list(duplicates or [])
        problems = []
        if self.missing:
            problems.append(f"missing {self.missing!r}")
        if self.duplicates:
            problems.append(f"duplicated {self.duplicates!r}")
        super().__init__(f"failed to get required users: {'; '.join(problems) or 'count mismatch'}")


class MissingUsernameField(FreshUsersError, KeyError):
    """Raised when a selected user template has no ``username`` field."""

    def __init__(self, role: str):
        self.role = role
        super().__init__(f"user spec {role!r} has no 'username' field")

    def __str__(self) -> str:
        # KeyError.__str__ would repr() the message
        return str(self.args[0])


class StorageAbsent(FreshUsersError, RuntimeError):
    """Raised when the registry is used before ``start`` or after ``stop``."""


class ProvisioningFailure(FreshUsersError):
    """Raised when the account service refuses to create a user."""

    def __init__(self, message: str, *, username: str | None = None, status_code: int | None = None):
        self.username = username
        self.status_code = status_code
        super().__init__(message)


class DeletionFailure(FreshUsersError):
    """Raised when the account service refuses to delete a user."""

    def __init__(self, message: str, *, username: str | None = None, status_code: int | None = None):
        self.username = username
        self.status_code = status_code
        super().__init__(message)


class CleanupError(FreshUsersError):
    """
    Aggregate error raised by ``FreshRegistry.clean``.

    Attributes:
        failures: Mapping of registry suffix to the exception raised while
            deleting the users tracked under that suffix.
    """

    def __init__(self, failures: dict[str, BaseException]):
        self.failures = dict(failures)
        super().__init__(
            f"failed to delete fresh users for {len(self.failures)} entr"
            f"{'y' if len(self.failures) == 1 else 'ies'}: {sorted(self.failures)!r}"
        )
