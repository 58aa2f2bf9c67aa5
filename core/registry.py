"""In-memory registry of users and environments.

The registry is the single owner of every user and environment. It keeps IDs
unique, refuses to drop users that still hold permissions, and sweeps
permissions when an environment goes away. Persistence is delegated to a
storage object exposing ``save(registry)`` and ``load(registry)``.
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import List, Optional, Protocol

from core.entities import MAX_ACCESS_LOGS, AccessLogEntry, Environment, User

LOGGER = logging.getLogger(__name__)


class RegistryError(Exception):
    """Base class for registry failures surfaced to callers."""


class DuplicateIdError(RegistryError):
    """Raised when a user or environment ID is already registered."""

    def __init__(self, kind: str, entity_id: int) -> None:
        super().__init__(f"{kind.capitalize()} ID {entity_id} already exists.")
        self.kind = kind
        self.entity_id = entity_id


class RegistryStorage(Protocol):
    def save(self, registry: "Registry") -> None: ...

    def load(self, registry: "Registry") -> None: ...


def _now() -> datetime:
    return datetime.now(timezone.utc)


class Registry:
    def __init__(
        self,
        storage: RegistryStorage | None = None,
        log_capacity: int = MAX_ACCESS_LOGS,
    ) -> None:
        if log_capacity <= 0:
            raise ValueError("log_capacity must be positive")
        self._storage = storage
        self.log_capacity = log_capacity
        self._users: List[User] = []
        self._environments: List[Environment] = []

    @property
    def users(self) -> List[User]:
        return list(self._users)

    @property
    def environments(self) -> List[Environment]:
        return list(self._environments)

    # Users

    def add_user(self, user: User) -> None:
        if self.find_user_by_id(user.id) is not None:
            raise DuplicateIdError("user", user.id)
        self._users.append(user)
        LOGGER.debug("Registered user %s", user)

    def remove_user(self, user: User) -> bool:
        """Remove ``user`` unless it still holds permissions."""
        if user.permission_count > 0:
            LOGGER.info(
                "Refusing to remove user %s: %d permission(s) held",
                user,
                user.permission_count,
            )
            return False
        for index, candidate in enumerate(self._users):
            if candidate is user:
                del self._users[index]
                LOGGER.debug("Removed user %s", user)
                return True
        return False

    def find_user_by_id(self, user_id: int) -> Optional[User]:
        for user in self._users:
            if user.id == user_id:
                return user
        return None

    # Environments

    def add_environment(self, environment: Environment) -> None:
        if self.find_environment_by_id(environment.id) is not None:
            raise DuplicateIdError("environment", environment.id)
        self._environments.append(environment)
        LOGGER.debug("Registered environment %s", environment)

    def remove_environment(self, environment: Environment) -> bool:
        """Remove the registered environment with ``environment``'s ID.

        Every user's permission to it is revoked first. Returns False, and
        changes nothing, when no environment with that ID is registered.
        """
        target = self.find_environment_by_id(environment.id)
        if target is None:
            return False
        for user in self._users:
            if user.revoke(target):
                LOGGER.debug("Revoked %s from user %s", target, user)
        self._environments.remove(target)
        LOGGER.debug("Removed environment %s", target)
        return True

    def find_environment_by_id(self, environment_id: int) -> Optional[Environment]:
        for environment in self._environments:
            if environment.id == environment_id:
                return environment
        return None

    def permitted_environments(self, user: User) -> List[Environment]:
        resolved: List[Environment] = []
        for environment_id in user.environment_ids:
            environment = self.find_environment_by_id(environment_id)
            if environment is not None:
                resolved.append(environment)
        return resolved

    # Access

    def record_access(self, user: User, environment: Environment) -> AccessLogEntry:
        entry = AccessLogEntry(
            timestamp=_now(),
            user_id=user.id,
            granted=user.has_permission(environment),
        )
        environment.record_access(entry)
        LOGGER.info(
            "Access %s for user %s at %s",
            "granted" if entry.granted else "denied",
            user,
            environment,
        )
        return entry

    def resolve_user(self, entry: AccessLogEntry) -> Optional[User]:
        return self.find_user_by_id(entry.user_id)

    # Persistence

    def clear(self) -> None:
        self._users.clear()
        self._environments.clear()

    def save(self) -> None:
        if self._storage is None:
            raise RegistryError("No storage configured for this registry.")
        self._storage.save(self)

    def load(self) -> None:
        if self._storage is None:
            raise RegistryError("No storage configured for this registry.")
        self.clear()
        self._storage.load(self)
