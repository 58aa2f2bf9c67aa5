"""Access registry domain model."""
from __future__ import annotations

from .entities import MAX_ACCESS_LOGS, AccessLogEntry, Environment, User
from .registry import DuplicateIdError, Registry, RegistryError

__all__ = [
    "AccessLogEntry",
    "DuplicateIdError",
    "Environment",
    "MAX_ACCESS_LOGS",
    "Registry",
    "RegistryError",
    "User",
]
