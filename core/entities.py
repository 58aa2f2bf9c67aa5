"""Users, environments and the access log entries recorded against them."""
from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from typing import Deque, List, Optional

MAX_ACCESS_LOGS = 100
_FORBIDDEN_NAME_CHARS = (";", "\r", "\n")


def _clean_name(value: str, kind: str) -> str:
    if not isinstance(value, str):
        raise ValueError(f"{kind} name must be a string")
    cleaned = value.strip()
    if not cleaned:
        raise ValueError(f"{kind} name is required")
    for char in _FORBIDDEN_NAME_CHARS:
        if char in cleaned:
            raise ValueError(f"{kind} name must not contain {char!r}")
    return cleaned


@dataclass(frozen=True)
class AccessLogEntry:
    timestamp: datetime
    user_id: int
    granted: bool


@dataclass(eq=False)
class Environment:
    """A physical space with a bounded, oldest-first access history."""

    id: int
    name: str
    log_capacity: int = MAX_ACCESS_LOGS
    _history: Deque[AccessLogEntry] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self.name = _clean_name(self.name, "Environment")
        if self.log_capacity <= 0:
            raise ValueError("log_capacity must be positive")
        self._history = deque(maxlen=self.log_capacity)

    def record_access(self, entry: AccessLogEntry) -> None:
        # a full deque drops its oldest entry on append
        self._history.append(entry)

    @property
    def history(self) -> List[AccessLogEntry]:
        return list(self._history)

    def entries(self, granted: Optional[bool] = None) -> List[AccessLogEntry]:
        """Return the history, optionally keeping only granted or denied attempts."""
        if granted is None:
            return list(self._history)
        return [entry for entry in self._history if entry.granted is granted]

    def __len__(self) -> int:
        return len(self._history)

    def __str__(self) -> str:
        return f"[{self.id}] {self.name}"


@dataclass(eq=False)
class User:
    id: int
    name: str
    environment_ids: List[int] = field(default_factory=list, init=False)

    def __post_init__(self) -> None:
        self.name = _clean_name(self.name, "User")

    @property
    def permission_count(self) -> int:
        return len(self.environment_ids)

    def has_permission(self, environment: Environment) -> bool:
        return environment.id in self.environment_ids

    def grant(self, environment: Environment) -> bool:
        if environment.id in self.environment_ids:
            return False
        self.environment_ids.append(environment.id)
        return True

    def revoke(self, environment: Environment) -> bool:
        if environment.id not in self.environment_ids:
            return False
        self.environment_ids.remove(environment.id)
        return True

    def __str__(self) -> str:
        return f"[{self.id}] {self.name}"
