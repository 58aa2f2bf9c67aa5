"""Plain-text persistence for the access registry.

Three files live in the data directory, one record per line with ``;``
separated fields:

    environments.txt  id;name
    users.txt         id;name;envId,envId,...
    logs.txt          isoTimestamp;userId;environmentId;1|0

Logs are written grouped by environment, each history oldest first.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Iterator, List

from core.entities import AccessLogEntry, Environment, User
from core.registry import DuplicateIdError

if TYPE_CHECKING:
    from config import Config
    from core.registry import Registry

LOGGER = logging.getLogger(__name__)

FIELD_SEPARATOR = ";"
ID_SEPARATOR = ","
DEFAULT_ENVIRONMENTS_FILE = "environments.txt"
DEFAULT_USERS_FILE = "users.txt"
DEFAULT_LOGS_FILE = "logs.txt"


def _read_records(path: Path) -> Iterator[List[str]]:
    if not path.exists():
        LOGGER.debug("No data file at %s; treating as empty", path)
        return
    with path.open("r", encoding="utf-8") as handle:
        for line in handle:
            if not line.strip():
                continue
            yield line.rstrip("\r\n").split(FIELD_SEPARATOR)


def _require_fields(fields: List[str], count: int, path: Path) -> List[str]:
    if len(fields) < count:
        raise ValueError(
            f"Malformed record in {path.name}: expected {count} fields, got {len(fields)}: "
            f"{FIELD_SEPARATOR.join(fields)!r}"
        )
    return fields


def _write_lines(path: Path, lines: List[str]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = "".join(f"{line}\n" for line in lines)
    path.write_text(payload, encoding="utf-8")


def _parse_id_list(raw: str) -> Iterator[int]:
    for token in raw.split(ID_SEPARATOR):
        token = token.strip()
        if not token:
            continue
        try:
            yield int(token)
        except ValueError:
            LOGGER.warning("Ignoring malformed environment ID %r in permissions", token)


def format_environment(environment: Environment) -> str:
    return f"{environment.id}{FIELD_SEPARATOR}{environment.name}"


def format_user(user: User) -> str:
    ids = ID_SEPARATOR.join(str(environment_id) for environment_id in user.environment_ids)
    return FIELD_SEPARATOR.join([str(user.id), user.name, ids])


def format_log(entry: AccessLogEntry, environment: Environment) -> str:
    return FIELD_SEPARATOR.join(
        [
            entry.timestamp.isoformat(),
            str(entry.user_id),
            str(environment.id),
            "1" if entry.granted else "0",
        ]
    )


@dataclass
class TextFileStorage:
    data_dir: Path
    environments_file: str = DEFAULT_ENVIRONMENTS_FILE
    users_file: str = DEFAULT_USERS_FILE
    logs_file: str = DEFAULT_LOGS_FILE

    @classmethod
    def from_config(cls, config: "Config") -> "TextFileStorage":
        return cls(data_dir=config.data_dir)

    @property
    def environments_path(self) -> Path:
        return self.data_dir / self.environments_file

    @property
    def users_path(self) -> Path:
        return self.data_dir / self.users_file

    @property
    def logs_path(self) -> Path:
        return self.data_dir / self.logs_file

    def save(self, registry: "Registry") -> None:
        environments = registry.environments
        users = registry.users
        _write_lines(self.environments_path, [format_environment(env) for env in environments])
        _write_lines(self.users_path, [format_user(user) for user in users])
        log_lines: List[str] = []
        for environment in environments:
            for entry in environment.history:
                log_lines.append(format_log(entry, environment))
        _write_lines(self.logs_path, log_lines)
        LOGGER.info(
            "Saved %d environment(s), %d user(s), %d log entr(ies) to %s",
            len(environments),
            len(users),
            len(log_lines),
            self.data_dir,
        )

    def load(self, registry: "Registry") -> None:
        """Populate an empty ``registry`` from the data directory.

        Environments are read first so user permissions can be resolved
        against them, then users, then logs. Permission and log references to
        unknown IDs are dropped. Malformed numbers, timestamps or truncated log
        lines raise ``ValueError``.
        """
        self._load_environments(registry)
        self._load_users(registry)
        dropped = self._load_logs(registry)
        LOGGER.info(
            "Loaded %d environment(s), %d user(s) from %s",
            len(registry.environments),
            len(registry.users),
            self.data_dir,
        )
        if dropped:
            LOGGER.warning("Dropped %d log line(s) referencing unknown IDs", dropped)

    def _load_environments(self, registry: "Registry") -> None:
        for fields in _read_records(self.environments_path):
            environment = Environment(
                int(fields[0]),
                fields[1] if len(fields) > 1 else "",
                log_capacity=registry.log_capacity,
            )
            try:
                registry.add_environment(environment)
            except DuplicateIdError:
                LOGGER.warning("Skipping duplicate environment ID %d", environment.id)

    def _load_users(self, registry: "Registry") -> None:
        for fields in _read_records(self.users_path):
            user = User(int(fields[0]), fields[1] if len(fields) > 1 else "")
            try:
                registry.add_user(user)
            except DuplicateIdError:
                LOGGER.warning("Skipping duplicate user ID %d", user.id)
                continue
            raw_ids = fields[2] if len(fields) > 2 else ""
            for environment_id in _parse_id_list(raw_ids):
                environment = registry.find_environment_by_id(environment_id)
                if environment is None:
                    LOGGER.warning(
                        "Dropping permission of user %d to unknown environment %d",
                        user.id,
                        environment_id,
                    )
                    continue
                user.grant(environment)

    def _load_logs(self, registry: "Registry") -> int:
        dropped = 0
        for record in _read_records(self.logs_path):
            fields = _require_fields(record, 4, self.logs_path)
            timestamp = datetime.fromisoformat(fields[0])
            user_id = int(fields[1])
            environment_id = int(fields[2])
            granted = int(fields[3]) == 1
            user = registry.find_user_by_id(user_id)
            environment = registry.find_environment_by_id(environment_id)
            if user is None or environment is None:
                dropped += 1
                continue
            environment.record_access(
                AccessLogEntry(timestamp=timestamp, user_id=user.id, granted=granted)
            )
        return dropped
