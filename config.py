"""Runtime configuration helpers."""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping

from core.entities import MAX_ACCESS_LOGS

LOGGER = logging.getLogger(__name__)

TRUTHY_VALUES = {"1", "true", "yes", "on"}


def _default_data_dir() -> Path:
    return Path.cwd()


@dataclass
class Config:
    data_dir: Path = field(default_factory=_default_data_dir)
    log_capacity: int = MAX_ACCESS_LOGS
    debug: bool = False


def _positive_int_from_env(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError:
        LOGGER.warning("Invalid value '%s' for %s; using %s", raw, name, default)
        return default
    if value <= 0:
        LOGGER.warning("%s must be positive; using %s", name, default)
        return default
    return value


def _bool_from_env(env: Mapping[str, str], name: str) -> bool:
    return env.get(name, "").strip().lower() in TRUTHY_VALUES


def _data_dir_from_env(env: Mapping[str, str]) -> Path:
    raw = (env.get("ACCESS_DATA_DIR") or "").strip()
    if not raw:
        return _default_data_dir()
    return Path(raw).expanduser()


def load_config(env: Mapping[str, str] | None = None) -> Config:
    """Read environment variables into a Config object."""
    env = os.environ if env is None else env
    return Config(
        data_dir=_data_dir_from_env(env),
        log_capacity=_positive_int_from_env(env, "ACCESS_LOG_CAPACITY", MAX_ACCESS_LOGS),
        debug=_bool_from_env(env, "ACCESS_DEBUG"),
    )
