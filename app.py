"""Application entrypoint for the access registry."""
from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import List, Sequence

from config import Config, load_config
from core.registry import Registry
from services.persistence import TextFileStorage
from shell.menu import AccessShell

LOGGER = logging.getLogger(__name__)
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Manage users, environments and access logs."
    )
    parser.add_argument(
        "--data-dir",
        help="Directory holding environments.txt, users.txt and logs.txt (overrides ACCESS_DATA_DIR)",
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    return parser.parse_args(argv)


def apply_cli_overrides(config: Config, args: argparse.Namespace) -> Config:
    if getattr(args, "data_dir", None):
        config.data_dir = Path(args.data_dir).expanduser()
    if getattr(args, "debug", False):
        config.debug = True
    return config


def _configure_logging(debug: bool) -> None:
    level = logging.DEBUG if debug else logging.WARNING
    handlers: List[logging.Handler] = [logging.StreamHandler()]
    logging.basicConfig(level=level, format=LOG_FORMAT, handlers=handlers)


def create_registry(config: Config | None = None) -> Registry:
    """Build a registry backed by text files and load any saved state."""
    config = config or load_config()
    storage = TextFileStorage.from_config(config)
    registry = Registry(storage=storage, log_capacity=config.log_capacity)
    registry.load()
    return registry


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    config = apply_cli_overrides(load_config(), args)
    _configure_logging(config.debug)
    LOGGER.debug("Using data directory %s", config.data_dir)
    registry = create_registry(config)
    AccessShell(registry).run()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
