"""Developer helper commands.

Usage:
    python -m scripts.dev install
    python -m scripts.dev run
    python -m scripts.dev test
    python -m scripts.dev lint
    python -m scripts.dev format
    python -m scripts.dev seed --data-dir demo_data
"""
from __future__ import annotations

import argparse
import subprocess
import sys
from pathlib import Path

from core.entities import Environment, User
from core.registry import Registry
from services.persistence import TextFileStorage

ROOT = Path(__file__).resolve().parents[1]

DEMO_ENVIRONMENTS = [(1, "Lab"), (2, "Server Room"), (3, "Lobby")]
DEMO_USERS = [(10, "Ada", [1, 3]), (11, "Grace", [2]), (12, "Linus", [])]


def run_command(command: list[str]) -> int:
    process = subprocess.run(command, cwd=ROOT)
    return process.returncode


def cmd_install(_: argparse.Namespace) -> int:
    return run_command([sys.executable, "-m", "pip", "install", "-e", ".[test]"])


def cmd_run(args: argparse.Namespace) -> int:
    command = [sys.executable, "app.py"]
    if args.data_dir:
        command += ["--data-dir", args.data_dir]
    return run_command(command)


def cmd_test(_: argparse.Namespace) -> int:
    return run_command([sys.executable, "-m", "pytest", "-q"])


def cmd_lint(_: argparse.Namespace) -> int:
    return run_command([sys.executable, "-m", "ruff", "check", "."])


def cmd_format(_: argparse.Namespace) -> int:
    return run_command([sys.executable, "-m", "black", "."])


def build_demo_registry(data_dir: Path) -> Registry:
    registry = Registry(storage=TextFileStorage(data_dir=data_dir))
    for environment_id, name in DEMO_ENVIRONMENTS:
        registry.add_environment(Environment(environment_id, name))
    for user_id, name, environment_ids in DEMO_USERS:
        user = User(user_id, name)
        registry.add_user(user)
        for environment_id in environment_ids:
            environment = registry.find_environment_by_id(environment_id)
            if environment is not None:
                user.grant(environment)
    for user in registry.users:
        for environment in registry.environments:
            registry.record_access(user, environment)
    return registry


def cmd_seed(args: argparse.Namespace) -> int:
    data_dir = Path(args.data_dir or "demo_data")
    registry = build_demo_registry(data_dir)
    registry.save()
    print(
        f"Seeded {len(registry.environments)} environments and "
        f"{len(registry.users)} users into {data_dir}"
    )
    return 0


COMMANDS = {
    "install": cmd_install,
    "run": cmd_run,
    "test": cmd_test,
    "lint": cmd_lint,
    "format": cmd_format,
    "seed": cmd_seed,
}


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Developer helper commands")
    parser.add_argument("command", choices=COMMANDS.keys())
    parser.add_argument("--data-dir", help="Data directory for run/seed")
    args = parser.parse_args(argv)
    return COMMANDS[args.command](args)


if __name__ == "__main__":
    raise SystemExit(main())
