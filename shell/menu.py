"""Numbered-menu operator shell for the access registry."""
from __future__ import annotations

import logging
import sys
from typing import Callable, Dict, Optional, TextIO, Tuple

from core.entities import Environment, User
from core.registry import Registry, RegistryError

LOGGER = logging.getLogger(__name__)

EXIT_OPTION = "0"
LOG_FILTERS: Dict[int, Optional[bool]] = {1: True, 2: False, 3: None}
TIMESTAMP_FORMAT = "%d/%m/%Y %H:%M:%S"


class AccessShell:
    """Reads menu choices from ``stdin`` and drives a :class:`Registry`.

    Failures of a single command are printed and the loop carries on. Option
    0, or end of input, saves the registry and returns.
    """

    def __init__(
        self,
        registry: Registry,
        *,
        stdin: TextIO | None = None,
        stdout: TextIO | None = None,
    ) -> None:
        self._registry = registry
        self._stdin = stdin or sys.stdin
        self._stdout = stdout or sys.stdout
        self._commands: Dict[str, Tuple[str, Callable[[], None]]] = {
            "1": ("Register environment", self.register_environment),
            "2": ("Show environment", self.show_environment),
            "3": ("Delete environment", self.delete_environment),
            "4": ("Register user", self.register_user),
            "5": ("Show user", self.show_user),
            "6": ("Delete user", self.delete_user),
            "7": ("Grant environment permission to user", self.grant_permission),
            "8": ("Revoke environment permission from user", self.revoke_permission),
            "9": ("Record access", self.record_access),
            "10": ("List access logs", self.list_logs),
        }

    def run(self) -> None:
        while True:
            self._print_menu()
            try:
                choice = self._prompt("Choose an option: ").strip()
            except EOFError:
                choice = EXIT_OPTION
            if choice == EXIT_OPTION:
                self._exit()
                return
            command = self._commands.get(choice)
            if command is None:
                self._write("Invalid option.")
                continue
            label, handler = command
            try:
                handler()
            except EOFError:
                self._exit()
                return
            except (RegistryError, ValueError) as exc:
                LOGGER.debug("Command %r failed: %s", label, exc)
                self._write(f"ERROR: {exc}")

    # I/O helpers

    def _write(self, text: str = "") -> None:
        self._stdout.write(f"{text}\n")

    def _prompt(self, label: str) -> str:
        self._stdout.write(label)
        self._stdout.flush()
        line = self._stdin.readline()
        if line == "":
            raise EOFError
        return line.rstrip("\r\n")

    def _ask_int(self, label: str) -> int:
        raw = self._prompt(label).strip()
        try:
            return int(raw)
        except ValueError:
            raise ValueError(f"'{raw}' is not a valid number") from None

    def _print_menu(self) -> None:
        self._write()
        self._write("==== ACCESS REGISTRY ====")
        self._write(f"{EXIT_OPTION}. Exit")
        for key, (label, _) in self._commands.items():
            self._write(f"{key}. {label}")

    def _exit(self) -> None:
        self._registry.save()
        self._write("Saving data and exiting...")

    def _ask_user(self) -> Optional[User]:
        user = self._registry.find_user_by_id(self._ask_int("User ID: "))
        if user is None:
            self._write("User not found.")
        return user

    def _ask_environment(self) -> Optional[Environment]:
        environment = self._registry.find_environment_by_id(self._ask_int("Environment ID: "))
        if environment is None:
            self._write("Environment not found.")
        return environment

    # Commands

    def register_environment(self) -> None:
        environment_id = self._ask_int("Environment ID: ")
        name = self._prompt("Environment name: ")
        environment = Environment(
            environment_id, name, log_capacity=self._registry.log_capacity
        )
        self._registry.add_environment(environment)
        self._write("Environment registered.")

    def show_environment(self) -> None:
        environment = self._ask_environment()
        if environment is None:
            return
        self._write(f"Environment: {environment}")
        self._write(f"Log entries: {len(environment)}")

    def delete_environment(self) -> None:
        environment = self._ask_environment()
        if environment is None:
            return
        if self._registry.remove_environment(environment):
            self._write("Environment removed.")
        else:
            self._write("Could not remove the environment.")

    def register_user(self) -> None:
        user_id = self._ask_int("User ID: ")
        name = self._prompt("User name: ")
        self._registry.add_user(User(user_id, name))
        self._write("User registered.")

    def show_user(self) -> None:
        user = self._ask_user()
        if user is None:
            return
        self._write(f"User: {user}")
        self._write("Permissions (environments):")
        environments = self._registry.permitted_environments(user)
        if not environments:
            self._write(" (none)")
        for environment in environments:
            self._write(f" - {environment}")

    def delete_user(self) -> None:
        user = self._ask_user()
        if user is None:
            return
        if self._registry.remove_user(user):
            self._write("User removed.")
        else:
            self._write("Cannot remove: the user still holds environment permissions.")

    def grant_permission(self) -> None:
        user = self._ask_user()
        if user is None:
            return
        environment = self._ask_environment()
        if environment is None:
            return
        if user.grant(environment):
            self._write("Permission granted.")
        else:
            self._write("User already had permission for this environment.")

    def revoke_permission(self) -> None:
        user = self._ask_user()
        if user is None:
            return
        environment = self._ask_environment()
        if environment is None:
            return
        if user.revoke(environment):
            self._write("Permission revoked.")
        else:
            self._write("User had no permission for this environment.")

    def record_access(self) -> None:
        user = self._ask_user()
        if user is None:
            return
        environment = self._ask_environment()
        if environment is None:
            return
        entry = self._registry.record_access(user, environment)
        self._write("Access GRANTED." if entry.granted else "Access DENIED.")

    def list_logs(self) -> None:
        environment = self._ask_environment()
        if environment is None:
            return
        self._write("Filter logs:")
        self._write("1 - Granted only")
        self._write("2 - Denied only")
        self._write("3 - All")
        # Unknown filter numbers fall back to showing everything.
        granted = LOG_FILTERS.get(self._ask_int("Option: "))
        self._write()
        self._write(f"Logs for environment {environment.name}:")
        for entry in environment.entries(granted):
            user = self._registry.resolve_user(entry)
            user_label = user.name if user is not None else f"#{entry.user_id}"
            outcome = "GRANTED" if entry.granted else "DENIED"
            stamp = entry.timestamp.astimezone().strftime(TIMESTAMP_FORMAT)
            self._write(f"{stamp} - User: {user_label} - {outcome}")
