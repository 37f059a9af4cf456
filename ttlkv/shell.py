from __future__ import annotations

import shlex
import sys
from dataclasses import dataclass
from typing import TextIO

from ttlkv.errors import StoreError
from ttlkv.jsonutil import parse_payload, render_payload
from ttlkv.store import ExpiringStore

PROMPT = "> "
WELCOME = "Welcome to the key-value store shell. Type 'help' for available commands."
NOT_FOUND = "Key not found"
UNKNOWN = "Unknown command. Type 'help' for available commands."

HELP_TEXT = """\
Available commands:
  get <key>                              Get a value by key
  set <key> <value> [--ttl <seconds>]    Set a key-value pair with optional TTL
  delete <key>                           Delete a key-value pair
  list                                   List all key-value pairs
  ttl <key>                              Get TTL for a key
  getttl <key>                           Get TTL for a key (verbose)
  exit                                   Exit the shell
  help                                   Show this help message"""

_KEY_COMMANDS = {"get", "delete", "ttl", "getttl"}


class ShellUsageError(Exception):
    pass


@dataclass(frozen=True)
class Command:
    name: str
    key: str | None = None
    value: str | None = None
    ttl: int | None = None


def _parse_ttl(raw: str) -> int:
    try:
        ttl = int(raw)
    except ValueError:
        raise ShellUsageError(f"Invalid TTL: {raw}") from None
    if ttl < 0:
        raise ShellUsageError(f"Invalid TTL: {raw}")
    return ttl


def parse_command(line: str) -> Command | None:
    """Parse one input line. Blank lines give None; bad input raises ShellUsageError."""
    try:
        parts = shlex.split(line)
    except ValueError as e:
        raise ShellUsageError(f"Parse error: {e}") from None
    if not parts:
        return None

    name, args = parts[0], parts[1:]

    if name in _KEY_COMMANDS:
        if len(args) != 1:
            raise ShellUsageError(f"Usage: {name} <key>")
        return Command(name=name, key=args[0])

    if name == "set":
        if len(args) == 2:
            return Command(name="set", key=args[0], value=args[1])
        if len(args) == 4 and args[2] == "--ttl":
            return Command(name="set", key=args[0], value=args[1], ttl=_parse_ttl(args[3]))
        raise ShellUsageError("Usage: set <key> <value> [--ttl <seconds>]")

    if name == "list":
        if args:
            raise ShellUsageError("Usage: list")
        return Command(name="list")

    if name in ("exit", "quit"):
        return Command(name="exit")
    if name == "help":
        return Command(name="help")

    raise ShellUsageError(UNKNOWN)


def execute(store: ExpiringStore, cmd: Command) -> list[str]:
    """Run a parsed command against ``store`` and return the output lines."""
    if cmd.name == "get":
        value = store.get(cmd.key)
        return [NOT_FOUND if value is None else render_payload(value)]

    if cmd.name == "set":
        store.set(cmd.key, parse_payload(cmd.value), ttl=cmd.ttl)
        return [f"Key '{cmd.key}' has been set."]

    if cmd.name == "delete":
        # An expired key is reported the same as a missing one.
        if store.delete(cmd.key) is None:
            return [NOT_FOUND]
        return [f"Key '{cmd.key}' has been deleted."]

    if cmd.name == "list":
        pairs = store.list()
        if not pairs:
            return ["Store is empty"]
        return [f"{k}: {render_payload(v)}" for k, v in pairs]

    if cmd.name == "ttl":
        remaining = store.ttl(cmd.key)
        return ["Key not found or no TTL set" if remaining is None else str(remaining)]

    if cmd.name == "getttl":
        if cmd.key not in store:
            return [NOT_FOUND]
        remaining = store.ttl(cmd.key)
        if remaining is None:
            return [f"Key '{cmd.key}' has no TTL set"]
        return [f"TTL for key '{cmd.key}': {remaining} seconds"]

    if cmd.name == "help":
        return HELP_TEXT.splitlines()

    raise AssertionError(f"unhandled command: {cmd.name}")


def run_shell(
    store: ExpiringStore,
    *,
    stdin: TextIO | None = None,
    stdout: TextIO | None = None,
    prompt: bool = True,
) -> None:
    stdin = stdin or sys.stdin
    stdout = stdout or sys.stdout

    print(WELCOME, file=stdout)
    while True:
        if prompt:
            stdout.write(PROMPT)
            stdout.flush()

        line = stdin.readline()
        if not line:
            break

        try:
            cmd = parse_command(line)
        except ShellUsageError as e:
            print(e, file=stdout)
            continue
        if cmd is None:
            continue
        if cmd.name == "exit":
            break

        try:
            lines = execute(store, cmd)
        except (StoreError, ValueError) as e:
            lines = [f"Error: {e}"]
        for out in lines:
            print(out, file=stdout)
