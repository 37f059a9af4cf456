from __future__ import annotations

import io
import re

import pytest

from ttlkv import snapshot
from ttlkv.shell import Command, ShellUsageError, execute, parse_command, run_shell
from ttlkv.store import ExpiringStore


def _run(store: ExpiringStore, script: str) -> list[str]:
    out = io.StringIO()
    run_shell(store, stdin=io.StringIO(script), stdout=out, prompt=False)
    lines = out.getvalue().splitlines()
    assert lines[0].startswith("Welcome")
    return lines[1:]


def test_parse_command_variants() -> None:
    assert parse_command("   \n") is None
    assert parse_command("get k") == Command(name="get", key="k")
    assert parse_command("set k v") == Command(name="set", key="k", value="v")
    assert parse_command("set k v --ttl 30") == Command(name="set", key="k", value="v", ttl=30)
    assert parse_command("set 'a key' '{\"x\": 1}'") == Command(
        name="set", key="a key", value='{"x": 1}'
    )
    assert parse_command("quit") == Command(name="exit")
    assert parse_command("list") == Command(name="list")


@pytest.mark.parametrize(
    ("line", "message"),
    [
        ("get", "Usage: get <key>"),
        ("delete a b", "Usage: delete <key>"),
        ("set k", "Usage: set <key> <value> [--ttl <seconds>]"),
        ("set k v --ttl", "Usage: set <key> <value> [--ttl <seconds>]"),
        ("set k v --ttl soon", "Invalid TTL: soon"),
        ("set k v --ttl -3", "Invalid TTL: -3"),
        ("list everything", "Usage: list"),
        ("frobnicate", "Unknown command. Type 'help' for available commands."),
    ],
)
def test_parse_command_errors(line: str, message: str) -> None:
    with pytest.raises(ShellUsageError, match=re.escape(message)):
        parse_command(line)


def test_unbalanced_quotes_are_reported() -> None:
    with pytest.raises(ShellUsageError, match="Parse error"):
        parse_command("get 'oops")


def test_session_transcript(clock) -> None:
    store = ExpiringStore.in_memory(clock=clock)
    lines = _run(
        store,
        "\n".join(
            [
                "list",
                "set name alice",
                "set cfg '{\"debug\":true,\"level\":3}'",
                "set session abc --ttl 60",
                "get name",
                "get cfg",
                "get nope",
                "ttl session",
                "ttl name",
                "getttl session",
                "getttl name",
                "getttl nope",
                "delete name",
                "delete name",
                "exit",
                "get cfg",
            ]
        )
        + "\n",
    )
    assert lines == [
        "Store is empty",
        "Key 'name' has been set.",
        "Key 'cfg' has been set.",
        "Key 'session' has been set.",
        "alice",
        '{"debug":true,"level":3}',
        "Key not found",
        "60",
        "Key not found or no TTL set",
        "TTL for key 'session': 60 seconds",
        "Key 'name' has no TTL set",
        "Key not found",
        "Key 'name' has been deleted.",
        "Key not found",
    ]
    assert store.get("cfg") == {"debug": True, "level": 3}


def test_list_renders_pairs_and_hides_expired(clock) -> None:
    store = ExpiringStore.in_memory(clock=clock)
    store.set("a", "1")
    store.set("b", [1, 2], ttl=5)
    store.set("c", "x", ttl=1)
    clock.advance(1)
    assert execute(store, Command(name="list")) == ["a: 1", "b: [1,2]"]


def test_numeric_text_is_stored_as_number(clock) -> None:
    store = ExpiringStore.in_memory(clock=clock)
    execute(store, Command(name="set", key="n", value="42"))
    execute(store, Command(name="set", key="inf", value="Infinity"))
    assert store.get("n") == 42
    assert store.get("inf") == "Infinity"


def test_errors_are_printed_and_loop_continues(tmp_path, clock, monkeypatch) -> None:
    store = ExpiringStore(tmp_path / "db.json", clock=clock)

    def boom(path, text):
        raise OSError("read-only file system")

    monkeypatch.setattr(snapshot, "write_text_atomic", boom)
    lines = _run(store, "set k v\nbogus\nget k\n")
    assert lines[0].startswith("Error: ")
    assert "read-only file system" in lines[0]
    assert lines[1:] == ["Unknown command. Type 'help' for available commands.", "Key not found"]


def test_help_and_eof(clock) -> None:
    store = ExpiringStore.in_memory(clock=clock)
    lines = _run(store, "help")
    assert lines[0] == "Available commands:"
    assert any(line.strip().startswith("getttl <key>") for line in lines)


def test_prompt_is_written(clock) -> None:
    out = io.StringIO()
    run_shell(ExpiringStore.in_memory(clock=clock), stdin=io.StringIO("exit\n"), stdout=out)
    assert out.getvalue().endswith("> ")


def test_deeply_nested_input_is_kept_as_text(clock) -> None:
    store = ExpiringStore.in_memory(clock=clock)
    deep = "[" * 200_000 + "]" * 200_000
    lines = _run(store, f"set deep {deep}\nttl deep\n")
    assert lines == ["Key 'deep' has been set.", "Key not found or no TTL set"]
    assert store.get("deep") == deep
