from __future__ import annotations

import argparse
import sys
from dataclasses import replace
from pathlib import Path

from ttlkv.config import LOG_LEVELS, load_settings
from ttlkv.errors import PersistenceError
from ttlkv.jsonutil import parse_payload, render_payload
from ttlkv.logging_setup import setup_logging
from ttlkv.shell import run_shell
from ttlkv.store import ExpiringStore


def _existing_path(value: str) -> Path:
    p = Path(value)
    if not p.exists():
        raise argparse.ArgumentTypeError(f"path not found: {value}")
    return p


def _ttl_seconds(value: str) -> int:
    try:
        ttl = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"ttl must be an integer: {value}") from None
    if ttl < 0:
        raise argparse.ArgumentTypeError(f"ttl must be non-negative: {value}")
    return ttl


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ttlkv", description="Key-value store with per-key TTL, persisted to a JSON file."
    )
    parser.add_argument(
        "--path",
        type=Path,
        default=None,
        help="snapshot file (default: TTLKV_PATH or storage/kv_store.json)",
    )
    parser.add_argument("--config", type=_existing_path, default=None, help="YAML settings file")
    parser.add_argument(
        "--log-level", type=str.upper, choices=sorted(LOG_LEVELS), default=None
    )
    parser.add_argument(
        "--prune-on-read",
        action="store_true",
        default=None,
        help="purge expired entries from the snapshot before every read",
    )
    sub = parser.add_subparsers(dest="cmd")

    sub.add_parser("shell", help="interactive shell (default)")

    get_p = sub.add_parser("get", help="print the value for a key")
    get_p.add_argument("key")

    set_p = sub.add_parser("set", help="store a value; JSON text is stored structured")
    set_p.add_argument("key")
    set_p.add_argument("value")
    set_p.add_argument("--ttl", type=_ttl_seconds, default=None, help="expire after N seconds")

    del_p = sub.add_parser("delete", help="remove a key")
    del_p.add_argument("key")

    list_p = sub.add_parser("list", help="print all live key/value pairs")
    list_p.add_argument("--prefix", default=None)

    ttl_p = sub.add_parser("ttl", help="print remaining seconds for a key")
    ttl_p.add_argument("key")

    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    settings = load_settings(args.config)
    if args.path is not None:
        settings = replace(settings, path=args.path)
    if args.prune_on_read is not None:
        settings = replace(settings, prune_on_read=True)
    if args.log_level is not None:
        settings = replace(settings, log_level=args.log_level)
    setup_logging(settings.log_level)

    store = ExpiringStore.from_settings(settings)
    cmd = args.cmd or "shell"

    if cmd == "shell":
        run_shell(store)
        return 0

    if cmd == "get":
        value = store.get(args.key)
        if value is None:
            return 1
        print(render_payload(value))
        return 0

    if cmd == "set":
        try:
            store.set(args.key, parse_payload(args.value), ttl=args.ttl)
        except (PersistenceError, ValueError) as e:
            print(f"error: {e}", file=sys.stderr)
            return 2
        return 0

    if cmd == "delete":
        try:
            removed = store.delete(args.key)
        except (PersistenceError, ValueError) as e:
            print(f"error: {e}", file=sys.stderr)
            return 2
        return 0 if removed is not None else 1

    if cmd == "list":
        for key, value in store.list():
            if args.prefix is None or key.startswith(args.prefix):
                print(f"{key}: {render_payload(value)}")
        return 0

    if cmd == "ttl":
        remaining = store.ttl(args.key)
        if remaining is None:
            return 1
        print(remaining)
        return 0

    raise AssertionError(f"unhandled cmd: {cmd}")
