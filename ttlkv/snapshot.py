from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

from loguru import logger

from ttlkv.errors import PersistenceError, SnapshotLoadError
from ttlkv.schemas import Entry, Snapshot


def write_text_atomic(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(f"{path.suffix}.{os.getpid()}.tmp")
    try:
        tmp.write_text(text, encoding="utf-8")
        tmp.replace(path)
    except OSError:
        tmp.unlink(missing_ok=True)
        raise


def encode_snapshot(entries: dict[str, Entry]) -> str:
    snap = Snapshot(entries=entries)
    return json.dumps(snap.model_dump(mode="json"), indent=2, ensure_ascii=False) + "\n"


def decode_snapshot(raw: Any) -> dict[str, Entry]:
    """Accept both the versioned document and a bare ``{key: record}`` mapping."""
    if not isinstance(raw, dict):
        raise ValueError("snapshot must be a JSON object")
    if isinstance(raw.get("schema_version"), int):
        return dict(Snapshot.model_validate(raw).entries)
    return {str(k): Entry.model_validate(v) for k, v in raw.items()}


def load_snapshot(path: Path) -> dict[str, Entry]:
    if not path.exists():
        return {}
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise SnapshotLoadError(f"unreadable snapshot ({e})", path=path) from e
    if not text.strip():
        return {}
    try:
        entries = decode_snapshot(json.loads(text))
    except (ValueError, RecursionError) as e:
        raise SnapshotLoadError(f"corrupt snapshot ({type(e).__name__})", path=path) from e
    logger.debug("loaded {} entries from {}", len(entries), path)
    return entries


def save_snapshot(path: Path, entries: dict[str, Entry]) -> None:
    text = encode_snapshot(entries)
    try:
        write_text_atomic(path, text)
    except OSError as e:
        raise PersistenceError(f"cannot write snapshot ({e})", path=path) from e
    logger.debug("saved {} entries to {}", len(entries), path)
