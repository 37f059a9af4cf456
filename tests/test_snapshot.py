from __future__ import annotations

import json
from pathlib import Path

import pytest
from pydantic import ValidationError

from ttlkv.errors import SnapshotLoadError
from ttlkv.schemas import MAX_EXPIRES_AT, Entry
from ttlkv.snapshot import decode_snapshot, encode_snapshot, load_snapshot, save_snapshot


def test_entry_accepts_payload_alias() -> None:
    entry = Entry.model_validate({"payload": {"a": 1}, "expires_at": 10})
    assert entry.data == {"a": 1}
    assert entry.model_dump(mode="json") == {"data": {"a": 1}, "expires_at": 10}


def test_entry_expiry_rule() -> None:
    entry = Entry(data="v", expires_at=100)
    assert not entry.is_expired(99)
    assert entry.is_expired(100)
    assert entry.is_expired(101)
    assert not Entry(data="v").is_expired(MAX_EXPIRES_AT)


@pytest.mark.parametrize("expires_at", [-1, MAX_EXPIRES_AT + 1])
def test_entry_rejects_out_of_range_expiry(expires_at: int) -> None:
    with pytest.raises(ValidationError):
        Entry(data="v", expires_at=expires_at)


def test_encode_is_readable_json() -> None:
    text = encode_snapshot({"k": Entry(data="ü", expires_at=None)})
    assert text.endswith("\n")
    assert "ü" in text
    assert json.loads(text)["entries"]["k"] == {"data": "ü", "expires_at": None}


def test_decode_rejects_non_object() -> None:
    with pytest.raises(ValueError):
        decode_snapshot(["k"])


def test_load_missing_or_blank_file_is_empty(tmp_path: Path) -> None:
    assert load_snapshot(tmp_path / "missing.json") == {}
    blank = tmp_path / "blank.json"
    blank.write_text("  \n", encoding="utf-8")
    assert load_snapshot(blank) == {}


def test_load_corrupt_file_raises(tmp_path: Path) -> None:
    path = tmp_path / "db.json"
    path.write_text('{"schema_version": 1, "entries": {"k": 3}}', encoding="utf-8")
    with pytest.raises(SnapshotLoadError) as exc_info:
        load_snapshot(path)
    assert exc_info.value.path == path


def test_save_then_load(tmp_path: Path) -> None:
    path = tmp_path / "a" / "db.json"
    entries = {"x": Entry(data=[1, {"y": False}], expires_at=5), "z": Entry(data=None)}
    save_snapshot(path, entries)
    assert load_snapshot(path) == entries
