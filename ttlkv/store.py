from __future__ import annotations

import copy
import math
from pathlib import Path

from loguru import logger
from pydantic import JsonValue

from ttlkv.clock import Clock, SystemClock
from ttlkv.config import StoreSettings
from ttlkv.errors import PersistenceError, SnapshotLoadError
from ttlkv.schemas import MAX_EXPIRES_AT, Entry
from ttlkv.snapshot import load_snapshot, save_snapshot


def _check_key(key: str) -> None:
    if not isinstance(key, str) or not key:
        raise ValueError("key must be a non-empty string")


def _check_ttl(ttl: int | None) -> int | None:
    if ttl is None:
        return None
    if isinstance(ttl, bool) or not isinstance(ttl, int):
        raise ValueError(f"ttl must be a whole number of seconds, got {ttl!r}")
    if ttl < 0:
        raise ValueError(f"ttl must be non-negative, got {ttl}")
    return ttl


class ExpiringStore:
    """Key-value map with optional per-entry expiry, synced to a JSON snapshot.

    Expired entries are filtered out of every read and only physically removed
    by `cleanup()`, which runs at startup and, with ``prune_on_read``, before
    every read.

    Every mutation rewrites the whole snapshot before returning. If that write
    fails the mutation is rolled back and `PersistenceError` propagates, so
    memory never runs ahead of disk. A snapshot that exists but cannot be
    parsed is logged and treated as empty; its contents are lost on the next
    write.

    ``path=None`` keeps everything in memory. Not thread-safe.
    """

    def __init__(
        self,
        path: Path | str | None,
        *,
        clock: Clock | None = None,
        prune_on_read: bool = False,
    ) -> None:
        self._path = Path(path) if path is not None else None
        self._clock = clock or SystemClock()
        self._prune_on_read = prune_on_read
        self._data: dict[str, Entry] = {}

        if self._path is not None:
            try:
                self._data = load_snapshot(self._path)
            except SnapshotLoadError as e:
                logger.warning("ignoring unreadable snapshot, starting empty: {}", e)
        self._cleanup_quietly()

    @classmethod
    def in_memory(cls, *, clock: Clock | None = None) -> ExpiringStore:
        return cls(None, clock=clock)

    @classmethod
    def from_settings(cls, settings: StoreSettings, *, clock: Clock | None = None) -> ExpiringStore:
        return cls(settings.path, clock=clock, prune_on_read=settings.prune_on_read)

    @property
    def path(self) -> Path | None:
        return self._path

    def get(self, key: str) -> JsonValue | None:
        self._maybe_prune()
        entry = self._live(key)
        if entry is None:
            return None
        return copy.deepcopy(entry.data)

    def set(self, key: str, payload: JsonValue, ttl: int | None = None) -> None:
        _check_key(key)
        ttl = _check_ttl(ttl)
        expires_at = None if ttl is None else min(self._now() + ttl, MAX_EXPIRES_AT)
        entry = Entry(data=copy.deepcopy(payload), expires_at=expires_at)

        before = dict(self._data)
        self._data[key] = entry
        self._commit(before)

    def delete(self, key: str) -> JsonValue | None:
        """Remove ``key`` whatever its expiry. Returns the payload only if it was live."""
        self._maybe_prune()
        if key not in self._data:
            return None

        before = dict(self._data)
        entry = self._data.pop(key)
        was_live = not entry.is_expired(self._now())
        self._commit(before)
        return copy.deepcopy(entry.data) if was_live else None

    def list(self) -> list[tuple[str, JsonValue]]:
        self._maybe_prune()
        now = self._now()
        return [(k, copy.deepcopy(e.data)) for k, e in self._data.items() if not e.is_expired(now)]

    def ttl(self, key: str) -> int | None:
        """Seconds left for a live key with a TTL; None for absent, expired or no-TTL keys."""
        self._maybe_prune()
        entry = self._live(key)
        if entry is None or entry.expires_at is None:
            return None
        return max(entry.expires_at - self._now(), 0)

    def keys(self, prefix: str | None = None) -> list[str]:
        self._maybe_prune()
        now = self._now()
        keys = [k for k, e in self._data.items() if not e.is_expired(now)]
        if prefix is not None:
            keys = [k for k in keys if k.startswith(prefix)]
        return keys

    def entries(self) -> list[tuple[str, Entry]]:
        self._maybe_prune()
        now = self._now()
        return [
            (k, e.model_copy(deep=True)) for k, e in self._data.items() if not e.is_expired(now)
        ]

    def cleanup(self) -> int:
        """Drop every due entry and persist if anything went. Returns the count removed."""
        now = self._now()
        expired = [k for k, e in self._data.items() if e.is_expired(now)]
        if not expired:
            return 0

        before = dict(self._data)
        for key in expired:
            del self._data[key]
        self._commit(before)
        logger.info("removed {} expired entries", len(expired))
        return len(expired)

    def is_empty(self) -> bool:
        return len(self) == 0

    def __len__(self) -> int:
        now = self._now()
        return sum(1 for e in self._data.values() if not e.is_expired(now))

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self._live(key) is not None

    def _now(self) -> int:
        return math.floor(self._clock.now())

    def _live(self, key: str) -> Entry | None:
        entry = self._data.get(key)
        if entry is None or entry.is_expired(self._now()):
            return None
        return entry

    def _commit(self, before: dict[str, Entry]) -> None:
        if self._path is None:
            return
        try:
            save_snapshot(self._path, self._data)
        except PersistenceError:
            self._data = before
            raise

    def _cleanup_quietly(self) -> None:
        # Startup and read paths must not fail because a purge could not be saved.
        try:
            self.cleanup()
        except PersistenceError as e:
            logger.warning("could not persist expired-entry cleanup: {}", e)

    def _maybe_prune(self) -> None:
        if self._prune_on_read:
            self._cleanup_quietly()
