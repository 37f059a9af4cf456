from __future__ import annotations

from loguru import logger

from ttlkv.clock import Clock, ManualClock, SystemClock
from ttlkv.config import StoreSettings, load_settings, load_settings_file
from ttlkv.errors import PersistenceError, SnapshotLoadError, StoreError
from ttlkv.schemas import MAX_EXPIRES_AT, Entry, Snapshot
from ttlkv.snapshot import load_snapshot, save_snapshot
from ttlkv.store import ExpiringStore

# Library code stays quiet until the application calls setup_logging().
logger.disable("ttlkv")

__all__ = [
    "__version__",
    # Engine
    "ExpiringStore",
    # Clocks
    "Clock",
    "SystemClock",
    "ManualClock",
    # Schemas
    "Entry",
    "Snapshot",
    "MAX_EXPIRES_AT",
    # Snapshot IO
    "load_snapshot",
    "save_snapshot",
    # Errors
    "StoreError",
    "SnapshotLoadError",
    "PersistenceError",
    # Config
    "StoreSettings",
    "load_settings",
    "load_settings_file",
]

__version__ = "0.1.0"
