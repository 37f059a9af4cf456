from __future__ import annotations

from pathlib import Path


class StoreError(Exception):
    pass


class SnapshotLoadError(StoreError):
    """Snapshot file exists but could not be read or parsed."""

    def __init__(self, message: str, *, path: Path) -> None:
        self.path = path
        super().__init__(f"{path}: {message}")


class PersistenceError(StoreError):
    """Snapshot could not be written. The failed mutation has been rolled back."""

    def __init__(self, message: str, *, path: Path) -> None:
        self.path = path
        super().__init__(f"{path}: {message}")
