from __future__ import annotations

import sys
from pathlib import Path

import pytest


def pytest_configure() -> None:
    project_root = Path(__file__).resolve().parents[1]
    sys.path.insert(0, str(project_root))


@pytest.fixture()
def clock():
    from ttlkv.clock import ManualClock

    return ManualClock(start=1_000_000)


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch, tmp_path):
    for name in ("TTLKV_PATH", "TTLKV_CONFIG", "TTLKV_PRUNE_ON_READ", "TTLKV_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
