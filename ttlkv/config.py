from __future__ import annotations

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

import yaml
from dotenv import find_dotenv, load_dotenv

DEFAULT_PATH = Path("storage") / "kv_store.json"
DEFAULT_LOG_LEVEL = "WARNING"

LOG_LEVELS = frozenset({"TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"})
_TRUTHY = frozenset({"1", "true", "yes", "on"})
_FILE_KEYS = frozenset({"path", "prune_on_read", "log_level"})


def load_env() -> None:
    # Real environment variables win over the .env file.
    env_path = find_dotenv(usecwd=True)
    if env_path:
        load_dotenv(env_path)


@dataclass(frozen=True)
class StoreSettings:
    path: Path = DEFAULT_PATH
    prune_on_read: bool = False
    log_level: str = DEFAULT_LOG_LEVEL


def _parse_bool(raw: Any) -> bool:
    if isinstance(raw, bool):
        return raw
    return str(raw).strip().lower() in _TRUTHY


def _parse_log_level(raw: Any) -> str:
    level = str(raw).strip().upper()
    if level not in LOG_LEVELS:
        raise ValueError(f"unknown log level: {raw}")
    return level


def settings_from_env() -> StoreSettings:
    raw_path = (os.getenv("TTLKV_PATH") or "").strip()
    return StoreSettings(
        path=Path(raw_path).expanduser() if raw_path else DEFAULT_PATH,
        prune_on_read=_parse_bool(os.getenv("TTLKV_PRUNE_ON_READ") or ""),
        log_level=_parse_log_level(os.getenv("TTLKV_LOG_LEVEL") or DEFAULT_LOG_LEVEL),
    )


def load_settings_file(path: Path, *, base: StoreSettings | None = None) -> StoreSettings:
    """Overlay a YAML settings file on ``base``. Relative paths resolve against the file."""
    data = yaml.safe_load(path.read_text(encoding="utf-8"))
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ValueError("config must be a YAML mapping")

    unknown = sorted(str(k) for k in data if k not in _FILE_KEYS)
    if unknown:
        raise ValueError(f"unknown config keys: {', '.join(unknown)}")

    changes: dict[str, Any] = {}
    if data.get("path") is not None:
        p = Path(str(data["path"])).expanduser()
        changes["path"] = p if p.is_absolute() else path.parent / p
    if "prune_on_read" in data:
        changes["prune_on_read"] = _parse_bool(data["prune_on_read"])
    if "log_level" in data:
        changes["log_level"] = _parse_log_level(data["log_level"])
    return replace(base or StoreSettings(), **changes)


def load_settings(config_path: Path | None = None) -> StoreSettings:
    load_env()
    settings = settings_from_env()
    raw = config_path or (os.getenv("TTLKV_CONFIG") or "").strip()
    if raw:
        settings = load_settings_file(Path(raw), base=settings)
    return settings
