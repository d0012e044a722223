from __future__ import annotations

import json
import os
import warnings
from dataclasses import dataclass
from pathlib import Path
from typing import Any

DEFAULT_CONFIG_PATH = Path("~/.config/eventfeed/config.json").expanduser()

SORT_MODES = ("trending", "date")

CONFIG_ENV_OVERRIDES = {
    "db_path": "EVENTFEED_DB",
    "catalog_path": "EVENTFEED_CATALOG",
    "context_id": "EVENTFEED_CONTEXT_ID",
    "tag_cloud_limit": "EVENTFEED_TAG_CLOUD_LIMIT",
    "trending_limit": "EVENTFEED_TRENDING_LIMIT",
    "default_sort": "EVENTFEED_DEFAULT_SORT",
    "watch_interval_s": "EVENTFEED_WATCH_INTERVAL_S",
    "log_level": "EVENTFEED_LOG_LEVEL",
}


def get_config_path(path: Path | None = None) -> Path:
    candidate = path or Path(os.getenv("EVENTFEED_CONFIG", DEFAULT_CONFIG_PATH))
    return candidate.expanduser()


def read_config_file(path: Path | None = None) -> dict[str, Any]:
    config_path = get_config_path(path)
    if not config_path.exists():
        return {}
    raw = config_path.read_text(encoding="utf-8")
    if not raw.strip():
        return {}
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ValueError("invalid config json") from exc
    if not isinstance(data, dict):
        raise ValueError("config must be an object")
    return data


def write_config_file(data: dict[str, Any], path: Path | None = None) -> Path:
    config_path = get_config_path(path)
    config_path.parent.mkdir(parents=True, exist_ok=True)
    config_path.write_text(json.dumps(data, ensure_ascii=False, indent=2) + "\n")
    return config_path


def get_env_overrides() -> dict[str, str]:
    overrides: dict[str, str] = {}
    for key, env_var in CONFIG_ENV_OVERRIDES.items():
        value = os.getenv(env_var)
        if value is not None:
            overrides[key] = value
    return overrides


@dataclass
class EventFeedConfig:
    db_path: str = "~/.eventfeed.sqlite"
    catalog_path: str | None = None
    # Identifies this process to other contexts sharing the same database.
    # When unset every store instance gets a random one.
    context_id: str | None = None
    tag_cloud_limit: int = 5
    trending_limit: int = 3
    default_sort: str = "trending"
    watch_interval_s: float = 1.0
    log_level: str = "WARNING"


def _parse_int(value: object, default: int, *, key: str) -> int:
    if value is None:
        return default
    try:
        parsed = int(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        warnings.warn(f"Invalid int for {key}: {value!r}", RuntimeWarning, stacklevel=2)
        return default
    if parsed <= 0:
        warnings.warn(f"Invalid int for {key}: {value!r}", RuntimeWarning, stacklevel=2)
        return default
    return parsed


def _parse_float(value: object, default: float, *, key: str) -> float:
    if value is None:
        return default
    try:
        parsed = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        warnings.warn(f"Invalid float for {key}: {value!r}", RuntimeWarning, stacklevel=2)
        return default
    if parsed <= 0:
        warnings.warn(f"Invalid float for {key}: {value!r}", RuntimeWarning, stacklevel=2)
        return default
    return parsed


def _parse_sort(value: object, default: str) -> str:
    if value is None:
        return default
    text = str(value).strip().lower()
    if text in SORT_MODES:
        return text
    warnings.warn(f"Invalid sort for default_sort: {value!r}", RuntimeWarning, stacklevel=2)
    return default


def load_config(path: Path | None = None) -> EventFeedConfig:
    cfg = EventFeedConfig()
    config_path = get_config_path(path)
    if config_path.exists():
        try:
            data = json.loads(config_path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, UnicodeDecodeError):
            data = {}
        if isinstance(data, dict):
            cfg = _apply_dict(cfg, data)
    cfg = _apply_env(cfg)
    return cfg


def _apply_dict(cfg: EventFeedConfig, data: dict[str, Any]) -> EventFeedConfig:
    for key, value in data.items():
        if not hasattr(cfg, key):
            continue
        if key in {"tag_cloud_limit", "trending_limit"}:
            setattr(cfg, key, _parse_int(value, getattr(cfg, key), key=key))
            continue
        if key == "watch_interval_s":
            cfg.watch_interval_s = _parse_float(value, cfg.watch_interval_s, key=key)
            continue
        if key == "default_sort":
            cfg.default_sort = _parse_sort(value, cfg.default_sort)
            continue
        setattr(cfg, key, value)
    return cfg


def _apply_env(cfg: EventFeedConfig) -> EventFeedConfig:
    return _apply_dict(cfg, get_env_overrides())
