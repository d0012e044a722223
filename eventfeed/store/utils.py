from __future__ import annotations

import datetime as dt
import math


def now_iso() -> str:
    return dt.datetime.now(dt.UTC).isoformat()


def parse_iso8601(value: str) -> dt.datetime | None:
    raw = value.strip()
    if not raw:
        return None
    if raw.endswith("Z"):
        raw = raw[:-1] + "+00:00"
    try:
        parsed = dt.datetime.fromisoformat(raw)
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=dt.UTC)
        return parsed.astimezone(dt.UTC)
    except (ValueError, OverflowError):
        return None


def timestamp_or_infinity(value: str | None) -> float:
    """Sort key for start times; missing or unparseable values sort last."""
    if not value:
        return math.inf
    parsed = parse_iso8601(value)
    if parsed is None:
        return math.inf
    try:
        return parsed.timestamp()
    except (ValueError, OverflowError):
        return math.inf
