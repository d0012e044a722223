from __future__ import annotations

from ._store import EventStore
from .types import (
    CUSTOM_EVENTS_KEY,
    PREFS_KEY,
    SAVE_COUNTS_KEY,
    SAVE_KEYS,
    SAVED_IDS_KEY,
    ChangeRecord,
)

__all__ = [
    "CUSTOM_EVENTS_KEY",
    "PREFS_KEY",
    "SAVE_COUNTS_KEY",
    "SAVE_KEYS",
    "SAVED_IDS_KEY",
    "ChangeRecord",
    "EventStore",
]
