from __future__ import annotations

from collections.abc import Callable
from typing import TypedDict

from ..models import UserPrefs

PREFS_KEY = "user_prefs"
SAVED_IDS_KEY = "saved_ids"
SAVE_COUNTS_KEY = "save_counts"
CUSTOM_EVENTS_KEY = "custom_events"

SAVE_KEYS = frozenset({SAVED_IDS_KEY, SAVE_COUNTS_KEY})

PreferencesListener = Callable[[UserPrefs | None], None]
ChangeListener = Callable[[str], None]
LocalChangeListener = Callable[[tuple[str, ...]], None]
Unsubscribe = Callable[[], None]


class ChangeRecord(TypedDict):
    rev: int
    key: str
    context_id: str
    changed_at: str
