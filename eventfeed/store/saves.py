from __future__ import annotations

import logging
import sqlite3
from typing import TYPE_CHECKING, Any

from .types import SAVE_COUNTS_KEY, SAVED_IDS_KEY

if TYPE_CHECKING:
    from ._store import EventStore

logger = logging.getLogger(__name__)


def coerce_saved_ids(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    ids: list[str] = []
    for item in value:
        if isinstance(item, str) and item and item not in ids:
            ids.append(item)
    return ids


def coerce_save_counts(value: Any) -> dict[str, int]:
    if not isinstance(value, dict):
        return {}
    counts: dict[str, int] = {}
    for key, count in value.items():
        if not isinstance(key, str) or isinstance(count, bool) or not isinstance(count, int):
            continue
        counts[key] = max(0, count)
    return counts


def get_saved_ids(store: EventStore) -> set[str]:
    return set(coerce_saved_ids(store.read_value(SAVED_IDS_KEY)))


def get_save_counts(store: EventStore) -> dict[str, int]:
    return coerce_save_counts(store.read_value(SAVE_COUNTS_KEY))


def toggle_saved(store: EventStore, event_id: str) -> bool:
    conn = store.conn
    try:
        conn.execute("BEGIN IMMEDIATE")
        saved = coerce_saved_ids(store.read_value(SAVED_IDS_KEY, quiet=False))
        counts = coerce_save_counts(store.read_value(SAVE_COUNTS_KEY, quiet=False))
        current = counts.get(event_id, 0)
        if event_id in saved:
            saved.remove(event_id)
            counts[event_id] = max(0, current - 1)
        else:
            saved.append(event_id)
            counts[event_id] = current + 1
        store.write_values({SAVED_IDS_KEY: saved, SAVE_COUNTS_KEY: counts})
        conn.commit()
    except sqlite3.Error as exc:
        if conn.in_transaction:
            conn.rollback()
        logger.warning("save toggle failed for %s", event_id, exc_info=exc)
        return False
    return True
