from __future__ import annotations

import logging
import sqlite3
from collections.abc import Mapping
from pathlib import Path
from typing import Any
from uuid import uuid4

from .. import db
from ..models import Event, UserPrefs
from . import custom_events as store_custom_events
from . import saves as store_saves
from .types import (
    PREFS_KEY,
    SAVE_COUNTS_KEY,
    SAVED_IDS_KEY,
    ChangeListener,
    ChangeRecord,
    LocalChangeListener,
    PreferencesListener,
    Unsubscribe,
)
from .utils import now_iso

logger = logging.getLogger(__name__)


class EventStore:
    """Durable preference and save state for one context.

    Several stores (one per context) may share a database file. Writes made
    through one store reach the others via ``poll_external_changes``.
    """

    def __init__(
        self,
        db_path: Path | str = db.DEFAULT_DB_PATH,
        *,
        context_id: str | None = None,
        check_same_thread: bool = True,
    ):
        self.db_path = Path(db_path).expanduser()
        self.context_id = context_id or f"ctx-{uuid4().hex[:12]}"
        self.conn = db.connect(self.db_path, check_same_thread=check_same_thread)
        db.initialize_schema(self.conn)
        self._preference_listeners: list[PreferencesListener] = []
        self._change_listeners: list[ChangeListener] = []
        self._local_listeners: list[LocalChangeListener] = []
        self._last_seen_rev = self._max_rev()

    def __enter__(self) -> EventStore:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        self._preference_listeners.clear()
        self._change_listeners.clear()
        self._local_listeners.clear()
        self.conn.close()

    # raw key/value access

    def read_value(self, key: str, *, quiet: bool = True) -> Any:
        try:
            row = self.conn.execute("SELECT value_json FROM kv WHERE key = ?", (key,)).fetchone()
        except sqlite3.Error as exc:
            if not quiet:
                raise
            logger.warning("store read failed for %s", key, exc_info=exc)
            return None
        if row is None:
            return None
        value = db.from_json(row["value_json"])
        if value is None:
            logger.warning("store value for %s is unreadable; treating as absent", key)
        return value

    def write_values(self, values: Mapping[str, Any]) -> None:
        """Stage writes in the current transaction; a None value deletes the key."""
        now = now_iso()
        for key, value in values.items():
            if value is None:
                self.conn.execute("DELETE FROM kv WHERE key = ?", (key,))
            else:
                self.conn.execute(
                    """
                    INSERT INTO kv(key, value_json, updated_at) VALUES (?, ?, ?)
                    ON CONFLICT(key) DO UPDATE SET
                        value_json = excluded.value_json,
                        updated_at = excluded.updated_at
                    """,
                    (key, db.to_json(value), now),
                )
            self.conn.execute(
                "INSERT INTO kv_changes(key, context_id, changed_at) VALUES (?, ?, ?)",
                (key, self.context_id, now),
            )
        self.conn.execute(
            "DELETE FROM kv_changes WHERE rev <= (SELECT MAX(rev) FROM kv_changes) - ?",
            (db.CHANGE_LOG_KEEP,),
        )

    def store_values(self, values: Mapping[str, Any]) -> bool:
        try:
            with self.conn:
                self.write_values(values)
        except sqlite3.Error as exc:
            logger.warning("store write failed for %s", ", ".join(values), exc_info=exc)
            return False
        self._notify_local(tuple(values))
        return True

    # preferences

    def get_preferences(self) -> UserPrefs | None:
        raw = self.read_value(PREFS_KEY)
        if not isinstance(raw, dict):
            return None
        try:
            return UserPrefs.from_dict(raw)
        except ValueError:
            logger.warning("stored preferences are malformed; treating as absent")
            return None

    def save_preferences(self, prefs: UserPrefs) -> None:
        self.store_values({PREFS_KEY: prefs.to_dict()})
        self._notify_preferences(prefs)

    def clear_preferences(self) -> None:
        self.store_values({PREFS_KEY: None})
        self._notify_preferences(None)

    # saves

    def get_saved_ids(self) -> set[str]:
        return store_saves.get_saved_ids(self)

    def get_save_counts(self) -> dict[str, int]:
        return store_saves.get_save_counts(self)

    def is_saved(self, event_id: str) -> bool:
        return event_id in self.get_saved_ids()

    def toggle_saved(self, event_id: str) -> None:
        if store_saves.toggle_saved(self, event_id):
            self._notify_local((SAVED_IDS_KEY, SAVE_COUNTS_KEY))

    # custom events

    def get_custom_events(self) -> list[Event]:
        return store_custom_events.get_custom_events(self)

    def add_custom_event(self, **fields: Any) -> Event:
        return store_custom_events.add_custom_event(self, **fields)

    # notification channels

    def on_preferences_saved(self, listener: PreferencesListener) -> Unsubscribe:
        self._preference_listeners.append(listener)
        return lambda: _discard(self._preference_listeners, listener)

    def on_external_change(self, listener: ChangeListener) -> Unsubscribe:
        self._change_listeners.append(listener)
        return lambda: _discard(self._change_listeners, listener)

    def on_local_change(self, listener: LocalChangeListener) -> Unsubscribe:
        """Subscribe to writes committed through this store.

        The listener gets the keys written together, once per commit.
        """
        self._local_listeners.append(listener)
        return lambda: _discard(self._local_listeners, listener)

    def _changes_since(self, rev: int) -> list[ChangeRecord]:
        try:
            rows = self.conn.execute(
                "SELECT rev, key, context_id, changed_at FROM kv_changes "
                "WHERE rev > ? ORDER BY rev",
                (rev,),
            ).fetchall()
        except sqlite3.Error as exc:
            logger.warning("change log read failed", exc_info=exc)
            return []
        return [
            ChangeRecord(
                rev=int(row["rev"]),
                key=str(row["key"]),
                context_id=str(row["context_id"]),
                changed_at=str(row["changed_at"]),
            )
            for row in rows
        ]

    def pending_external_changes(self) -> list[ChangeRecord]:
        return [
            change
            for change in self._changes_since(self._last_seen_rev)
            if change["context_id"] != self.context_id
        ]

    def poll_external_changes(self) -> list[str]:
        """Signal keys changed by other contexts since the last poll.

        Listeners get only the key name and are expected to re-read the store.
        Changes written by this context are skipped.
        """
        changes = self._changes_since(self._last_seen_rev)
        if not changes:
            return []
        self._last_seen_rev = changes[-1]["rev"]
        keys: list[str] = []
        for change in changes:
            if change["context_id"] != self.context_id and change["key"] not in keys:
                keys.append(change["key"])
        for key in keys:
            for listener in list(self._change_listeners):
                try:
                    listener(key)
                except Exception:
                    logger.exception("external change listener failed for %s", key)
        return keys

    def _notify_preferences(self, prefs: UserPrefs | None) -> None:
        for listener in list(self._preference_listeners):
            try:
                listener(prefs)
            except Exception:
                logger.exception("preferences listener failed")

    def _notify_local(self, keys: tuple[str, ...]) -> None:
        for listener in list(self._local_listeners):
            try:
                listener(keys)
            except Exception:
                logger.exception("local change listener failed for %s", ", ".join(keys))

    def _max_rev(self) -> int:
        try:
            row = self.conn.execute("SELECT MAX(rev) AS rev FROM kv_changes").fetchone()
        except sqlite3.Error as exc:
            logger.warning("change log read failed", exc_info=exc)
            return 0
        if row is None or row["rev"] is None:
            return 0
        return int(row["rev"])


def _discard(listeners: list[Any], listener: Any) -> None:
    if listener in listeners:
        listeners.remove(listener)

