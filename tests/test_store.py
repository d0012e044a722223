import sqlite3
from pathlib import Path

import pytest

from eventfeed import db
from eventfeed.models import UserPrefs
from eventfeed.store import (
    CUSTOM_EVENTS_KEY,
    PREFS_KEY,
    SAVE_COUNTS_KEY,
    SAVED_IDS_KEY,
    EventStore,
)


def _raw_write(db_path: Path, key: str, value_json: str) -> None:
    conn = sqlite3.connect(db_path)
    try:
        conn.execute(
            "INSERT OR REPLACE INTO kv(key, value_json, updated_at) VALUES (?, ?, 'now')",
            (key, value_json),
        )
        conn.commit()
    finally:
        conn.close()


def test_preferences_absent_by_default(store: EventStore) -> None:
    assert store.get_preferences() is None
    assert store.get_saved_ids() == set()
    assert store.get_save_counts() == {}
    assert store.get_custom_events() == []


def test_save_preferences_overwrites(store: EventStore) -> None:
    store.save_preferences(UserPrefs(name="Alex", faculty="Science", interests=("ai", "robotics")))
    store.save_preferences(UserPrefs(name="Sam", faculty="Arts", interests=("climate", "social")))

    prefs = store.get_preferences()
    assert prefs == UserPrefs(name="Sam", faculty="Arts", interests=("climate", "social"))


def test_preferences_survive_reopen(db_path: Path) -> None:
    with EventStore(db_path) as first:
        first.save_preferences(UserPrefs(name="Alex", faculty="Law", interests=("finance", "ai")))
    with EventStore(db_path) as second:
        assert second.get_preferences() == UserPrefs(
            name="Alex", faculty="Law", interests=("finance", "ai")
        )


def test_toggle_saved_updates_membership_and_count(store: EventStore) -> None:
    store.toggle_saved("evt-1")
    assert store.get_saved_ids() == {"evt-1"}
    assert store.get_save_counts() == {"evt-1": 1}
    assert store.is_saved("evt-1")

    store.toggle_saved("evt-1")
    assert store.get_saved_ids() == set()
    assert store.get_save_counts() == {"evt-1": 0}
    assert not store.is_saved("evt-1")


def test_double_toggle_restores_state(store: EventStore) -> None:
    store.toggle_saved("a")
    store.toggle_saved("b")
    before_ids = store.get_saved_ids()
    before_count = store.get_save_counts()["a"]

    store.toggle_saved("a")
    store.toggle_saved("a")

    assert store.get_saved_ids() == before_ids
    assert store.get_save_counts()["a"] == before_count


def test_counts_never_go_negative(store: EventStore, db_path: Path) -> None:
    # Saved but with a missing counter, e.g. written by an older build.
    _raw_write(db_path, SAVED_IDS_KEY, '["x"]')
    store.toggle_saved("x")
    assert store.get_save_counts()["x"] == 0
    for _ in range(5):
        store.toggle_saved("y")
    assert all(count >= 0 for count in store.get_save_counts().values())


def test_toggle_is_visible_to_other_store_on_same_file(db_path: Path) -> None:
    with EventStore(db_path, context_id="a") as a, EventStore(db_path, context_id="b") as b:
        a.toggle_saved("evt")
        assert b.get_saved_ids() == {"evt"}
        b.toggle_saved("evt")
        assert a.get_save_counts() == {"evt": 0}
        assert a.get_saved_ids() == set()


def test_corrupt_values_read_as_absent(store: EventStore, db_path: Path) -> None:
    _raw_write(db_path, PREFS_KEY, "{not json")
    _raw_write(db_path, SAVED_IDS_KEY, '{"oops": true}')
    _raw_write(db_path, SAVE_COUNTS_KEY, '{"a": "many", "b": 2, "c": -4, "d": true}')
    _raw_write(db_path, CUSTOM_EVENTS_KEY, '"nope"')

    assert store.get_preferences() is None
    assert store.get_saved_ids() == set()
    assert store.get_save_counts() == {"b": 2, "c": 0}
    assert store.get_custom_events() == []


def test_preferences_with_wrong_shape_read_as_absent(store: EventStore, db_path: Path) -> None:
    _raw_write(db_path, PREFS_KEY, '{"name": "Alex", "faculty": 3, "interests": []}')
    assert store.get_preferences() is None


def test_toggle_recovers_from_corrupt_saved_list(store: EventStore, db_path: Path) -> None:
    _raw_write(db_path, SAVED_IDS_KEY, "[[[")
    store.toggle_saved("evt")
    assert store.get_saved_ids() == {"evt"}


def test_custom_events_are_prepended_and_flagged(store: EventStore) -> None:
    first = store.add_custom_event(title="Board games", tags=["social", " "])
    second = store.add_custom_event(title="Study jam", faculty="Science", start="2025-03-01")

    customs = store.get_custom_events()
    assert [e.id for e in customs] == [second.id, first.id]
    assert all(e.is_custom for e in customs)
    assert customs[1].tags == ("social",)
    assert first.id.startswith("custom-")


def test_custom_event_requires_title(store: EventStore) -> None:
    with pytest.raises(ValueError, match="title"):
        store.add_custom_event(title="   ")


def test_malformed_custom_entries_are_skipped(store: EventStore, db_path: Path) -> None:
    _raw_write(
        db_path,
        CUSTOM_EVENTS_KEY,
        '[{"title": "no id"}, 5, {"id": "c1", "title": "Ok", "isCustom": false}]',
    )
    customs = store.get_custom_events()
    assert [e.id for e in customs] == ["c1"]
    assert customs[0].is_custom


def test_change_log_is_pruned(store: EventStore, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(db, "CHANGE_LOG_KEEP", 5)
    for i in range(12):
        store.toggle_saved(f"e{i}")
    count = store.conn.execute("SELECT COUNT(*) FROM kv_changes").fetchone()[0]
    assert count <= 6


def test_json_helpers_keep_text_and_reject_garbage() -> None:
    assert db.to_json({"title": "café"}) == '{"title": "café"}'
    assert db.from_json('{"a": 1}') == {"a": 1}
    assert db.from_json("{broken") is None
    assert db.from_json(None) is None
