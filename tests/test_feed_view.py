from pathlib import Path

import pytest

from eventfeed.catalog import CatalogError, load_events
from eventfeed.feed import FeedView
from eventfeed.models import Event, UserPrefs
from eventfeed.store import EventStore


def _ids(events: list[Event]) -> list[str]:
    return [e.id for e in events]


def _view(store: EventStore, events: list[Event]) -> FeedView:
    view = FeedView(store)
    view.set_events(events)
    return view


def test_defaults_without_prefs(store: EventStore, events: list[Event]) -> None:
    view = _view(store, events)
    assert view.view_mode == "all"
    assert view.level == "all"
    assert view.sort == "trending"
    assert view.query == ""
    assert view.selected_tags == ()
    assert view.heading == "All events"


def test_defaults_to_personalized_when_prefs_exist(store: EventStore, events: list[Event]) -> None:
    store.save_preferences(UserPrefs(name="Alex", faculty="Science", interests=("ai", "robotics")))
    view = _view(store, events)
    assert view.view_mode == "personalized"
    assert view.heading == "Personalized for Science · ai, robotics"
    assert _ids(view.base_pool) == ["1", "4"]


def test_personalized_heading_without_prefs(store: EventStore, events: list[Event]) -> None:
    view = _view(store, events)
    view.set_view_mode("personalized")
    assert view.heading == "Personalized (set your profile in Onboarding)"
    assert len(view.base_pool) == 4


def test_toggle_saved_reorders_trending_sort(store: EventStore) -> None:
    view = _view(
        store,
        [
            Event(id="1", title="AI Hackathon", tags=("ai", "hackathon"), start="2025-01-10"),
            Event(id="2", title="Design Talk", tags=("design",)),
        ],
    )
    view.set_sort("date")
    assert _ids(view.filtered) == ["1", "2"]

    view.toggle_saved("2")
    view.set_sort("trending")
    assert _ids(view.filtered) == ["2", "1"]
    assert view.is_saved("2")
    assert [(t.event.id, t.count) for t in view.trending] == [("2", 1)]


def test_version_bumps_on_every_toggle(store: EventStore, events: list[Event]) -> None:
    view = _view(store, events)
    assert view.trending == []
    view.toggle_saved("3")
    view.toggle_saved("3")
    assert view.version == 2
    assert view.trending == []
    assert store.get_save_counts() == {"3": 0}


def test_derived_values_are_cached_until_inputs_change(
    store: EventStore, events: list[Event]
) -> None:
    view = _view(store, events)
    first = view.filtered
    assert view.filtered is first
    view.set_query("workshop")
    second = view.filtered
    assert second is not first
    assert _ids(second) == ["3"]
    pool = view.base_pool
    view.set_level("beginner")
    assert view.base_pool is pool


def test_clear_filters_keeps_view_mode(store: EventStore, events: list[Event]) -> None:
    view = _view(store, events)
    view.set_view_mode("personalized")
    view.set_level("advanced")
    view.set_sort("date")
    view.set_query("pm")
    view.toggle_tag("ai")

    view.clear_filters()

    assert view.view_mode == "personalized"
    assert (view.level, view.sort, view.query, view.selected_tags) == ("all", "trending", "", ())


def test_toggle_tag_adds_and_removes(store: EventStore, events: list[Event]) -> None:
    view = _view(store, events)
    view.toggle_tag("ai")
    view.toggle_tag("hackathon")
    assert view.selected_tags == ("ai", "hackathon")
    assert view.is_tag_selected("AI")
    view.toggle_tag("ai")
    assert view.selected_tags == ("hackathon",)
    assert _ids(view.filtered) == ["1"]


def test_invalid_selection_values_raise(store: EventStore) -> None:
    view = FeedView(store)
    with pytest.raises(ValueError):
        view.set_view_mode("mine")
    with pytest.raises(ValueError):
        view.set_level("expert")
    with pytest.raises(ValueError):
        view.set_sort("random")


def test_custom_events_shadow_catalog_ids(store: EventStore) -> None:
    custom = store.add_custom_event(title="My meetup", tags=["social"])
    view = FeedView(store)
    view.set_events([Event(id="c1", title="Catalog"), Event(id=custom.id, title="Clash")])
    assert _ids(list(view.events)) == [custom.id, "c1"]
    assert view.events[0].title == "My meetup"
    assert view.events[0].is_custom


def test_load_failure_keeps_custom_events(store: EventStore) -> None:
    custom = store.add_custom_event(title="Only local")

    def _broken_loader() -> list[Event]:
        raise CatalogError("catalog offline")

    view = FeedView(store)
    assert view.load(_broken_loader) is False
    assert view.error == "catalog offline"
    assert not view.loading
    assert _ids(view.filtered) == [custom.id]


def test_undecodable_catalog_surfaces_error(store: EventStore, tmp_path: Path) -> None:
    custom = store.add_custom_event(title="Only local")
    path = tmp_path / "events.json"
    path.write_bytes(b'[{"id":"1","title":"caf\xe9"}]')

    view = FeedView(store)
    assert view.load(lambda: load_events(path)) is False
    assert "utf-8" in view.error
    assert _ids(view.filtered) == [custom.id]


def test_load_success(store: EventStore, events: list[Event]) -> None:
    view = FeedView(store)
    assert view.load(lambda: events) is True
    assert view.error == ""
    assert len(view.events) == 4


def test_saved_events_skip_stale_ids(store: EventStore, events: list[Event]) -> None:
    store.toggle_saved("removed-event")
    view = _view(store, events)
    view.toggle_saved("3")
    assert _ids(view.saved_events) == ["3"]


def test_in_process_prefs_switch_all_view_to_personalized(
    store: EventStore, events: list[Event]
) -> None:
    view = _view(store, events)
    assert view.view_mode == "all"
    store.save_preferences(UserPrefs(name="Alex", faculty="Arts", interests=("design", "ai")))
    assert view.view_mode == "personalized"
    assert view.prefs is not None
    assert _ids(view.base_pool) == ["1", "2", "4"]


def test_explicit_all_choice_is_respected(store: EventStore, events: list[Event]) -> None:
    store.save_preferences(UserPrefs(name="Alex", faculty="Arts", interests=("design", "ai")))
    view = _view(store, events)
    view.set_view_mode("all")
    store.save_preferences(UserPrefs(name="Alex", faculty="Law", interests=("finance", "ai")))
    assert view.view_mode == "all"
    assert view.prefs is not None and view.prefs.faculty == "Law"

    store.clear_preferences()
    store.save_preferences(UserPrefs(name="Alex", faculty="Law", interests=("finance", "ai")))
    assert view.view_mode == "all"


def test_prefs_update_recomputes_personalized_pool(
    store: EventStore, events: list[Event]
) -> None:
    store.save_preferences(UserPrefs(name="Alex", faculty="Science", interests=("ai", "x")))
    view = _view(store, events)
    assert _ids(view.base_pool) == ["1", "4"]
    store.save_preferences(UserPrefs(name="Alex", faculty="Science", interests=("workshops", "x")))
    assert _ids(view.base_pool) == ["3"]


def test_closed_view_stops_listening(store: EventStore, events: list[Event]) -> None:
    view = _view(store, events)
    view.close()
    store.save_preferences(UserPrefs(name="Alex", faculty="Arts", interests=("design", "ai")))
    assert view.prefs is None
    assert view.view_mode == "all"


def test_view_over_reopened_store(db_path: Path, events: list[Event]) -> None:
    with EventStore(db_path) as first:
        first.toggle_saved("1")
        first.toggle_saved("4")
    with EventStore(db_path) as second:
        view = _view(second, events)
        assert _ids(view.filtered) == ["1", "4", "3", "2"]


def test_view_context_stops_listening_after_error(
    store: EventStore, events: list[Event]
) -> None:
    with pytest.raises(ValueError):
        with _view(store, events) as view:
            view.set_sort("random")
    store.save_preferences(UserPrefs(name="Alex", faculty="Arts", interests=("design", "ai")))
    store.toggle_saved("1")
    assert view.prefs is None
    assert view.version == 0


def test_result_bundles_derived_lists(store: EventStore, events: list[Event]) -> None:
    view = _view(store, events)
    view.toggle_saved("3")
    result = view.result()
    assert result.base_pool is view.base_pool
    assert result.filtered is view.filtered
    assert [t.event.id for t in result.trending] == ["3"]
    assert result.tag_cloud == view.tag_cloud
