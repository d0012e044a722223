from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Sequence
from typing import Any, TypeVar

from ..catalog import CatalogError, merge_events
from ..models import LEVELS, Event, UserPrefs, normalize_tag
from ..store import CUSTOM_EVENTS_KEY, PREFS_KEY, SAVE_KEYS, EventStore
from . import pipeline
from .pipeline import (
    LEVEL_ALL,
    SORT_MODES,
    SORT_TRENDING,
    TAG_CLOUD_LIMIT,
    TRENDING_LIMIT,
    VIEW_ALL,
    VIEW_MODES,
    VIEW_PERSONALIZED,
    FeedResult,
    TagCount,
    TrendingEntry,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

CatalogLoader = Callable[[], Iterable[Event]]


class FeedView:
    """One open feed: selection state plus lazily recomputed derived lists.

    Each derived list is cached against the inputs it reads and only
    recomputed when one of them changes. Every committed save toggle on the
    store, from this view or any other, bumps ``version``, which invalidates
    trending and the sorted list.
    """

    def __init__(
        self,
        store: EventStore,
        *,
        tag_cloud_limit: int = TAG_CLOUD_LIMIT,
        trending_limit: int = TRENDING_LIMIT,
        default_sort: str = SORT_TRENDING,
    ) -> None:
        if default_sort not in SORT_MODES:
            raise ValueError(f"Unknown sort '{default_sort}'")
        self.store = store
        self.tag_cloud_limit = tag_cloud_limit
        self.trending_limit = trending_limit
        self._default_sort = default_sort

        self._prefs = store.get_preferences()
        self.view_mode = VIEW_PERSONALIZED if self._prefs else VIEW_ALL
        self.level = LEVEL_ALL
        self.sort = default_sort
        self.query = ""
        self.selected_tags: tuple[str, ...] = ()

        self._catalog: tuple[Event, ...] = ()
        self._custom: tuple[Event, ...] = ()
        self._events: tuple[Event, ...] = ()
        self.loading = False
        self.error = ""
        self.version = 0
        self._explicit_all = False
        self._memo: dict[str, tuple[tuple[Any, ...], Any]] = {}
        self._unsubscribes = [
            store.on_preferences_saved(self._on_preferences_saved),
            store.on_external_change(self._on_external_change),
            store.on_local_change(self._on_local_change),
        ]

    def __enter__(self) -> FeedView:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        for unsubscribe in self._unsubscribes:
            unsubscribe()
        self._unsubscribes = []

    # inputs

    @property
    def prefs(self) -> UserPrefs | None:
        return self._prefs

    @property
    def events(self) -> tuple[Event, ...]:
        return self._events

    def load(self, loader: CatalogLoader) -> bool:
        """Load the catalog and merge in local custom events.

        A failed load leaves ``error`` set and the feed showing custom events only.
        """
        self.loading = True
        self.error = ""
        catalog: list[Event] = []
        try:
            catalog = list(loader())
        except CatalogError as exc:
            self.error = str(exc) or "Failed to load events"
            logger.warning("catalog load failed: %s", self.error)
        finally:
            self.loading = False
        self._catalog = tuple(catalog)
        self._refresh_custom_events()
        return not self.error

    def set_events(self, events: Iterable[Event]) -> None:
        self._catalog = tuple(events)
        self._refresh_custom_events()

    def set_view_mode(self, mode: str) -> None:
        if mode not in VIEW_MODES:
            raise ValueError(f"Unknown view mode '{mode}'")
        self._explicit_all = mode == VIEW_ALL and self._prefs is not None
        self.view_mode = mode

    def set_level(self, level: str) -> None:
        if level != LEVEL_ALL and level not in LEVELS:
            raise ValueError(f"Unknown level '{level}'")
        self.level = level

    def set_sort(self, sort: str) -> None:
        if sort not in SORT_MODES:
            raise ValueError(f"Unknown sort '{sort}'")
        self.sort = sort

    def set_query(self, query: str) -> None:
        self.query = query or ""

    def set_selected_tags(self, tags: Iterable[str]) -> None:
        picked: list[str] = []
        for tag in tags:
            if tag and tag not in picked:
                picked.append(tag)
        self.selected_tags = tuple(picked)

    def toggle_tag(self, tag: str) -> None:
        if tag in self.selected_tags:
            self.selected_tags = tuple(t for t in self.selected_tags if t != tag)
        else:
            self.selected_tags = (*self.selected_tags, tag)

    def clear_filters(self) -> None:
        self.level = LEVEL_ALL
        self.sort = self._default_sort
        self.query = ""
        self.selected_tags = ()

    # saves

    def toggle_saved(self, event_id: str) -> None:
        self.store.toggle_saved(event_id)

    def is_saved(self, event_id: str) -> bool:
        return event_id in self._save_state()[0]

    # derived values

    @property
    def base_pool(self) -> list[Event]:
        return self._derive(
            "base_pool",
            (self._events, self._prefs, self.view_mode),
            lambda: pipeline.base_pool(self._events, self._prefs, self.view_mode),
        )

    @property
    def tag_cloud(self) -> list[TagCount]:
        pool = self.base_pool
        return self._derive(
            "tag_cloud",
            (pool, self.tag_cloud_limit),
            lambda: pipeline.tag_cloud(pool, limit=self.tag_cloud_limit),
        )

    @property
    def trending(self) -> list[TrendingEntry]:
        pool = self.base_pool
        return self._derive(
            "trending",
            (pool, self.version, self.trending_limit),
            lambda: pipeline.trending(pool, self._save_state()[1], limit=self.trending_limit),
        )

    @property
    def filtered(self) -> list[Event]:
        pool = self.base_pool
        return self._derive(
            "filtered",
            (pool, self.level, self.sort, self.query, self.selected_tags, self.version),
            lambda: pipeline.filter_and_sort(
                pool,
                level=self.level,
                selected_tags=self.selected_tags,
                query=self.query,
                sort=self.sort,
                saved_ids=self._save_state()[0],
            ),
        )

    @property
    def saved_events(self) -> list[Event]:
        return self._derive(
            "saved_events",
            (self._events, self.version),
            lambda: pipeline.saved_events(self._events, self._save_state()[0]),
        )

    def result(self) -> FeedResult:
        return FeedResult(
            base_pool=self.base_pool,
            tag_cloud=self.tag_cloud,
            trending=self.trending,
            filtered=self.filtered,
        )

    @property
    def heading(self) -> str:
        if self.view_mode == VIEW_PERSONALIZED:
            if self._prefs is None:
                return "Personalized (set your profile in Onboarding)"
            return f"Personalized for {self._prefs.faculty} · {', '.join(self._prefs.interests)}"
        return "All events"

    def is_tag_selected(self, tag: str) -> bool:
        norm = normalize_tag(tag)
        return any(normalize_tag(t) == norm for t in self.selected_tags)

    # change notifications

    def _on_preferences_saved(self, prefs: UserPrefs | None) -> None:
        self._apply_preferences(prefs)

    def _on_external_change(self, key: str) -> None:
        if key == PREFS_KEY:
            self._apply_preferences(self.store.get_preferences())
        elif key in SAVE_KEYS:
            self.version += 1
        elif key == CUSTOM_EVENTS_KEY:
            self._refresh_custom_events()

    def _on_local_change(self, keys: tuple[str, ...]) -> None:
        # Preferences arrive through the push channel.
        if not SAVE_KEYS.isdisjoint(keys):
            self.version += 1
        if CUSTOM_EVENTS_KEY in keys:
            self._refresh_custom_events()

    def _apply_preferences(self, prefs: UserPrefs | None) -> None:
        previous = self._prefs
        self._prefs = prefs
        first_time = previous is None and prefs is not None
        if first_time and self.view_mode == VIEW_ALL and not self._explicit_all:
            logger.debug("preferences set; switching feed to personalized")
            self.view_mode = VIEW_PERSONALIZED

    def _refresh_custom_events(self) -> None:
        self._custom = tuple(self.store.get_custom_events())
        self._events = tuple(merge_events(self._custom, self._catalog))

    def _save_state(self) -> tuple[frozenset[str], dict[str, int]]:
        return self._derive(
            "save_state",
            (self.version,),
            lambda: (frozenset(self.store.get_saved_ids()), self.store.get_save_counts()),
        )

    def _derive(self, name: str, deps: tuple[Any, ...], compute: Callable[[], T]) -> T:
        cached = self._memo.get(name)
        if cached is not None and _same_deps(cached[0], deps):
            return cached[1]
        value = compute()
        self._memo[name] = (deps, value)
        return value


def _same_deps(previous: Sequence[Any], current: Sequence[Any]) -> bool:
    if len(previous) != len(current):
        return False
    return all(a is b or a == b for a, b in zip(previous, current, strict=True))
