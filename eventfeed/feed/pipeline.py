from __future__ import annotations

from collections.abc import Collection, Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Final

from ..models import ALLOWED_TAGS, Event, UserPrefs, normalize_tag
from ..query import matches
from ..store.utils import timestamp_or_infinity

VIEW_ALL: Final = "all"
VIEW_PERSONALIZED: Final = "personalized"
VIEW_MODES: Final = (VIEW_ALL, VIEW_PERSONALIZED)

LEVEL_ALL: Final = "all"

SORT_TRENDING: Final = "trending"
SORT_DATE: Final = "date"
SORT_MODES: Final = (SORT_TRENDING, SORT_DATE)

TAG_CLOUD_LIMIT: Final = 5
TRENDING_LIMIT: Final = 3


@dataclass(frozen=True)
class TagCount:
    tag: str
    count: int


@dataclass(frozen=True)
class TrendingEntry:
    event: Event
    count: int


@dataclass(frozen=True)
class FeedInputs:
    events: Sequence[Event]
    prefs: UserPrefs | None = None
    view_mode: str = VIEW_ALL
    level: str = LEVEL_ALL
    sort: str = SORT_TRENDING
    query: str = ""
    selected_tags: Sequence[str] = ()
    saved_ids: Collection[str] = field(default_factory=frozenset)
    save_counts: Mapping[str, int] = field(default_factory=dict)
    tag_cloud_limit: int = TAG_CLOUD_LIMIT
    trending_limit: int = TRENDING_LIMIT


@dataclass(frozen=True)
class FeedResult:
    base_pool: list[Event]
    tag_cloud: list[TagCount]
    trending: list[TrendingEntry]
    filtered: list[Event]


def _normalized_tags(tags: Iterable[str]) -> set[str]:
    return {n for n in (normalize_tag(t) for t in tags) if n}


def matches_preferences(event: Event, prefs: UserPrefs) -> bool:
    faculty_ok = event.open_to_all_faculties() or event.faculty == prefs.faculty
    if not faculty_ok:
        return False
    return not _normalized_tags(event.tags).isdisjoint(prefs.interest_set())


def base_pool(events: Sequence[Event], prefs: UserPrefs | None, view_mode: str) -> list[Event]:
    if not events:
        return []
    if view_mode == VIEW_PERSONALIZED and prefs is not None:
        return [e for e in events if matches_preferences(e, prefs)]
    return list(events)


def tag_cloud(
    pool: Iterable[Event],
    allowed: Sequence[str] = ALLOWED_TAGS,
    limit: int = TAG_CLOUD_LIMIT,
) -> list[TagCount]:
    """Count allow-listed tags in the pool, most frequent first.

    Ties keep the allow-list order and entries use the allow-list spelling.
    """
    canonical: dict[str, str] = {}
    for tag in allowed:
        canonical.setdefault(normalize_tag(tag), tag)
    order = {norm: index for index, norm in enumerate(canonical)}
    counts: dict[str, int] = {}
    for event in pool:
        for tag in event.tags:
            norm = normalize_tag(tag)
            if norm in canonical:
                counts[norm] = counts.get(norm, 0) + 1
    ranked = sorted(counts.items(), key=lambda item: (-item[1], order[item[0]]))
    return [TagCount(tag=canonical[norm], count=count) for norm, count in ranked[:limit]]


def trending(
    pool: Sequence[Event],
    save_counts: Mapping[str, int],
    limit: int = TRENDING_LIMIT,
) -> list[TrendingEntry]:
    if not pool:
        return []
    by_id: dict[str, Event] = {}
    for event in pool:
        by_id.setdefault(event.id, event)
    candidates = [
        (event_id, count)
        for event_id, count in save_counts.items()
        if count > 0 and event_id in by_id
    ]
    ranked = sorted(candidates, key=lambda item: (-item[1], item[0]))
    return [TrendingEntry(event=by_id[event_id], count=count) for event_id, count in ranked[:limit]]


def filter_by_level(events: Iterable[Event], level: str) -> list[Event]:
    if not level or level == LEVEL_ALL:
        return list(events)
    return [e for e in events if e.level == level]


def filter_by_tags(events: Iterable[Event], selected_tags: Iterable[str]) -> list[Event]:
    wanted = _normalized_tags(selected_tags)
    if not wanted:
        return list(events)
    return [e for e in events if not _normalized_tags(e.tags).isdisjoint(wanted)]


def filter_by_query(events: Iterable[Event], query: str) -> list[Event]:
    return [e for e in events if matches(e, query)]


def sort_events(events: Iterable[Event], sort: str, saved_ids: Collection[str]) -> list[Event]:
    if sort == SORT_DATE:
        return sorted(events, key=lambda e: timestamp_or_infinity(e.start))
    saved = set(saved_ids)
    return sorted(events, key=lambda e: (e.id not in saved, timestamp_or_infinity(e.start)))


def filter_and_sort(
    pool: Sequence[Event],
    *,
    level: str = LEVEL_ALL,
    selected_tags: Sequence[str] = (),
    query: str = "",
    sort: str = SORT_TRENDING,
    saved_ids: Collection[str] = frozenset(),
) -> list[Event]:
    visible = filter_by_level(pool, level)
    visible = filter_by_tags(visible, selected_tags)
    visible = filter_by_query(visible, query)
    return sort_events(visible, sort, saved_ids)


def saved_events(events: Iterable[Event], saved_ids: Collection[str]) -> list[Event]:
    """Saved events in catalog order; ids with no matching event are skipped."""
    saved = set(saved_ids)
    return [e for e in events if e.id in saved]


def compute_feed(inputs: FeedInputs) -> FeedResult:
    pool = base_pool(inputs.events, inputs.prefs, inputs.view_mode)
    return FeedResult(
        base_pool=pool,
        tag_cloud=tag_cloud(pool, limit=inputs.tag_cloud_limit),
        trending=trending(pool, inputs.save_counts, limit=inputs.trending_limit),
        filtered=filter_and_sort(
            pool,
            level=inputs.level,
            selected_tags=inputs.selected_tags,
            query=inputs.query,
            sort=inputs.sort,
            saved_ids=inputs.saved_ids,
        ),
    )
