from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import replace
from typing import TYPE_CHECKING, Any
from uuid import uuid4

from ..models import Event
from .types import CUSTOM_EVENTS_KEY

if TYPE_CHECKING:
    from ._store import EventStore

logger = logging.getLogger(__name__)


def get_custom_events(store: EventStore) -> list[Event]:
    raw = store.read_value(CUSTOM_EVENTS_KEY)
    if not isinstance(raw, list):
        return []
    events: list[Event] = []
    for item in raw:
        if not isinstance(item, dict):
            continue
        try:
            event = Event.from_dict(item)
        except ValueError:
            logger.warning("skipping malformed custom event: %r", item)
            continue
        events.append(replace(event, is_custom=True))
    return events


def add_custom_event(
    store: EventStore,
    *,
    title: str,
    description: str = "",
    organizer: str = "",
    location: str = "",
    url: str | None = None,
    level: str | None = None,
    faculty: str | None = None,
    tags: Iterable[str] = (),
    start: str | None = None,
    end: str | None = None,
) -> Event:
    if not title or not title.strip():
        raise ValueError("Custom events need a title.")
    payload: dict[str, Any] = {
        "id": f"custom-{uuid4().hex[:12]}",
        "title": title.strip(),
        "description": description,
        "organizer": organizer,
        "location": location,
        "url": url,
        "level": level,
        "faculty": faculty,
        "tags": [t.strip() for t in tags if t and t.strip()],
        "start": start,
        "end": end,
        "isCustom": True,
    }
    event = Event.from_dict(payload)
    existing = store.read_value(CUSTOM_EVENTS_KEY)
    items = existing if isinstance(existing, list) else []
    # Newest first, matching how custom events are prepended to the catalog.
    store.store_values({CUSTOM_EVENTS_KEY: [event.to_dict(), *items]})
    return event
