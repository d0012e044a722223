from __future__ import annotations

import json
import logging
from collections.abc import Iterable
from pathlib import Path

from .models import Event

logger = logging.getLogger(__name__)


class CatalogError(RuntimeError):
    pass


def parse_events(data: object) -> list[Event]:
    if isinstance(data, dict):
        data = data.get("events")
    if not isinstance(data, list):
        raise CatalogError("event catalog must be a list of events")
    events: list[Event] = []
    for index, item in enumerate(data):
        if not isinstance(item, dict):
            raise CatalogError(f"event #{index} is not an object")
        try:
            events.append(Event.from_dict(item))
        except ValueError as exc:
            raise CatalogError(f"event #{index}: {exc}") from exc
    return events


def load_events(path: Path | str) -> list[Event]:
    catalog_path = Path(path).expanduser()
    try:
        raw = catalog_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise CatalogError(f"could not read {catalog_path}: {exc.strerror or exc}") from exc
    except UnicodeDecodeError as exc:
        raise CatalogError(f"catalog {catalog_path} is not valid utf-8") from exc
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise CatalogError(f"invalid catalog json in {catalog_path}") from exc
    return parse_events(data)


def merge_events(custom: Iterable[Event], catalog: Iterable[Event]) -> list[Event]:
    """Custom events first; when ids collide the first occurrence wins."""
    merged: list[Event] = []
    seen: set[str] = set()
    for event in [*custom, *catalog]:
        if event.id in seen:
            logger.debug("dropping event %s shadowed by an earlier one", event.id)
            continue
        seen.add(event.id)
        merged.append(event)
    return merged
