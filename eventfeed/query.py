from __future__ import annotations

from .models import Event


def query_tokens(query: str | None) -> list[str]:
    if not query:
        return []
    return query.lower().split()


def searchable_text(event: Event) -> str:
    parts = [
        event.title or "",
        event.description or "",
        event.organizer or "",
        event.location or "",
        *(event.tags or ()),
    ]
    return " ".join(parts).lower()


def matches(event: Event, query: str | None) -> bool:
    """True when every whitespace-separated token of ``query`` occurs in the event text."""
    tokens = query_tokens(query)
    if not tokens:
        return True
    haystack = searchable_text(event)
    return all(token in haystack for token in tokens)
