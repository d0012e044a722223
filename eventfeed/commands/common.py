from __future__ import annotations

from typing import Any

import typer
from rich import print
from rich.markup import escape

from eventfeed.catalog import load_events
from eventfeed.config import EventFeedConfig, load_config, read_config_file, write_config_file
from eventfeed.feed import FeedView
from eventfeed.models import Event
from eventfeed.store import EventStore


def store_from_path(db_path: str | None) -> EventStore:
    cfg = load_config()
    return EventStore(db_path or cfg.db_path, context_id=cfg.context_id)


def read_config_or_exit() -> dict[str, Any]:
    try:
        return read_config_file()
    except ValueError as exc:
        print(f"[red]Invalid config file: {exc}[/red]")
        raise typer.Exit(code=1) from exc


def write_config_or_exit(data: dict[str, Any]) -> None:
    try:
        write_config_file(data)
    except OSError as exc:
        print(f"[red]Failed to write config: {exc}[/red]")
        raise typer.Exit(code=1) from exc


def open_view(store: EventStore, catalog_path: str | None, cfg: EventFeedConfig) -> FeedView:
    view = FeedView(
        store,
        tag_cloud_limit=cfg.tag_cloud_limit,
        trending_limit=cfg.trending_limit,
        default_sort=cfg.default_sort,
    )
    path = catalog_path or cfg.catalog_path
    if path:
        if not view.load(lambda: load_events(path)):
            print(f"[red]Failed to load events: {escape(view.error)}[/red]")
    else:
        view.set_events([])
    return view


def format_when(event: Event) -> str:
    if not event.start:
        return "TBA"
    if event.end:
        return f"{event.start} – {event.end}"
    return event.start


def format_event(event: Event, *, saved: bool, rank: int | None = None) -> str:
    prefix = f"{rank}. " if rank is not None else ""
    badges = []
    if saved:
        badges.append("[yellow]saved[/yellow]")
    if event.is_custom:
        badges.append("[green]new[/green]")
    tags = " ".join(f"#{escape(t)}" for t in event.tags[:3])
    lines = [
        f"{prefix}\\[{escape(event.id)}] [bold]{escape(event.title)}[/bold] {' '.join(badges)}".rstrip(),
        f"    {escape(event.faculty or 'All')} · {escape(event.level or '—')} · {tags}".rstrip(),
        f"    {escape(format_when(event))} · {escape(event.location or 'TBA')}",
    ]
    return "\n".join(lines)
