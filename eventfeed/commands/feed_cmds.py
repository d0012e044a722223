from __future__ import annotations

import time

import typer
from rich import print
from rich.markup import escape

from eventfeed.config import load_config
from eventfeed.feed import FeedView
from eventfeed.feed.pipeline import VIEW_PERSONALIZED

from .common import format_event, open_view


def _apply_selection(
    view: FeedView,
    *,
    mode: str | None,
    level: str,
    sort: str | None,
    query: str,
    tags: list[str],
) -> None:
    try:
        if mode:
            view.set_view_mode(mode)
        view.set_level(level)
        if sort:
            view.set_sort(sort)
    except ValueError as exc:
        print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1) from exc
    view.set_query(query)
    view.set_selected_tags(tags)


def render_feed(view: FeedView, *, limit: int | None = None) -> None:
    print(f"[bold]{escape(view.heading)}[/bold]")
    if view.view_mode == VIEW_PERSONALIZED and view.prefs is None:
        print("No profile yet. Run `eventfeed prefs set` to personalize.")
    result = view.result()
    trending = result.trending
    if trending:
        scope = "for you" if view.view_mode == VIEW_PERSONALIZED else "overall"
        print(f"\nTrending {scope} (based on saves)")
        for rank, entry in enumerate(trending, start=1):
            noun = "save" if entry.count == 1 else "saves"
            print(f"  {rank}. {escape(entry.event.title)} ★ {entry.count} {noun}")
    cloud = result.tag_cloud
    if cloud:
        chips = []
        for entry in cloud:
            label = f"#{escape(entry.tag)} ({entry.count})"
            chips.append(f"[reverse]{label}[/reverse]" if view.is_tag_selected(entry.tag) else label)
        print(f"\nPopular tags: {'  '.join(chips)}")
    print("")
    visible = result.filtered
    if not visible:
        if not view.loading and not view.error:
            print("No matches. Try clearing filters or switching the view mode.")
        return
    shown = visible if limit is None else visible[:limit]
    for event in shown:
        print(format_event(event, saved=view.is_saved(event.id)))
    if len(shown) < len(visible):
        print(f"... (+{len(visible) - len(shown)} more)")


def feed_cmd(
    *,
    store_from_path,
    db_path: str | None,
    catalog: str | None,
    mode: str | None,
    level: str,
    sort: str | None,
    query: str,
    tags: list[str],
    limit: int | None,
) -> None:
    """Print the ranked feed for the given selection."""

    cfg = load_config()
    store = store_from_path(db_path)
    try:
        with open_view(store, catalog, cfg) as view:
            _apply_selection(view, mode=mode, level=level, sort=sort, query=query, tags=tags)
            render_feed(view, limit=limit)
    finally:
        store.close()


def trending_cmd(
    *, store_from_path, db_path: str | None, catalog: str | None, mode: str | None
) -> None:
    """Print the most saved events in the current view."""

    cfg = load_config()
    store = store_from_path(db_path)
    try:
        with open_view(store, catalog, cfg) as view:
            _apply_selection(view, mode=mode, level="all", sort=None, query="", tags=[])
            if not view.trending:
                print("Nothing trending yet.")
            for rank, entry in enumerate(view.trending, start=1):
                event = entry.event
                print(f"{rank}. \\[{escape(event.id)}] {escape(event.title)} ({entry.count})")
    finally:
        store.close()


def tags_cmd(
    *, store_from_path, db_path: str | None, catalog: str | None, mode: str | None
) -> None:
    """Print the popular tag cloud for the current view."""

    cfg = load_config()
    store = store_from_path(db_path)
    try:
        with open_view(store, catalog, cfg) as view:
            _apply_selection(view, mode=mode, level="all", sort=None, query="", tags=[])
            for entry in view.tag_cloud:
                print(f"#{escape(entry.tag)} ({entry.count})")
    finally:
        store.close()


def save_cmd(*, store_from_path, db_path: str | None, event_id: str) -> None:
    """Toggle whether an event is saved."""

    store = store_from_path(db_path)
    try:
        store.toggle_saved(event_id)
        if store.is_saved(event_id):
            print(f"Saved ✓ {escape(event_id)}")
        else:
            print(f"Removed from Saved {escape(event_id)}")
    finally:
        store.close()


def saved_cmd(*, store_from_path, db_path: str | None, catalog: str | None) -> None:
    """List saved events that still exist in the catalog."""

    cfg = load_config()
    store = store_from_path(db_path)
    try:
        with open_view(store, catalog, cfg) as view:
            events = view.saved_events
            if not events:
                print("You haven't saved any events yet. Run `eventfeed save <id>`.")
            for rank, event in enumerate(events, start=1):
                print(format_event(event, saved=True, rank=rank))
    finally:
        store.close()


def add_event_cmd(
    *,
    store_from_path,
    db_path: str | None,
    title: str,
    description: str,
    organizer: str,
    location: str,
    url: str | None,
    level: str | None,
    faculty: str | None,
    tags: list[str],
    start: str | None,
    end: str | None,
) -> None:
    """Store a custom event locally."""

    store = store_from_path(db_path)
    try:
        try:
            event = store.add_custom_event(
                title=title,
                description=description,
                organizer=organizer,
                location=location,
                url=url,
                level=level,
                faculty=faculty,
                tags=tags,
                start=start,
                end=end,
            )
        except ValueError as exc:
            print(f"[red]{exc}[/red]")
            raise typer.Exit(code=1) from exc
        print(f"Added custom event {escape(event.id)}")
    finally:
        store.close()


def watch_cmd(
    *,
    store_from_path,
    db_path: str | None,
    catalog: str | None,
    mode: str | None,
    interval: float | None,
    iterations: int,
) -> None:
    """Re-render the feed whenever another context changes the store."""

    cfg = load_config()
    delay = interval if interval and interval > 0 else cfg.watch_interval_s
    store = store_from_path(db_path)
    dirty = True

    def _mark_dirty(_key: str) -> None:
        nonlocal dirty
        dirty = True

    try:
        with open_view(store, catalog, cfg) as view:
            _apply_selection(view, mode=mode, level="all", sort=None, query="", tags=[])
            store.on_external_change(_mark_dirty)
            count = 0
            try:
                while iterations <= 0 or count < iterations:
                    store.poll_external_changes()
                    if dirty:
                        dirty = False
                        render_feed(view, limit=10)
                        print("[dim]-- watching for changes (ctrl-c to stop) --[/dim]")
                    count += 1
                    if iterations <= 0 or count < iterations:
                        time.sleep(delay)
            except KeyboardInterrupt:
                print("")
    finally:
        store.close()
