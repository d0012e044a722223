from __future__ import annotations

import logging

import typer
from rich import print

from . import __version__
from .commands.common import store_from_path as _store
from .commands.feed_cmds import (
    add_event_cmd,
    feed_cmd,
    save_cmd,
    saved_cmd,
    tags_cmd,
    trending_cmd,
    watch_cmd,
)
from .commands.prefs_cmds import (
    config_set_cmd,
    config_show_cmd,
    prefs_clear_cmd,
    prefs_options_cmd,
    prefs_set_cmd,
    prefs_show_cmd,
)
from .config import load_config

app = typer.Typer(help="eventfeed: personalized campus event feed")
prefs_app = typer.Typer(help="Manage your feed profile")
events_app = typer.Typer(help="Manage custom events")
config_app = typer.Typer(help="Inspect and edit configuration")
app.add_typer(prefs_app, name="prefs")
app.add_typer(events_app, name="events")
app.add_typer(config_app, name="config")


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    level = "DEBUG" if verbose else load_config().log_level
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@app.command()
def version() -> None:
    """Print the installed version."""

    print(__version__)


@app.command()
def feed(
    db_path: str = typer.Option(None, help="Path to SQLite database"),
    catalog: str = typer.Option(None, help="Path to the event catalog JSON"),
    mode: str = typer.Option(None, help="View mode: all or personalized"),
    level: str = typer.Option("all", help="Level filter: all, beginner, intermediate, advanced"),
    sort: str = typer.Option(None, help="Sort: trending or date"),
    query: str = typer.Option("", "--query", "-q", help="Search words (all must match)"),
    tag: list[str] = typer.Option(None, "--tag", "-t", help="Only events with any of these tags"),
    limit: int = typer.Option(None, help="Maximum events to print"),
) -> None:
    """Show the filtered, ranked feed."""

    feed_cmd(
        store_from_path=_store,
        db_path=db_path,
        catalog=catalog,
        mode=mode,
        level=level,
        sort=sort,
        query=query,
        tags=tag or [],
        limit=limit,
    )


@app.command()
def trending(
    db_path: str = typer.Option(None, help="Path to SQLite database"),
    catalog: str = typer.Option(None, help="Path to the event catalog JSON"),
    mode: str = typer.Option(None, help="View mode: all or personalized"),
) -> None:
    """Show the most saved events."""

    trending_cmd(store_from_path=_store, db_path=db_path, catalog=catalog, mode=mode)


@app.command()
def tags(
    db_path: str = typer.Option(None, help="Path to SQLite database"),
    catalog: str = typer.Option(None, help="Path to the event catalog JSON"),
    mode: str = typer.Option(None, help="View mode: all or personalized"),
) -> None:
    """Show the popular tag cloud."""

    tags_cmd(store_from_path=_store, db_path=db_path, catalog=catalog, mode=mode)


@app.command()
def save(
    event_id: str = typer.Argument(..., help="Event id"),
    db_path: str = typer.Option(None, help="Path to SQLite database"),
) -> None:
    """Save an event, or unsave it if already saved."""

    save_cmd(store_from_path=_store, db_path=db_path, event_id=event_id)


@app.command()
def saved(
    db_path: str = typer.Option(None, help="Path to SQLite database"),
    catalog: str = typer.Option(None, help="Path to the event catalog JSON"),
) -> None:
    """List saved events."""

    saved_cmd(store_from_path=_store, db_path=db_path, catalog=catalog)


@app.command()
def watch(
    db_path: str = typer.Option(None, help="Path to SQLite database"),
    catalog: str = typer.Option(None, help="Path to the event catalog JSON"),
    mode: str = typer.Option(None, help="View mode: all or personalized"),
    interval: float = typer.Option(None, help="Seconds between change checks"),
    iterations: int = typer.Option(0, help="Stop after N checks (0 = run until interrupted)"),
) -> None:
    """Keep the feed on screen and refresh it when another window changes it."""

    watch_cmd(
        store_from_path=_store,
        db_path=db_path,
        catalog=catalog,
        mode=mode,
        interval=interval,
        iterations=iterations,
    )


@prefs_app.command("show")
def prefs_show(db_path: str = typer.Option(None, help="Path to SQLite database")) -> None:
    """Show your profile."""

    prefs_show_cmd(store_from_path=_store, db_path=db_path)


@prefs_app.command("set")
def prefs_set(
    name: str = typer.Option(..., help="Your name"),
    faculty: str = typer.Option(..., help="Your faculty (see `prefs options`)"),
    interest: list[str] = typer.Option(..., "--interest", "-i", help="Interest tag (2-5)"),
    db_path: str = typer.Option(None, help="Path to SQLite database"),
) -> None:
    """Set your profile."""

    prefs_set_cmd(
        store_from_path=_store,
        db_path=db_path,
        name=name,
        faculty=faculty,
        interests=interest,
    )


@prefs_app.command("clear")
def prefs_clear(db_path: str = typer.Option(None, help="Path to SQLite database")) -> None:
    """Remove your profile."""

    prefs_clear_cmd(store_from_path=_store, db_path=db_path)


@prefs_app.command("options")
def prefs_options() -> None:
    """List faculties and interests."""

    prefs_options_cmd()


@events_app.command("add")
def events_add(
    title: str = typer.Option(..., help="Event title"),
    description: str = typer.Option("", help="Description"),
    organizer: str = typer.Option("", help="Organizer"),
    location: str = typer.Option("", help="Location"),
    url: str = typer.Option(None, help="Details URL"),
    level: str = typer.Option(None, help="beginner, intermediate or advanced"),
    faculty: str = typer.Option(None, help="Faculty, or All"),
    tag: list[str] = typer.Option(None, "--tag", "-t", help="Tag"),
    start: str = typer.Option(None, help="Start time (ISO 8601)"),
    end: str = typer.Option(None, help="End time (ISO 8601)"),
    db_path: str = typer.Option(None, help="Path to SQLite database"),
) -> None:
    """Add a custom event to your local feed."""

    add_event_cmd(
        store_from_path=_store,
        db_path=db_path,
        title=title,
        description=description,
        organizer=organizer,
        location=location,
        url=url,
        level=level,
        faculty=faculty,
        tags=tag or [],
        start=start,
        end=end,
    )


@config_app.command("show")
def config_show() -> None:
    """Show the effective configuration."""

    config_show_cmd()


@config_app.command("set")
def config_set(
    key: str = typer.Argument(..., help="Config key"),
    value: str = typer.Argument(..., help="Value"),
) -> None:
    """Set a configuration value."""

    config_set_cmd(key=key, value=value)


if __name__ == "__main__":
    app()
