from __future__ import annotations

import json
from dataclasses import asdict

import typer
from rich import print
from rich.markup import escape

from eventfeed.config import get_config_path, load_config
from eventfeed.models import FACULTIES, INTEREST_CATEGORIES, validate_preferences

from .common import read_config_or_exit, write_config_or_exit


def prefs_show_cmd(*, store_from_path, db_path: str | None) -> None:
    """Print the stored profile."""

    store = store_from_path(db_path)
    try:
        prefs = store.get_preferences()
        if prefs is None:
            print("No profile yet.")
            return
        print(f"Name: {escape(prefs.name)}")
        print(f"Faculty: {escape(prefs.faculty)}")
        print(f"Interests: {escape(', '.join(prefs.interests))}")
    finally:
        store.close()


def prefs_set_cmd(
    *,
    store_from_path,
    db_path: str | None,
    name: str,
    faculty: str,
    interests: list[str],
) -> None:
    """Validate and store a profile, replacing any existing one."""

    try:
        prefs = validate_preferences(name, faculty, interests)
    except ValueError as exc:
        print(f"[red]{escape(str(exc))}[/red]")
        raise typer.Exit(code=1) from exc
    store = store_from_path(db_path)
    try:
        store.save_preferences(prefs)
        print(f"Saved profile for {escape(prefs.name)}")
    finally:
        store.close()


def prefs_clear_cmd(*, store_from_path, db_path: str | None) -> None:
    """Remove the stored profile."""

    store = store_from_path(db_path)
    try:
        store.clear_preferences()
        print("Profile cleared")
    finally:
        store.close()


def prefs_options_cmd() -> None:
    """List the faculties and interests a profile may use."""

    print("[bold]Faculties[/bold]")
    for faculty in FACULTIES:
        print(f"  {escape(faculty)}")
    print("[bold]Interests[/bold]")
    for category, tags in INTEREST_CATEGORIES.items():
        print(f"  {category}: {escape(', '.join(tags))}")


def config_show_cmd() -> None:
    """Print the effective configuration."""

    read_config_or_exit()
    cfg = load_config()
    print(f"# {get_config_path()}")
    print(json.dumps(asdict(cfg), indent=2))


def config_set_cmd(*, key: str, value: str) -> None:
    """Set a key in the config file."""

    known = set(asdict(load_config()))
    if key not in known:
        print(f"[red]Unknown config key: {escape(key)}[/red]")
        raise typer.Exit(code=1)
    data = read_config_or_exit()
    data[key] = value
    write_config_or_exit(data)
    print(f"Set {escape(key)}")
