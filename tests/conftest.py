from __future__ import annotations

from pathlib import Path

import pytest

from eventfeed.config import CONFIG_ENV_OVERRIDES
from eventfeed.models import Event
from eventfeed.store import EventStore


@pytest.fixture(autouse=True)
def _isolate_config(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("EVENTFEED_CONFIG", str(tmp_path / "config" / "config.json"))
    for env_var in CONFIG_ENV_OVERRIDES.values():
        monkeypatch.delenv(env_var, raising=False)


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    return tmp_path / "feed.sqlite"


@pytest.fixture
def store(db_path: Path):
    store = EventStore(db_path, context_id="tab-a")
    yield store
    store.close()


@pytest.fixture
def events() -> list[Event]:
    return [
        Event(
            id="1",
            title="AI Hackathon",
            description="Build something with models over a weekend",
            organizer="CS Club",
            location="ICICS",
            level="beginner",
            faculty="All",
            tags=("ai", "hackathon"),
            start="2025-01-10",
        ),
        Event(
            id="2",
            title="Design Talk",
            description="Portfolio reviews",
            organizer="Design Society",
            location="Lasserre",
            level="intermediate",
            faculty="Arts",
            tags=("design",),
        ),
        Event(
            id="3",
            title="Data Science Workshop",
            description="Pandas from zero",
            organizer="Stats Dept",
            location="ESB 1012",
            level="beginner",
            faculty="Science",
            tags=("Data Science", "workshops"),
            start="2025-01-05T18:00:00Z",
        ),
        Event(
            id="4",
            title="Product Management 101",
            description="How PMs plan roadmaps",
            organizer="Sauder PM Club",
            location="Henry Angus",
            level="advanced",
            faculty=None,
            tags=("product management", "AI "),
            start="2025-02-01T09:00:00Z",
        ),
    ]
