from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any, Final

LEVELS: Final[tuple[str, ...]] = ("beginner", "intermediate", "advanced")

ALL_FACULTIES: Final = "All"

FACULTIES: Final[tuple[str, ...]] = (
    "Sauder (Business)",
    "Applied Science / Engineering",
    "Science",
    "Arts",
    "Land & Food Systems",
    "Forestry",
    "Computer Science",
    "Medicine & Health Sciences",
    "Education",
    "Law",
)

INTEREST_CATEGORIES: Final[dict[str, tuple[str, ...]]] = {
    "Tech": (
        "ai",
        "machine learning",
        "data science",
        "web dev",
        "mobile dev",
        "robotics",
        "cybersecurity",
    ),
    "Business": (
        "entrepreneurship",
        "finance",
        "consulting",
        "product management",
        "startups",
    ),
    "Design": ("ux/ui", "graphic design", "industrial design", "3D modeling"),
    "Events": ("hackathons", "workshops", "competitions", "networking", "social"),
    "Careers": ("internships", "career fairs", "research opportunities", "volunteering"),
    "Sustainability": ("climate", "sustainability", "clean tech", "social impact"),
}

ALL_INTERESTS: Final[tuple[str, ...]] = tuple(
    tag for tags in INTEREST_CATEGORIES.values() for tag in tags
)

MIN_INTERESTS: Final = 2
MAX_INTERESTS: Final = 5

# Only these tags appear in the popular tag cloud, in this order on ties.
ALLOWED_TAGS: Final[tuple[str, ...]] = (
    "hackathon",
    "web dev",
    "product management",
    "data science",
    "ai",
)


def normalize_tag(tag: object) -> str:
    if tag is None:
        return ""
    return str(tag).strip().lower()


def _text(value: object) -> str:
    if value is None:
        return ""
    return str(value)


def _optional_text(value: object) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _coerce_tags(value: object) -> tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        return (value,) if value.strip() else ()
    if isinstance(value, Iterable):
        return tuple(str(t) for t in value if t is not None and str(t).strip())
    return ()


@dataclass(frozen=True)
class Event:
    id: str
    title: str = ""
    description: str = ""
    organizer: str = ""
    location: str = ""
    url: str | None = None
    level: str | None = None
    faculty: str | None = None
    tags: tuple[str, ...] = ()
    start: str | None = None
    end: str | None = None
    is_custom: bool = False

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Event:
        raw_id = data.get("id")
        if raw_id is None or not str(raw_id).strip():
            raise ValueError("event is missing an id")
        is_custom = data.get("is_custom", data.get("isCustom", False))
        return cls(
            id=str(raw_id),
            title=_text(data.get("title")),
            description=_text(data.get("description")),
            organizer=_text(data.get("organizer")),
            location=_text(data.get("location")),
            url=_optional_text(data.get("url")),
            level=_optional_text(data.get("level")),
            faculty=_optional_text(data.get("faculty")),
            tags=_coerce_tags(data.get("tags")),
            start=_optional_text(data.get("start")),
            end=_optional_text(data.get("end")),
            is_custom=bool(is_custom),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "organizer": self.organizer,
            "location": self.location,
            "url": self.url,
            "level": self.level,
            "faculty": self.faculty,
            "tags": list(self.tags),
            "start": self.start,
            "end": self.end,
            "isCustom": self.is_custom,
        }

    def open_to_all_faculties(self) -> bool:
        return not self.faculty or self.faculty == ALL_FACULTIES


@dataclass(frozen=True)
class UserPrefs:
    name: str
    faculty: str
    interests: tuple[str, ...] = field(default_factory=tuple)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> UserPrefs:
        name = data.get("name")
        faculty = data.get("faculty")
        interests = data.get("interests")
        if not isinstance(name, str) or not isinstance(faculty, str):
            raise ValueError("preferences require string name and faculty")
        if not isinstance(interests, list):
            raise ValueError("preferences interests must be a list")
        return cls(
            name=name,
            faculty=faculty,
            interests=tuple(str(i) for i in interests if isinstance(i, str)),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "faculty": self.faculty, "interests": list(self.interests)}

    def interest_set(self) -> set[str]:
        return {normalize_tag(i) for i in self.interests if normalize_tag(i)}


def validate_preferences(name: str, faculty: str, interests: Iterable[str]) -> UserPrefs:
    """Build preferences the way the onboarding flow accepts them.

    Raises ValueError with a user-facing message when the name is blank, the
    faculty is unknown, or the interest count falls outside the allowed range.
    """
    clean_name = (name or "").strip()
    if not clean_name:
        raise ValueError("Name is required.")
    if faculty not in FACULTIES:
        raise ValueError(f"Unknown faculty '{faculty}'. Allowed faculties: {', '.join(FACULTIES)}")
    picked: list[str] = []
    for interest in interests:
        value = (interest or "").strip()
        if value and value not in picked:
            picked.append(value)
    if len(picked) < MIN_INTERESTS:
        raise ValueError(f"Pick at least {MIN_INTERESTS} interests.")
    if len(picked) > MAX_INTERESTS:
        raise ValueError(f"You can select up to {MAX_INTERESTS} interests.")
    return UserPrefs(name=clean_name, faculty=faculty, interests=tuple(picked))
