from eventfeed.models import Event
from eventfeed.query import matches, query_tokens, searchable_text


def _event(**fields) -> Event:
    return Event(id="e1", **fields)


def test_empty_and_whitespace_query_match_everything() -> None:
    event = _event(title="Anything")
    assert matches(event, "")
    assert matches(event, "   \t ")
    assert matches(event, None)
    assert matches(Event(id="bare"), "")


def test_every_token_must_appear() -> None:
    event = _event(title="AI Hackathon", location="ICICS", tags=("ai", "hackathon"))
    assert matches(event, "hackathon icics")
    assert not matches(event, "hackathon robotics")


def test_matching_is_case_insensitive_substring() -> None:
    event = _event(title="Machine Learning Night", organizer="ML Society")
    assert matches(event, "LEARN")
    assert matches(event, "soc night")


def test_tags_and_description_are_searchable() -> None:
    event = _event(description="Free pizza provided", tags=("Web Dev",))
    assert matches(event, "pizza")
    assert matches(event, "web dev")


def test_missing_text_fields_read_as_empty() -> None:
    event = Event.from_dict({"id": "x", "title": None, "description": None, "tags": None})
    assert searchable_text(event).strip() == ""
    assert not matches(event, "anything")


def test_query_tokens_split_on_any_whitespace() -> None:
    assert query_tokens("  Foo\tbar\nBAZ ") == ["foo", "bar", "baz"]
