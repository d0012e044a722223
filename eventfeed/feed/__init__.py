from __future__ import annotations

from .pipeline import (
    FeedInputs,
    FeedResult,
    TagCount,
    TrendingEntry,
    base_pool,
    compute_feed,
    filter_and_sort,
    saved_events,
    tag_cloud,
    trending,
)
from .view import FeedView

__all__ = [
    "FeedInputs",
    "FeedResult",
    "FeedView",
    "TagCount",
    "TrendingEntry",
    "base_pool",
    "compute_feed",
    "filter_and_sort",
    "saved_events",
    "tag_cloud",
    "trending",
]
