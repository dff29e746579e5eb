"""Temporal analytics: overlaps, gaps and influence paths."""

from __future__ import annotations

from .gaps import find_largest_gap
from .influence import find_influence_path
from .overlaps import find_overlapping_events
from .service import InsightService

__all__ = [
    "InsightService",
    "find_influence_path",
    "find_largest_gap",
    "find_overlapping_events",
]
