"""Behavioural coverage for overlap, gap and influence insights."""

from __future__ import annotations

import asyncio
import datetime as dt
import typing as typ

from pytest_bdd import given, parsers, scenario, then, when

from chronologicon.insights.service import InsightService
from tests.helpers.records import (
    CHILD_ID,
    GRANDCHILD_ID,
    ROOT_ID,
    SIBLING_ID,
    make_record,
)

if typ.TYPE_CHECKING:
    from chronologicon.timeline.models import GapReport, InfluencePath, OverlapPair
    from tests.features.conftest import TimelineStores


class InsightContext(typ.TypedDict, total=False):
    """Mutable context shared between steps."""

    service: InsightService
    overlaps: list[OverlapPair]
    gaps: GapReport
    influence: InfluencePath


@scenario("../insights.feature", "Overlapping events report the shared minutes")
def test_overlap_scenario() -> None:
    """Wrapper for pytest-bdd scenario."""


@scenario("../insights.feature", "The largest gap between events is found")
def test_gap_scenario() -> None:
    """Wrapper for pytest-bdd scenario."""


@scenario("../insights.feature", "The cheapest influence path sums event durations")
def test_influence_scenario() -> None:
    """Wrapper for pytest-bdd scenario."""


def _clock(value: str) -> dt.datetime:
    hours, minutes = (int(part) for part in value.split(":"))
    return dt.datetime(2023, 1, 1, hours, minutes, tzinfo=dt.UTC)


@given("a timeline store holding the sample events", target_fixture="insight_context")
def given_sample_events(timeline_stores: TimelineStores) -> InsightContext:
    """Commit a small family whose last two events touch without overlapping."""
    records = [
        make_record(ROOT_ID, "2023-01-01T00:00:00Z", "2023-01-01T00:15:00Z"),
        make_record(
            CHILD_ID, "2023-01-01T00:05:00Z", "2023-01-01T00:25:00Z", parent=ROOT_ID
        ),
        make_record(
            GRANDCHILD_ID,
            "2023-01-01T00:55:00Z",
            "2023-01-01T01:05:00Z",
            parent=CHILD_ID,
        ),
        make_record(
            SIBLING_ID, "2023-01-01T01:05:00Z", "2023-01-01T01:30:00Z", parent=ROOT_ID
        ),
    ]

    async def _insert() -> None:
        for record in records:
            await timeline_stores.events.insert_event(record)

    asyncio.run(_insert())
    return {"service": InsightService(timeline_stores.events)}


@when(parsers.parse("I look for overlapping events between {start} and {end}"))
def when_overlaps(insight_context: InsightContext, start: str, end: str) -> None:
    """Run the overlap query over the window."""
    service = insight_context["service"]
    insight_context["overlaps"] = asyncio.run(
        service.find_overlapping_events(_clock(start), _clock(end))
    )


@when(parsers.parse("I look for temporal gaps between {start} and {end}"))
def when_gaps(insight_context: InsightContext, start: str, end: str) -> None:
    """Run the gap query over the window."""
    service = insight_context["service"]
    insight_context["gaps"] = asyncio.run(
        service.find_temporal_gaps(_clock(start), _clock(end))
    )


@when("I ask for the influence of the root on the grandchild")
def when_influence(insight_context: InsightContext) -> None:
    """Run the influence query from the root to the grandchild."""
    service = insight_context["service"]
    insight_context["influence"] = asyncio.run(
        service.find_event_influence(ROOT_ID, GRANDCHILD_ID)
    )


@then(parsers.parse("one overlap of {minutes:d} minutes is reported"))
def then_one_overlap(insight_context: InsightContext, minutes: int) -> None:
    """Assert a single root/child overlap; touching spans are excluded."""
    overlaps = insight_context["overlaps"]
    assert len(overlaps) == 1, overlaps
    pair = overlaps[0]
    assert {event.event_id for event in pair.events} == {ROOT_ID, CHILD_ID}
    assert pair.overlap_duration_minutes == minutes


@then(parsers.parse("the largest gap lasts {minutes:d} minutes"))
def then_largest_gap(insight_context: InsightContext, minutes: int) -> None:
    """Assert the gap between the child and the grandchild."""
    gap = insight_context["gaps"].largest_gap
    assert gap is not None, insight_context["gaps"].message
    assert gap.duration_minutes == minutes
    assert gap.preceding_event.event_id == CHILD_ID
    assert gap.succeeding_event.event_id == GRANDCHILD_ID


@then(parsers.parse("the path total is {minutes:d} minutes across {count:d} events"))
def then_influence_total(
    insight_context: InsightContext, minutes: int, count: int
) -> None:
    """Assert the cumulative duration and the path length."""
    influence = insight_context["influence"]
    assert influence.total_duration_minutes == minutes
    assert len(influence.shortest_path) == count
    assert [step.event_id for step in influence.shortest_path] == [
        ROOT_ID,
        CHILD_ID,
        GRANDCHILD_ID,
    ]
