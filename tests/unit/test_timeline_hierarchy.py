"""Unit tests for timeline assembly and rendering."""

from __future__ import annotations

from chronologicon.timeline.hierarchy import assemble_timeline
from tests.helpers.records import (
    CHILD_ID,
    GRANDCHILD_ID,
    MISSING_ID,
    ROOT_ID,
    SIBLING_ID,
    make_record,
)

FAMILY = [
    make_record(ROOT_ID, "2023-01-01T00:00:00Z", "2023-01-01T01:00:00Z"),
    make_record(
        CHILD_ID, "2023-01-01T00:10:00Z", "2023-01-01T00:40:00Z", parent=ROOT_ID
    ),
    make_record(
        GRANDCHILD_ID, "2023-01-01T00:15:00Z", "2023-01-01T00:20:00Z", parent=CHILD_ID
    ),
    make_record(
        SIBLING_ID, "2023-01-01T00:50:00Z", "2023-01-01T00:55:00Z", parent=ROOT_ID
    ),
]


def test_children_are_linked_in_input_order() -> None:
    """Each node lists its direct children."""
    timeline = assemble_timeline(FAMILY, ROOT_ID)

    assert timeline is not None
    assert [n.event.event_id for n in timeline.children_of(ROOT_ID)] == [
        CHILD_ID,
        SIBLING_ID,
    ]
    assert [n.event.event_id for n in timeline.children_of(CHILD_ID)] == [
        GRANDCHILD_ID
    ]


def test_unknown_root_yields_none() -> None:
    """A root absent from the events cannot be assembled."""
    assert assemble_timeline(FAMILY, MISSING_ID) is None
    assert assemble_timeline([], ROOT_ID) is None


def test_rendering_nests_children_and_parent_chain() -> None:
    """A mid-level root renders its subtree below and its ancestors above."""
    timeline = assemble_timeline(FAMILY, CHILD_ID.upper())

    assert timeline is not None
    rendered = timeline.to_builtins()

    assert rendered["id"] == CHILD_ID
    assert [c["id"] for c in rendered["children"]] == [GRANDCHILD_ID]
    assert rendered["children"][0]["children"] == []
    assert rendered["parent"]["id"] == ROOT_ID
    assert "children" not in rendered["parent"]
    assert "parent" not in rendered["parent"]


def test_duplicate_events_are_linked_once() -> None:
    """Repeated input records do not duplicate children."""
    timeline = assemble_timeline([*FAMILY, FAMILY[1]], ROOT_ID)

    assert timeline is not None
    assert len(timeline.children_of(ROOT_ID)) == 2


def test_parent_cycles_terminate() -> None:
    """Malformed cyclic data renders without looping forever."""
    looped = [
        make_record(ROOT_ID, "2023-01-01T00:00:00Z", "2023-01-01T01:00:00Z", parent=CHILD_ID),
        make_record(CHILD_ID, "2023-01-01T00:00:00Z", "2023-01-01T01:00:00Z", parent=ROOT_ID),
    ]

    timeline = assemble_timeline(looped, ROOT_ID)

    assert timeline is not None
    rendered = timeline.to_builtins()
    assert [c["id"] for c in rendered["children"]] == [CHILD_ID]
    assert [n.event.event_id for n in timeline.ancestors()] == [CHILD_ID]
