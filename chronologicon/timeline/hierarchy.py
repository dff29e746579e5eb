"""Assemble a flat event family into a rooted timeline.

Nodes live in an ID-keyed arena and refer to each other only by ID, so the
assembled structure holds no reference cycles. Rendering walks the arena
downwards for ``children`` and upwards for the ``parent`` chain, producing
fresh nested dictionaries.
"""

from __future__ import annotations

import dataclasses as dc
import typing as typ

import msgspec

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from chronologicon.timeline.models import EventRecord


@dc.dataclass(slots=True)
class TimelineNode:
    """One arena slot: an event plus the IDs of its children."""

    event: EventRecord
    child_ids: list[str] = dc.field(default_factory=list)


@dc.dataclass(slots=True)
class Timeline:
    """A rooted view over an event family.

    Attributes
    ----------
    root_id
        The event the timeline was requested for.
    nodes
        Arena of every event in the family, keyed by event ID.

    """

    root_id: str
    nodes: dict[str, TimelineNode]

    @property
    def root(self) -> TimelineNode:
        """Return the node for ``root_id``."""
        return self.nodes[self.root_id]

    def children_of(self, event_id: str) -> list[TimelineNode]:
        """Return the child nodes of ``event_id`` in input order."""
        return [self.nodes[child] for child in self.nodes[event_id].child_ids]

    def ancestors(self) -> list[TimelineNode]:
        """Return the parent chain from the root's parent up to the oldest ancestor."""
        chain: list[TimelineNode] = []
        seen = {self.root_id}
        parent_id = self.root.event.parent_event_id
        while parent_id is not None and parent_id in self.nodes and parent_id not in seen:
            seen.add(parent_id)
            node = self.nodes[parent_id]
            chain.append(node)
            parent_id = node.event.parent_event_id
        return chain

    def to_builtins(self) -> dict[str, typ.Any]:
        """Render the timeline as nested JSON-compatible dictionaries.

        The root and its descendants carry ``children``; the ``parent``
        chain above the root carries event fields only.
        """
        rendered = self._render_subtree(self.root_id)
        current = rendered
        for ancestor in self.ancestors():
            parent = _event_fields(ancestor.event)
            current["parent"] = parent
            current = parent
        return rendered

    def _render_subtree(self, event_id: str) -> dict[str, typ.Any]:
        rendered = _event_fields(self.nodes[event_id].event)
        rendered["children"] = []
        stack: list[tuple[str, dict[str, typ.Any]]] = [(event_id, rendered)]
        seen = {event_id}
        while stack:
            node_id, node_out = stack.pop()
            for child_id in self.nodes[node_id].child_ids:
                if child_id in seen:
                    continue
                seen.add(child_id)
                child_out = _event_fields(self.nodes[child_id].event)
                child_out["children"] = []
                node_out["children"].append(child_out)
                stack.append((child_id, child_out))
        return rendered


def _event_fields(event: EventRecord) -> dict[str, typ.Any]:
    fields = msgspec.to_builtins(event)
    fields["id"] = event.event_id
    return fields


def assemble_timeline(
    events: cabc.Iterable[EventRecord], root_id: str
) -> Timeline | None:
    """Build a :class:`Timeline` rooted at ``root_id``.

    Pass one indexes bare nodes by ID; pass two links each node into its
    parent's ``child_ids``. Returns ``None`` when ``events`` is empty or
    does not contain ``root_id``.
    """
    root_id = root_id.lower()
    nodes: dict[str, TimelineNode] = {}
    for event in events:
        nodes.setdefault(event.event_id, TimelineNode(event=event))

    if root_id not in nodes:
        return None

    for event_id, node in nodes.items():
        parent_id = node.event.parent_event_id
        if parent_id is not None and parent_id in nodes:
            nodes[parent_id].child_ids.append(event_id)

    return Timeline(root_id=root_id, nodes=nodes)
