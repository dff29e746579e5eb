"""Minimum cumulative-duration paths through a descendant subtree.

The graph is the subtree rooted at the source, with edges from parent to
child. Costs sit on nodes: reaching a node costs the sum of the durations
of every event on the path, the source's own duration included. Dijkstra's
algorithm runs over this node-weighted graph with a binary heap frontier;
ties on distance are broken by discovery order so results are
deterministic.
"""

from __future__ import annotations

import heapq
import itertools
import math
import typing as typ

from chronologicon.timeline.models import InfluencePath, PathStep

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from chronologicon.timeline.models import SubtreeNode

PATH_FOUND_MESSAGE = "Shortest temporal path found from source to target event."
NO_PATH_MESSAGE = "No temporal path found from source to target event."
SOURCE_NOT_FOUND_MESSAGE = "Source event not found."


def _no_path(source_id: str, target_id: str, message: str) -> InfluencePath:
    return InfluencePath(
        source_event_id=source_id,
        target_event_id=target_id,
        shortest_path=[],
        total_duration_minutes=0,
        message=message,
    )


def _children_index(
    nodes: cabc.Mapping[str, SubtreeNode],
) -> dict[str, list[str]]:
    children: dict[str, list[str]] = {}
    for node in nodes.values():
        if node.parent_event_id is not None and node.parent_event_id in nodes:
            children.setdefault(node.parent_event_id, []).append(node.event_id)
    return children


def shortest_distances(
    nodes: cabc.Mapping[str, SubtreeNode],
    source_id: str,
    target_id: str | None = None,
) -> tuple[dict[str, float], dict[str, str]]:
    """Run Dijkstra from ``source_id`` and return distances and predecessors.

    Stops as soon as ``target_id`` is settled when one is given. Unreached
    nodes keep an infinite distance.
    """
    children = _children_index(nodes)
    distances: dict[str, float] = dict.fromkeys(nodes, math.inf)
    predecessors: dict[str, str] = {}
    distances[source_id] = nodes[source_id].duration_minutes

    order = itertools.count()
    frontier: list[tuple[float, int, str]] = [
        (distances[source_id], next(order), source_id)
    ]
    settled: set[str] = set()

    while frontier:
        distance, _, current = heapq.heappop(frontier)
        if current in settled:
            continue
        settled.add(current)
        if current == target_id:
            break
        for child in children.get(current, []):
            candidate = distance + nodes[child].duration_minutes
            if candidate < distances[child]:
                distances[child] = candidate
                predecessors[child] = current
                heapq.heappush(frontier, (candidate, next(order), child))

    return distances, predecessors


def _walk_back(
    predecessors: cabc.Mapping[str, str], source_id: str, target_id: str
) -> list[str] | None:
    path = [target_id]
    current = target_id
    while current != source_id:
        previous = predecessors.get(current)
        if previous is None or previous in path:
            return None
        path.append(previous)
        current = previous
    path.reverse()
    return path


def find_influence_path(
    subtree: cabc.Iterable[SubtreeNode], source_id: str, target_id: str
) -> InfluencePath:
    """Return the cheapest path from ``source_id`` to ``target_id``.

    ``subtree`` must be the descendant subtree of ``source_id``; nothing
    outside it is considered. An empty subtree means the source does not
    exist.
    """
    source_id = source_id.lower()
    target_id = target_id.lower()
    nodes = {node.event_id: node for node in subtree}
    if not nodes or source_id not in nodes:
        return _no_path(source_id, target_id, SOURCE_NOT_FOUND_MESSAGE)
    if target_id not in nodes:
        return _no_path(source_id, target_id, NO_PATH_MESSAGE)

    distances, predecessors = shortest_distances(nodes, source_id, target_id)
    path = _walk_back(predecessors, source_id, target_id)
    if path is None or math.isinf(distances[target_id]):
        return _no_path(source_id, target_id, NO_PATH_MESSAGE)

    return InfluencePath(
        source_event_id=source_id,
        target_event_id=target_id,
        shortest_path=[
            PathStep(
                event_id=nodes[event_id].event_id,
                event_name=nodes[event_id].event_name,
                duration_minutes=nodes[event_id].duration_minutes,
            )
            for event_id in path
        ],
        total_duration_minutes=int(distances[target_id]),
        message=PATH_FOUND_MESSAGE,
    )
