"""Ancestor closure over father/mother edges.

The closure is computed as an iterative breadth-first fixed point: each
round fetches, in one batched read, the parents of the previous round that
have not been seen yet. A visited set keeps every person to a single entry
(pedigree collapse) and guarantees termination on cyclic data.

Once the closure is known every person is placed at their deepest
generation (the longest child-to-parent chain from the queried person), so
an ancestor always comes before each of their descendants even when the
same person is reachable at several depths. Output is grouped by that
generation, deepest first, ids ascending within a generation, the queried
person last. No paternal/maternal ordering is implied.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any

import psycopg

try:
    from .config import CONFIG
    from .errors import StoreUnavailable
    from .queries import get_parent_links
    from .serialize import _lineage_entry
except ImportError:  # pragma: no cover
    # Support running with CWD=family_api (e.g., `python -m uvicorn main:app`).
    from config import CONFIG
    from errors import StoreUnavailable
    from queries import get_parent_links
    from serialize import _lineage_entry

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class LineageLimits:
    max_depth: int = CONFIG.lineage_max_depth
    max_nodes: int = CONFIG.lineage_max_nodes
    budget_seconds: float = CONFIG.lineage_budget_seconds


def _parent_ids(node: dict[str, Any]) -> list[int]:
    return [pid for pid in (node["father_id"], node["mother_id"]) if pid is not None]


def lineage(
    conn: psycopg.Connection,
    person_id: int,
    *,
    limits: LineageLimits = LineageLimits(),
) -> list[dict[str, Any]]:
    """Return all ancestors of *person_id*, root-most first, the person last.

    An unknown id gives ``[]``; a person without recorded parents gives a
    single-entry list.
    """

    started = time.monotonic()

    start = get_parent_links(conn, [person_id]).get(person_id)
    if start is None:
        return []

    nodes: dict[int, dict[str, Any]] = {person_id: start}
    missing: set[int] = set()
    layers: list[list[int]] = [[person_id]]
    frontier = [person_id]

    for depth in range(1, limits.max_depth + 1):
        wanted = sorted(
            {
                pid
                for node_id in frontier
                for pid in _parent_ids(nodes[node_id])
                if pid not in nodes and pid not in missing
            }
        )
        if not wanted:
            break

        room = limits.max_nodes - len(nodes)
        if room <= 0:
            log.warning("lineage of %s stopped at %s persons", person_id, len(nodes))
            break
        if len(wanted) > room:
            log.warning("lineage of %s truncated at %s persons", person_id, limits.max_nodes)
            wanted = wanted[:room]

        if time.monotonic() - started > limits.budget_seconds:
            raise StoreUnavailable(f"lineage lookup for {person_id} exceeded its time budget")

        found = get_parent_links(conn, wanted)
        layer: list[int] = []
        for pid in wanted:
            node = found.get(pid)
            if node is None:
                # Dangling father/mother reference.
                missing.add(pid)
                continue
            nodes[pid] = node
            layer.append(pid)

        if not layer:
            break
        layers.append(layer)
        frontier = layer
    else:
        if any(pid not in nodes and pid not in missing for n in frontier for pid in _parent_ids(nodes[n])):
            log.warning("lineage of %s stopped at depth %s", person_id, limits.max_depth)

    first_seen = {pid: depth for depth, layer in enumerate(layers) for pid in layer}
    generation = _generations(nodes, person_id, first_seen)
    ordered = sorted(nodes, key=lambda pid: (-generation[pid], pid))
    return [_lineage_entry(nodes[pid]) for pid in ordered]


def _parents_within(nodes: dict[int, dict[str, Any]], node_id: int) -> list[int]:
    return sorted({pid for pid in _parent_ids(nodes[node_id]) if pid in nodes and pid != node_id})


def _generations(
    nodes: dict[int, dict[str, Any]], person_id: int, first_seen: dict[int, int]
) -> dict[int, int]:
    """Longest child-to-parent distance from *person_id* for every node.

    Nodes are settled once all of their children inside the closure are
    settled. A cycle leaves nodes that never get there; the one first seen
    earliest is then settled anyway and edges back into settled nodes are
    ignored, so every node is settled exactly once.
    """

    pending = dict.fromkeys(nodes, 0)
    for node_id in nodes:
        for pid in _parents_within(nodes, node_id):
            pending[pid] += 1

    generation = {person_id: 0}
    settled: set[int] = set()
    ready = [person_id]
    while len(settled) < len(nodes):
        if not ready:
            ready = [
                min(
                    (n for n in generation if n not in settled),
                    key=lambda n: (first_seen[n], n),
                )
            ]
        node_id = ready.pop()
        settled.add(node_id)
        for pid in _parents_within(nodes, node_id):
            if pid in settled:
                continue
            generation[pid] = max(generation.get(pid, 0), generation[node_id] + 1)
            pending[pid] -= 1
            if pending[pid] == 0:
                ready.append(pid)
    return generation
