from __future__ import annotations
"""Loop detection over the augmented graph (real links + virtual links).

Edges point from upstream to downstream. The search is a depth-first walk
with an explicit recursion stack; nodes are visited in snapshot order and
edges in insertion order, so the same graph always yields the same report.
"""
from typing import Dict, Iterable, List, Optional, Set, Tuple

from .model import CycleReport, NodeDescriptor, RealLink, VirtualLink

__all__ = ["build_dependency_graph", "detect_cycle"]

# adjacency: upstream -> {downstream: True when the edge only exists virtually}
Adjacency = Dict[str, Dict[str, bool]]
Controllers = Dict[Tuple[str, str], List[str]]


def build_dependency_graph(
    nodes: Iterable[NodeDescriptor],
    links: Iterable[RealLink],
    virtual_links: Iterable[VirtualLink],
) -> Tuple[List[str], Adjacency, Controllers]:
    """Return ``(order, adjacency, controllers)`` for the augmented graph."""
    order = [n.id for n in nodes]
    live: Set[str] = set(order)
    adj: Adjacency = {nid: {} for nid in order}
    controllers: Controllers = {}

    for l in links:
        if l.upstream_node_id in live and l.downstream_node_id in live:
            adj[l.upstream_node_id][l.downstream_node_id] = False

    for vl in virtual_links:
        up, down = vl.upstream_node_id, vl.downstream_node_id
        if up not in live or down not in live:
            continue
        edges = adj[up]
        if down not in edges:
            edges[down] = True
        if edges[down]:
            ctl = controllers.setdefault((up, down), [])
            if vl.controller_node_id not in ctl:
                ctl.append(vl.controller_node_id)
    return order, adj, controllers


def _find_cycle(order: List[str], adj: Adjacency) -> Optional[List[str]]:
    visited: Set[str] = set()
    for root in order:
        if root in visited:
            continue
        path: List[str] = [root]
        on_path: Set[str] = {root}
        stack = [iter(adj[root])]
        while stack:
            nxt = next(stack[-1], None)
            if nxt is None:
                stack.pop()
                done = path.pop()
                on_path.discard(done)
                visited.add(done)
                continue
            if nxt in on_path:
                return path[path.index(nxt):]
            if nxt in visited:
                continue
            path.append(nxt)
            on_path.add(nxt)
            stack.append(iter(adj[nxt]))
    return None


def detect_cycle(
    nodes: Iterable[NodeDescriptor],
    links: Iterable[RealLink],
    virtual_links: Iterable[VirtualLink],
) -> CycleReport | None:  # noqa: D401
    """Return a :class:`CycleReport` for the first loop found, else None."""
    order, adj, controllers = build_dependency_graph(nodes, links, virtual_links)
    cycle = _find_cycle(order, adj)
    if cycle is None:
        return None

    virtual_edges: List[Tuple[str, str]] = []
    broadcasts: List[str] = []
    for i, up in enumerate(cycle):
        down = cycle[(i + 1) % len(cycle)]
        if adj[up].get(down):
            virtual_edges.append((up, down))
            for ctl in controllers.get((up, down), []):
                if ctl not in broadcasts:
                    broadcasts.append(ctl)
    return CycleReport(
        chain=tuple(cycle),
        virtual_edges=tuple(virtual_edges),
        broadcasts=tuple(broadcasts),
    )
