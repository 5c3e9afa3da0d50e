"""Graph Integrity — traversal helpers and referential-integrity checks.

Invariants:
    - Traversals follow outgoing edges (source == current) in edge-array order
    - Every traversal is visited-set guarded, so cycles terminate
    - prune_dangling_edges never drops an edge whose endpoints both exist

Design Decisions:
    - Shared by visibility, layout and topic split so "descendants" means one thing everywhere
    - Pruning returns the pruned edges instead of logging: caller decides how loud to be
"""

from collections import deque
from collections.abc import Iterable, Sequence

from app.core.graph_model import GraphEdge, GraphNode


def build_children_map(edges: Sequence[GraphEdge]) -> dict[str, list[str]]:
    """source id -> target ids, preserving edge-array order."""
    children: dict[str, list[str]] = {}
    for edge in edges:
        children.setdefault(edge.source, []).append(edge.target)
    return children


def collect_descendants(
    start_ids: Iterable[str], edges: Sequence[GraphEdge],
    include_start: bool = False,
    children_map: dict[str, list[str]] | None = None,
) -> list[str]:
    """Breadth-first ids reachable via outgoing edges from any of start_ids."""
    children = children_map if children_map is not None else build_children_map(edges)
    starts = list(start_ids)
    visited: set[str] = set(starts)
    order: list[str] = list(starts) if include_start else []
    queue = deque(starts)
    while queue:
        current = queue.popleft()
        for child in children.get(current, []):
            if child in visited:
                continue
            visited.add(child)
            order.append(child)
            queue.append(child)
    return order


def find_inbound_sources(node_id: str, edges: Sequence[GraphEdge]) -> list[str]:
    """Sources of edges pointing at node_id, in edge-array order."""
    return [e.source for e in edges if e.target == node_id]


def prune_dangling_edges(
    nodes: Sequence[GraphNode], edges: Sequence[GraphEdge],
) -> tuple[list[GraphEdge], list[GraphEdge]]:
    """Split edges into (kept, pruned) by whether both endpoints exist."""
    ids = {n.id for n in nodes}
    kept: list[GraphEdge] = []
    pruned: list[GraphEdge] = []
    for edge in edges:
        if edge.source in ids and edge.target in ids:
            kept.append(edge)
        else:
            pruned.append(edge)
    return kept, pruned


def find_dangling_edge_ids(
    nodes: Sequence[GraphNode], edges: Sequence[GraphEdge],
) -> list[str]:
    """Ids of edges violating referential integrity (empty when the graph is sound)."""
    _, pruned = prune_dangling_edges(nodes, edges)
    return [e.id for e in pruned]


def find_duplicate_node_ids(nodes: Sequence[GraphNode]) -> list[str]:
    seen: set[str] = set()
    duplicates: list[str] = []
    for node in nodes:
        if node.id in seen and node.id not in duplicates:
            duplicates.append(node.id)
        seen.add(node.id)
    return duplicates
