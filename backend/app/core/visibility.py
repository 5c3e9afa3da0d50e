"""Visibility Resolver — derive the rendered subgraph from collapse state.

Invariants:
    - Pure: never mutates its inputs, performs no IO
    - A collapsed node hides everything reachable via its outgoing edges
    - A collapsed CATEGORY additionally hides THOUGHT nodes sharing its category, plus their descendants
    - The collapsed node itself stays visible (unless another collapsed node hides it)
    - An edge is visible iff both endpoints are visible

Design Decisions:
    - Category-scoped hiding dispatched through an exhaustive variant table, so a new
      NodeVariant without an entry fails test_visibility loudly instead of silently defaulting
    - children / parent_layout_mode recomputed here, on copies, every time the graph changes
"""

from collections.abc import Sequence
from dataclasses import dataclass

from app.core.domain_types import LayoutMode, NodeVariant
from app.core.graph_integrity import build_children_map, collect_descendants
from app.core.graph_model import GraphEdge, GraphNode

# Whether collapsing a node of this variant also hides same-category thoughts
HIDES_SAME_CATEGORY: dict[NodeVariant, bool] = {
    NodeVariant.ROOT: False,
    NodeVariant.CATEGORY: True,
    NodeVariant.THOUGHT: False,
    NodeVariant.GHOST: False,
    NodeVariant.LINK: False,
}


@dataclass(frozen=True)
class VisibleGraph:
    """Resolver output — copies safe to hand to a renderer."""
    visible_nodes: list[GraphNode]
    visible_edges: list[GraphEdge]
    hidden_node_ids: frozenset[str]


def hidden_by(
    collapsed: GraphNode, nodes: Sequence[GraphNode], edges: Sequence[GraphEdge],
    children_map: dict[str, list[str]] | None = None,
) -> set[str]:
    """Ids hidden by collapsing a single node."""
    children = children_map if children_map is not None else build_children_map(edges)
    hidden = set(collect_descendants([collapsed.id], edges, children_map=children))

    if HIDES_SAME_CATEGORY[collapsed.variant] and collapsed.data.category is not None:
        same_category = [
            n.id for n in nodes
            if n.variant == NodeVariant.THOUGHT
            and n.data.category == collapsed.data.category
            and n.id != collapsed.id
        ]
        hidden.update(same_category)
        hidden.update(collect_descendants(same_category, edges, children_map=children))

    hidden.discard(collapsed.id)
    return hidden


def _annotate(
    node: GraphNode, children: list[str], parent_mode: LayoutMode,
) -> GraphNode:
    data = node.data.model_copy(update={
        "children": list(children),
        "parent_layout_mode": parent_mode,
    })
    return node.model_copy(update={"data": data})


def resolve_visibility(
    nodes: Sequence[GraphNode], edges: Sequence[GraphEdge],
) -> VisibleGraph:
    """Compute visible nodes/edges and refresh derived per-node fields."""
    children_map = build_children_map(edges)
    by_id = {n.id: n for n in nodes}

    hidden: set[str] = set()
    for node in nodes:
        if node.data.is_collapsed:
            hidden |= hidden_by(node, nodes, edges, children_map)

    # First inbound edge wins when a node has several parents
    parent_of: dict[str, str] = {}
    for edge in edges:
        parent_of.setdefault(edge.target, edge.source)

    visible_nodes: list[GraphNode] = []
    for node in nodes:
        if node.id in hidden:
            continue
        parent = by_id.get(parent_of.get(node.id, ""))
        parent_mode = parent.data.layout_mode if parent else LayoutMode.FREEFORM
        visible_nodes.append(
            _annotate(node, children_map.get(node.id, []), parent_mode),
        )

    visible_edges = [
        e for e in edges
        if e.source not in hidden and e.target not in hidden
    ]
    return VisibleGraph(
        visible_nodes=visible_nodes,
        visible_edges=visible_edges,
        hidden_node_ids=frozenset(hidden),
    )
