"""Layout Engine — tree layouts for the brain dump canvas.

Invariants:
    - Pure: returns new node lists, only the `position` of affected nodes changes
    - Children are ordered by edge-array order, never alphabetically
    - Parent-child layout never moves the parent, nor any node outside parent ∪ descendants(parent)
      (those are returned as the very same objects)
    - Missing root / missing parent is non-fatal: input returned unchanged, warning logged

Design Decisions:
    - Horizontal layout is a postorder traversal: leaves take the next free slot of their depth,
      internal nodes sit at the midpoint of their direct children
    - Per-variant behaviour expressed through ROOT_CANDIDATE, exhaustive over NodeVariant
    - LayoutOptions is a frozen dataclass: defaults mirror the canvas node size
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from app.core.domain_types import NodeVariant
from app.core.graph_integrity import build_children_map, collect_descendants
from app.core.graph_model import GraphEdge, GraphNode, Position

logger = logging.getLogger(__name__)

# Whether a node of this variant is picked as layout root before any parentless node
ROOT_CANDIDATE: dict[NodeVariant, bool] = {
    NodeVariant.ROOT: True,
    NodeVariant.CATEGORY: False,
    NodeVariant.THOUGHT: False,
    NodeVariant.GHOST: False,
    NodeVariant.LINK: False,
}

# Minimum distance between two nodes before a new node is nudged down
OCCUPIED_TOLERANCE = 50.0


@dataclass(frozen=True)
class LayoutOptions:
    node_width: float = 250.0
    node_height: float = 80.0
    horizontal_spacing: float = 200.0
    vertical_spacing: float = 100.0


def find_layout_root(
    nodes: Sequence[GraphNode], edges: Sequence[GraphEdge],
) -> GraphNode | None:
    """Root-variant node first; otherwise the first node without an inbound edge."""
    for node in nodes:
        if ROOT_CANDIDATE[node.variant]:
            return node
    has_parent = {e.target for e in edges}
    for node in nodes:
        if node.id not in has_parent:
            return node
    return None


def calculate_horizontal_layout(
    nodes: Sequence[GraphNode], edges: Sequence[GraphEdge],
    options: LayoutOptions | None = None,
) -> list[GraphNode]:
    """Full left-to-right tree layout rooted at the document root."""
    opts = options or LayoutOptions()
    root = find_layout_root(nodes, edges)
    if root is None:
        logger.warning("Horizontal layout skipped: no root node found")
        return list(nodes)

    node_ids = {n.id for n in nodes}
    children_map = build_children_map(edges)
    next_slot: dict[int, float] = {}
    placed: dict[str, Position] = {}
    visited: set[str] = set()

    def place(node_id: str, depth: int) -> float:
        visited.add(node_id)
        child_ys: list[float] = []
        for child_id in children_map.get(node_id, []):
            if child_id in visited or child_id not in node_ids:
                continue
            child_ys.append(place(child_id, depth + 1))

        if child_ys:
            y = (min(child_ys) + max(child_ys)) / 2
        else:
            y = next_slot.get(depth, 0.0)
            next_slot[depth] = y + opts.vertical_spacing
        placed[node_id] = Position(x=depth * opts.horizontal_spacing, y=y)
        return y

    place(root.id, 0)

    orphans = [n.id for n in nodes if n.id not in placed]
    if orphans:
        logger.warning(
            f"Horizontal layout left {len(orphans)} disconnected node(s) in place",
            extra={"operation": "horizontal_layout"},
        )

    return [
        node.moved_to(placed[node.id]) if node.id in placed else node
        for node in nodes
    ]


def calculate_parent_child_layout(
    parent_id: str, nodes: Sequence[GraphNode], edges: Sequence[GraphEdge],
    options: LayoutOptions | None = None,
) -> list[GraphNode]:
    """Re-arrange a parent's children and grandchildren, leaving the rest untouched."""
    opts = options or LayoutOptions()
    by_id = {n.id: n for n in nodes}
    parent = by_id.get(parent_id)
    if parent is None:
        logger.warning(
            f"Parent-child layout skipped: node {parent_id} not found",
            extra={"node_id": parent_id},
        )
        return list(nodes)

    child_ids: list[str] = []
    for edge in edges:
        if edge.source == parent_id and edge.target in by_id and edge.target != parent_id:
            if edge.target not in child_ids:
                child_ids.append(edge.target)
    if not child_ids:
        logger.info(f"Parent-child layout: node {parent_id} has no children")
        return list(nodes)

    step = opts.vertical_spacing
    start_y = parent.position.y - (len(child_ids) - 1) * step / 2
    child_x = parent.position.x + opts.horizontal_spacing
    new_positions: dict[str, Position] = {
        child_id: Position(x=child_x, y=start_y + index * step)
        for index, child_id in enumerate(child_ids)
    }

    direct = set(child_ids)
    grandchild_x = parent.position.x + 2 * opts.horizontal_spacing
    for child_id in child_ids:
        grandchildren = []
        for edge in edges:
            target = edge.target
            if (
                edge.source == child_id and target in by_id
                and target not in direct and target != parent_id
                and target not in new_positions and target not in grandchildren
            ):
                grandchildren.append(target)
        anchor_y = new_positions[child_id].y
        for index, grandchild_id in enumerate(grandchildren):
            offset = (index - (len(grandchildren) - 1) / 2) * step
            new_positions[grandchild_id] = Position(x=grandchild_x, y=anchor_y + offset)

    subtree = set(collect_descendants([parent_id], edges, include_start=True))
    return [
        node.moved_to(new_positions[node.id])
        if node.id in new_positions and node.id in subtree and node.id != parent_id
        else node
        for node in nodes
    ]


def get_new_node_position(
    parent: GraphNode | None, existing: Sequence[GraphNode],
    options: LayoutOptions | None = None, vertical_offset: float = 0.0,
) -> Position:
    """Free slot to the right of parent (or of the rightmost node when parentless)."""
    opts = options or LayoutOptions()
    if parent is None:
        max_x = max([n.position.x for n in existing] + [0.0])
        return Position(x=max_x + opts.horizontal_spacing, y=100.0 + vertical_offset)

    x = parent.position.x + opts.horizontal_spacing
    y = parent.position.y + vertical_offset

    def occupied(candidate_y: float) -> bool:
        return any(
            abs(n.position.x - x) < OCCUPIED_TOLERANCE
            and abs(n.position.y - candidate_y) < OCCUPIED_TOLERANCE
            for n in existing
        )

    while occupied(y):
        y += OCCUPIED_TOLERANCE
    return Position(x=x, y=y)
