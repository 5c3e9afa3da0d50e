"""Topic Extraction — split a subtree into its own document and merge it back.

Invariants:
    - split: the origin node and everything reachable from it move to the topic document;
      the origin stays behind in the source as a ghost marker (same id, same
      variant, only its data flags change)
    - split: the origin's copy becomes the topic's ROOT, label preserved, at CANONICAL_ORIGIN
    - merge: every topic node except the synthetic root returns, translated so that the
      canonical origin lands on the origin's *current* position
    - merge: node id collisions fail closed (StructuralConflictError) before anything is built
    - Neither function leaves a dangling edge in its output

Design Decisions:
    - Pure functions returning the next graph state; TopicExtractionService applies them
      through GraphStore and owns persistence
    - Edge id collisions on merge have a safe default (suffix rename), node id collisions do not
    - Restoring the original parent edge is skipped (warning) when that parent is gone, and
      not duplicated when the edge survived extraction
"""

import logging
from dataclasses import dataclass, field

from app.core.domain_types import CANONICAL_ORIGIN, DocumentType, NodeVariant
from app.core.errors import ErrorContext, ResourceNotFoundError, StructuralConflictError
from app.core.graph_integrity import (
    collect_descendants, find_inbound_sources, prune_dangling_edges,
)
from app.core.graph_model import (
    BrainDumpDocument, GraphEdge, GraphNode,
)
from app.core.thought_ingestion import count_categories

logger = logging.getLogger(__name__)

# Dashed "reference" look applied to an origin node whose subtree lives elsewhere
REFERENCE_STYLE: dict = {"borderStyle": "dashed", "opacity": 0.7}
DISSOLVED_EDGE_SUFFIX = "-dissolved"


@dataclass(frozen=True)
class TopicSplit:
    """Result of split_topic — the new document plus the source's next graph."""
    topic_document: BrainDumpDocument
    source_nodes: list[GraphNode]
    source_edges: list[GraphEdge]
    pruned_edges: list[GraphEdge] = field(default_factory=list)


@dataclass(frozen=True)
class TopicMerge:
    """Result of merge_topic — the source's next graph."""
    nodes: list[GraphNode]
    edges: list[GraphEdge]
    restored_parent_edge: GraphEdge | None = None
    renamed_edge_ids: dict[str, str] = field(default_factory=dict)
    pruned_edges: list[GraphEdge] = field(default_factory=list)


def _require_origin(document: BrainDumpDocument, origin_node_id: str, operation: str) -> GraphNode:
    origin = document.get_node(origin_node_id)
    if origin is None:
        raise ResourceNotFoundError(
            "Node", origin_node_id,
            ErrorContext(document_id=document.id, node_id=origin_node_id, operation=operation),
        )
    return origin


def split_topic(
    origin_node_id: str,
    source: BrainDumpDocument,
    initial_thoughts_text: str,
    topic_document_id: str,
    canonical_origin: tuple[float, float] = CANONICAL_ORIGIN,
) -> TopicSplit:
    """Move origin ∪ descendants(origin) into a new topic-focused document."""
    origin = _require_origin(source, origin_node_id, "extract_topic")
    if origin.data.has_topic_brain_dump:
        raise StructuralConflictError(
            f"Node '{origin_node_id}' already has a topic brain dump",
            [origin_node_id],
            ErrorContext(document_id=source.id, node_id=origin_node_id, operation="extract_topic"),
        )

    existing = source.node_ids()
    members = {
        node_id for node_id in collect_descendants(
            [origin_node_id], source.edges, include_start=True,
        )
        if node_id in existing
    }
    member_edges = [
        e for e in source.edges if e.source in members and e.target in members
    ]

    inbound = find_inbound_sources(origin_node_id, source.edges)
    original_parent_id = inbound[0] if inbound else None
    if len(inbound) > 1:
        logger.warning(
            f"Origin node has {len(inbound)} parents, recording the first",
            extra={"node_id": origin_node_id, "document_id": source.id},
        )

    dx = canonical_origin[0] - origin.position.x
    dy = canonical_origin[1] - origin.position.y
    topic_nodes: list[GraphNode] = []
    for node in source.nodes:
        if node.id not in members:
            continue
        moved = node.moved_to(node.position.translated(dx, dy))
        if node.id == origin_node_id:
            moved = moved.model_copy(update={"variant": NodeVariant.ROOT})
        topic_nodes.append(moved)

    label = origin.data.label
    topic_document = BrainDumpDocument(
        id=topic_document_id,
        user_id=source.user_id,
        title=f"Topic: {label}",
        raw_text=initial_thoughts_text,
        nodes=topic_nodes,
        edges=member_edges,
        categories=count_categories(topic_nodes, source.categories)
        if source.categories else count_categories(topic_nodes),
        type=DocumentType.TOPIC_FOCUSED,
        parent_brain_dump_id=source.id,
        origin_node_id=origin_node_id,
        origin_node_type=origin.variant,
        original_parent_node_id=original_parent_id,
        topic_focus=label,
    )

    # Same variant, data flags only
    ghost_origin = origin.with_data(
        has_topic_brain_dump=True,
        topic_brain_dump_id=topic_document_id,
        is_ghost=True,
        style=dict(REFERENCE_STYLE),
        children=[],
    )
    remaining_nodes = [
        ghost_origin if node.id == origin_node_id else node
        for node in source.nodes
        if node.id not in members or node.id == origin_node_id
    ]
    member_edge_ids = {e.id for e in member_edges}
    remaining_edges, pruned = prune_dangling_edges(
        remaining_nodes, [e for e in source.edges if e.id not in member_edge_ids],
    )
    return TopicSplit(
        topic_document=topic_document,
        source_nodes=remaining_nodes,
        source_edges=remaining_edges,
        pruned_edges=pruned,
    )


def find_synthetic_root(topic: BrainDumpDocument) -> GraphNode | None:
    """The topic's ROOT standing in for the origin node (origin id preferred)."""
    if topic.origin_node_id:
        candidate = topic.get_node(topic.origin_node_id)
        if candidate is not None and candidate.variant == NodeVariant.ROOT:
            return candidate
    for node in topic.nodes:
        if node.variant == NodeVariant.ROOT:
            return node
    return None


def _unique_edge_id(edge_id: str, taken: set[str]) -> str:
    candidate = f"{edge_id}{DISSOLVED_EDGE_SUFFIX}"
    counter = 2
    while candidate in taken:
        candidate = f"{edge_id}{DISSOLVED_EDGE_SUFFIX}-{counter}"
        counter += 1
    return candidate


def merge_topic(
    origin_node_id: str,
    source: BrainDumpDocument,
    topic: BrainDumpDocument,
    canonical_origin: tuple[float, float] = CANONICAL_ORIGIN,
) -> TopicMerge:
    """Graft a topic document's content back under the origin node."""
    origin = _require_origin(source, origin_node_id, "dissolve_topic")
    context = ErrorContext(
        document_id=source.id, node_id=origin_node_id, operation="dissolve_topic",
    )
    if topic.parent_brain_dump_id and topic.parent_brain_dump_id != source.id:
        raise StructuralConflictError(
            f"Topic '{topic.id}' belongs to '{topic.parent_brain_dump_id}', not '{source.id}'",
            [topic.id], context,
        )

    root = find_synthetic_root(topic)
    root_id = root.id if root else None
    if root is None:
        logger.warning(
            "Topic document has no root node, merging every node",
            extra={"document_id": topic.id},
        )

    taken_nodes = [n for n in topic.nodes if n.id != root_id]
    occupied = source.node_ids()
    collisions = [n.id for n in taken_nodes if n.id in occupied]
    if collisions:
        raise StructuralConflictError(
            f"Topic '{topic.id}' shares {len(collisions)} node id(s) with '{source.id}'",
            collisions, context,
        )

    dx = origin.position.x - canonical_origin[0]
    dy = origin.position.y - canonical_origin[1]
    moved_nodes = [n.moved_to(n.position.translated(dx, dy)) for n in taken_nodes]

    taken_edge_ids = {e.id for e in source.edges}
    renamed: dict[str, str] = {}
    grafted_edges: list[GraphEdge] = []
    for edge in topic.edges:
        update: dict = {}
        if root_id is not None and edge.source == root_id:
            update["source"] = origin_node_id
        if root_id is not None and edge.target == root_id:
            update["target"] = origin_node_id
        if edge.id in taken_edge_ids:
            new_id = _unique_edge_id(edge.id, taken_edge_ids)
            renamed[edge.id] = new_id
            update["id"] = new_id
        grafted = edge.model_copy(update=update) if update else edge
        taken_edge_ids.add(grafted.id)
        grafted_edges.append(grafted)

    restored_variant = topic.origin_node_type or origin.variant
    restored_origin = origin.model_copy(update={"variant": restored_variant}).with_data(
        has_topic_brain_dump=False,
        topic_brain_dump_id=None,
        is_ghost=False,
        style=None,
    )

    restored_parent_edge: GraphEdge | None = None
    parent_id = topic.original_parent_node_id
    if parent_id:
        if parent_id not in occupied:
            logger.warning(
                f"Original parent {parent_id} no longer exists, parent edge not restored",
                extra={"document_id": source.id, "node_id": origin_node_id},
            )
        elif any(e.source == parent_id and e.target == origin_node_id for e in source.edges):
            logger.info(
                f"Parent edge {parent_id} -> {origin_node_id} already present",
                extra={"document_id": source.id},
            )
        else:
            restored_id = f"edge-{parent_id}-{origin_node_id}-restored"
            if restored_id in taken_edge_ids:
                restored_id = _unique_edge_id(restored_id, taken_edge_ids)
            restored_parent_edge = GraphEdge(
                id=restored_id, source=parent_id, target=origin_node_id,
                type="default", animated=False,
            )
            grafted_edges.append(restored_parent_edge)

    merged_nodes = [
        restored_origin if n.id == origin_node_id else n for n in source.nodes
    ] + moved_nodes
    merged_edges, pruned = prune_dangling_edges(
        merged_nodes, list(source.edges) + grafted_edges,
    )
    return TopicMerge(
        nodes=merged_nodes,
        edges=merged_edges,
        restored_parent_edge=restored_parent_edge,
        renamed_edge_ids=renamed,
        pruned_edges=pruned,
    )
