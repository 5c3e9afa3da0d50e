"""Graph Store — the single authoritative in-memory owner of brain dump documents.

Invariants:
    - Every mutation is synchronous and replaces the document value wholesale,
      so readers never observe a half-applied change (e.g. a node gone but its edges still there)
    - No mutation leaves a dangling edge: delete_node drops incident edges in the same step,
      add_edge with a missing endpoint is pruned (logged) instead of stored
    - Missing ids are warning-level no-ops returning None, never exceptions
    - Node ids are unique per document: duplicates in a caller-supplied graph raise
      GraphValidationError, duplicates in a stored document keep their first occurrence
    - Persistence is *requested* after the mutation and never awaited here

Design Decisions:
    - Node/edge operations default to the current entry, entry_id overrides (API + topic service)
    - Policy per operation: content/cosmetic edits DEBOUNCED, structural edits IMMEDIATE
    - persist=False lets TopicExtractionService batch a dual-document transaction and order
      the two writes itself
"""

import logging
from datetime import datetime, timezone
from typing import Any, Protocol
from uuid import uuid4

from app.core.domain_types import DocumentId, DocumentType, EdgeId, NodeId, NodeVariant, SavePolicy
from app.core.errors import ErrorContext, GraphValidationError
from app.core.graph_integrity import find_duplicate_node_ids, prune_dangling_edges
from app.core.graph_model import (
    BrainDumpDocument, GraphEdge, GraphNode, Position,
)
from app.core.thought_ingestion import (
    build_graph_from_thoughts, count_categories, make_root_node, process_raw_text,
)
from app.core.visibility import VisibleGraph, resolve_visibility

logger = logging.getLogger(__name__)

DEMO_USER_ID = "demo-user"


class SaveRequester(Protocol):
    """What the store needs from the persistence layer."""
    def request_save(self, document_id: DocumentId, policy: SavePolicy) -> None: ...
    def request_create(self, document_id: DocumentId) -> None: ...
    def request_delete(self, document_id: DocumentId) -> None: ...


def new_document_id() -> DocumentId:
    return DocumentId(f"braindump-{uuid4().hex}")


class GraphStore:
    """Owns every loaded document plus the current-entry pointer."""

    def __init__(self, default_user_id: str = DEMO_USER_ID):
        self.default_user_id = default_user_id
        self._entries: dict[str, BrainDumpDocument] = {}
        self._current_id: str | None = None
        self._persistence: SaveRequester | None = None

    def attach_persistence(self, persistence: SaveRequester) -> None:
        self._persistence = persistence

    # --- Reads -----------------------------------------------------------------

    @property
    def entries(self) -> list[BrainDumpDocument]:
        """All loaded documents, most recently added first."""
        return list(reversed(self._entries.values()))

    @property
    def current_entry(self) -> BrainDumpDocument | None:
        if self._current_id is None:
            return None
        return self._entries.get(self._current_id)

    def get_entry(self, entry_id: str) -> BrainDumpDocument | None:
        return self._entries.get(entry_id)

    def visible_graph(self, entry_id: str | None = None) -> VisibleGraph | None:
        document = self._resolve(entry_id, "visible_graph")
        if document is None:
            return None
        return resolve_visibility(document.nodes, document.edges)

    # --- Documents -------------------------------------------------------------

    def register_entry(self, document: BrainDumpDocument) -> BrainDumpDocument:
        """Adopt a document loaded from storage, pruning dangling edges."""
        duplicates = find_duplicate_node_ids(document.nodes)
        if duplicates:
            logger.warning(
                f"Dropped {len(duplicates)} duplicate node id(s) on load",
                extra={"document_id": document.id, "operation": "load"},
            )
            seen: set[str] = set()
            unique = []
            for node in document.nodes:
                if node.id not in seen:
                    seen.add(node.id)
                    unique.append(node)
            document = document.model_copy(update={"nodes": unique})
        kept, pruned = prune_dangling_edges(document.nodes, document.edges)
        if pruned:
            logger.warning(
                f"Pruned {len(pruned)} dangling edge(s) on load",
                extra={"document_id": document.id, "operation": "load"},
            )
            document = document.model_copy(update={"edges": kept})
        self._entries[document.id] = document
        return document

    def create_entry(
        self,
        title: str = "",
        raw_text: str = "",
        user_id: str | None = None,
        *,
        type: DocumentType = DocumentType.GENERAL,
        nodes: list[GraphNode] | None = None,
        edges: list[GraphEdge] | None = None,
        parent_brain_dump_id: str | None = None,
        origin_node_id: str | None = None,
        origin_node_type: NodeVariant | None = None,
        original_parent_node_id: str | None = None,
        topic_focus: str | None = None,
        document_id: str | None = None,
        make_current: bool = True,
        persist: bool = True,
    ) -> BrainDumpDocument:
        """Build a new document; general documents without nodes are seeded from raw_text."""
        entry_id = document_id or new_document_id()
        if nodes:
            duplicates = find_duplicate_node_ids(nodes)
            if duplicates:
                raise GraphValidationError(
                    f"Duplicate node id(s): {', '.join(duplicates)}",
                    ErrorContext(document_id=entry_id, operation="create_entry"),
                )
            graph_nodes, graph_edges = list(nodes), list(edges or [])
        elif type == DocumentType.TOPIC_FOCUSED and topic_focus:
            logger.warning(
                "Topic document created without initial nodes, seeding a root",
                extra={"document_id": entry_id},
            )
            graph_nodes = [make_root_node(topic_focus, Position(x=400, y=50))]
            graph_edges = []
        else:
            thoughts = process_raw_text(raw_text, entry_id)
            if thoughts:
                graph_nodes, graph_edges = build_graph_from_thoughts(thoughts)
            else:
                graph_nodes = [make_root_node(title, Position(x=400, y=300))]
                graph_edges = []

        kept, pruned = prune_dangling_edges(graph_nodes, graph_edges)
        if pruned:
            logger.warning(
                f"Dropped {len(pruned)} dangling edge(s) from initial graph",
                extra={"document_id": entry_id},
            )

        if not title:
            if type == DocumentType.TOPIC_FOCUSED and topic_focus:
                title = f"Topic: {topic_focus}"
            else:
                title = f"Brain Dump {datetime.now(timezone.utc).date().isoformat()}"

        document = BrainDumpDocument(
            id=entry_id,
            user_id=user_id or self.default_user_id,
            title=title,
            raw_text=raw_text,
            nodes=graph_nodes,
            edges=kept,
            categories=count_categories(graph_nodes),
            type=type,
            parent_brain_dump_id=parent_brain_dump_id,
            origin_node_id=origin_node_id,
            origin_node_type=origin_node_type,
            original_parent_node_id=original_parent_node_id,
            topic_focus=topic_focus,
        )
        self._entries[document.id] = document
        if make_current:
            self._current_id = document.id
        logger.info(
            f"Created {type.value} entry with {len(graph_nodes)} node(s)",
            extra={"document_id": document.id},
        )
        if persist and self._persistence:
            self._persistence.request_create(document.id)
        return document

    def update_entry(
        self, entry_id: str, updates: dict[str, Any], *, persist: bool = True,
    ) -> BrainDumpDocument | None:
        """Shallow-merge document fields (python field names)."""
        document = self._resolve(entry_id, "update_entry")
        if document is None:
            return None
        updates = dict(updates)
        updates.pop("id", None)
        if "nodes" in updates or "edges" in updates:
            nodes = updates.get("nodes", document.nodes)
            kept, pruned = prune_dangling_edges(nodes, updates.get("edges", document.edges))
            if pruned:
                logger.warning(
                    f"Pruned {len(pruned)} dangling edge(s) on update",
                    extra={"document_id": entry_id},
                )
            updates["edges"] = kept
        merged = {**document.model_dump(), **updates}
        return self._commit(
            BrainDumpDocument.model_validate(merged), SavePolicy.IMMEDIATE, persist,
        )

    def delete_entry(self, entry_id: str, *, persist: bool = True) -> bool:
        if self._entries.pop(entry_id, None) is None:
            logger.warning(
                "delete_entry: entry not found",
                extra={"document_id": entry_id},
            )
            return False
        if self._current_id == entry_id:
            self._current_id = None
        logger.info("Deleted entry", extra={"document_id": entry_id})
        if persist and self._persistence:
            self._persistence.request_delete(entry_id)
        return True

    def set_current_entry(self, document: BrainDumpDocument | None) -> None:
        if document is None:
            self._current_id = None
            return
        if document.id not in self._entries:
            self.register_entry(document)
        self._current_id = document.id

    # --- Nodes -----------------------------------------------------------------

    def add_node(
        self, node: GraphNode, entry_id: str | None = None,
    ) -> BrainDumpDocument | None:
        document = self._resolve(entry_id, "add_node")
        if document is None:
            return None
        if document.get_node(node.id) is not None:
            logger.warning(
                "add_node: id already present, ignored",
                extra={"document_id": document.id, "node_id": node.id},
            )
            return document
        return self._commit(
            document.model_copy(update={"nodes": [*document.nodes, node]}),
            SavePolicy.IMMEDIATE,
        )

    def update_node(
        self, node_id: NodeId, data: dict[str, Any], entry_id: str | None = None,
    ) -> BrainDumpDocument | None:
        """Shallow-merge node data. Missing node: warning, no-op."""
        return self._replace_node(
            node_id, entry_id, "update_node", lambda n: n.with_data(**data),
        )

    def update_node_position(
        self, node_id: NodeId, position: Position, entry_id: str | None = None,
    ) -> BrainDumpDocument | None:
        """Drag-release position write."""
        return self._replace_node(
            node_id, entry_id, "update_node_position", lambda n: n.moved_to(position),
        )

    def toggle_node_collapse(
        self, node_id: NodeId, entry_id: str | None = None,
    ) -> BrainDumpDocument | None:
        return self._replace_node(
            node_id, entry_id, "toggle_node_collapse",
            lambda n: n.with_data(is_collapsed=not n.data.is_collapsed),
        )

    def replace_node(
        self, node: GraphNode, entry_id: str | None = None,
    ) -> BrainDumpDocument | None:
        """Swap in a new value for an existing node (same id)."""
        return self._replace_node(node.id, entry_id, "replace_node", lambda _: node)

    def apply_positions(
        self, nodes: list[GraphNode], entry_id: str | None = None,
    ) -> BrainDumpDocument | None:
        """Take positions from layout output; ids absent from the document are ignored."""
        document = self._resolve(entry_id, "apply_positions")
        if document is None:
            return None
        positions = {n.id: n.position for n in nodes}
        updated = [
            n.moved_to(positions[n.id])
            if n.id in positions and positions[n.id] != n.position else n
            for n in document.nodes
        ]
        return self._commit(
            document.model_copy(update={"nodes": updated}), SavePolicy.DEBOUNCED,
        )

    def delete_node(
        self, node_id: NodeId, entry_id: str | None = None,
    ) -> BrainDumpDocument | None:
        """Remove the node and every incident edge in one step."""
        document = self._resolve(entry_id, "delete_node")
        if document is None:
            return None
        if document.get_node(node_id) is None:
            logger.warning(
                "delete_node: node not found",
                extra={"document_id": document.id, "node_id": node_id},
            )
            return None
        nodes = [n for n in document.nodes if n.id != node_id]
        edges = [
            e for e in document.edges if e.source != node_id and e.target != node_id
        ]
        logger.info(
            f"Deleted node and {len(document.edges) - len(edges)} incident edge(s)",
            extra={"document_id": document.id, "node_id": node_id},
        )
        return self._commit(
            document.model_copy(update={"nodes": nodes, "edges": edges}),
            SavePolicy.IMMEDIATE,
        )

    # --- Edges -----------------------------------------------------------------

    def add_edge(
        self, edge: GraphEdge, entry_id: str | None = None,
    ) -> BrainDumpDocument | None:
        document = self._resolve(entry_id, "add_edge")
        if document is None:
            return None
        ids = document.node_ids()
        if edge.source not in ids or edge.target not in ids:
            logger.warning(
                f"add_edge: dangling edge {edge.source} -> {edge.target} pruned",
                extra={"document_id": document.id, "edge_id": edge.id},
            )
            return document
        if document.get_edge(edge.id) is not None:
            logger.warning(
                "add_edge: id already present, ignored",
                extra={"document_id": document.id, "edge_id": edge.id},
            )
            return document
        return self._commit(
            document.model_copy(update={"edges": [*document.edges, edge]}),
            SavePolicy.IMMEDIATE,
        )

    def delete_edge(
        self, edge_id: EdgeId, entry_id: str | None = None,
    ) -> BrainDumpDocument | None:
        document = self._resolve(entry_id, "delete_edge")
        if document is None:
            return None
        if document.get_edge(edge_id) is None:
            logger.warning(
                "delete_edge: edge not found",
                extra={"document_id": document.id, "edge_id": edge_id},
            )
            return None
        return self._commit(
            document.model_copy(update={
                "edges": [e for e in document.edges if e.id != edge_id],
            }),
            SavePolicy.IMMEDIATE,
        )

    # --- Internals -------------------------------------------------------------

    def _resolve(self, entry_id: str | None, operation: str) -> BrainDumpDocument | None:
        target = entry_id or self._current_id
        document = self._entries.get(target) if target else None
        if document is None:
            logger.warning(
                f"{operation}: no such entry",
                extra={"document_id": target, "operation": operation},
            )
        return document

    def _replace_node(self, node_id, entry_id, operation, transform) -> BrainDumpDocument | None:
        document = self._resolve(entry_id, operation)
        if document is None:
            return None
        if document.get_node(node_id) is None:
            logger.warning(
                f"{operation}: node not found",
                extra={"document_id": document.id, "node_id": node_id},
            )
            return None
        nodes = [transform(n) if n.id == node_id else n for n in document.nodes]
        return self._commit(
            document.model_copy(update={"nodes": nodes}), SavePolicy.DEBOUNCED,
        )

    def _commit(
        self, document: BrainDumpDocument, policy: SavePolicy, persist: bool = True,
    ) -> BrainDumpDocument:
        document = document.model_copy(update={"updated_at": datetime.now(timezone.utc)})
        self._entries[document.id] = document
        if persist and self._persistence:
            self._persistence.request_save(document.id, policy)
        return document
