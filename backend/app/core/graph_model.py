"""Graph Model — nodes, edges and brain dump documents as immutable-by-convention values.

Invariants:
    - Node ids unique within a document; edge endpoints reference nodes of the same document
    - JSON shape matches React Flow: {id, type, position: {x, y}, data: {...}} with camelCase keys
    - parent_layout_mode is derived by the visibility resolver and never serialized
    - Unknown data keys (originalText, aiGenerated, ...) round-trip untouched

Design Decisions:
    - Pydantic over dataclasses: the persisted schema is JSON, validation at load is free
    - Callers never mutate in place — model_copy(update=...) produces the next value, so a reader
      holding an older document never observes a half-applied mutation
    - Field named `variant` in Python, aliased to `type` on the wire (React Flow node type)
"""

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from app.core.domain_types import DocumentType, LayoutMode, NodeVariant


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Position(_CamelModel):
    """Canvas coordinates of a node."""
    x: float = 0.0
    y: float = 0.0

    def translated(self, dx: float, dy: float) -> "Position":
        return Position(x=self.x + dx, y=self.y + dy)


class NodeData(_CamelModel):
    """Variant-shaped payload of a node. Weak references are plain ids."""
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="allow",
    )

    label: str = ""
    category: str | None = None
    synonyms: list[str] = []
    is_collapsed: bool = False
    layout_mode: LayoutMode = LayoutMode.FREEFORM

    # Topic extraction
    has_topic_brain_dump: bool = False
    topic_brain_dump_id: str | None = None

    # Ghost -> target node
    is_ghost: bool = False
    referenced_node_id: str | None = None

    # Instance -> prototype, prototype -> instances (back-reference only)
    is_instance: bool = False
    prototype_id: str | None = None
    instances: list[str] = []

    # Link -> another document
    is_link: bool = False
    linked_brain_dump_id: str | None = None

    importance: float | None = None
    urgency: float | None = None
    due_date: str | None = None
    style: dict[str, Any] | None = None

    # Derived by the visibility resolver
    children: list[str] = []
    parent_layout_mode: LayoutMode | None = Field(default=None, exclude=True)

    @classmethod
    def field_names_from_wire(cls, raw: dict[str, Any]) -> dict[str, Any]:
        """Map camelCase keys to field names; unknown keys pass through as extras."""
        by_alias = {
            (info.alias or name): name for name, info in cls.model_fields.items()
        }
        return {by_alias.get(key, key): value for key, value in raw.items()}


class GraphNode(_CamelModel):
    """A node in a brain dump graph (React Flow format)."""
    id: str
    variant: NodeVariant = Field(alias="type")
    position: Position = Position()
    data: NodeData = NodeData()

    def with_data(self, **changes: Any) -> "GraphNode":
        """Shallow-merge data fields, validating the result."""
        merged = {**self.data.model_dump(), **changes}
        return self.model_copy(update={"data": NodeData.model_validate(merged)})

    def moved_to(self, position: Position) -> "GraphNode":
        return self.model_copy(update={"position": position})


class GraphEdge(_CamelModel):
    """A directed edge source -> target (React Flow format)."""
    id: str
    source: str
    target: str
    source_handle: str | None = None
    target_handle: str | None = None
    type: str | None = None
    animated: bool = False
    label: str | None = None


class Category(_CamelModel):
    """Category summary stored alongside the graph."""
    id: str
    name: str
    color: str = "#6b7280"
    node_count: int = 0


class BrainDumpDocument(_CamelModel):
    """One graph plus metadata — either general or topic-focused."""
    id: str
    user_id: str
    title: str
    raw_text: str = ""
    nodes: list[GraphNode] = []
    edges: list[GraphEdge] = []
    categories: list[Category] = []
    type: DocumentType = DocumentType.GENERAL

    # Only set on topic-focused documents
    parent_brain_dump_id: str | None = None
    origin_node_id: str | None = None
    origin_node_type: NodeVariant | None = None
    original_parent_node_id: str | None = None
    topic_focus: str | None = None

    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    @property
    def is_topic(self) -> bool:
        return self.type == DocumentType.TOPIC_FOCUSED

    def get_node(self, node_id: str) -> GraphNode | None:
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

    def get_edge(self, edge_id: str) -> GraphEdge | None:
        for edge in self.edges:
            if edge.id == edge_id:
                return edge
        return None

    def node_ids(self) -> set[str]:
        return {n.id for n in self.nodes}

    def to_storage(self) -> dict:
        """JSON-safe, camelCase dict in the persisted document schema."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    def to_partial_update(self) -> dict:
        """Everything a save may change — identity and creation time excluded."""
        return self.model_dump(
            mode="json", by_alias=True, exclude_none=True,
            exclude={"id", "user_id", "created_at"},
        )
