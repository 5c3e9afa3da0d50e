"""Graph Schemas — Pydantic request/response models for the brain dump API.

Invariants:
    - Wire format is camelCase (React Flow + persisted document schema), snake_case in Python
    - Node/edge/document *responses* reuse the core graph models, no parallel shapes

Design Decisions:
    - Request bodies only carry what a gesture sends; ids are generated server-side when absent
    - Node data patches stay a free-form dict: shallow-merge semantics, unknown keys kept
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from app.core.domain_types import DocumentType, MatchType, NodeVariant, SaveStatus
from app.core.graph_model import BrainDumpDocument, GraphEdge, GraphNode, Position


class _Wire(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ─── Documents ──────────────────────────────────────────────────

class BrainDumpCreate(_Wire):
    title: str = Field("", max_length=300)
    raw_text: str = ""
    type: DocumentType = DocumentType.GENERAL
    topic_focus: str | None = None
    nodes: list[GraphNode] | None = None
    edges: list[GraphEdge] | None = None


class BrainDumpUpdate(_Wire):
    title: str | None = Field(None, max_length=300)
    raw_text: str | None = None
    topic_focus: str | None = None


class BrainDumpSummary(_Wire):
    id: str
    title: str
    type: DocumentType
    topic_focus: str | None = None
    node_count: int
    created_at: datetime
    updated_at: datetime

    @classmethod
    def of(cls, document: BrainDumpDocument) -> "BrainDumpSummary":
        return cls(
            id=document.id, title=document.title, type=document.type,
            topic_focus=document.topic_focus, node_count=len(document.nodes),
            created_at=document.created_at, updated_at=document.updated_at,
        )


class BrainDumpGroupResponse(_Wire):
    key: str
    title: str
    count: int
    entries: list[BrainDumpSummary]


class BrainDumpListResponse(_Wire):
    entries: list[BrainDumpSummary] = []
    groups: list[BrainDumpGroupResponse] | None = None
    current_entry_id: str | None = None


class VisibleGraphResponse(_Wire):
    visible_nodes: list[GraphNode]
    visible_edges: list[GraphEdge]
    hidden_node_ids: list[str]


# ─── Nodes / edges ──────────────────────────────────────────────

class NodeCreate(_Wire):
    id: str | None = None
    type: NodeVariant = NodeVariant.THOUGHT
    position: Position | None = None
    data: dict[str, Any] = {}
    parent_id: str | None = None


class NodeDataPatch(_Wire):
    data: dict[str, Any]


class SynonymBody(_Wire):
    synonym: str = Field(..., min_length=1, max_length=200)


class EdgeCreate(_Wire):
    id: str | None = None
    source: str
    target: str
    source_handle: str | None = None
    target_handle: str | None = None
    type: str | None = None
    animated: bool = False
    label: str | None = None


# ─── Topics / synonyms ──────────────────────────────────────────

class TopicExtractRequest(_Wire):
    initial_thoughts_text: str = ""


class TopicExtractResponse(_Wire):
    topic: BrainDumpDocument
    source: BrainDumpDocument


class SynonymMatchRequest(_Wire):
    input: str = Field(..., max_length=500)


class SynonymMatchResponse(_Wire):
    node_id: str
    node_label: str
    brain_dump_id: str
    brain_dump_title: str
    matched_synonym: str
    match_type: MatchType


class InstanceCreate(_Wire):
    target_brain_dump_id: str | None = None
    position: Position | None = None
    parent_id: str | None = None


class InstanceCreateResponse(_Wire):
    instance: GraphNode
    target: BrainDumpDocument


# ─── Save status ────────────────────────────────────────────────

class SaveStatusResponse(_Wire):
    status: SaveStatus
    pending_changes: int
    last_saved_at: datetime | None = None
    last_error: str | None = None
