"""Graph builders shared by core and service tests."""

from app.core.domain_types import DocumentType, NodeVariant
from app.core.graph_model import BrainDumpDocument, GraphEdge, GraphNode, NodeData, Position


def node(
    node_id: str, variant: NodeVariant = NodeVariant.THOUGHT, label: str | None = None,
    category: str | None = None, x: float = 0.0, y: float = 0.0, **data,
) -> GraphNode:
    return GraphNode(
        id=node_id, variant=variant, position=Position(x=x, y=y),
        data=NodeData(label=label if label is not None else node_id, category=category, **data),
    )


def edge(source: str, target: str, edge_id: str | None = None) -> GraphEdge:
    return GraphEdge(id=edge_id or f"e-{source}-{target}", source=source, target=target)


def document(
    nodes: list[GraphNode], edges: list[GraphEdge], doc_id: str = "doc-1",
    doc_type: DocumentType = DocumentType.GENERAL, **fields,
) -> BrainDumpDocument:
    return BrainDumpDocument(
        id=doc_id, user_id="user-1", title=fields.pop("title", "Test dump"),
        nodes=nodes, edges=edges, type=doc_type, **fields,
    )


def tasks_graph() -> BrainDumpDocument:
    """root -> category(tasks) -> {thought A, thought B}"""
    return document(
        [
            node("root", NodeVariant.ROOT, "Brain Dump"),
            node("cat-tasks", NodeVariant.CATEGORY, "tasks", category="tasks", x=300),
            node("a", label="A", category="tasks", x=550, y=0),
            node("b", label="B", category="tasks", x=550, y=100),
        ],
        [edge("root", "cat-tasks"), edge("cat-tasks", "a"), edge("cat-tasks", "b")],
    )


def trip_graph() -> BrainDumpDocument:
    """root -> cat-misc -> plan(Plan trip) -> {flight, hotel}; cat-misc -> other"""
    return document(
        [
            node("root", NodeVariant.ROOT, "Brain Dump", x=50, y=300),
            node("cat-misc", NodeVariant.CATEGORY, "misc", category="misc", x=300, y=300),
            node("plan", label="Plan trip", category="misc", x=550, y=250),
            node("flight", label="Book flight", category="misc", x=800, y=200),
            node("hotel", label="Book hotel", category="misc", x=800, y=300),
            node("other", label="Call mom", category="misc", x=550, y=400),
        ],
        [
            edge("root", "cat-misc"),
            edge("cat-misc", "plan"),
            edge("plan", "flight"),
            edge("plan", "hotel"),
            edge("cat-misc", "other"),
        ],
    )
