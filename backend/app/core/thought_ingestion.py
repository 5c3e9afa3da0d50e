"""Thought Ingestion — raw text and AI categorization results to an initial graph.

Invariants:
    - Every non-blank line becomes exactly one thought
    - Built graphs always contain exactly one ROOT node
    - Graph shape: root -> category-<name> -> thought, categories in first-seen order
    - Category node counts reflect THOUGHT/CATEGORY nodes carrying that category id

Design Decisions:
    - Keyword categorizer is the offline fallback; the AI categorize() call lives outside the core,
      only its result shape is adapted here
    - Thought ids supplied by the caller (id_prefix) so the builder stays deterministic
"""

from collections.abc import Sequence
from dataclasses import dataclass, field

from app.core.domain_types import DEFAULT_ROOT_LABEL, NodeVariant
from app.core.graph_model import (
    Category, GraphEdge, GraphNode, NodeData, Position,
)

# Ordered: first matching rule wins
_KEYWORD_RULES: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("ideas", ("idea:", "what if")),
    ("tasks", ("todo:", "need to", "task:")),
    ("questions", ("?", "how", "why")),
    ("insights", ("realize", "insight:", "learned")),
    ("problems", ("problem:", "issue:", "bug:")),
)
FALLBACK_CATEGORY = "misc"

DEFAULT_CATEGORIES: tuple[Category, ...] = (
    Category(id="ideas", name="Ideas", color="#8b5cf6"),
    Category(id="tasks", name="Tasks", color="#3b82f6"),
    Category(id="questions", name="Questions", color="#f59e0b"),
    Category(id="insights", name="Insights", color="#10b981"),
    Category(id="problems", name="Problems", color="#ef4444"),
    Category(id="misc", name="Misc", color="#6b7280"),
)

# Canvas placement of the generated tree
_ROOT_POSITION = Position(x=50, y=300)
_CATEGORY_X = 300.0
_CATEGORY_SPACING = 150.0
_THOUGHT_OFFSET_X = 250.0
_THOUGHT_SPACING = 80.0


@dataclass
class ProcessedThought:
    id: str
    text: str
    category: str
    confidence: float = 0.8
    importance: float | None = None
    urgency: float | None = None
    due_date: str | None = None
    related_thoughts: list[str] = field(default_factory=list)


def categorize_line(line: str) -> str:
    lowered = line.lower()
    for category, keywords in _KEYWORD_RULES:
        if any(k in lowered for k in keywords):
            return category
    return FALLBACK_CATEGORY


def process_raw_text(text: str, id_prefix: str) -> list[ProcessedThought]:
    """One keyword-categorized thought per non-blank line."""
    lines = [line.strip() for line in text.split("\n") if line.strip()]
    return [
        ProcessedThought(
            id=f"thought-{id_prefix}-{index}", text=line,
            category=categorize_line(line),
        )
        for index, line in enumerate(lines)
    ]


def thoughts_from_categorization(result: dict, id_prefix: str) -> list[ProcessedThought]:
    """Adapt a categorize() result: {categories: [{thoughts: [...]}], relationships: [...]}."""
    relationships = result.get("relationships", [])
    thoughts: list[ProcessedThought] = []
    for group in result.get("categories", []):
        for raw in group.get("thoughts", []):
            text = raw.get("text", "").strip()
            if not text:
                continue
            thoughts.append(ProcessedThought(
                id=f"thought-ai-{id_prefix}-{len(thoughts)}",
                text=text,
                category=raw.get("category") or FALLBACK_CATEGORY,
                confidence=raw.get("confidence", 0.0),
                importance=raw.get("importance"),
                urgency=raw.get("urgency"),
                due_date=raw.get("dueDate"),
                related_thoughts=[
                    r["to"] for r in relationships if r.get("from") == text
                ],
            ))
    return thoughts


def make_root_node(label: str, position: Position | None = None) -> GraphNode:
    return GraphNode(
        id="root", variant=NodeVariant.ROOT,
        position=position or _ROOT_POSITION,
        data=NodeData(label=label or DEFAULT_ROOT_LABEL),
    )


def build_graph_from_thoughts(
    thoughts: Sequence[ProcessedThought], root_label: str = DEFAULT_ROOT_LABEL,
) -> tuple[list[GraphNode], list[GraphEdge]]:
    """Root, one category node per distinct category, one thought node per thought."""
    nodes: list[GraphNode] = [make_root_node(root_label)]
    edges: list[GraphEdge] = []

    grouped: dict[str, list[ProcessedThought]] = {}
    for thought in thoughts:
        grouped.setdefault(thought.category, []).append(thought)

    for index, (category, members) in enumerate(grouped.items()):
        category_id = f"category-{category}"
        category_y = 100 + index * _CATEGORY_SPACING
        nodes.append(GraphNode(
            id=category_id, variant=NodeVariant.CATEGORY,
            position=Position(x=_CATEGORY_X, y=category_y),
            data=NodeData(
                label=category, category=category,
                children=[t.id for t in members],
            ),
        ))
        edges.append(GraphEdge(
            id=f"edge-root-{category}", source="root", target=category_id,
            type="floating", animated=True,
        ))
        spread = (len(members) - 1) * _THOUGHT_SPACING / 2
        for thought_index, thought in enumerate(members):
            nodes.append(GraphNode(
                id=thought.id, variant=NodeVariant.THOUGHT,
                position=Position(
                    x=_CATEGORY_X + _THOUGHT_OFFSET_X,
                    y=category_y + thought_index * _THOUGHT_SPACING - spread,
                ),
                data=NodeData(
                    label=thought.text, category=thought.category,
                    importance=thought.importance, urgency=thought.urgency,
                    due_date=thought.due_date,
                    originalText=thought.text, aiGenerated=False,
                ),
            ))
            edges.append(GraphEdge(
                id=f"edge-{category_id}-{thought.id}", source=category_id,
                target=thought.id, type="floating", animated=True,
            ))
    return nodes, edges


def count_categories(
    nodes: Sequence[GraphNode],
    categories: Sequence[Category] = DEFAULT_CATEGORIES,
) -> list[Category]:
    """Copies of categories with node_count refreshed from nodes."""
    counts: dict[str, int] = {}
    for node in nodes:
        if node.data.category is not None and node.variant != NodeVariant.ROOT:
            counts[node.data.category] = counts.get(node.data.category, 0) + 1
    return [
        c.model_copy(update={"node_count": counts.get(c.id, 0)})
        for c in categories
    ]
