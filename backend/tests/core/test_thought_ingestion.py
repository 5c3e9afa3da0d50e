"""Thought Ingestion tests — keyword categorization and initial graph building."""

from app.core.domain_types import NodeVariant
from app.core.graph_integrity import find_dangling_edge_ids
from app.core.thought_ingestion import (
    build_graph_from_thoughts, categorize_line, count_categories, process_raw_text,
    thoughts_from_categorization,
)


def test_categorize_line_keywords():
    assert categorize_line("Idea: solar roof") == "ideas"
    assert categorize_line("need to call the bank") == "tasks"
    assert categorize_line("Is this right?") == "questions"
    assert categorize_line("I realize it was late") == "insights"
    assert categorize_line("Bug: login fails") == "problems"
    assert categorize_line("Groceries") == "misc"


def test_process_raw_text_skips_blank_lines():
    thoughts = process_raw_text("todo: taxes\n\n   \nwhat if we moved", "doc")
    assert [(t.id, t.text, t.category) for t in thoughts] == [
        ("thought-doc-0", "todo: taxes", "tasks"),
        ("thought-doc-1", "what if we moved", "ideas"),
    ]


def test_graph_shape_root_category_thought():
    thoughts = process_raw_text("todo: taxes\ntodo: dishes\nwhat if", "d")
    nodes, edges = build_graph_from_thoughts(thoughts)
    roots = [n for n in nodes if n.variant == NodeVariant.ROOT]
    assert len(roots) == 1
    assert [n.id for n in nodes if n.variant == NodeVariant.CATEGORY] == [
        "category-tasks", "category-ideas",
    ]
    assert ("category-tasks", "thought-d-1") in {(e.source, e.target) for e in edges}
    assert find_dangling_edge_ids(nodes, edges) == []


def test_thought_nodes_keep_original_text():
    nodes, _ = build_graph_from_thoughts(process_raw_text("Groceries", "d"))
    thought = next(n for n in nodes if n.variant == NodeVariant.THOUGHT)
    assert thought.data.model_extra["originalText"] == "Groceries"
    assert thought.data.category == "misc"


def test_categorization_result_adapter():
    result = {
        "categories": [
            {"thoughts": [
                {"text": "Book flight", "category": "tasks", "confidence": 0.9, "urgency": 7},
                {"text": "  ", "category": "tasks"},
            ]},
            {"thoughts": [{"text": "Why Lisbon", "category": "questions", "confidence": 0.5}]},
        ],
        "relationships": [{"from": "Book flight", "to": "Why Lisbon"}],
    }
    thoughts = thoughts_from_categorization(result, "x")
    assert [t.text for t in thoughts] == ["Book flight", "Why Lisbon"]
    assert thoughts[0].urgency == 7
    assert thoughts[0].related_thoughts == ["Why Lisbon"]
    assert thoughts[1].id == "thought-ai-x-1"


def test_count_categories():
    nodes, _ = build_graph_from_thoughts(process_raw_text("todo: a\ntodo: b", "d"))
    counts = {c.id: c.node_count for c in count_categories(nodes)}
    # category node + two thoughts
    assert counts["tasks"] == 3
    assert counts["ideas"] == 0
