"""Graph Integrity tests — traversal and dangling-edge detection."""

from app.core.graph_integrity import (
    build_children_map, collect_descendants, find_dangling_edge_ids,
    find_duplicate_node_ids, find_inbound_sources, prune_dangling_edges,
)

from tests.builders import edge, node


def test_children_map_preserves_edge_order():
    edges = [edge("p", "b"), edge("p", "a"), edge("q", "c")]
    assert build_children_map(edges) == {"p": ["b", "a"], "q": ["c"]}


def test_collect_descendants_breadth_first():
    edges = [edge("r", "a"), edge("r", "b"), edge("a", "c")]
    assert collect_descendants(["r"], edges) == ["a", "b", "c"]
    assert collect_descendants(["r"], edges, include_start=True) == ["r", "a", "b", "c"]


def test_collect_descendants_survives_cycles():
    edges = [edge("a", "b"), edge("b", "a")]
    assert collect_descendants(["a"], edges) == ["b"]


def test_inbound_sources_in_edge_order():
    edges = [edge("x", "t"), edge("y", "t"), edge("t", "z")]
    assert find_inbound_sources("t", edges) == ["x", "y"]


def test_prune_dangling_edges_splits_kept_and_pruned():
    nodes = [node("a"), node("b")]
    edges = [edge("a", "b"), edge("a", "gone"), edge("gone", "b")]
    kept, pruned = prune_dangling_edges(nodes, edges)
    assert [e.id for e in kept] == ["e-a-b"]
    assert [e.id for e in pruned] == ["e-a-gone", "e-gone-b"]
    assert find_dangling_edge_ids(nodes, edges) == ["e-a-gone", "e-gone-b"]


def test_duplicate_node_ids_reported_once():
    assert find_duplicate_node_ids([node("a"), node("a"), node("a"), node("b")]) == ["a"]
