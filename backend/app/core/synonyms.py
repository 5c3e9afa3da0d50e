"""Synonym Matcher — duplicate-concept detection across every brain dump.

Invariants:
    - Ghost nodes (variant or flag) are never part of the search corpus
    - Exact matches strictly dominate: fuzzy matching only runs when no exact match exists
    - Fuzzy matching requires at least 3 non-blank characters
    - At most one match per node (label checked before synonyms)
    - Prototype.instances is a back-reference list — appends only, no dedupe, no cascade

Design Decisions:
    - Pure functions returning new nodes; the store applies them through its own operations
    - Case-insensitive comparison on stripped input, original casing reported in matched_synonym
"""

from collections.abc import Sequence
from dataclasses import dataclass
from uuid import uuid4

from app.core.domain_types import MatchType, NodeVariant
from app.core.graph_model import BrainDumpDocument, GraphNode, Position

MIN_FUZZY_LENGTH = 3


@dataclass(frozen=True)
class SynonymMatch:
    node: GraphNode
    document: BrainDumpDocument
    matched_synonym: str
    match_type: MatchType


def _searchable(node: GraphNode) -> bool:
    return node.variant != NodeVariant.GHOST and not node.data.is_ghost


def _match_node(node: GraphNode, needle: str, match_type: MatchType) -> str | None:
    """Return the matched label/synonym (original casing) or None."""
    def hit(candidate: str) -> bool:
        lowered = candidate.lower()
        if match_type == MatchType.EXACT:
            return lowered == needle
        return needle in lowered

    if hit(node.data.label):
        return node.data.label
    for synonym in node.data.synonyms:
        if hit(synonym):
            return synonym
    return None


def _scan(
    needle: str, documents: Sequence[BrainDumpDocument], match_type: MatchType,
) -> list[SynonymMatch]:
    matches: list[SynonymMatch] = []
    for document in documents:
        for node in document.nodes:
            if not _searchable(node):
                continue
            matched = _match_node(node, needle, match_type)
            if matched is not None:
                matches.append(SynonymMatch(node, document, matched, match_type))
    return matches


def find_matches(
    input_text: str, documents: Sequence[BrainDumpDocument],
) -> list[SynonymMatch]:
    """Exact label/synonym matches, falling back to substring matches."""
    needle = input_text.strip().lower()
    if not needle:
        return []

    exact = _scan(needle, documents, MatchType.EXACT)
    if exact:
        return exact
    if len(needle) < MIN_FUZZY_LENGTH:
        return []
    return _scan(needle, documents, MatchType.FUZZY)


def create_instance(
    prototype: GraphNode, position: Position, instance_id: str | None = None,
) -> GraphNode:
    """New node copying the prototype's data, marked as its instance."""
    node_id = instance_id or f"instance-{prototype.id}-{uuid4().hex[:8]}"
    instance = GraphNode(
        id=node_id, variant=prototype.variant, position=position,
        data=prototype.data,
    )
    return instance.with_data(
        is_instance=True,
        prototype_id=prototype.id,
        instances=[],
        is_ghost=False,
        referenced_node_id=None,
    )


def add_instance_to_prototype(prototype: GraphNode, instance_id: str) -> GraphNode:
    """Append instance_id to the prototype's back-reference list."""
    return prototype.with_data(instances=[*prototype.data.instances, instance_id])


def add_synonym(node: GraphNode, synonym: str) -> GraphNode:
    """Add a trimmed synonym unless blank, already present, or equal to the label."""
    candidate = synonym.strip()
    if not candidate:
        return node
    lowered = candidate.lower()
    if lowered == node.data.label.lower():
        return node
    if any(s.lower() == lowered for s in node.data.synonyms):
        return node
    return node.with_data(synonyms=[*node.data.synonyms, candidate])


def remove_synonym(node: GraphNode, synonym: str) -> GraphNode:
    if synonym not in node.data.synonyms:
        return node
    return node.with_data(synonyms=[s for s in node.data.synonyms if s != synonym])
