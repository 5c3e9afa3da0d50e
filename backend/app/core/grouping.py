"""Document Grouping — organize brain dumps for listing.

Invariants:
    - Every document lands in exactly one group
    - Empty groups are never returned

Design Decisions:
    - Main topic of a general document: a non-default root label, else the label of the
      category node of a category used by at least 3 nodes
"""

from collections.abc import Sequence
from dataclasses import dataclass, field

from app.core.domain_types import DEFAULT_ROOT_LABEL, DocumentType, NodeVariant, SortOrder
from app.core.graph_model import BrainDumpDocument

_DOMINANT_CATEGORY_MIN = 3


@dataclass
class DocumentGroup:
    title: str
    documents: list[BrainDumpDocument] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.documents)


def extract_main_topic(document: BrainDumpDocument) -> str | None:
    if not document.nodes:
        return None

    for node in document.nodes:
        if node.variant == NodeVariant.ROOT:
            if node.data.label != DEFAULT_ROOT_LABEL:
                return node.data.label
            break

    counts: dict[str, int] = {}
    for node in document.nodes:
        if node.data.category and node.variant != NodeVariant.ROOT:
            counts[node.data.category] = counts.get(node.data.category, 0) + 1
    if not counts:
        return None

    main_category, top = max(counts.items(), key=lambda item: item[1])
    if top < _DOMINANT_CATEGORY_MIN:
        return None
    for node in document.nodes:
        if node.variant == NodeVariant.CATEGORY and node.data.category == main_category:
            return node.data.label
    return None


def group_by_topic(documents: Sequence[BrainDumpDocument]) -> dict[str, DocumentGroup]:
    groups: dict[str, DocumentGroup] = {}
    for document in documents:
        if document.topic_focus:
            key, title = f"topic-{document.topic_focus.lower()}", document.topic_focus
        else:
            main_topic = extract_main_topic(document)
            if main_topic:
                key, title = f"extracted-{main_topic.lower()}", main_topic
            else:
                key, title = "general", "General Brain Dumps"
        groups.setdefault(key, DocumentGroup(title=title)).documents.append(document)
    return groups


def group_by_type(documents: Sequence[BrainDumpDocument]) -> dict[str, DocumentGroup]:
    groups = {
        DocumentType.TOPIC_FOCUSED.value: DocumentGroup(title="Topic-Focused"),
        DocumentType.GENERAL.value: DocumentGroup(title="General"),
    }
    for document in documents:
        groups[document.type.value].documents.append(document)
    return {key: group for key, group in groups.items() if group.count}


def sort_documents(
    documents: Sequence[BrainDumpDocument], order: SortOrder,
) -> list[BrainDumpDocument]:
    if order == SortOrder.DATE:
        return sorted(documents, key=lambda d: d.created_at, reverse=True)
    if order == SortOrder.TOPIC:
        return sorted(
            documents,
            key=lambda d: (d.topic_focus or extract_main_topic(d) or "zzz").lower(),
        )
    return sorted(documents, key=lambda d: d.title.lower())
