"""Topic Extraction Service — dual-document split/merge applied through the store.

Invariants:
    - Both documents are updated in memory before either write is attempted
    - Write order: source document first, then topic create (extract) or delete (dissolve)
    - Any failed write raises StorageError after both writes were attempted;
      the in-memory state is not rolled back
    - Validation errors (missing origin, already extracted, id collisions) raise before
      anything is mutated

Design Decisions:
    - Store ops run with persist=False so the service owns ordering and error reporting
    - The source document is re-read after the topic lands in the store, so a concurrent
      debounced save never sees a source pointing at a topic that does not exist yet
"""

import logging

from app.core.domain_types import CANONICAL_ORIGIN
from app.core.errors import ErrorContext, ResourceNotFoundError, StorageError
from app.core.graph_model import BrainDumpDocument
from app.core.topic_extraction import merge_topic, split_topic
from app.services.graph_store import GraphStore, new_document_id
from app.services.persistence import PersistenceCoordinator

logger = logging.getLogger(__name__)


class TopicExtractionService:
    def __init__(
        self,
        store: GraphStore,
        persistence: PersistenceCoordinator,
        canonical_origin: tuple[float, float] = CANONICAL_ORIGIN,
    ):
        self.store = store
        self.persistence = persistence
        self.canonical_origin = canonical_origin

    def _source(self, source_id: str | None) -> BrainDumpDocument:
        source = self.store.get_entry(source_id) if source_id else self.store.current_entry
        if source is None:
            raise ResourceNotFoundError("brain_dump", source_id or "<current>")
        return source

    async def extract_topic(
        self,
        origin_node_id: str,
        initial_thoughts_text: str = "",
        source_id: str | None = None,
    ) -> BrainDumpDocument:
        """Move the origin node's subtree into a new topic-focused document."""
        source = self._source(source_id)
        split = split_topic(
            origin_node_id, source, initial_thoughts_text,
            new_document_id(), self.canonical_origin,
        )
        topic = self.store.register_entry(split.topic_document)
        self.store.update_entry(
            source.id,
            {"nodes": split.source_nodes, "edges": split.source_edges},
            persist=False,
        )
        logger.info(
            f"Extracted {len(topic.nodes)} node(s) into topic '{topic.topic_focus}'",
            extra={"document_id": source.id, "node_id": origin_node_id},
        )

        source_ok = await self.persistence.save_now(source.id)
        topic_ok = await self.persistence.create_now(topic.id)
        if not (source_ok and topic_ok):
            raise StorageError(
                _partial_message(source_ok, topic_ok, "topic create"),
                "extract_topic",
                ErrorContext(document_id=source.id, node_id=origin_node_id),
            )
        return topic

    async def dissolve_topic(
        self, origin_node_id: str, source_id: str | None = None,
    ) -> BrainDumpDocument:
        """Merge a topic document back into its source and delete it."""
        source = self._source(source_id)
        origin = source.get_node(origin_node_id)
        if origin is None:
            raise ResourceNotFoundError(
                "node", origin_node_id,
                ErrorContext(document_id=source.id, operation="dissolve_topic"),
            )
        topic_id = origin.data.topic_brain_dump_id
        if not topic_id:
            raise ResourceNotFoundError(
                "topic_brain_dump", f"{origin_node_id} (no topic)",
                ErrorContext(document_id=source.id, node_id=origin_node_id),
            )
        topic = self.store.get_entry(topic_id) or await self.persistence.load(topic_id)
        if topic is None:
            raise ResourceNotFoundError(
                "brain_dump", topic_id,
                ErrorContext(document_id=source.id, node_id=origin_node_id),
            )

        merge = merge_topic(origin_node_id, source, topic, self.canonical_origin)
        if merge.renamed_edge_ids:
            logger.warning(
                f"Renamed {len(merge.renamed_edge_ids)} colliding edge id(s) on dissolve",
                extra={"document_id": source.id},
            )
        updated = self.store.update_entry(
            source.id, {"nodes": merge.nodes, "edges": merge.edges}, persist=False,
        )
        self.store.delete_entry(topic_id, persist=False)
        logger.info(
            f"Dissolved topic {topic_id} back into source",
            extra={"document_id": source.id, "node_id": origin_node_id},
        )

        source_ok = await self.persistence.save_now(source.id)
        topic_ok = await self.persistence.delete_now(topic_id)
        if not (source_ok and topic_ok):
            raise StorageError(
                _partial_message(source_ok, topic_ok, "topic delete"),
                "dissolve_topic",
                ErrorContext(document_id=source.id, node_id=origin_node_id),
            )
        return updated


def _partial_message(source_ok: bool, topic_ok: bool, topic_step: str) -> str:
    failed = []
    if not source_ok:
        failed.append("source save")
    if not topic_ok:
        failed.append(topic_step)
    return " and ".join(failed) + " did not complete; in-memory state kept"
