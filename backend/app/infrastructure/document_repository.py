"""SQL Document Repository — DocumentRepository over the brain_dumps table.

Invariants:
    - Each call opens its own session (writes run detached from any request)
    - Every failure surfaces as StorageError; load_document returns None for a missing row
    - save_document on a missing row raises StorageError (nothing to update)

Design Decisions:
    - Partial updates arrive in wire (camelCase) shape and are mapped to columns here,
      so the core never learns column names
"""

import logging
from datetime import datetime, timezone

from sqlalchemy import select

from app.core.errors import StorageError
from app.core.graph_model import BrainDumpDocument
from app.infrastructure.database import DatabaseSessionManager
from app.models.brain_dump import BrainDump

logger = logging.getLogger(__name__)

# wire key -> column
_COLUMNS: dict[str, str] = {
    "title": "title",
    "rawText": "raw_text",
    "nodes": "nodes",
    "edges": "edges",
    "categories": "categories",
    "type": "type",
    "parentBrainDumpId": "parent_brain_dump_id",
    "originNodeId": "origin_node_id",
    "originNodeType": "origin_node_type",
    "originalParentNodeId": "original_parent_node_id",
    "topicFocus": "topic_focus",
    "updatedAt": "updated_at",
}


def _to_document(row: BrainDump) -> BrainDumpDocument:
    return BrainDumpDocument.model_validate({
        "id": row.id,
        "userId": row.user_id,
        "title": row.title,
        "rawText": row.raw_text,
        "nodes": row.nodes or [],
        "edges": row.edges or [],
        "categories": row.categories or [],
        "type": row.type,
        "parentBrainDumpId": row.parent_brain_dump_id,
        "originNodeId": row.origin_node_id,
        "originNodeType": row.origin_node_type,
        "originalParentNodeId": row.original_parent_node_id,
        "topicFocus": row.topic_focus,
        "createdAt": row.created_at,
        "updatedAt": row.updated_at,
    })


def _parse_timestamp(value) -> datetime:
    if isinstance(value, datetime):
        return value
    if isinstance(value, str):
        return datetime.fromisoformat(value)
    return datetime.now(timezone.utc)


class SqlDocumentRepository:
    def __init__(self, db: DatabaseSessionManager):
        self.db = db

    async def load_document(self, document_id: str) -> BrainDumpDocument | None:
        async with self.db.session("load_document") as session:
            row = await session.get(BrainDump, document_id)
            return _to_document(row) if row else None

    async def list_documents(self, user_id: str) -> list[BrainDumpDocument]:
        async with self.db.session("list_documents") as session:
            result = await session.execute(
                select(BrainDump)
                .where(BrainDump.user_id == user_id)
                .order_by(BrainDump.created_at.desc()),
            )
            return [_to_document(row) for row in result.scalars().all()]

    async def create_document(self, document: BrainDumpDocument) -> BrainDumpDocument:
        data = document.to_storage()
        async with self.db.session("create_document") as session:
            session.add(BrainDump(
                id=document.id,
                user_id=document.user_id,
                title=document.title,
                raw_text=document.raw_text,
                nodes=data["nodes"],
                edges=data["edges"],
                categories=data["categories"],
                type=document.type.value,
                parent_brain_dump_id=document.parent_brain_dump_id,
                origin_node_id=document.origin_node_id,
                origin_node_type=(
                    document.origin_node_type.value if document.origin_node_type else None
                ),
                original_parent_node_id=document.original_parent_node_id,
                topic_focus=document.topic_focus,
                created_at=document.created_at,
                updated_at=document.updated_at,
            ))
            await session.commit()
        logger.info("Document created", extra={"document_id": document.id})
        return document

    async def save_document(self, document_id: str, partial_update: dict) -> None:
        async with self.db.session("save_document") as session:
            row = await session.get(BrainDump, document_id)
            if row is None:
                raise StorageError(f"document '{document_id}' does not exist", "save_document")
            for key, value in partial_update.items():
                column = _COLUMNS.get(key)
                if column is None:
                    continue
                if column == "updated_at":
                    value = _parse_timestamp(value)
                setattr(row, column, value)
            await session.commit()

    async def delete_document(self, document_id: str) -> None:
        async with self.db.session("delete_document") as session:
            row = await session.get(BrainDump, document_id)
            if row is None:
                logger.warning(
                    "delete_document: already gone",
                    extra={"document_id": document_id},
                )
                return
            await session.delete(row)
            await session.commit()
