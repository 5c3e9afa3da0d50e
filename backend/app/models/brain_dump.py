"""BrainDump ORM — one row per document, graph stored as JSON columns.

Invariants:
    - id is the document id string (braindump-<hex>), not a server-generated UUID
    - nodes/edges/categories hold the camelCase wire shape exactly as the store serializes it
    - Topic metadata columns are NULL on general documents

Design Decisions:
    - JSON columns over node/edge tables: the graph is always read and written whole
    - parent_brain_dump_id is a plain indexed column, not a FK — deleting a source must not
      cascade into its topics, and a topic may outlive a failed source write
"""

from datetime import datetime, timezone

from sqlalchemy import JSON, DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class BrainDump(Base):
    """Persisted brain dump document."""
    __tablename__ = "brain_dumps"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(300), nullable=False, default="")
    raw_text: Mapped[str] = mapped_column(Text, nullable=False, default="")
    nodes: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    edges: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    categories: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    type: Mapped[str] = mapped_column(String(20), nullable=False, default="general")

    parent_brain_dump_id: Mapped[str | None] = mapped_column(
        String(64), nullable=True, index=True,
    )
    origin_node_id: Mapped[str | None] = mapped_column(String(128), nullable=True)
    origin_node_type: Mapped[str | None] = mapped_column(String(20), nullable=True)
    original_parent_node_id: Mapped[str | None] = mapped_column(String(128), nullable=True)
    topic_focus: Mapped[str | None] = mapped_column(String(300), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow,
    )
