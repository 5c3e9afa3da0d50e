"""Brain dumps — one JSON-backed row per document.

Revision ID: 001_brain_dumps
Revises: None
Create Date: 2026-10-18

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "001_brain_dumps"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "brain_dumps",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("title", sa.String(300), nullable=False, server_default=""),
        sa.Column("raw_text", sa.Text, nullable=False, server_default=""),
        sa.Column("nodes", sa.JSON, nullable=False),
        sa.Column("edges", sa.JSON, nullable=False),
        sa.Column("categories", sa.JSON, nullable=False),
        sa.Column("type", sa.String(20), nullable=False, server_default="general"),
        sa.Column("parent_brain_dump_id", sa.String(64), nullable=True),
        sa.Column("origin_node_id", sa.String(128), nullable=True),
        sa.Column("origin_node_type", sa.String(20), nullable=True),
        sa.Column("original_parent_node_id", sa.String(128), nullable=True),
        sa.Column("topic_focus", sa.String(300), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_brain_dumps_user_id", "brain_dumps", ["user_id"])
    op.create_index(
        "ix_brain_dumps_parent_brain_dump_id", "brain_dumps", ["parent_brain_dump_id"],
    )


def downgrade() -> None:
    op.drop_index("ix_brain_dumps_parent_brain_dump_id", table_name="brain_dumps")
    op.drop_index("ix_brain_dumps_user_id", table_name="brain_dumps")
    op.drop_table("brain_dumps")
