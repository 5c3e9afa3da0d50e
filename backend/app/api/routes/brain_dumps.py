"""Brain Dump Routes — document lifecycle, visible graph and save status.

Invariants:
    - The in-memory GraphStore is authoritative; storage is consulted only for entries not loaded yet
    - Handlers never await a debounced save — mutations return as soon as the store applied them
    - Domain errors propagate to the global handlers (404/409/503), no HTTPException wrapping

Design Decisions:
    - get_entry_or_404 exported for reuse by graph_commands (DRY over duplication)
    - Listing loads the default user's documents first so a fresh process shows stored entries
"""

import logging
from typing import Literal

from fastapi import APIRouter, Depends, Query, Response, status

from app.config import get_settings
from app.core.domain_types import SortOrder
from app.core.errors import ErrorContext, ResourceNotFoundError, StorageError
from app.core.graph_model import BrainDumpDocument
from app.core.grouping import group_by_topic, group_by_type, sort_documents
from app.schemas.graph import (
    BrainDumpCreate, BrainDumpGroupResponse, BrainDumpListResponse, BrainDumpSummary,
    BrainDumpUpdate, SaveStatusResponse, VisibleGraphResponse,
)
from app.services.brain_space import BrainSpace, get_brain_space

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/brain-dumps", tags=["brain-dumps"])


async def get_entry_or_404(space: BrainSpace, entry_id: str) -> BrainDumpDocument:
    """In-memory entry, loading it from storage on first access."""
    document = await space.persistence.load(entry_id)
    if document is None:
        raise ResourceNotFoundError("brain_dump", entry_id)
    return document


@router.post("", response_model=BrainDumpDocument, status_code=status.HTTP_201_CREATED)
async def create_brain_dump(
    body: BrainDumpCreate, space: BrainSpace = Depends(get_brain_space),
):
    """Create a document; raw text without nodes is keyword-categorized into a graph."""
    return space.store.create_entry(
        title=body.title,
        raw_text=body.raw_text,
        type=body.type,
        topic_focus=body.topic_focus,
        nodes=body.nodes,
        edges=body.edges,
    )


@router.get("", response_model=BrainDumpListResponse)
async def list_brain_dumps(
    group_by: Literal["topic", "type"] | None = Query(None, alias="groupBy"),
    sort: SortOrder = Query(SortOrder.DATE),
    space: BrainSpace = Depends(get_brain_space),
):
    entries = await space.persistence.load_all(get_settings().default_user_id)
    entries = sort_documents(entries, sort)
    groups = None
    if group_by is not None:
        grouped = group_by_topic(entries) if group_by == "topic" else group_by_type(entries)
        groups = [
            BrainDumpGroupResponse(
                key=key, title=group.title, count=group.count,
                entries=[BrainDumpSummary.of(d) for d in group.documents],
            )
            for key, group in grouped.items()
        ]
    current = space.store.current_entry
    return BrainDumpListResponse(
        entries=[BrainDumpSummary.of(d) for d in entries],
        groups=groups,
        current_entry_id=current.id if current else None,
    )


@router.get("/{entry_id}", response_model=BrainDumpDocument)
async def get_brain_dump(entry_id: str, space: BrainSpace = Depends(get_brain_space)):
    return await get_entry_or_404(space, entry_id)


@router.patch("/{entry_id}", response_model=BrainDumpDocument)
async def update_brain_dump(
    entry_id: str, body: BrainDumpUpdate, space: BrainSpace = Depends(get_brain_space),
):
    await get_entry_or_404(space, entry_id)
    return space.store.update_entry(entry_id, body.model_dump(exclude_unset=True))


@router.delete("/{entry_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_brain_dump(entry_id: str, space: BrainSpace = Depends(get_brain_space)):
    await get_entry_or_404(space, entry_id)
    space.store.delete_entry(entry_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{entry_id}/select", response_model=BrainDumpDocument)
async def select_brain_dump(entry_id: str, space: BrainSpace = Depends(get_brain_space)):
    document = await get_entry_or_404(space, entry_id)
    space.store.set_current_entry(document)
    return document


@router.get("/{entry_id}/graph", response_model=VisibleGraphResponse)
async def get_visible_graph(entry_id: str, space: BrainSpace = Depends(get_brain_space)):
    """Rendered subgraph after collapse state is applied."""
    await get_entry_or_404(space, entry_id)
    graph = space.store.visible_graph(entry_id)
    return VisibleGraphResponse(
        visible_nodes=graph.visible_nodes,
        visible_edges=graph.visible_edges,
        hidden_node_ids=sorted(graph.hidden_node_ids),
    )


@router.post("/{entry_id}/save", response_model=SaveStatusResponse)
async def save_brain_dump(entry_id: str, space: BrainSpace = Depends(get_brain_space)):
    """Manual save: cancels the pending debounce and writes now."""
    await get_entry_or_404(space, entry_id)
    if not await space.persistence.save_now(entry_id):
        state = space.persistence.state(entry_id)
        raise StorageError(
            state.last_error or "manual save failed", "save_document",
            ErrorContext(document_id=entry_id),
        )
    return _status_response(space, entry_id)


@router.get("/{entry_id}/save-status", response_model=SaveStatusResponse)
async def get_save_status(entry_id: str, space: BrainSpace = Depends(get_brain_space)):
    await get_entry_or_404(space, entry_id)
    return _status_response(space, entry_id)


def _status_response(space: BrainSpace, entry_id: str) -> SaveStatusResponse:
    state = space.persistence.state(entry_id)
    return SaveStatusResponse(
        status=state.status,
        pending_changes=state.pending_changes,
        last_saved_at=state.last_saved_at,
        last_error=state.last_error,
    )
