"""Graph Command Routes — node/edge edits, layouts, topic split/merge and instances.

Invariants:
    - Every command targets an explicit document id; the current-entry pointer is not consulted
    - A store mutator returning None means the node/edge vanished: surfaced as 404
    - Layout results are applied through GraphStore.apply_positions, never written directly

Design Decisions:
    - New nodes without a position are placed with get_new_node_position next to their parent
    - Adding a node with parentId also adds the parent -> node edge (one gesture, two commands)
"""

import logging
from uuid import uuid4

from fastapi import APIRouter, Depends, status

from app.core.errors import ErrorContext, ResourceNotFoundError
from app.core.graph_model import BrainDumpDocument, GraphEdge, GraphNode, NodeData, Position
from app.core.layout import (
    calculate_horizontal_layout, calculate_parent_child_layout, get_new_node_position,
)
from app.core.synonyms import add_instance_to_prototype, add_synonym, create_instance, remove_synonym
from app.api.routes.brain_dumps import get_entry_or_404
from app.schemas.graph import (
    EdgeCreate, InstanceCreate, InstanceCreateResponse, NodeCreate, NodeDataPatch,
    SynonymBody, TopicExtractRequest, TopicExtractResponse,
)
from app.services.brain_space import BrainSpace, get_brain_space

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/brain-dumps/{entry_id}", tags=["graph"])


def _node_or_404(document: BrainDumpDocument, node_id: str) -> GraphNode:
    node = document.get_node(node_id)
    if node is None:
        raise ResourceNotFoundError(
            "node", node_id, ErrorContext(document_id=document.id),
        )
    return node


def _applied(result: BrainDumpDocument | None, resource: str, resource_id: str, entry_id: str):
    if result is None:
        raise ResourceNotFoundError(
            resource, resource_id, ErrorContext(document_id=entry_id),
        )
    return result


# ─── Nodes ──────────────────────────────────────────────────────

@router.post("/nodes", response_model=BrainDumpDocument, status_code=status.HTTP_201_CREATED)
async def add_node(
    entry_id: str, body: NodeCreate, space: BrainSpace = Depends(get_brain_space),
):
    document = await get_entry_or_404(space, entry_id)
    parent = _node_or_404(document, body.parent_id) if body.parent_id else None
    position = body.position or get_new_node_position(
        parent, document.nodes, space.layout_options,
    )
    node = GraphNode(
        id=body.id or f"{body.type.value}-{uuid4().hex[:12]}",
        variant=body.type,
        position=position,
        data=NodeData.model_validate(body.data),
    )
    result = space.store.add_node(node, entry_id)
    if parent is not None:
        result = space.store.add_edge(
            GraphEdge(
                id=f"edge-{parent.id}-{node.id}", source=parent.id, target=node.id,
                type="floating", animated=True,
            ),
            entry_id,
        )
    return _applied(result, "brain_dump", entry_id, entry_id)


@router.patch("/nodes/{node_id}", response_model=BrainDumpDocument)
async def update_node(
    entry_id: str, node_id: str, body: NodeDataPatch,
    space: BrainSpace = Depends(get_brain_space),
):
    """Shallow-merge node data (debounced save)."""
    await get_entry_or_404(space, entry_id)
    changes = NodeData.field_names_from_wire(body.data)
    return _applied(
        space.store.update_node(node_id, changes, entry_id), "node", node_id, entry_id,
    )


@router.put("/nodes/{node_id}/position", response_model=BrainDumpDocument)
async def update_node_position(
    entry_id: str, node_id: str, body: Position,
    space: BrainSpace = Depends(get_brain_space),
):
    await get_entry_or_404(space, entry_id)
    return _applied(
        space.store.update_node_position(node_id, body, entry_id), "node", node_id, entry_id,
    )


@router.post("/nodes/{node_id}/toggle-collapse", response_model=BrainDumpDocument)
async def toggle_node_collapse(
    entry_id: str, node_id: str, space: BrainSpace = Depends(get_brain_space),
):
    await get_entry_or_404(space, entry_id)
    return _applied(
        space.store.toggle_node_collapse(node_id, entry_id), "node", node_id, entry_id,
    )


@router.delete("/nodes/{node_id}", response_model=BrainDumpDocument)
async def delete_node(
    entry_id: str, node_id: str, space: BrainSpace = Depends(get_brain_space),
):
    await get_entry_or_404(space, entry_id)
    return _applied(space.store.delete_node(node_id, entry_id), "node", node_id, entry_id)


@router.post("/nodes/{node_id}/synonyms", response_model=BrainDumpDocument)
async def add_node_synonym(
    entry_id: str, node_id: str, body: SynonymBody,
    space: BrainSpace = Depends(get_brain_space),
):
    node = _node_or_404(await get_entry_or_404(space, entry_id), node_id)
    return _applied(
        space.store.replace_node(add_synonym(node, body.synonym), entry_id),
        "node", node_id, entry_id,
    )


@router.delete("/nodes/{node_id}/synonyms/{synonym}", response_model=BrainDumpDocument)
async def remove_node_synonym(
    entry_id: str, node_id: str, synonym: str,
    space: BrainSpace = Depends(get_brain_space),
):
    node = _node_or_404(await get_entry_or_404(space, entry_id), node_id)
    return _applied(
        space.store.replace_node(remove_synonym(node, synonym), entry_id),
        "node", node_id, entry_id,
    )


# ─── Edges ──────────────────────────────────────────────────────

@router.post("/edges", response_model=BrainDumpDocument, status_code=status.HTTP_201_CREATED)
async def add_edge(
    entry_id: str, body: EdgeCreate, space: BrainSpace = Depends(get_brain_space),
):
    """Dangling endpoints are pruned (logged) and the document returned unchanged."""
    await get_entry_or_404(space, entry_id)
    edge = GraphEdge(
        id=body.id or f"edge-{body.source}-{body.target}",
        source=body.source, target=body.target,
        source_handle=body.source_handle, target_handle=body.target_handle,
        type=body.type, animated=body.animated, label=body.label,
    )
    return _applied(space.store.add_edge(edge, entry_id), "brain_dump", entry_id, entry_id)


@router.delete("/edges/{edge_id}", response_model=BrainDumpDocument)
async def delete_edge(
    entry_id: str, edge_id: str, space: BrainSpace = Depends(get_brain_space),
):
    await get_entry_or_404(space, entry_id)
    return _applied(space.store.delete_edge(edge_id, entry_id), "edge", edge_id, entry_id)


# ─── Layout ─────────────────────────────────────────────────────

@router.post("/layout", response_model=BrainDumpDocument)
async def apply_horizontal_layout(
    entry_id: str, space: BrainSpace = Depends(get_brain_space),
):
    document = await get_entry_or_404(space, entry_id)
    laid_out = calculate_horizontal_layout(
        document.nodes, document.edges, space.layout_options,
    )
    return space.store.apply_positions(laid_out, entry_id)


@router.post("/nodes/{node_id}/layout", response_model=BrainDumpDocument)
async def apply_parent_child_layout(
    entry_id: str, node_id: str, space: BrainSpace = Depends(get_brain_space),
):
    document = await get_entry_or_404(space, entry_id)
    _node_or_404(document, node_id)
    laid_out = calculate_parent_child_layout(
        node_id, document.nodes, document.edges, space.layout_options,
    )
    return space.store.apply_positions(laid_out, entry_id)


# ─── Topics ─────────────────────────────────────────────────────

@router.post(
    "/nodes/{node_id}/topic",
    response_model=TopicExtractResponse, status_code=status.HTTP_201_CREATED,
)
async def extract_topic(
    entry_id: str, node_id: str, body: TopicExtractRequest,
    space: BrainSpace = Depends(get_brain_space),
):
    await get_entry_or_404(space, entry_id)
    topic = await space.topics.extract_topic(
        node_id, body.initial_thoughts_text, source_id=entry_id,
    )
    return TopicExtractResponse(topic=topic, source=space.store.get_entry(entry_id))


@router.delete("/nodes/{node_id}/topic", response_model=BrainDumpDocument)
async def dissolve_topic(
    entry_id: str, node_id: str, space: BrainSpace = Depends(get_brain_space),
):
    await get_entry_or_404(space, entry_id)
    return await space.topics.dissolve_topic(node_id, source_id=entry_id)


# ─── Instances ──────────────────────────────────────────────────

@router.post(
    "/nodes/{node_id}/instances",
    response_model=InstanceCreateResponse, status_code=status.HTTP_201_CREATED,
)
async def create_node_instance(
    entry_id: str, node_id: str, body: InstanceCreate,
    space: BrainSpace = Depends(get_brain_space),
):
    """Copy a prototype node into a document and record the back-reference."""
    prototype = _node_or_404(await get_entry_or_404(space, entry_id), node_id)
    target_id = body.target_brain_dump_id or entry_id
    target = await get_entry_or_404(space, target_id)
    parent = _node_or_404(target, body.parent_id) if body.parent_id else None
    position = body.position or get_new_node_position(
        parent, target.nodes, space.layout_options,
    )

    instance = create_instance(prototype, position)
    space.store.add_node(instance, target_id)
    if parent is not None:
        space.store.add_edge(
            GraphEdge(
                id=f"edge-{parent.id}-{instance.id}", source=parent.id,
                target=instance.id, type="floating", animated=True,
            ),
            target_id,
        )
    space.store.replace_node(add_instance_to_prototype(prototype, instance.id), entry_id)
    logger.info(
        f"Instance {instance.id} of {prototype.id} created",
        extra={"document_id": target_id, "node_id": instance.id},
    )
    return InstanceCreateResponse(instance=instance, target=space.store.get_entry(target_id))
