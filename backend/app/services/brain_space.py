"""Brain Space — wires the store, persistence and topic service for one process.

Invariants:
    - Exactly one GraphStore per BrainSpace; persistence attaches itself to it
    - Timing settings are converted from milliseconds here and nowhere else

Design Decisions:
    - Plain container + factory instead of a DI framework: three collaborators
    - Module-level singleton like db_manager: state is in-memory and single-process,
      lost on restart except what persistence already wrote
"""

from dataclasses import dataclass

from app.config import Settings
from app.core.layout import LayoutOptions
from app.core.repository_protocols import DocumentRepository
from app.services.graph_store import GraphStore
from app.services.persistence import PersistenceCoordinator
from app.services.topic_service import TopicExtractionService


@dataclass
class BrainSpace:
    store: GraphStore
    persistence: PersistenceCoordinator
    topics: TopicExtractionService
    layout_options: LayoutOptions


def build_brain_space(repository: DocumentRepository, settings: Settings) -> BrainSpace:
    store = GraphStore(default_user_id=settings.default_user_id)
    persistence = PersistenceCoordinator(
        store,
        repository,
        debounce_seconds=settings.debounce_window_ms / 1000,
        saved_reset_seconds=settings.saved_status_reset_ms / 1000,
        error_reset_seconds=settings.error_status_reset_ms / 1000,
    )
    topics = TopicExtractionService(
        store, persistence,
        canonical_origin=(settings.canonical_origin_x, settings.canonical_origin_y),
    )
    layout_options = LayoutOptions(
        node_width=settings.layout_node_width,
        node_height=settings.layout_node_height,
        horizontal_spacing=settings.layout_horizontal_spacing,
        vertical_spacing=settings.layout_vertical_spacing,
    )
    return BrainSpace(store, persistence, topics, layout_options)


# Singleton (initialized on startup, single-process uvicorn)
brain_space: BrainSpace | None = None


def init_brain_space(repository: DocumentRepository, settings: Settings) -> BrainSpace:
    global brain_space
    brain_space = build_brain_space(repository, settings)
    return brain_space


def get_brain_space() -> BrainSpace:
    """FastAPI dependency for the process-wide brain space."""
    if brain_space is None:
        raise RuntimeError("Brain space not initialized")
    return brain_space
