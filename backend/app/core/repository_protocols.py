"""Boundary Protocols — contracts between core and shell.

Invariants:
    - Core NEVER imports from shell — dependency arrows point inward only
    - All storage IO accessed through DocumentRepository
    - Implementations raise StorageError on failure; load_document returns None for NotFound

Design Decisions:
    - Protocol over ABC: structural subtyping, no inheritance hierarchy
    - Async in Protocol: boundary methods are async because implementations do IO,
      but core pure functions never are — the shell orchestrates the async calls around them
"""

from typing import Protocol

from app.core.domain_types import DocumentId
from app.core.graph_model import BrainDumpDocument


class DocumentRepository(Protocol):
    """Storage contract for brain dump documents — implemented by shell."""
    async def load_document(self, document_id: DocumentId) -> BrainDumpDocument | None: ...
    async def save_document(self, document_id: DocumentId, partial_update: dict) -> None: ...
    async def create_document(self, document: BrainDumpDocument) -> BrainDumpDocument: ...
    async def delete_document(self, document_id: DocumentId) -> None: ...
    async def list_documents(self, user_id: str) -> list[BrainDumpDocument]: ...
