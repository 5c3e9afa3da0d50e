"""Service test fixtures — in-memory storage, store/coordinator wiring, FastAPI client.

Invariants:
    - Every test gets a fresh GraphStore and a fresh storage double
    - Timers are short (tens of milliseconds) so debounce tests stay fast
    - The client fixture overrides get_brain_space; the app lifespan is never run

Design Decisions:
    - FakeRepository over a bare AsyncMock: tests assert on stored documents, and
      failures are injected per operation
    - SQLite in-memory for the SQL adapter: no external dependency, JSON columns supported
"""

import pytest
from httpx import ASGITransport, AsyncClient

from app.config import Settings
from app.core.errors import StorageError
from app.core.graph_model import BrainDumpDocument
from app.infrastructure.database import DatabaseSessionManager
from app.main import app
from app.services.brain_space import build_brain_space, get_brain_space

DEBOUNCE = 0.05


class FakeRepository:
    """DocumentRepository double recording every call."""

    def __init__(self):
        self.documents: dict[str, dict] = {}
        self.calls: list[tuple[str, str]] = []
        self.save_payloads: list[dict] = []
        self.fail_on: set[str] = set()

    def _maybe_fail(self, operation: str) -> None:
        if operation in self.fail_on:
            raise StorageError("injected failure", operation)

    @property
    def save_calls(self) -> list[str]:
        return [doc_id for op, doc_id in self.calls if op == "save"]

    async def load_document(self, document_id):
        self.calls.append(("load", document_id))
        stored = self.documents.get(document_id)
        return BrainDumpDocument.model_validate(stored) if stored else None

    async def list_documents(self, user_id):
        return [
            BrainDumpDocument.model_validate(d) for d in self.documents.values()
            if d["userId"] == user_id
        ]

    async def create_document(self, document):
        self.calls.append(("create", document.id))
        self._maybe_fail("create_document")
        self.documents[document.id] = document.to_storage()
        return document

    async def save_document(self, document_id, partial_update):
        self.calls.append(("save", document_id))
        self._maybe_fail("save_document")
        self.save_payloads.append(partial_update)
        self.documents.setdefault(document_id, {"id": document_id}).update(partial_update)

    async def delete_document(self, document_id):
        self.calls.append(("delete", document_id))
        self._maybe_fail("delete_document")
        self.documents.pop(document_id, None)


@pytest.fixture
def repository():
    return FakeRepository()


@pytest.fixture
def test_settings():
    return Settings(
        database_url="sqlite+aiosqlite:///:memory:",
        debounce_window_ms=int(DEBOUNCE * 1000),
        saved_status_reset_ms=50,
        error_status_reset_ms=50,
        default_user_id="demo-user",
    )


@pytest.fixture
async def space(repository, test_settings):
    brain_space = build_brain_space(repository, test_settings)
    yield brain_space
    await brain_space.persistence.close()


@pytest.fixture
def store(space):
    return space.store


@pytest.fixture
def persistence(space):
    return space.persistence


@pytest.fixture
async def client(space):
    """FastAPI test client bound to the per-test brain space."""
    app.dependency_overrides[get_brain_space] = lambda: space
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
async def sql_db():
    manager = DatabaseSessionManager("sqlite+aiosqlite:///:memory:")
    await manager.create_schema()
    yield manager
    await manager.dispose()
