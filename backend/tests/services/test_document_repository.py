"""SqlDocumentRepository tests — brain_dumps table on in-memory SQLite."""

import pytest

from app.core.domain_types import DocumentType, NodeVariant
from app.core.errors import StorageError
from app.infrastructure.document_repository import SqlDocumentRepository

from tests.builders import document, node, tasks_graph


@pytest.fixture
def repo(sql_db):
    return SqlDocumentRepository(sql_db)


async def test_create_then_load_round_trip(repo):
    doc = tasks_graph()
    await repo.create_document(doc)

    loaded = await repo.load_document(doc.id)
    assert loaded.id == doc.id
    assert loaded.title == doc.title
    assert [n.id for n in loaded.nodes] == [n.id for n in doc.nodes]
    assert loaded.get_node("cat-tasks").variant == NodeVariant.CATEGORY
    assert [(e.source, e.target) for e in loaded.edges] == [
        (e.source, e.target) for e in doc.edges
    ]


async def test_load_missing_returns_none(repo):
    assert await repo.load_document("missing") is None


async def test_topic_metadata_persisted(repo):
    topic = document(
        [node("root", NodeVariant.ROOT, "Trip")], [], doc_id="topic-1",
        doc_type=DocumentType.TOPIC_FOCUSED, parent_brain_dump_id="doc-1",
        origin_node_id="root", origin_node_type=NodeVariant.THOUGHT,
        original_parent_node_id="cat", topic_focus="Trip",
    )
    await repo.create_document(topic)
    loaded = await repo.load_document("topic-1")
    assert loaded.type == DocumentType.TOPIC_FOCUSED
    assert loaded.origin_node_type == NodeVariant.THOUGHT
    assert loaded.original_parent_node_id == "cat"
    assert loaded.topic_focus == "Trip"


async def test_save_applies_partial_update(repo):
    doc = tasks_graph()
    await repo.create_document(doc)
    changed = doc.model_copy(update={
        "title": "Renamed",
        "nodes": [n.with_data(label="Z") if n.id == "a" else n for n in doc.nodes],
    })
    await repo.save_document(doc.id, changed.to_partial_update())

    loaded = await repo.load_document(doc.id)
    assert loaded.title == "Renamed"
    assert loaded.get_node("a").data.label == "Z"


async def test_save_missing_document_raises(repo):
    with pytest.raises(StorageError):
        await repo.save_document("missing", {"title": "x"})


async def test_duplicate_create_raises_storage_error(repo):
    doc = tasks_graph()
    await repo.create_document(doc)
    with pytest.raises(StorageError):
        await repo.create_document(doc)


async def test_delete_and_delete_missing(repo):
    doc = tasks_graph()
    await repo.create_document(doc)
    await repo.delete_document(doc.id)
    assert await repo.load_document(doc.id) is None
    await repo.delete_document(doc.id)


async def test_list_documents_by_user(repo):
    await repo.create_document(document([node("r", NodeVariant.ROOT)], [], doc_id="d1"))
    await repo.create_document(document([node("r", NodeVariant.ROOT)], [], doc_id="d2"))
    other = document([node("r", NodeVariant.ROOT)], [], doc_id="d3")
    await repo.create_document(other.model_copy(update={"user_id": "someone-else"}))

    listed = await repo.list_documents("user-1")
    assert {d.id for d in listed} == {"d1", "d2"}
