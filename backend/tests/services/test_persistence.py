"""PersistenceCoordinator tests — debounce coalescing, immediate saves, status machine.

Tests cover:
    - Bursts of debounced edits coalesce into one save of the latest state
    - Immediate policy writes without waiting for the debounce window
    - Manual save cancels the pending timer
    - Failures flip status to error, keep the in-memory change, then revert to idle
    - Loading prunes dangling edges; drain flushes pending work
"""

import asyncio
from unittest.mock import AsyncMock

from app.core.domain_types import SaveStatus
from app.core.errors import StorageError
from app.services.graph_store import GraphStore
from app.services.persistence import PersistenceCoordinator

from tests.builders import edge, tasks_graph

DEBOUNCE = 0.05


async def _seed(store, persistence):
    doc = tasks_graph()
    created = store.create_entry(
        title=doc.title, nodes=doc.nodes, edges=doc.edges, document_id="doc-1",
    )
    await persistence.drain()
    return created


async def test_two_updates_in_one_window_produce_one_merged_save(store, persistence, repository):
    await _seed(store, persistence)

    store.update_node("a", {"label": "first"}, "doc-1")
    store.update_node("a", {"label": "second", "importance": 4}, "doc-1")
    await asyncio.sleep(DEBOUNCE * 3)

    assert repository.save_calls == ["doc-1"]
    saved = {n["id"]: n for n in repository.save_payloads[0]["nodes"]}
    assert saved["a"]["data"]["label"] == "second"
    assert saved["a"]["data"]["importance"] == 4


async def test_debounced_save_waits_for_window(store, persistence, repository):
    await _seed(store, persistence)
    store.update_node("a", {"label": "x"}, "doc-1")
    assert persistence.has_pending_timer("doc-1")
    assert repository.save_calls == []


async def test_immediate_policy_saves_without_debounce(store, persistence, repository):
    await _seed(store, persistence)
    store.delete_node("b", "doc-1")
    await asyncio.sleep(0)
    await asyncio.sleep(0)
    assert repository.save_calls == ["doc-1"]
    assert not persistence.has_pending_timer("doc-1")


async def test_manual_save_cancels_pending_timer(store, persistence, repository):
    await _seed(store, persistence)
    store.update_node("a", {"label": "x"}, "doc-1")

    assert await persistence.save_now("doc-1")
    assert not persistence.has_pending_timer("doc-1")
    await asyncio.sleep(DEBOUNCE * 3)
    assert repository.save_calls == ["doc-1"]


async def test_status_cycle_saved_then_idle(store, persistence):
    await _seed(store, persistence)
    store.update_node("a", {"label": "x"}, "doc-1")
    assert persistence.state("doc-1").pending_changes == 1

    await persistence.save_now("doc-1")
    state = persistence.state("doc-1")
    assert state.status == SaveStatus.SAVED
    assert state.pending_changes == 0
    assert state.last_saved_at is not None

    await asyncio.sleep(0.15)
    assert persistence.state("doc-1").status == SaveStatus.IDLE


async def test_failed_save_keeps_local_change_and_reverts(store, persistence, repository):
    await _seed(store, persistence)
    repository.fail_on.add("save_document")
    store.update_node("a", {"label": "kept"}, "doc-1")

    assert not await persistence.save_now("doc-1")
    state = persistence.state("doc-1")
    assert state.status == SaveStatus.ERROR
    assert state.pending_changes == 1
    assert store.get_entry("doc-1").get_node("a").data.label == "kept"

    await asyncio.sleep(0.15)
    assert persistence.state("doc-1").status == SaveStatus.IDLE
    # no automatic retry
    assert repository.save_calls == ["doc-1"]


async def test_unexpected_exception_is_reported_as_error():
    store = GraphStore()
    repository = AsyncMock()
    repository.save_document.side_effect = RuntimeError("socket closed")
    persistence = PersistenceCoordinator(store, repository, debounce_seconds=DEBOUNCE)
    store.create_entry(title="x", document_id="doc-1")
    await persistence.drain()

    assert not await persistence.save_now("doc-1")
    assert persistence.state("doc-1").last_error == "socket closed"
    await persistence.close()


async def test_storage_error_from_mock_repository():
    store = GraphStore()
    repository = AsyncMock()
    repository.save_document.side_effect = StorageError("timeout", "save_document")
    persistence = PersistenceCoordinator(store, repository)
    store.create_entry(title="x", document_id="doc-1")
    await persistence.drain()

    assert not await persistence.save_now("doc-1")
    assert persistence.state("doc-1").status == SaveStatus.ERROR
    await persistence.close()


async def test_save_of_unknown_entry_is_skipped(persistence, repository):
    assert not await persistence.save_now("ghost-doc")
    assert repository.save_calls == []


async def test_drain_flushes_pending_timers(store, persistence, repository):
    await _seed(store, persistence)
    store.update_node("a", {"label": "x"}, "doc-1")
    await persistence.drain()
    assert repository.save_calls == ["doc-1"]


async def test_delete_request_cancels_pending_save(store, persistence, repository):
    await _seed(store, persistence)
    store.update_node("a", {"label": "x"}, "doc-1")
    store.delete_entry("doc-1")
    await persistence.drain()
    assert repository.save_calls == []
    assert "doc-1" not in repository.documents


async def test_load_prunes_dangling_edges(store, persistence, repository):
    doc = tasks_graph()
    stored = doc.model_copy(update={"edges": [*doc.edges, edge("a", "gone")]})
    repository.documents[doc.id] = stored.to_storage()

    loaded = await persistence.load(doc.id)
    assert len(loaded.edges) == 3
    assert store.get_entry(doc.id) is loaded


async def test_load_missing_returns_none(persistence):
    assert await persistence.load("nowhere") is None


def test_request_without_running_loop_stays_pending():
    store = GraphStore()
    repository = AsyncMock()
    persistence = PersistenceCoordinator(store, repository)
    store.create_entry(title="offline", document_id="doc-off")
    store.update_node("root", {"label": "changed"}, "doc-off")
    assert persistence.state("doc-off").pending_changes == 1
    repository.save_document.assert_not_called()
    repository.create_document.assert_not_called()


def test_parked_requests_are_replayed_by_drain():
    store = GraphStore()
    repository = AsyncMock()
    persistence = PersistenceCoordinator(store, repository)
    store.create_entry(title="offline", document_id="doc-off")
    store.update_node("root", {"label": "changed"}, "doc-off")

    asyncio.run(persistence.drain())

    repository.create_document.assert_awaited_once()
    created = repository.create_document.await_args.args[0]
    assert created.get_node("root").data.label == "changed"
    repository.save_document.assert_not_called()
    assert persistence.state("doc-off").pending_changes == 0


async def test_failed_delete_is_not_reloaded(store, persistence, repository):
    await _seed(store, persistence)
    repository.fail_on.add("delete_document")
    store.delete_entry("doc-1")
    await persistence.drain()

    assert "doc-1" in repository.documents
    assert await persistence.load("doc-1") is None
    assert [d.id for d in await persistence.load_all("demo-user")] == []
    assert store.get_entry("doc-1") is None


async def test_successful_delete_retry_clears_tombstone(store, persistence, repository):
    await _seed(store, persistence)
    repository.fail_on.add("delete_document")
    store.delete_entry("doc-1")
    await persistence.drain()

    repository.fail_on.clear()
    assert await persistence.delete_now("doc-1")
    assert "doc-1" not in repository.documents
    assert await persistence.load("doc-1") is None
