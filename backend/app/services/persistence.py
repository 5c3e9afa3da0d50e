"""Persistence Coordinator — debounced / immediate saves with per-document save status.

Invariants:
    - At most one pending debounce timer per document; a new change restarts it
    - An immediate save (or manual save) cancels the pending timer and saves right away
    - Writes of one document are serialized and snapshot the store *when the write starts*,
      so the last write always carries the latest state
    - Failures never roll back the in-memory document; they only flip the status to error
    - A document whose delete was requested stays out of the store, even if its row survives a failed delete
    - saved/error revert to idle after their display delay unless a newer save took over

Design Decisions:
    - loop.call_later for timers, background tasks tracked in a set (kept alive until done)
    - save_now / create_now / delete_now return bool instead of raising: they run detached
      from the request that caused them. TopicExtractionService turns False into StorageError
    - Called outside a running event loop the request is parked (warning) and replayed by the
      next drain, so shutdown still writes it; a parked create wins over a parked save
    - Ids with a pending or failed delete are never reloaded from storage: a delete that
      failed remotely must not bring the document back into the store
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from datetime import datetime, timezone

from app.core.domain_types import SavePolicy
from app.core.errors import StorageError
from app.core.graph_model import BrainDumpDocument
from app.core.repository_protocols import DocumentRepository
from app.core.save_status import SaveState
from app.services.graph_store import GraphStore

logger = logging.getLogger(__name__)


class PersistenceCoordinator:
    """Bridges GraphStore mutations to a DocumentRepository."""

    def __init__(
        self,
        store: GraphStore,
        repository: DocumentRepository,
        debounce_seconds: float = 1.0,
        saved_reset_seconds: float = 2.0,
        error_reset_seconds: float = 3.0,
    ):
        self.store = store
        self.repository = repository
        self.debounce_seconds = debounce_seconds
        self.saved_reset_seconds = saved_reset_seconds
        self.error_reset_seconds = error_reset_seconds
        self._states: dict[str, SaveState] = {}
        self._timers: dict[str, asyncio.TimerHandle] = {}
        self._reset_timers: dict[str, asyncio.TimerHandle] = {}
        self._locks: dict[str, asyncio.Lock] = {}
        self._tasks: set[asyncio.Task] = set()
        self._deleted: set[str] = set()
        # document id -> "create" | "save" | "delete" requested without a running loop
        self._parked: dict[str, str] = {}
        store.attach_persistence(self)

    # --- Status ----------------------------------------------------------------

    def state(self, document_id: str) -> SaveState:
        return self._states.setdefault(document_id, SaveState())

    def has_pending_timer(self, document_id: str) -> bool:
        return document_id in self._timers

    # --- Requests (sync, called by GraphStore) ----------------------------------

    def request_save(self, document_id: str, policy: SavePolicy) -> None:
        self.state(document_id).record_change()
        loop = self._running_loop("request_save", document_id)
        if loop is None:
            self._parked.setdefault(document_id, "save")
            return
        if policy == SavePolicy.IMMEDIATE:
            self._cancel_timer(document_id)
            self._spawn(self.save_now(document_id), f"save:{document_id}")
            return
        self._cancel_timer(document_id)
        self._timers[document_id] = loop.call_later(
            self.debounce_seconds, self._fire_debounced, document_id,
        )

    def request_create(self, document_id: str) -> None:
        self._deleted.discard(document_id)
        if self._running_loop("request_create", document_id) is None:
            self._parked[document_id] = "create"
            return
        self._spawn(self.create_now(document_id), f"create:{document_id}")

    def request_delete(self, document_id: str) -> None:
        self._cancel_timer(document_id)
        self._deleted.add(document_id)
        if self._running_loop("request_delete", document_id) is None:
            self._parked[document_id] = "delete"
            return
        self._spawn(self.delete_now(document_id), f"delete:{document_id}")

    # --- Writes ----------------------------------------------------------------

    async def save_now(self, document_id: str) -> bool:
        """Write the current in-memory state. Also the manual save entry point."""
        self._cancel_timer(document_id)

        async def write(document: BrainDumpDocument) -> None:
            await self.repository.save_document(document_id, document.to_partial_update())

        return await self._write(document_id, "save_document", write)

    async def create_now(self, document_id: str) -> bool:
        async def write(document: BrainDumpDocument) -> None:
            await self.repository.create_document(document)

        return await self._write(document_id, "create_document", write)

    async def delete_now(self, document_id: str) -> bool:
        self._cancel_timer(document_id)
        self._deleted.add(document_id)
        async with self._lock(document_id):
            try:
                await self.repository.delete_document(document_id)
            except StorageError as e:
                logger.error(
                    f"Delete failed: {e.message}",
                    extra={"document_id": document_id, "error_code": e.code},
                )
                return False
            except Exception as e:
                logger.error(
                    f"Delete failed: {e}",
                    extra={"document_id": document_id, "operation": "delete_document"},
                    exc_info=True,
                )
                return False
        self._deleted.discard(document_id)
        self._states.pop(document_id, None)
        self._cancel_reset(document_id)
        return True

    # --- Loading ---------------------------------------------------------------

    async def load(self, document_id: str) -> BrainDumpDocument | None:
        """Load from storage into the store (already-loaded entries win)."""
        loaded = self.store.get_entry(document_id)
        if loaded is not None:
            return loaded
        if document_id in self._deleted:
            logger.info(
                "Load skipped: delete pending or failed",
                extra={"document_id": document_id, "operation": "load_document"},
            )
            return None
        document = await self.repository.load_document(document_id)
        if document is None:
            return None
        return self.store.register_entry(document)

    async def load_all(self, user_id: str) -> list[BrainDumpDocument]:
        documents = await self.repository.list_documents(user_id)
        for document in documents:
            if document.id in self._deleted:
                continue
            if self.store.get_entry(document.id) is None:
                self.store.register_entry(document)
        logger.info(f"Loaded {len(documents)} document(s) for user {user_id}")
        return self.store.entries

    # --- Lifecycle -------------------------------------------------------------

    async def drain(self) -> None:
        """Replay parked requests, flush every pending debounce timer, wait for in-flight writes."""
        parked, self._parked = self._parked, {}
        for document_id, operation in parked.items():
            if operation == "create":
                await self.create_now(document_id)
            elif operation == "delete":
                await self.delete_now(document_id)
            else:
                await self.save_now(document_id)
        for document_id in list(self._timers):
            await self.save_now(document_id)
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def close(self) -> None:
        await self.drain()
        for handle in self._reset_timers.values():
            handle.cancel()
        self._reset_timers.clear()

    # --- Internals -------------------------------------------------------------

    async def _write(
        self,
        document_id: str,
        operation: str,
        write: Callable[[BrainDumpDocument], Awaitable[None]],
    ) -> bool:
        async with self._lock(document_id):
            document = self.store.get_entry(document_id)
            if document is None:
                logger.warning(
                    f"{operation}: entry no longer loaded, skipped",
                    extra={"document_id": document_id, "operation": operation},
                )
                return False

            state = self.state(document_id)
            self._cancel_reset(document_id)
            covered = state.begin_save()
            try:
                await write(document)
            except StorageError as e:
                state.mark_failed(e.message)
                logger.error(
                    f"{operation} failed: {e.message}",
                    extra={
                        "document_id": document_id, "error_code": e.code,
                        "pending_changes": state.pending_changes,
                    },
                )
                self._schedule_reset(document_id, self.error_reset_seconds)
                return False
            except Exception as e:
                state.mark_failed(str(e))
                logger.error(
                    f"{operation} failed: {e}",
                    extra={
                        "document_id": document_id, "operation": operation,
                        "pending_changes": state.pending_changes,
                    },
                    exc_info=True,
                )
                self._schedule_reset(document_id, self.error_reset_seconds)
                return False

            state.mark_saved(covered, datetime.now(timezone.utc))
            logger.debug(
                f"{operation} ok",
                extra={"document_id": document_id, "pending_changes": state.pending_changes},
            )
            self._schedule_reset(document_id, self.saved_reset_seconds)
            return True

    def _fire_debounced(self, document_id: str) -> None:
        self._timers.pop(document_id, None)
        self._spawn(self.save_now(document_id), f"save:{document_id}")

    def _spawn(self, coro: Awaitable, name: str) -> None:
        task = asyncio.ensure_future(coro)
        self._tasks.add(task)
        task.add_done_callback(self._task_done)

    def _task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error(f"Background persistence task failed: {exc}", exc_info=exc)

    def _running_loop(self, operation: str, document_id: str) -> asyncio.AbstractEventLoop | None:
        try:
            return asyncio.get_running_loop()
        except RuntimeError:
            logger.warning(
                f"{operation}: no running event loop, change kept pending",
                extra={"document_id": document_id, "operation": operation},
            )
            return None

    def _lock(self, document_id: str) -> asyncio.Lock:
        return self._locks.setdefault(document_id, asyncio.Lock())

    def _cancel_timer(self, document_id: str) -> None:
        handle = self._timers.pop(document_id, None)
        if handle is not None:
            handle.cancel()

    def _schedule_reset(self, document_id: str, delay: float) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return
        self._cancel_reset(document_id)
        self._reset_timers[document_id] = loop.call_later(
            delay, self._revert, document_id,
        )

    def _cancel_reset(self, document_id: str) -> None:
        handle = self._reset_timers.pop(document_id, None)
        if handle is not None:
            handle.cancel()

    def _revert(self, document_id: str) -> None:
        self._reset_timers.pop(document_id, None)
        state = self._states.get(document_id)
        if state is not None:
            state.revert_to_idle()
