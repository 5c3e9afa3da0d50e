"""Save Status — per-document persistence state machine, pure dataclass, no IO.

Invariants:
    - Transitions: idle -> saving -> saved|error -> idle; saving may restart from saved/error/saving
    - pending_changes counts mutations not yet covered by a successful save
    - A successful save only clears the changes it captured — edits made while it was in flight stay pending
    - revert_to_idle is a no-op unless the status is saved or error (a newer save wins)

Design Decisions:
    - Timers live in the shell (PersistenceCoordinator); this class only records state
    - Failure never rolls anything back — the optimistic in-memory mutation stands
"""

from dataclasses import dataclass
from datetime import datetime

from app.core.domain_types import SaveStatus
from app.core.errors import InvalidTransitionError

_ALLOWED: dict[SaveStatus, frozenset[SaveStatus]] = {
    SaveStatus.IDLE: frozenset({SaveStatus.SAVING}),
    SaveStatus.SAVING: frozenset({SaveStatus.SAVING, SaveStatus.SAVED, SaveStatus.ERROR}),
    SaveStatus.SAVED: frozenset({SaveStatus.IDLE, SaveStatus.SAVING}),
    SaveStatus.ERROR: frozenset({SaveStatus.IDLE, SaveStatus.SAVING}),
}


@dataclass
class SaveState:
    """Save lifecycle of one document."""

    status: SaveStatus = SaveStatus.IDLE
    pending_changes: int = 0
    last_saved_at: datetime | None = None
    last_error: str | None = None
    in_flight: int = 0

    def _move(self, target: SaveStatus) -> None:
        if target not in _ALLOWED[self.status]:
            raise InvalidTransitionError(self.status.value, target.value)
        self.status = target

    def record_change(self) -> None:
        self.pending_changes += 1

    def begin_save(self) -> int:
        """Enter saving; returns the number of pending changes this save covers."""
        self._move(SaveStatus.SAVING)
        self.in_flight += 1
        return self.pending_changes

    def mark_saved(self, covered_changes: int, at: datetime) -> None:
        """Record success; status stays saving while another save is still in flight."""
        self.in_flight = max(0, self.in_flight - 1)
        if not self.in_flight:
            self._move(SaveStatus.SAVED)
        self.pending_changes = max(0, self.pending_changes - covered_changes)
        self.last_saved_at = at
        self.last_error = None

    def mark_failed(self, message: str) -> None:
        self.in_flight = max(0, self.in_flight - 1)
        if not self.in_flight:
            self._move(SaveStatus.ERROR)
        self.last_error = message

    def revert_to_idle(self) -> bool:
        """Auto-revert after the saved/error display delay."""
        if self.status not in (SaveStatus.SAVED, SaveStatus.ERROR) or self.in_flight:
            return False
        self._move(SaveStatus.IDLE)
        return True
