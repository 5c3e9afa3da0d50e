"""Error Hierarchy — typed, categorized exceptions for all graph engine failure modes.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Validation and not-found errors are recoverable; storage errors surface via save status
    - StructuralConflictError fails closed — raised before any in-memory mutation
    - to_response() produces the REST envelope; no internal details leaked

Design Decisions:
    - Single hierarchy with BrainSpaceError base: FastAPI global handler catches all
    - ErrorContext as dataclass: rich observability without coupling to logging framework
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from datetime import datetime, timezone


class ErrorSeverity(str, Enum):
    """Error severity for observability and client handling."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """High-level error categories for routing and handling."""
    VALIDATION = "validation"
    RESOURCE_NOT_FOUND = "resource_not_found"
    STORAGE = "storage"
    CONFLICT = "conflict"
    INTERNAL = "internal"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    document_id: str | None = None
    node_id: str | None = None
    operation: str | None = None
    debug_info: dict[str, Any] | None = None


class BrainSpaceError(Exception):
    """Base exception for all graph engine errors."""

    def __init__(
        self,
        message: str,
        code: str,
        category: ErrorCategory,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: ErrorContext | None = None,
        http_status: int = 500,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.severity = severity
        self.context = context or ErrorContext()
        self.http_status = http_status

    def to_response(self) -> dict:
        """Convert to standardized REST error response."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "category": self.category.value,
                "severity": self.severity.value,
                "timestamp": self.context.timestamp.isoformat(),
                "context": {
                    "document_id": self.context.document_id,
                    "node_id": self.context.node_id,
                    "operation": self.context.operation,
                },
            }
        }


# ─── Domain Errors (400-level) ──────────────────────────────────

class GraphValidationError(BrainSpaceError):
    """Caller-supplied graph breaks a structural rule (e.g. duplicate node ids)."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "GRAPH_VALIDATION_ERROR", ErrorCategory.VALIDATION,
            ErrorSeverity.WARNING, context, 400,
        )


class ResourceNotFoundError(BrainSpaceError):
    """Requested node, edge or document does not exist."""
    def __init__(
        self, resource_type: str, resource_id: str, context: ErrorContext | None = None,
    ):
        super().__init__(
            f"{resource_type} '{resource_id}' not found",
            "RESOURCE_NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.WARNING, context, 404,
        )
        self.resource_type = resource_type
        self.resource_id = resource_id


class StructuralConflictError(BrainSpaceError):
    """Split/merge cannot proceed without corrupting the graph."""
    def __init__(
        self, message: str, conflicting_ids: list[str] | None = None,
        context: ErrorContext | None = None,
    ):
        super().__init__(
            message, "STRUCTURAL_CONFLICT", ErrorCategory.CONFLICT,
            ErrorSeverity.ERROR, context, 409,
        )
        self.conflicting_ids = conflicting_ids or []


# ─── Infrastructure Errors (500-level) ──────────────────────────

class StorageError(BrainSpaceError):
    """A save/create/delete call to the storage collaborator failed."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.operation = ctx.operation or operation
        super().__init__(
            f"Storage {operation} failed: {message}",
            "STORAGE_ERROR", ErrorCategory.STORAGE,
            ErrorSeverity.CRITICAL, ctx, 503,
        )
        self.operation = operation


class InvalidTransitionError(BrainSpaceError):
    """Save-status state machine asked for a transition it does not allow."""
    def __init__(self, current: str, target: str, context: ErrorContext | None = None):
        super().__init__(
            f"Cannot move save status from '{current}' to '{target}'",
            "INVALID_SAVE_TRANSITION", ErrorCategory.INTERNAL,
            ErrorSeverity.ERROR, context, 500,
        )
        self.current = current
        self.target = target
