"""Domain Types — rich types that replace bare primitives across the codebase.

Invariants:
    - NodeId, EdgeId, DocumentId wrap str — React Flow ids are strings, never UUIDs
    - Node variants are a closed set: root, category, thought, ghost, link
    - All valid states encoded as Enums — no raw string matching

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - str Enums: serialize to JSON without custom encoders (documents are stored as JSON)
"""

from enum import Enum
from typing import NewType


# ─── Identity Types ──────────────────────────────────────────────

NodeId = NewType("NodeId", str)
EdgeId = NewType("EdgeId", str)
DocumentId = NewType("DocumentId", str)


# ─── Constants ───────────────────────────────────────────────────

# Topic documents place their synthetic root here; dissolve translates back from it
CANONICAL_ORIGIN: tuple[float, float] = (400.0, 300.0)

DEFAULT_ROOT_LABEL = "Brain Dump"


# ─── Enums ───────────────────────────────────────────────────────

class NodeVariant(str, Enum):
    """Closed set of node variants — serialized as the React Flow `type` field."""
    ROOT = "root"
    CATEGORY = "category"
    THOUGHT = "thought"
    GHOST = "ghost"
    LINK = "link"


class DocumentType(str, Enum):
    """Brain dump flavours. topic-focused documents carry origin metadata."""
    GENERAL = "general"
    TOPIC_FOCUSED = "topic-focused"


class LayoutMode(str, Enum):
    """How a node arranges its children on the canvas."""
    FREEFORM = "freeform"
    HORIZONTAL = "horizontal"


class MatchType(str, Enum):
    """Synonym match strength. EXACT strictly dominates FUZZY."""
    EXACT = "exact"
    FUZZY = "fuzzy"


class SaveStatus(str, Enum):
    """Per-document save lifecycle: idle -> saving -> saved|error -> idle."""
    IDLE = "idle"
    SAVING = "saving"
    SAVED = "saved"
    ERROR = "error"


class SavePolicy(str, Enum):
    """How a mutation reaches storage."""
    DEBOUNCED = "debounced"    # cosmetic/content edits, coalesced on a trailing timer
    IMMEDIATE = "immediate"    # structural edits, persisted right after the mutation


class SortOrder(str, Enum):
    """Document list orderings."""
    DATE = "date"
    TOPIC = "topic"
    ALPHABETICAL = "alphabetical"
