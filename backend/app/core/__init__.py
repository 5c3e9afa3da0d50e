"""Core Layer — pure graph logic, no IO, no async, no DB.

Invariants:
    - No module in core/ imports from services/, api/, infrastructure/, or db/
    - Functions return new nodes/documents, inputs are never mutated

Design Decisions:
    - Visibility, layout, topic split/merge and synonym matching are plain functions
      over node/edge sequences so the store and the routes share one implementation
"""
