"""API Layer — FastAPI routes and error handlers.

Invariants:
    - Routes registered explicitly in main.py (no auto-discovery)
    - All endpoints return camelCase JSON; errors use the structured error body

Design Decisions:
    - Thin routes: graph mutations go through GraphStore, storage through PersistenceCoordinator
"""
