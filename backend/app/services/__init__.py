"""Services Layer — in-memory graph store, persistence coordination and topic workflows.

Invariants:
    - GraphStore is the single writer of in-memory documents
    - Storage is reached only through PersistenceCoordinator

Design Decisions:
    - Services wire pure core functions to the store and storage; no HTTP types here
"""
