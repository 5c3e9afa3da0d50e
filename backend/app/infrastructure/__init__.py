"""Infrastructure Layer — database access, document storage and logging setup.

Invariants:
    - Infrastructure depends on core only for models and the error hierarchy
    - Every SQLAlchemy failure leaves this layer as StorageError

Design Decisions:
    - The SQL repository satisfies core.repository_protocols.DocumentRepository,
      so services never import SQLAlchemy
"""
