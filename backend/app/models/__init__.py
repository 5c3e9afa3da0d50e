"""ORM Models — SQLAlchemy declarative models.

Invariants:
    - All models inherit from Base (db/base.py)

Design Decisions:
    - Models imported here so Base.metadata is complete before create_all / autogenerate
"""

from app.models.brain_dump import BrainDump  # noqa: F401
