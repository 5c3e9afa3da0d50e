"""Brain Space API — FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map BrainSpaceError → structured JSON responses
    - CORS configured from settings (not hardcoded)
    - Database and brain space initialized on startup; pending saves flushed on shutdown

Design Decisions:
    - Lifespan over @app.on_event: FastAPI recommended pattern, cleaner cleanup
    - sqlite databases get their schema from create_all; Postgres is migrated by alembic
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.error_handlers import register_error_handlers
from app.api.routes import brain_dumps, graph_commands, health, synonyms
from app.config import get_settings
from app.infrastructure.database import init_db
from app.infrastructure.document_repository import SqlDocumentRepository
from app.infrastructure.observability import setup_logging
from app.services.brain_space import init_brain_space

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    db = init_db(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )
    if db.is_sqlite:
        await db.create_schema()
    space = init_brain_space(SqlDocumentRepository(db), settings)
    logger.info("Brain Space API started")
    yield
    logger.info("Brain Space API shutting down, flushing pending saves")
    await space.persistence.close()
    await db.dispose()


app = FastAPI(title="Brain Space API", version="1.0.0", lifespan=lifespan)

settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(brain_dumps.router)
app.include_router(graph_commands.router)
app.include_router(synonyms.router)

register_error_handlers(app)
