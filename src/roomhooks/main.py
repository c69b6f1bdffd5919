"""FastAPI application factory and lifespan management."""

import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from roomhooks.config import settings
from roomhooks.db.engine import create_db_engine, create_session_factory
from roomhooks.github.client import GitHubClient
from roomhooks.logging_config import configure_logging
from roomhooks.services.reconciler import RepositoryLocks

# Configure logging at import time
_json_logs = os.environ.get("ROOMHOOKS_LOCAL_MODE", "0") != "1"
configure_logging(log_level=settings.log_level, json_output=_json_logs)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application startup and shutdown resources."""
    db_url = settings.effective_database_url
    engine = create_db_engine(db_url)

    # Auto-create tables for SQLite (local dev)
    if "sqlite" in db_url:
        from roomhooks.db.base import Base
        import roomhooks.db.models  # noqa: F401 — register all ORM models

        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("SQLite tables created (local mode)")

    app.state.db_engine = engine
    app.state.db_session_factory = create_session_factory(engine)

    logger.info(
        "roomhooks API started (db=%s, callback=%s)",
        "sqlite" if "sqlite" in db_url else "postgresql",
        settings.webhook_callback_url,
    )
    yield

    await engine.dispose()
    logger.info("roomhooks API shutdown complete")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="roomhooks API",
        version="0.1.0",
        description="Subscribes chat rooms to GitHub repository events through shared webhooks.",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    from roomhooks.api.middleware.trace_id import TraceIdMiddleware
    app.add_middleware(TraceIdMiddleware)

    from roomhooks.errors.handlers import register_exception_handlers
    register_exception_handlers(app)

    # Shared across requests: the per-repository locks must outlive a request
    app.state.github_client = GitHubClient()
    app.state.repository_locks = RepositoryLocks()

    from roomhooks.api.router import api_router
    app.include_router(api_router)

    return app


app = create_app()
