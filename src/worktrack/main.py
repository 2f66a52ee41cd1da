"""worktrack service entry point.

Initializes the FastAPI application with:
- Primary database for work items, revisions, and tracker queries
- Auth service client for identity resolution and scope checks
- Import scheduler planned from the stored tracker queries
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from sqlalchemy.exc import SQLAlchemyError

from worktrack.adapters.auth_client import AuthServiceClient
from worktrack.adapters.repositories import TrackerQueryRepository
from worktrack.adapters.scheduler import ImportScheduler, get_access_tokens
from worktrack.api.router import router
from worktrack.database import close_database, get_db_session, init_database
from worktrack.errors import register_exception_handlers
from worktrack.settings import Settings

logger = logging.getLogger(__name__)

settings = Settings()


async def _plan_imports(scheduler: ImportScheduler) -> None:
    """Plan the scheduler from the tracker queries already stored."""
    try:
        async with asynccontextmanager(get_db_session)() as session:
            schedulable = await TrackerQueryRepository(session).list_schedulable()
    except (SQLAlchemyError, OSError) as exc:
        logger.warning(
            "Could not load tracker queries at startup; imports stay unplanned until the next change",
            extra={"error": str(exc)},
        )
        return
    scheduler.schedule_all_queries(schedulable, get_access_tokens(settings))


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Manage application startup and shutdown lifecycle.

    Initializes the primary database and the shared clients on startup.
    Disposes the database engine on shutdown.

    Args:
        app: The FastAPI application instance.

    Yields:
        None
    """
    logger.info("Initializing primary database", extra={"service": settings.service_name})
    await init_database(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
        create_schema=settings.create_schema,
    )

    # Store shared clients on app state for dependency injection
    app.state.settings = settings
    app.state.auth_service = AuthServiceClient(
        auth_url=settings.auth_url,
        timeout_seconds=settings.auth_timeout_seconds,
    )
    app.state.scheduler = ImportScheduler()
    await _plan_imports(app.state.scheduler)

    logger.info("worktrack startup complete", extra={"auth_url": settings.auth_url})

    yield

    logger.info("Shutting down worktrack")
    await close_database()
    logger.info("worktrack shutdown complete")


app = FastAPI(
    title=settings.service_name,
    version="0.1.0",
    lifespan=lifespan,
)
register_exception_handlers(app)
app.include_router(router, prefix="/api/v1")
