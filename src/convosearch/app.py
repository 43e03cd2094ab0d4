"""FastAPI application factory and lifespan management."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI

from convosearch.config import Settings
from convosearch.contacts import ContactDirectory, E164PhoneNumberService
from convosearch.entities import ENTITY_MODELS
from convosearch.routes import entities, health, search
from convosearch.search import (
    ContentDispatcher,
    EntityIndexers,
    FullTextSearchFinder,
    IndexRegistration,
)
from convosearch.storage import SnippetOptions, Storage

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Manage application lifecycle events.

    Opens storage, wires the indexers with their collaborators and
    registers the search index before serving. Closes storage on
    shutdown.

    Args:
        app: FastAPI application instance.

    Yields:
        None during application runtime.
    """
    settings: Settings = app.state.settings
    logger.info("api_startup", host=settings.host, port=settings.port)

    storage = Storage(
        settings.database_path,
        models=ENTITY_MODELS,
        snippet=SnippetOptions(
            start=settings.snippet_start,
            end=settings.snippet_end,
            ellipsis=settings.snippet_ellipsis,
            tokens=settings.snippet_tokens,
        ),
    )
    contacts = ContactDirectory()
    dispatcher = ContentDispatcher(EntityIndexers(contacts, E164PhoneNumberService()))
    registration = IndexRegistration(
        dispatcher,
        index_name=settings.index_name,
        index_version=settings.index_version,
    )

    app.state.storage = storage
    app.state.contacts = contacts
    app.state.finder = FullTextSearchFinder(
        registration.name,
        max_search_results=settings.max_search_results,
    )

    try:
        await registration.async_register(storage)
        yield
    finally:
        storage.close()
        logger.info("api_shutdown")


def create_app(settings: Settings | None = None) -> FastAPI:
    """Factory function to create configured FastAPI application.

    Args:
        settings: Configuration instance. Creates default if None.

    Returns:
        Configured FastAPI application.
    """
    if settings is None:
        settings = Settings()

    app = FastAPI(
        title="Conversation Search API",
        version="0.1.0",
        lifespan=lifespan,
        docs_url="/api/v1/docs" if settings.debug else None,
        redoc_url=None,
        openapi_url="/api/v1/openapi.json" if settings.debug else None,
    )
    app.state.settings = settings

    app.include_router(health.router, prefix="/api/v1")
    app.include_router(search.router, prefix="/api/v1")
    app.include_router(entities.router, prefix="/api/v1")

    return app
