"""Main FastAPI application."""

import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from library_api.api.books import router as books_router
from library_api.api.errors import register_exception_handlers
from library_api.api.schemas import HealthResponse
from library_api.core.config import Settings, get_settings
from library_api.core.logging import configure_logging
from library_api.core.tracing import instrument_engine, setup_tracing, shutdown_tracing
from library_api.services.memory_store import MemoryCatalogStore
from library_api.services.seed import seed_store
from library_api.services.sql_store import SqlCatalogStore
from library_api.services.store import CatalogStore, get_store

logger = logging.getLogger(__name__)


def create_store(settings: Settings) -> CatalogStore:
    """Build the store selected by ``storage_backend``."""
    if settings.storage_backend == "memory":
        return MemoryCatalogStore()
    return SqlCatalogStore(settings.database_url, echo=settings.database_echo)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    # Startup
    store = create_store(settings)
    await store.open()
    if isinstance(store, SqlCatalogStore):
        instrument_engine(store.engine)
    if settings.seed_on_startup:
        await seed_store(store)
    app.state.store = store
    logger.info(f"Library API ready ({store.backend} storage)")
    yield
    # Shutdown
    await store.close()
    shutdown_tracing()


settings = get_settings()
configure_logging(settings.log_level)

app = FastAPI(
    title="Library Catalog API",
    description="A REST API for managing a small book catalog",
    version="0.1.0",
    lifespan=lifespan,
)

# Setup OpenTelemetry tracing (must be done before adding routes)
setup_tracing(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allow_origins,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["Content-Type"],
)

register_exception_handlers(app)

app.include_router(books_router)


@app.get("/health", response_model=HealthResponse, tags=["health"])
async def health_check(store: CatalogStore = Depends(get_store)) -> HealthResponse:
    """Report that the service is up and which storage it uses."""
    return HealthResponse(status="ok", storage=store.backend, books=await store.count())


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "library_api.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.is_development,
    )
