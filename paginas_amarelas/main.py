"""Main FastAPI application."""

import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles

from paginas_amarelas import __version__
from paginas_amarelas.api.auth import router as auth_router
from paginas_amarelas.api.books import router as books_router
from paginas_amarelas.api.feed import router as feed_router
from paginas_amarelas.api.lookup import router as lookup_router
from paginas_amarelas.api.profile import router as profile_router
from paginas_amarelas.api.uploads import router as uploads_router
from paginas_amarelas.core.config import get_settings
from paginas_amarelas.core.database import init_db
from paginas_amarelas.core.tracing import setup_tracing, shutdown_tracing
from paginas_amarelas.services.book_lookup import book_lookup_service

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    # Startup
    await init_db()
    yield
    # Shutdown
    await book_lookup_service.close()
    shutdown_tracing()


settings = get_settings()

app = FastAPI(
    title="Páginas Amarelas",
    description="Personal book tracking with a public reading feed",
    version=__version__,
    lifespan=lifespan,
)

# Setup OpenTelemetry tracing (must be done before adding routes)
setup_tracing(app)

# Serve uploaded images
upload_dir = Path(settings.upload_dir)
upload_dir.mkdir(parents=True, exist_ok=True)
app.mount("/uploads", StaticFiles(directory=upload_dir), name="uploads")

# Include routers
app.include_router(auth_router)
app.include_router(books_router)
app.include_router(feed_router)
app.include_router(profile_router)
app.include_router(lookup_router)
app.include_router(uploads_router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "paginas_amarelas.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.is_development,
    )
