"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from backend.app.api import admin, catalog, reports, websocket
from backend.app.core.config import settings
from backend.app.core.exception_handlers import register_exception_handlers
from backend.app.db.base import Base, engine
# Import all models to register them with SQLAlchemy
import backend.app.models  # noqa: F401
from backend.app.websocket.manager import ConnectionManager

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    logging.basicConfig(level=settings.log_level)
    logging.getLogger().setLevel(settings.log_level)

    # Startup: Create database tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info(f"[STARTUP] Database ready; calendar timezone {settings.timezone}")

    yield

    # Shutdown: Close database connections
    await engine.dispose()
    logger.info("[SHUTDOWN] Cleaned up resources")


app = FastAPI(
    title=settings.app_name,
    description="Daily classroom inspection reports with peer approval and admin dashboards",
    version="1.0.0",
    lifespan=lifespan,
)

# Real-time rooms shared by the websocket endpoints and the notification dispatcher
app.state.connections = ConnectionManager()

# Register custom exception handlers
register_exception_handlers(app)

logger.debug(f"[CORS] Allowed origins: {settings.cors_origins_list}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register routers
app.include_router(reports.router, prefix="/api")
app.include_router(admin.router, prefix="/api")
app.include_router(catalog.router, prefix="/api")
app.include_router(websocket.router)


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "name": settings.app_name,
        "version": "1.0.0",
        "description": "Daily classroom inspection reports with peer approval and admin dashboards",
    }


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}
