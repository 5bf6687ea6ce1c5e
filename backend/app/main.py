"""
FastAPI application entry point for the protocol extraction backend.

Provides REST API for:
- Protocol JSON upload
- The latest protocol document (read, replace, clear)
- RTSM info, roles & access, inventory defaults, drug ordering/resupply
- Seed defaults for the sibling documents
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse

from app.config import settings
from app.db import get_session_factory, init_schema
from app.routers import documents, protocol
from app.services.document_store import DocumentStore, SqlDocumentStore

APP_VERSION = "1.0.0"

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[
        logging.StreamHandler(),
    ]
)
logger = logging.getLogger(__name__)


def create_app(document_store: Optional[DocumentStore] = None) -> FastAPI:
    """
    Build the application around a document store.

    Without an explicit store the configured database is used and its schema
    is created on startup.
    """
    owns_database = document_store is None
    store = document_store or SqlDocumentStore(get_session_factory())

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan events."""
        logger.info("Starting protocol extraction backend...")
        if owns_database:
            try:
                init_schema()
                logger.info(f"Database schema initialized on {settings.database_host}")
            except Exception as e:
                logger.error(f"Failed to initialize database schema: {e}")
                raise
        yield
        logger.info("Shutting down protocol extraction backend...")

    app = FastAPI(
        title="Protocol Extraction API",
        description="Persistence for clinical-trial protocol documents and RTSM configuration",
        version=APP_VERSION,
        lifespan=lifespan,
    )
    app.state.document_store = store

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
        expose_headers=[documents.VERSION_HEADER],
    )

    @app.middleware("http")
    async def log_origin(request: Request, call_next):
        origin = request.headers.get("origin")
        logger.debug(f"Incoming {request.method} {request.url.path} from origin: {origin or 'No origin header'}")
        if origin and origin not in settings.cors_allowed_origins:
            logger.warning(
                f"Origin not allowed by CORS: {origin} (expected {settings.cors_fallback_origin})"
            )
        return await call_next(request)

    @app.get("/", response_class=PlainTextResponse)
    async def root():
        return "Backend is running successfully"

    # Health check endpoint
    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {
            "status": "healthy",
            "version": APP_VERSION,
        }

    @app.get("/status")
    async def status_check():
        """Backend and database status check."""
        connected = app.state.document_store.is_available()
        return {
            "success": True,
            "databaseStatus": "Connected" if connected else "Disconnected",
            "message": "Backend and database status check",
        }

    app.include_router(protocol.router, prefix="/api/protocol", tags=["protocol"])
    app.include_router(documents.router, prefix="/api", tags=["documents"])

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "app.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
