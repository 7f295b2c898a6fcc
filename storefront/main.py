"""
Marketplace storefront - main application.

FastAPI application serving the browse page and the create/edit listing form
on top of the catalog engine.
"""
import logging
import sys
from contextlib import asynccontextmanager
from typing import Optional

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from catalog.client import ListingsClient
from catalog.query import DEFAULT_FILTERS, update_filters
from catalog.taxonomy import CatalogConfig

from .config import Config, config
from .routes import browse_router, catalog_router, ui_router
from .sessions import BrowseSessionStore

logger = logging.getLogger(__name__)


def configure_logging(settings: Config) -> None:
    handlers = [logging.StreamHandler(sys.stdout)]
    if settings.LOG_FILE:
        handlers.append(logging.FileHandler(settings.LOG_FILE))
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=handlers
    )


def create_app(
    settings: Config = config,
    transport: Optional[httpx.AsyncBaseTransport] = None
) -> FastAPI:
    """
    Build the application.

    ``transport`` replaces the network transport of the backend client
    (``httpx.MockTransport`` in tests).
    """
    configure_logging(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan management."""
        logger.info("Starting marketplace storefront...")
        try:
            settings.validate()
            catalog = CatalogConfig.load(settings.CATALOG_CONFIG)
        except Exception as e:
            logger.error(f"Startup failed: {e}")
            raise

        client = ListingsClient(settings.MARKET_API_URL, settings.REQUEST_TIMEOUT, transport)
        default_filters = update_filters(DEFAULT_FILTERS, radius_km=settings.DEFAULT_RADIUS_KM)
        app.state.settings = settings
        app.state.catalog = catalog
        app.state.listings_client = client
        app.state.sessions = BrowseSessionStore(
            catalog,
            client.fetch_page,
            default_filters,
            settings.PAGE_SIZE,
            settings.MAX_SESSIONS
        )
        logger.info(f"Backend: {settings.MARKET_API_URL}")
        logger.info("Storefront startup complete")
        try:
            yield
        finally:
            logger.info("Shutting down marketplace storefront...")
            await client.aclose()

    app = FastAPI(
        title=settings.API_TITLE,
        version=settings.API_VERSION,
        description=settings.API_DESCRIPTION,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=settings.CORS_ALLOW_CREDENTIALS,
        allow_methods=settings.CORS_ALLOW_METHODS,
        allow_headers=settings.CORS_ALLOW_HEADERS,
    )

    @app.exception_handler(Exception)
    async def global_exception_handler(request, exc: Exception):
        """Global exception handler for unhandled errors."""
        logger.error(f"Unhandled exception: {exc}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal server error"}
        )

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {
            "status": "healthy",
            "version": settings.API_VERSION,
            "categories": len(app.state.catalog.category_ids()),
            "forms": len(app.state.catalog.forms),
            "sessions": len(app.state.sessions),
        }

    app.include_router(ui_router)
    app.include_router(catalog_router)
    app.include_router(browse_router)
    return app


app = create_app()

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "storefront.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level=config.LOG_LEVEL.lower()
    )
