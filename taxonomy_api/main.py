"""
Taxonomy API - FastAPI application for the category hierarchy
"""
from contextlib import asynccontextmanager
from typing import Any, Dict

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse

from taxonomy_api.api.v1 import api_router
from taxonomy_api.core.config import settings
from taxonomy_api.core.database import db_manager, init_db
from taxonomy_api.core.exceptions import BaseAPIException, handle_api_exception, handle_unexpected_exception
from taxonomy_api.core.logging import log, setup_logging
from taxonomy_api.middleware import RequestIDMiddleware, TimingMiddleware


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan events
    """
    setup_logging()
    log.info("Starting Taxonomy API", version=settings.VERSION, env=settings.ENVIRONMENT)

    await init_db()

    yield

    log.info("Shutting down Taxonomy API")
    await db_manager.close()


def create_application() -> FastAPI:
    """
    Create FastAPI application with all configurations
    """
    app = FastAPI(
        title=settings.PROJECT_NAME,
        version=settings.VERSION,
        openapi_url=f"{settings.API_V1_STR}/openapi.json" if settings.DEBUG else None,
        docs_url=f"{settings.API_V1_STR}/docs" if settings.DEBUG else None,
        default_response_class=ORJSONResponse,
        lifespan=lifespan,
        debug=settings.DEBUG,
        openapi_tags=[
            {"name": "health", "description": "Health check endpoints"},
            {"name": "categories", "description": "Category hierarchy and item counts"},
        ],
    )

    # Add custom exception handlers
    app.add_exception_handler(BaseAPIException, handle_api_exception)
    app.add_exception_handler(Exception, handle_unexpected_exception)

    # Add middleware stack (last added runs first)
    if settings.BACKEND_CORS_ORIGINS:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=[str(origin) for origin in settings.BACKEND_CORS_ORIGINS],
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
            expose_headers=["X-Request-ID", "X-Process-Time"]
        )
    app.add_middleware(TimingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # Add API routes
    app.include_router(api_router, prefix=settings.API_V1_STR)

    @app.get("/", tags=["root"])
    async def root() -> Dict[str, Any]:
        """Root endpoint with API information"""
        return {
            "name": settings.PROJECT_NAME,
            "version": settings.VERSION,
            "environment": settings.ENVIRONMENT,
            "docs": f"{settings.API_V1_STR}/docs" if settings.DEBUG else None,
        }

    return app


# Create the application instance
app = create_application()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "taxonomy_api.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
        log_config=None,
    )
