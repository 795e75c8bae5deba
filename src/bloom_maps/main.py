"""Main FastAPI application for the bloom maps service."""

import logging
import os
import traceback
from contextlib import asynccontextmanager
from typing import AsyncGenerator

import redis.asyncio as redis
import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse
from fastapi.staticfiles import StaticFiles
from fastapi_cache import FastAPICache
from fastapi_cache.backends.redis import RedisBackend

from bloom_maps.bloom.errors import InvalidInput, NotFound
from bloom_maps.config import HOST, PORT, DEBUG, REDIS_URL, CACHE_ENABLED, CACHE_PREFIX, LOG_LEVEL
from bloom_maps.logging_config import configure_logging
from bloom_maps.middleware.rate_limit import RelayRateLimitMiddleware
from bloom_maps.presentation.endpoints import router as bloom_router
from bloom_maps.presentation.state import get_location_store
from bloom_maps.relay.client import RelayError
from bloom_maps.relay.endpoints import router as relay_router

configure_logging()
logger = logging.getLogger(__name__)

STATIC_PATH = os.path.join(os.path.dirname(os.path.abspath(__file__)), "static")


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    redis_client = redis.from_url(REDIS_URL)
    try:
        # Initialize Redis cache
        FastAPICache.init(RedisBackend(redis_client), prefix=CACHE_PREFIX, enable=CACHE_ENABLED)
        if CACHE_ENABLED:
            logger.info(f"Relay cache initialized with Redis backend at {REDIS_URL}")
        else:
            logger.info("Relay cache disabled")

        store = get_location_store()
        logger.info(f"Starting Bloom Maps service with {len(store.state)} saved locations")
        yield
    except Exception as e:
        logger.error(f"Startup error: {e}")
        logger.error(traceback.format_exc())
        raise
    finally:
        try:
            await redis_client.aclose()
            logger.info("Shutting down Bloom Maps service")
        except Exception as e:
            logger.error(f"Shutdown error: {e}")


async def relay_error_handler(request: Request, exc: RelayError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


async def invalid_input_handler(request: Request, exc: InvalidInput) -> JSONResponse:
    logger.warning(f"Invalid input on {request.method} {request.url.path}: {exc}")
    return JSONResponse(status_code=400, content={"error": str(exc)})


async def not_found_handler(request: Request, exc: NotFound) -> JSONResponse:
    logger.info(f"Not found on {request.method} {request.url.path}: {exc}")
    return JSONResponse(status_code=404, content={"error": str(exc)})


def create_app() -> FastAPI:
    """Create and configure FastAPI application.

    Returns:
        Configured FastAPI application instance
    """
    app = FastAPI(
        title="Bloom Maps",
        description="NDVI and seasonal climate maps backed by NASA POWER daily data",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RelayRateLimitMiddleware)

    app.add_exception_handler(RelayError, relay_error_handler)
    app.add_exception_handler(InvalidInput, invalid_input_handler)
    app.add_exception_handler(NotFound, not_found_handler)

    app.include_router(relay_router)
    app.include_router(bloom_router)

    app.mount("/static", StaticFiles(directory=STATIC_PATH), name="static")

    @app.get("/", tags=["root"])
    async def root():
        """Serve the map page."""
        return FileResponse(os.path.join(STATIC_PATH, "index.html"))

    @app.get("/health", tags=["root"])
    async def health_check() -> dict:
        """Health check endpoint."""
        return {"status": "healthy", "service": "bloom-maps"}

    return app


# Create app instance for uvicorn
app = create_app()


def main() -> None:
    """Main entry point for the application."""
    logger.info(f"Starting server on {HOST}:{PORT}")
    uvicorn.run(
        "bloom_maps.main:app",
        host=HOST,
        port=PORT,
        reload=DEBUG,
        log_level=LOG_LEVEL.lower()
    )


if __name__ == "__main__":
    main()
