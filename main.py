import logging
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from shorty.api.v1 import redirect, stats, urls
from shorty.cache.factory import CacheFactory
from shorty.config import Settings, settings as default_settings
from shorty.database.connection import build_engine, build_session_factory, init_db
from shorty.exceptions import GenerationExhaustedError, NotFoundError, StorageError
from shorty.hit_processor.visit_aggregator import VisitAggregator
from shorty.logging_config import setup_logging
from shorty.services.short_code_strategies import RandomShortCodeStrategy
from shorty.services.url_service import URLService
from shorty.storage.mapping_store import MappingStore

logger = logging.getLogger("shorty.main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build every long-lived object, run the flush task, tear down on exit"""
    config: Settings = app.state.settings

    engine = build_engine(config.database_url)
    aggregator: Optional[VisitAggregator] = None
    try:
        init_db(engine)
        store = MappingStore(build_session_factory(engine))
        logger.info("Database ready at %s", engine.url.render_as_string(hide_password=True))

        app.state.url_service = URLService(
            store=store,
            generator=RandomShortCodeStrategy(
                length=config.short_code_length,
                charset=config.short_code_charset,
            ),
            cache=CacheFactory.create(config),
            max_attempts=config.max_generation_attempts,
            cache_ttl=config.cache_ttl,
        )
        aggregator = VisitAggregator(
            store=store,
            flush_interval=config.visit_flush_interval,
            flush_on_shutdown=config.flush_on_shutdown,
        )
        app.state.aggregator = aggregator
        aggregator.start()

        yield
    finally:
        try:
            if aggregator is not None:
                await aggregator.stop()
        finally:
            engine.dispose()
            logger.info("Shutdown complete")


def create_app(config: Optional[Settings] = None) -> FastAPI:
    config = config or default_settings
    setup_logging(config.log_level, log_file=config.log_file)

    app = FastAPI(
        title=config.app_name,
        version=config.app_version,
        description="A URL shortener with write-back visit counting",
        debug=config.debug,
        lifespan=lifespan,
    )
    app.state.settings = config

    @app.exception_handler(NotFoundError)
    async def not_found_handler(request: Request, exc: NotFoundError):
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content={"detail": "Short URL not found"},
        )

    @app.exception_handler(StorageError)
    async def storage_error_handler(request: Request, exc: StorageError):
        logger.error("Storage error on %s: %s", request.url.path, exc)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "Storage failure"},
        )

    @app.exception_handler(GenerationExhaustedError)
    async def exhausted_handler(request: Request, exc: GenerationExhaustedError):
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"detail": "Could not allocate a short code, try again later"},
        )

    @app.get("/")
    def read_root():
        """Root endpoint with API information"""
        return {
            "message": f"Welcome to {config.app_name}",
            "version": config.app_version,
            "docs": "/docs",
        }

    @app.get("/health")
    def health_check():
        """Health check endpoint"""
        return {"status": "healthy", "environment": config.environment}

    ######## Include routers
    app.include_router(urls.router, prefix="/api/v1")
    app.include_router(redirect.router)
    app.include_router(stats.router)

    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run(app, host=default_settings.host, port=default_settings.port)
