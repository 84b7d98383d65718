from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from contextlib import asynccontextmanager
from datetime import timedelta
from pathlib import Path
import logging
import os
from typing import Optional

from src.api.routes import router
from src.auth.tokens import AdminTokenService
from src.config import ConfigManager, Settings, settings as default_settings
from src.models.errors import EditionError
from src.repositories.connection import MongoConnectionManager
from src.repositories.edition_repository import EditionRepository, InMemoryEditionRepository, MongoEditionRepository
from src.services import CompressionPolicy, EditionQueryService, ImageCompressor, PublishService
from src.sources.factory import ContentSourceManager

SERVICE_NAME = "Lumen Sigma"
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

logger = logging.getLogger(__name__)


def configure_logging(level: str = "INFO", log_file: str = "logs/lumen_sigma.log") -> None:
    """Log to stderr and to a file, creating the log directory on demand"""
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        handlers=handlers
    )


def build_repository(settings: Settings) -> tuple[EditionRepository, Optional[MongoConnectionManager]]:
    """Create the edition repository selected by STORAGE_TYPE"""
    settings.validate_storage()

    if settings.storage_type == "mongodb":
        logger.info(f"Initializing MongoDB repository ({settings.mongodb_database}.{settings.mongodb_collection})")
        connection = MongoConnectionManager(
            settings.mongodb_uri,
            settings.mongodb_database,
            settings.mongodb_collection
        )
        return MongoEditionRepository(connection), connection

    logger.info("Initializing in-memory repository")
    return InMemoryEditionRepository(), None


def load_source_config(settings: Settings) -> ConfigManager:
    """Load content source definitions, falling back to the built-in ones"""
    config_manager = ConfigManager()
    config_file = settings.sources_config_file

    if os.path.exists(config_file):
        logger.info(f"Loading configuration from {config_file}")
        if not config_manager.load_from_file(config_file):
            logger.warning("Failed to load configuration file, using defaults")
            config_manager.load_defaults()
    else:
        logger.warning(f"Configuration file {config_file} not found, using defaults")
        config_manager.load_defaults()

    for error in config_manager.validate_configs():
        logger.warning(f"Configuration problem: {error}")

    return config_manager


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handle application startup and shutdown events"""
    settings: Settings = getattr(app.state, 'settings', None) or default_settings
    configure_logging(settings.log_level, settings.log_file)

    logger.info(f"Starting {SERVICE_NAME}...")
    connection = None
    source_manager = None

    # Startup: Initialize components
    try:
        # 1. Initialize repository
        repository, connection = build_repository(settings)

        # 2. Load configuration and build content sources
        config_manager = load_source_config(settings)
        source_manager = ContentSourceManager()
        for config in config_manager.get_source_configs():
            if not source_manager.add_source(config):
                logger.error(f"Failed to add source: {config.name}")

        # 3. Initialize services
        token_service = AdminTokenService(
            settings.admin_password,
            secret=settings.signing_secret,
            ttl=timedelta(days=settings.token_ttl_days)
        )
        if not token_service.configured:
            logger.warning("ADMIN_PASSWORD is not set; publishing is disabled")

        compressor = ImageCompressor(CompressionPolicy(
            max_width=settings.photo_max_width,
            max_height=settings.photo_max_height,
            max_bytes=settings.photo_max_bytes
        ))
        publish_service = PublishService(repository, source_manager, token_service, compressor)
        query_service = EditionQueryService(repository)

        # Make components available to routes
        app.state.settings = settings
        app.state.repository = repository
        app.state.connection = connection
        app.state.config_manager = config_manager
        app.state.source_manager = source_manager
        app.state.token_service = token_service
        app.state.publish_service = publish_service
        app.state.query_service = query_service

        logger.info(f"{SERVICE_NAME} started with {len(source_manager.get_enabled_sources())} enabled sources")

    except Exception as e:
        logger.error(f"Error during startup: {e}")
        raise

    yield

    # Shutdown: Clean up resources
    logger.info(f"Shutting down {SERVICE_NAME}...")

    try:
        if source_manager:
            await source_manager.close()
        if connection:
            connection.close()
    except Exception as e:
        logger.error(f"Error during shutdown: {e}")


app = FastAPI(
    title=SERVICE_NAME,
    description="Daily edition publishing: one headline, photo and a handful of extras per day",
    version="1.0.0",
    lifespan=lifespan
)

# Include API routes
app.include_router(router)


@app.exception_handler(EditionError)
async def edition_error_handler(request: Request, exc: EditionError):
    """Known application errors become {error: message} with their status"""
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message} ({exc.cause!r})")
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail}, headers=exc.headers)


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    logger.warning(f"Rejected {request.method} {request.url.path}: {exc.errors()}")
    return JSONResponse(status_code=400, content={"error": "Invalid request body"})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


@app.get("/health")
async def health_check(request: Request):
    """Health check endpoint"""
    settings = getattr(request.app.state, 'settings', None)
    source_manager = getattr(request.app.state, 'source_manager', None)

    status = {
        "status": "healthy",
        "service": SERVICE_NAME,
        "storage_type": settings.storage_type if settings else None,
        "api_base_url": settings.api_base_url if settings else None,
        "total_sources": len(source_manager.get_all_sources()) if source_manager else 0,
        "enabled_sources": len(source_manager.get_enabled_sources()) if source_manager else 0
    }

    return status


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "src.main:app",
        host=default_settings.host,
        port=default_settings.port,
        reload=default_settings.debug,
        log_level=default_settings.log_level.lower()
    )
