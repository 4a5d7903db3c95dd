"""
Main FastAPI application instance.
"""

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from eovtrans import __version__
from eovtrans.api.error_handlers import register_error_handlers
from eovtrans.api.grid import router as grid_router
from eovtrans.api.measure import router as measure_router
from eovtrans.api.middleware import RequestCorrelationMiddleware
from eovtrans.api.transform import router as transform_router
from eovtrans.core.config import settings
from eovtrans.core.geodesy import get_default_transformer
from eovtrans.core.logging_config import setup_logging
from eovtrans.utils.version import format_version_info

logger = logging.getLogger(__name__)


def _preload_grid(path: Path) -> None:
    """Load the configured correction grid file, if it exists."""
    if not path.is_file():
        logger.warning(f"Configured correction grid not found: {path}")
        return
    loaded = get_default_transformer().load_correction_grid(path.name, path.read_bytes())
    if not loaded:
        logger.warning(f"Configured correction grid was not loaded: {path}")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """
    Lifespan context manager for FastAPI application.

    Startup configures logging and loads the correction grid named by
    settings.eov_grid_path. Without a grid, EOV requests use the Helmert
    parameters.
    """
    log_file = Path(settings.log_file) if settings.log_file else None
    setup_logging(log_level=settings.log_level, log_file=log_file)
    logger.info(f"Starting eovtrans API v{__version__} in {settings.environment} mode")

    if settings.eov_grid_path:
        _preload_grid(Path(settings.eov_grid_path))

    yield

    logger.info("Shutting down eovtrans API")


app = FastAPI(
    title="eovtrans API",
    description="Coordinate transformations between ITRF, ETRS89 and the Hungarian EOV grid",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(RequestCorrelationMiddleware)

register_error_handlers(app)

app.include_router(transform_router, prefix=settings.api_v1_prefix)
app.include_router(grid_router, prefix=settings.api_v1_prefix)
app.include_router(measure_router, prefix=settings.api_v1_prefix)


@app.get("/")
async def root() -> dict[str, str]:
    """
    Root endpoint returning API information.

    Returns:
        dict[str, str]: API information including name and version.
    """
    return {"name": "eovtrans API", **format_version_info()}


@app.get("/health")
async def health_check() -> dict[str, str]:
    """
    Health check endpoint.

    Returns:
        dict[str, str]: Health status and correction grid state.
    """
    return {"status": "healthy", "grid": get_default_transformer().grid_status().state.value}
