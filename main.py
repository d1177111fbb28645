"""
Image Transform Pipeline - Main FastAPI Application
"""

import logging
import sys
from contextlib import asynccontextmanager
from pathlib import Path

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# Add parent directory to path
sys.path.append(str(Path(__file__).parent))

from api.exceptions import register_exception_handlers  # noqa: E402
from api.routers import history, icon, preview, segmentation, system, transform  # noqa: E402
from config import get_settings  # noqa: E402
from core.constants import SystemConstants  # noqa: E402
from core.history_buffer import HistoryBuffer  # noqa: E402
from core.preview_manager import PreviewManager  # noqa: E402
from services.delivery import DirectoryDelivery, MemoryDelivery  # noqa: E402
from services.segmentation_client import SegmentationClient  # noqa: E402
from services.segmentation_service import SegmentationService  # noqa: E402

# Get configuration
settings = get_settings()

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.system.log_level),
    format=SystemConstants.LOG_FORMAT,
)
logger = logging.getLogger(__name__)

# Suppress noisy third-party loggers
for noisy in ("watchfiles", "httpx", "httpcore", "PIL", "multipart"):
    logging.getLogger(noisy).setLevel(logging.WARNING)


def build_delivery():
    """Directory delivery when an output directory is configured, in-memory otherwise."""
    if settings.pipeline.output_dir:
        return DirectoryDelivery(settings.pipeline.output_dir)
    return MemoryDelivery()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifecycle"""
    # Startup
    logger.info("Starting Image Transform Pipeline server...")
    logger.info(f"Environment: {settings.environment}")
    logger.info(f"Debug mode: {settings.system.debug}")

    delivery = build_delivery()
    history_buffer = HistoryBuffer(max_size=settings.history.buffer_size)
    preview_manager = PreviewManager(
        max_sessions=settings.preview.max_sessions,
        debounce_ms=settings.preview.debounce_ms,
        thumbnail_width=settings.preview.thumbnail_width,
    )
    segmentation_service = SegmentationService(
        SegmentationClient(
            settings.segmentation.service_url,
            timeout_seconds=settings.segmentation.timeout_seconds,
        ),
        delivery=delivery,
    )

    logger.info("All managers initialized successfully")

    # Store managers in app state for access by routers
    app.state.history_buffer = history_buffer
    app.state.preview_manager = preview_manager
    app.state.segmentation_service = segmentation_service
    app.state.delivery = delivery
    app.state.settings = settings
    app.state.config = settings.to_dict()
    app.state.debug = settings.system.debug

    yield

    # Shutdown
    logger.info("Shutting down Image Transform Pipeline server...")
    try:
        preview_manager.cleanup()
        await segmentation_service.close()
    except Exception as e:
        logger.error(f"Error during cleanup: {e}")

    logger.info("Server shutdown complete")


# Create FastAPI app
app = FastAPI(
    title="Image Transform Pipeline",
    description="Convert, compress, enhance, resize, crop, social cards and icon export",
    version="1.0.0",
    lifespan=lifespan,
)

if settings.api.cors_enabled:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.api.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

# Register exception handlers
register_exception_handlers(app)

# Include routers
app.include_router(transform.router, prefix="/api/transform", tags=["Transform"])
app.include_router(icon.router, prefix="/api/icon", tags=["Icon"])
app.include_router(segmentation.router, prefix="/api/segmentation", tags=["Segmentation"])
app.include_router(preview.router, prefix="/api/preview", tags=["Preview"])
app.include_router(history.router, prefix="/api/history", tags=["History"])
app.include_router(system.router, prefix="/api/system", tags=["System"])


# Root endpoint
@app.get("/")
async def root():
    return {
        "name": "Image Transform Pipeline",
        "status": "running",
        "version": "1.0.0",
        "endpoints": {
            "transform": "/api/transform",
            "icon": "/api/icon",
            "segmentation": "/api/segmentation",
            "preview": "/api/preview",
            "history": "/api/history",
            "system": "/api/system",
            "docs": "/docs",
        },
    }


# Health check endpoint
@app.get("/health")
async def health_check():
    return {
        "status": "healthy",
        "services": {
            name: getattr(app.state, name, None) is not None
            for name in ("history_buffer", "preview_manager", "segmentation_service", "delivery")
        },
    }


if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host=settings.api.host,
        port=settings.api.port,
        reload=settings.system.debug,
        log_level="info",
        loop="asyncio",
    )
