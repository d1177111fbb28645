"""
System API Router - Status and configuration
"""

import logging
import time
from datetime import datetime

import psutil
from fastapi import APIRouter, Depends, Request

from api.dependencies import get_managers
from api.exceptions import safe_endpoint

logger = logging.getLogger(__name__)

router = APIRouter()

# Track start time
START_TIME = time.time()


@router.get("/status")
@safe_endpoint
async def get_status(managers=Depends(get_managers)) -> dict:
    """Get system status"""
    process = psutil.Process()
    memory_info = process.memory_info()
    virtual_memory = psutil.virtual_memory()

    stats = managers.history_buffer.get_statistics()
    uptime_minutes = (time.time() - START_TIME) / 60

    return {
        "status": "healthy",
        "uptime": round(time.time() - START_TIME, 1),
        "memory_usage": {
            "process_mb": round(memory_info.rss / 1024 / 1024, 2),
            "system_percent": virtual_memory.percent,
            "available_mb": round(virtual_memory.available / 1024 / 1024, 2),
        },
        "performance": {
            "total_processed": stats["total"],
            "success_rate": stats["success_rate"],
            "avg_processing_time_ms": stats["avg_time_ms"],
            "images_per_minute": round(stats["total"] / uptime_minutes, 2)
            if uptime_minutes > 0
            else 0,
        },
        "preview": managers.preview_manager.get_stats(),
        "segmentation": managers.segmentation_service.describe(),
        "delivery": managers.delivery.describe(),
    }


@router.get("/config")
@safe_endpoint
async def get_config(request: Request) -> dict:
    """Get current configuration"""
    return request.app.state.config


@router.get("/health")
async def health_check() -> dict:
    """Simple health check"""
    return {"status": "healthy", "timestamp": datetime.now().isoformat()}
