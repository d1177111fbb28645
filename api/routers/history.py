"""
History API Router - Transform history
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query

from api.dependencies import get_history_buffer
from api.exceptions import RecordNotFoundException, safe_endpoint
from core.history_buffer import TransformRecord
from schemas import HistoryResponse, TransformRecordModel

logger = logging.getLogger(__name__)

router = APIRouter()


def to_model(record: TransformRecord) -> TransformRecordModel:
    return TransformRecordModel(**vars(record))


@router.get("/recent")
@safe_endpoint
async def get_recent_history(
    limit: int = Query(10, ge=1, le=100),
    result_filter: Optional[str] = Query(None, pattern="^(OK|FAILED)$"),
    mode: Optional[str] = Query(None, description="Only records of this mode"),
    history_buffer=Depends(get_history_buffer),
) -> HistoryResponse:
    """Get recent transform history"""
    records = history_buffer.get_recent(limit, result_filter, mode)

    return HistoryResponse(
        records=[to_model(r) for r in records],
        statistics=history_buffer.get_statistics(),
    )


@router.post("/clear")
@safe_endpoint
async def clear_history(history_buffer=Depends(get_history_buffer)) -> dict:
    """Clear all history"""
    history_buffer.clear()

    return {"success": True, "message": "History cleared"}


@router.get("/statistics")
@safe_endpoint
async def get_statistics(history_buffer=Depends(get_history_buffer)) -> dict:
    """Get detailed statistics"""
    return history_buffer.get_statistics()


@router.get("/analysis/failures")
@safe_endpoint
async def get_failure_analysis(history_buffer=Depends(get_history_buffer)) -> dict:
    """Analyze failures by stage and error code"""
    return history_buffer.get_failure_analysis()


@router.get("/{record_id}")
@safe_endpoint
async def get_record(record_id: str, history_buffer=Depends(get_history_buffer)) -> TransformRecordModel:
    """Get specific record details"""
    record = history_buffer.get_record(record_id)
    if record is None:
        raise RecordNotFoundException(record_id)

    return to_model(record)
