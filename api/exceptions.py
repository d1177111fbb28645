"""
Centralized exception handling for the API.

Maps pipeline errors and API errors to consistent JSON error responses:

    {"error": {"message": ..., "code": ..., "stage": ..., "source": ...}}
"""

import functools
import logging
from typing import Any, Dict, Optional

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.responses import JSONResponse

from core.exceptions import (
    DecodeError,
    EncodeError,
    ExternalServiceError,
    InvalidRegionError,
    PipelineError,
)

logger = logging.getLogger(__name__)

HTTP_422_UNPROCESSABLE = 422


# HTTP status per pipeline error type; anything unlisted is a 500
PIPELINE_STATUS_CODES = {
    InvalidRegionError: status.HTTP_400_BAD_REQUEST,
    DecodeError: HTTP_422_UNPROCESSABLE,
    EncodeError: HTTP_422_UNPROCESSABLE,
    ExternalServiceError: status.HTTP_502_BAD_GATEWAY,
}


class APIException(Exception):
    """Base exception for API errors outside the pipeline"""

    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        error_code: str = "INTERNAL_ERROR",
    ):
        self.message = message
        self.status_code = status_code
        self.error_code = error_code
        super().__init__(message)


class SessionNotFoundException(APIException):
    """Preview session does not exist (or was evicted)"""

    def __init__(self, session_id: str):
        super().__init__(
            message=f"Preview session {session_id} not found",
            status_code=status.HTTP_404_NOT_FOUND,
            error_code="SESSION_NOT_FOUND",
        )


class RecordNotFoundException(APIException):
    """History record does not exist"""

    def __init__(self, record_id: str):
        super().__init__(
            message=f"History record {record_id} not found",
            status_code=status.HTTP_404_NOT_FOUND,
            error_code="RECORD_NOT_FOUND",
        )


class BatchTooLargeException(APIException):
    def __init__(self, count: int, limit: int):
        super().__init__(
            message=f"Batch of {count} files exceeds the limit of {limit}",
            status_code=status.HTTP_400_BAD_REQUEST,
            error_code="BATCH_TOO_LARGE",
        )


class UploadTooLargeException(APIException):
    def __init__(self, filename: str, limit_mb: int):
        super().__init__(
            message=f"{filename} exceeds the upload limit of {limit_mb} MB",
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            error_code="UPLOAD_TOO_LARGE",
        )


class InvalidOperationException(APIException):
    """Operation descriptor failed validation"""

    def __init__(self, message: str):
        super().__init__(
            message=message,
            status_code=HTTP_422_UNPROCESSABLE,
            error_code="INVALID_OPERATION",
        )


def pipeline_status_code(exc: PipelineError) -> int:
    for error_type, code in PIPELINE_STATUS_CODES.items():
        if isinstance(exc, error_type):
            return code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def build_error_response(
    message: str,
    error_code: str,
    stage: Optional[str] = None,
    source: Optional[str] = None,
) -> Dict[str, Any]:
    """Standardized error body."""
    return {
        "error": {
            "message": message,
            "code": error_code,
            "stage": stage,
            "source": source,
        }
    }


async def pipeline_error_handler(request: Request, exc: PipelineError) -> JSONResponse:
    status_code = pipeline_status_code(exc)
    logger.warning(f"[PIPELINE ERROR] {exc.error_code} at {exc.stage}: {exc.message}")
    return JSONResponse(status_code=status_code, content={"error": exc.to_dict()})


async def api_exception_handler(request: Request, exc: APIException) -> JSONResponse:
    logger.warning(f"[API ERROR] {exc.error_code}: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content=build_error_response(exc.message, exc.error_code),
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI app."""
    app.add_exception_handler(PipelineError, pipeline_error_handler)
    app.add_exception_handler(APIException, api_exception_handler)
    logger.debug("Registered exception handlers")


def safe_endpoint(func):
    """
    Decorator for endpoints.

    HTTP, API and pipeline errors pass through to their handlers; anything
    else is logged and turned into a 500.
    """

    @functools.wraps(func)
    async def wrapper(*args, **kwargs):
        try:
            return await func(*args, **kwargs)
        except (HTTPException, APIException, PipelineError):
            raise
        except Exception as e:
            logger.error(f"Unhandled error in {func.__name__}: {e}", exc_info=True)
            return JSONResponse(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                content=build_error_response(str(e), "INTERNAL_ERROR"),
            )

    return wrapper
