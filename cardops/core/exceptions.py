"""
Domain errors raised by the service layer and their HTTP mapping
"""
import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from cardops.schemas.common import ErrorResponse

logger = logging.getLogger(__name__)


class CardOpsError(Exception):
    """Base class for errors raised by CardOps services"""

    status_code = status.HTTP_400_BAD_REQUEST
    error = "Bad request"

    def __init__(self, message: str = None):
        self.message = message or self.error
        super().__init__(self.message)


class ValidationError(CardOpsError):
    """Missing or malformed input; raised before anything is written"""

    error = "Validation error"


class NotFound(CardOpsError):
    status_code = status.HTTP_404_NOT_FOUND
    error = "Not found"


class InvalidStep(CardOpsError):
    """Step number outside 1..6"""

    error = "Invalid step"


class AlreadyResponded(CardOpsError):
    status_code = status.HTTP_409_CONFLICT
    error = "Already responded"


class Expired(CardOpsError):
    status_code = status.HTTP_410_GONE
    error = "Expired"


class StorageError(CardOpsError):
    """Transaction or commit failure. The detail is logged, never returned."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    error = "Internal Server Error"


async def cardops_error_handler(request: Request, exc: CardOpsError) -> JSONResponse:
    if isinstance(exc, StorageError):
        logger.error(f"Storage error on {request.method} {request.url.path}: {exc.message}")
        content = ErrorResponse(error=exc.error)
    else:
        content = ErrorResponse(error=exc.error, detail=exc.message)
    return JSONResponse(status_code=exc.status_code, content=content.model_dump(exclude_none=True))


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=ErrorResponse(error="Internal Server Error").model_dump(exclude_none=True),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(CardOpsError, cardops_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
