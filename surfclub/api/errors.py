"""
Mapping from the booking error taxonomy to HTTP responses.
"""

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from surfclub.core.errors import BookingError, InternalError, Result
from surfclub.core.logging import get_logger

logger = get_logger(__name__)


def to_http_exception(error: BookingError) -> HTTPException:
    return HTTPException(status_code=error.status_code, detail=error.to_dict())


def unwrap_or_raise(result: Result):
    """Return the result's value or raise the matching HTTPException."""
    if not result.ok:
        raise to_http_exception(result.error)
    return result.value


async def booking_error_handler(request: Request, exc: BookingError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.to_dict()})


async def storage_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error("storage_failure", error=str(exc), error_type=type(exc).__name__)
    error = InternalError("Storage failure, nothing was saved")
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"detail": error.to_dict()})


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(BookingError, booking_error_handler)
    app.add_exception_handler(SQLAlchemyError, storage_error_handler)
