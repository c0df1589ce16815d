"""Exception handlers turning errors into the ``{error, message, details}`` JSON shape."""

import logging

from fastapi import Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from ..exceptions import DatabaseError, ErrorCode, OrderDeskException

logger = logging.getLogger(__name__)


async def orderdesk_exception_handler(request: Request, exc: OrderDeskException) -> JSONResponse:
    """Serialize an OrderDeskException with its own status code.

    Client errors are logged at info level; 5xx at error level together with
    the underlying driver error for DatabaseError.
    """
    extra = {
        "error_code": exc.error_code.value,
        "path": request.url.path,
        "method": request.method,
        "details": exc.details,
        "status_code": exc.status_code,
    }
    if exc.status_code >= 500:
        cause = getattr(exc, "original_error", None)
        if cause is not None:
            extra["cause"] = repr(cause)
        logger.error("%s: %s", exc.error_code.value, exc.message, extra=extra)
    else:
        logger.info("%s: %s", exc.error_code.value, exc.message, extra=extra)

    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def sqlalchemy_exception_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    """Last line for database errors not wrapped by a service: log, answer a generic 500."""
    logger.error(
        "Unhandled database error",
        exc_info=exc,
        extra={"path": request.url.path, "method": request.method},
    )
    generic = DatabaseError("A database error occurred")
    return JSONResponse(status_code=generic.status_code, content=generic.to_dict())


def rate_limited_body(retry_after: float) -> dict:
    return {
        "error": ErrorCode.RATE_LIMITED.value,
        "message": "Too many requests",
        "details": {"retry_after": round(retry_after, 1)},
    }
