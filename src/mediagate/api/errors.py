"""MediaGate API error handling.

FastAPI exception handlers producing the normative error envelope:
- AccessError: typed pipeline errors with their fixed status codes
- HTTPException: Starlette HTTP exceptions (FastAPI subclasses included) (unknown route, bad method)
- Exception: catch-all for unhandled exceptions (fail closed, no stack traces)
"""

import logging

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from mediagate.access.errors import AccessError, UpstreamError
from mediagate.api.error_model import (
    error_payload,
    get_message_for_status,
    make_error_response,
)

logger = logging.getLogger(__name__)


async def access_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """FastAPI exception handler for AccessError variants."""
    assert isinstance(exc, AccessError)

    if isinstance(exc, UpstreamError):
        logger.error(
            "Upstream failure: service=%s cause=%s",
            exc.service,
            type(exc.cause).__name__ if exc.cause else None,
            extra={"request_id": getattr(request.state, "request_id", None)},
        )

    status_code, body = error_payload(exc)
    return make_error_response(
        request,
        message=body["message"],
        status_code=status_code,
        details=body["details"],
    )


async def http_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """FastAPI exception handler for HTTPException."""
    assert isinstance(exc, HTTPException)

    return make_error_response(
        request,
        message=get_message_for_status(exc.status_code),
        status_code=exc.status_code,
        details=str(exc.detail) if exc.detail else None,
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all exception handler for unhandled exceptions.

    Fails closed: returns 500 with a safe generic message and logs the
    exception for debugging.
    """
    request_id = getattr(request.state, "request_id", None)

    logger.exception(
        "Unhandled exception: %s",
        type(exc).__name__,
        extra={"request_id": request_id},
    )

    status_code, body = error_payload(exc)
    return make_error_response(
        request,
        message=body["message"],
        status_code=status_code,
        details=body["details"],
    )
