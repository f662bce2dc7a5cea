"""Shared error response builder for the MediaGate API.

Every error presented to a client, on either surface (FastAPI or the API
Gateway proxy handlers), uses one envelope:

- message: str - human-readable error message
- details: str | list[str] | None - client-safe context
- statusCode: int - HTTP status code, repeated in the body

Clients never receive stack traces or backend error strings.
"""

from __future__ import annotations

import uuid
from typing import Any

from fastapi import Request
from fastapi.responses import JSONResponse

from mediagate.access.errors import AccessError

REQUEST_ID_HEADER = "X-Request-Id"
ALLOW_ORIGIN_HEADER = "Access-Control-Allow-Origin"

HTTP_STATUS_TO_MESSAGE: dict[int, str] = {
    400: "Bad Request",
    403: "Forbidden",
    404: "Not Found",
    405: "Method Not Allowed",
    500: "Internal Server Error",
    502: "Bad Gateway",
}


def error_body(message: str, status_code: int, details: Any = None) -> dict[str, Any]:
    """Build the normative error envelope."""
    return {"message": message, "details": details, "statusCode": status_code}


def error_payload(exc: BaseException) -> tuple[int, dict[str, Any]]:
    """Map an exception to (status code, error envelope).

    AccessError variants carry their own status, message and details. Anything
    else is an internal fault and is presented as a generic 500.
    """
    if isinstance(exc, AccessError):
        return exc.status_code, exc.to_dict()
    return 500, error_body(HTTP_STATUS_TO_MESSAGE[500], 500)


def get_message_for_status(status_code: int) -> str:
    """Get the standard message for an HTTP status code."""
    return HTTP_STATUS_TO_MESSAGE.get(status_code, "Error")


def _get_request_id(request: Request) -> str:
    """Extract or generate request_id for error responses.

    Priority:
    1. request.state.request_id (set by ResponseHeadersMiddleware)
    2. X-Request-Id header (if present)
    3. Generate new UUID (fallback)
    """
    request_id: str | None = getattr(request.state, "request_id", None)
    if request_id is not None:
        return str(request_id)

    header_id: str | None = request.headers.get(REQUEST_ID_HEADER)
    if header_id:
        return header_id

    return str(uuid.uuid4())


def make_error_response(
    request: Request,
    *,
    message: str,
    status_code: int,
    details: Any = None,
) -> JSONResponse:
    """Build an error JSON response.

    The CORS allow-origin header is set here as well as in the middleware,
    because unhandled-exception responses bypass the middleware stack.
    """
    request_id = _get_request_id(request)

    response = JSONResponse(
        status_code=status_code,
        content=error_body(message, status_code, details),
    )
    response.headers[REQUEST_ID_HEADER] = request_id

    allow_origin: str | None = getattr(request.app.state, "cors_allow_origin", None)
    if allow_origin:
        response.headers[ALLOW_ORIGIN_HEADER] = allow_origin

    return response
