"""Response header middleware for the MediaGate API.

Ensures every request has a request ID for tracing and log correlation, and
every response carries the configured CORS allow-origin header.
"""

import uuid
from collections.abc import Awaitable, Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from mediagate.api.error_model import ALLOW_ORIGIN_HEADER, REQUEST_ID_HEADER


class ResponseHeadersMiddleware(BaseHTTPMiddleware):
    """Middleware that attaches a request ID and the CORS allow-origin header.

    Behavior:
    - If request has header X-Request-Id and it's a non-empty string => use it.
    - Else generate uuid4.
    - Attach to request.state.request_id and add response header X-Request-Id.
    - Set Access-Control-Allow-Origin to the origin fixed at process start.
    """

    def __init__(self, app: ASGIApp, allow_origin: str) -> None:
        super().__init__(app)
        self._allow_origin = allow_origin

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        """Process the request and attach response headers."""
        incoming_request_id = request.headers.get(REQUEST_ID_HEADER)

        if incoming_request_id and incoming_request_id.strip():
            request_id = incoming_request_id.strip()
        else:
            request_id = str(uuid.uuid4())

        request.state.request_id = request_id

        response: Response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = request_id
        response.headers[ALLOW_ORIGIN_HEADER] = self._allow_origin

        return response
