"""Upstream authorizer assertion extraction.

MediaGate never authenticates the caller. It runs behind an authorizer (API
Gateway custom/Lambda authorizer) that has already validated the caller and
passes on an identity/scope assertion. This module only locates that
assertion; its shape is verified by the access pipeline's context guard.

Sources, in priority order:
1. The raw API Gateway proxy event in the ASGI scope ("aws.event"), as placed
   there by Lambda ASGI adapters: requestContext.authorizer (REST APIs) or
   requestContext.authorizer.lambda (HTTP APIs).
2. Gateway-injected headers X-Authorizer-User-Id, X-Authorizer-Workspace-Id
   and X-Authorizer-Scope, only when the app was created with
   trust_authorizer_headers (MEDIAGATE_TRUST_AUTHORIZER_HEADERS). The gateway
   must then strip these from client requests. Off by default.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from fastapi import Request

from mediagate.access.context import SCOPE_FIELD, USER_ID_FIELD, WORKSPACE_ID_FIELD

logger = logging.getLogger(__name__)

AWS_EVENT_SCOPE_KEY = "aws.event"

USER_ID_HEADER = "X-Authorizer-User-Id"
WORKSPACE_ID_HEADER = "X-Authorizer-Workspace-Id"
SCOPE_HEADER = "X-Authorizer-Scope"


def authorizer_from_event(event: Mapping[str, Any] | None) -> Mapping[str, Any] | None:
    """Return the authorizer assertion of an API Gateway proxy event.

    Returns:
        The authorizer mapping, or None if the event carries none.
    """
    if not isinstance(event, Mapping):
        return None

    request_context = event.get("requestContext")
    if not isinstance(request_context, Mapping):
        return None

    authorizer = request_context.get("authorizer")
    if not isinstance(authorizer, Mapping):
        return None

    # HTTP APIs nest Lambda authorizer context under "lambda".
    nested = authorizer.get("lambda")
    if isinstance(nested, Mapping):
        return nested

    return authorizer


def _authorizer_from_headers(request: Request) -> dict[str, Any] | None:
    user_id = request.headers.get(USER_ID_HEADER)
    workspace_id = request.headers.get(WORKSPACE_ID_HEADER)
    scope = request.headers.get(SCOPE_HEADER)

    if user_id is None and workspace_id is None and scope is None:
        return None

    return {
        USER_ID_FIELD: user_id,
        WORKSPACE_ID_FIELD: workspace_id,
        SCOPE_FIELD: scope,
    }


def extract_authorizer(request: Request) -> Mapping[str, Any] | None:
    """Locate the upstream authorizer assertion for a request.

    Returns:
        The raw assertion, or None if the request carries none (the context
        guard reports that as an integration fault).
    """
    event = request.scope.get(AWS_EVENT_SCOPE_KEY)
    if event is not None:
        return authorizer_from_event(event)

    authorizer: dict[str, Any] | None = None
    if getattr(request.app.state, "trust_authorizer_headers", False):
        authorizer = _authorizer_from_headers(request)
    if authorizer is None:
        logger.warning(
            "Request carries no authorizer assertion",
            extra={"request_id": getattr(request.state, "request_id", None)},
        )
    return authorizer
