"""API Gateway proxy handlers.

Each request kind is also exposed as a plain Lambda handler taking an API
Gateway proxy event, so MediaGate can be deployed one function per route
without an ASGI adapter:

    mediagate.api.lambda_proxy.create_channel_upload_url
    mediagate.api.lambda_proxy.create_audio_upload_url
    mediagate.api.lambda_proxy.create_channel_download_url
    mediagate.api.lambda_proxy.create_standup_download_url
    mediagate.api.lambda_proxy.create_standup_update_download_url

Handlers answer with the same 201 {"url": ...} body and error envelope as the
FastAPI surface. Settings and AWS clients are built once per container, on
first invocation.
"""

from __future__ import annotations

import base64
import binascii
import functools
import json
import logging
import uuid
from collections.abc import Callable, Mapping
from typing import Any

from mediagate.access.errors import AccessError, UpstreamError, ValidationError
from mediagate.access.models import RequestKind
from mediagate.access.pipeline import AccessPipeline, build_pipeline
from mediagate.api.auth import authorizer_from_event
from mediagate.api.error_model import ALLOW_ORIGIN_HEADER, REQUEST_ID_HEADER, error_payload
from mediagate.config import configure_logging, load_settings

logger = logging.getLogger(__name__)

ProxyHandler = Callable[[Mapping[str, Any], Any], dict[str, Any]]

HANDLER_KINDS: dict[str, RequestKind] = {
    "create_channel_upload_url": RequestKind.UPLOAD_CHANNEL_MEDIA,
    "create_audio_upload_url": RequestKind.UPLOAD_STANDUP_MEDIA,
    "create_channel_download_url": RequestKind.DOWNLOAD_CHANNEL_MEDIA,
    "create_standup_download_url": RequestKind.DOWNLOAD_STANDUP_MEDIA,
    "create_standup_update_download_url": RequestKind.DOWNLOAD_STANDUP_UPDATE,
}


def _event_body(event: Mapping[str, Any]) -> Any:
    if not isinstance(event, Mapping):
        return None

    body = event.get("body")
    if body is not None and event.get("isBase64Encoded"):
        try:
            return base64.b64decode(body, validate=True)
        except (binascii.Error, ValueError):
            raise ValidationError(["Request body must be valid base64"]) from None
    return body


def _event_request_id(event: Mapping[str, Any], context: Any) -> str:
    request_context = event.get("requestContext") if isinstance(event, Mapping) else None
    if isinstance(request_context, Mapping):
        request_id = request_context.get("requestId")
        if isinstance(request_id, str) and request_id:
            return request_id

    aws_request_id = getattr(context, "aws_request_id", None)
    if isinstance(aws_request_id, str) and aws_request_id:
        return aws_request_id

    return str(uuid.uuid4())


def proxy_response(
    status_code: int, body: Mapping[str, Any], *, allow_origin: str, request_id: str
) -> dict[str, Any]:
    """Build an API Gateway proxy response."""
    return {
        "statusCode": status_code,
        "headers": {
            ALLOW_ORIGIN_HEADER: allow_origin,
            "Content-Type": "application/json",
            REQUEST_ID_HEADER: request_id,
        },
        "body": json.dumps(body),
    }


def make_handler(pipeline: AccessPipeline, kind: RequestKind, allow_origin: str) -> ProxyHandler:
    """Create a proxy handler serving one request kind.

    Args:
        pipeline: The access pipeline to run.
        kind: The request kind the handler serves.
        allow_origin: Access-Control-Allow-Origin value for every response.

    Returns:
        A Lambda handler taking (event, context).
    """

    def handler(event: Mapping[str, Any], context: Any = None) -> dict[str, Any]:
        request_id = _event_request_id(event, context)

        try:
            capability = pipeline.run(
                kind,
                authorizer_from_event(event),
                _event_body(event),
                request_id=request_id,
            )
        except AccessError as e:
            if isinstance(e, UpstreamError):
                logger.error(
                    "Upstream failure: service=%s cause=%s",
                    e.service,
                    type(e.cause).__name__ if e.cause else None,
                    extra={"request_id": request_id},
                )
            status_code, body = error_payload(e)
            return proxy_response(
                status_code, body, allow_origin=allow_origin, request_id=request_id
            )
        except Exception as e:
            logger.exception(
                "Unhandled exception: %s",
                type(e).__name__,
                extra={"request_id": request_id},
            )
            status_code, body = error_payload(e)
            return proxy_response(
                status_code, body, allow_origin=allow_origin, request_id=request_id
            )

        return proxy_response(
            201, capability.to_response(), allow_origin=allow_origin, request_id=request_id
        )

    handler.__name__ = kind.value.replace("-", "_")
    return handler


def make_handlers(pipeline: AccessPipeline, allow_origin: str) -> dict[str, ProxyHandler]:
    """Create every proxy handler, keyed by its exported name."""
    return {
        name: make_handler(pipeline, kind, allow_origin) for name, kind in HANDLER_KINDS.items()
    }


@functools.cache
def _default_handlers() -> dict[str, ProxyHandler]:
    settings = load_settings()
    configure_logging(settings)
    return make_handlers(build_pipeline(settings), settings.cors_allow_origin)


def _lazy(name: str) -> ProxyHandler:
    def handler(event: Mapping[str, Any], context: Any = None) -> dict[str, Any]:
        return _default_handlers()[name](event, context)

    handler.__name__ = name
    return handler


create_channel_upload_url = _lazy("create_channel_upload_url")
create_audio_upload_url = _lazy("create_audio_upload_url")
create_channel_download_url = _lazy("create_channel_download_url")
create_standup_download_url = _lazy("create_standup_download_url")
create_standup_update_download_url = _lazy("create_standup_update_download_url")
