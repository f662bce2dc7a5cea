"""Media capability routes for the MediaGate API.

Each endpoint runs the access pipeline for one request kind and answers
201 {"url": "<signed URL>"} on success:

- POST /v1/channels/media/upload-url
- POST /v1/standups/media/upload-url
- POST /v1/channels/media/download-url
- POST /v1/standups/media/download-url
- POST /v1/standups/updates/download-url

The request body is read raw and validated by the pipeline's own schema
validator, so every violation is reported in one response.
"""

from __future__ import annotations

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from mediagate.access.models import RequestKind
from mediagate.access.pipeline import AccessPipeline
from mediagate.api.auth import extract_authorizer

router = APIRouter(prefix="/v1", tags=["Media"])


async def _issue(request: Request, kind: RequestKind) -> JSONResponse:
    pipeline: AccessPipeline = request.app.state.pipeline
    body = await request.body()

    # Oracle lookups and signing are blocking calls.
    capability = await run_in_threadpool(
        pipeline.run,
        kind,
        extract_authorizer(request),
        body,
        request_id=getattr(request.state, "request_id", None),
    )
    return JSONResponse(status_code=201, content=capability.to_response())


@router.post("/channels/media/upload-url", status_code=201)
async def create_channel_upload_url(request: Request) -> JSONResponse:
    """Signed URL to upload a recording to a channel."""
    return await _issue(request, RequestKind.UPLOAD_CHANNEL_MEDIA)


@router.post("/standups/media/upload-url", status_code=201)
async def create_standup_upload_url(request: Request) -> JSONResponse:
    """Signed URL to upload a recording to a standup."""
    return await _issue(request, RequestKind.UPLOAD_STANDUP_MEDIA)


@router.post("/channels/media/download-url", status_code=201)
async def create_channel_download_url(request: Request) -> JSONResponse:
    """Signed URL to download a transcoded channel recording."""
    return await _issue(request, RequestKind.DOWNLOAD_CHANNEL_MEDIA)


@router.post("/standups/media/download-url", status_code=201)
async def create_standup_download_url(request: Request) -> JSONResponse:
    """Signed URL to download a transcoded standup recording."""
    return await _issue(request, RequestKind.DOWNLOAD_STANDUP_MEDIA)


@router.post("/standups/updates/download-url", status_code=201)
async def create_standup_update_download_url(request: Request) -> JSONResponse:
    """Signed URL to download a standup update; requires standup membership."""
    return await _issue(request, RequestKind.DOWNLOAD_STANDUP_UPDATE)
