"""MediaGate FastAPI application factory.

This module provides the create_app() factory for bootstrapping the MediaGate API.
"""

from fastapi import FastAPI
from starlette.exceptions import HTTPException

from mediagate.access.errors import AccessError
from mediagate.access.pipeline import AccessPipeline, build_pipeline
from mediagate.api.errors import (
    access_error_handler,
    generic_exception_handler,
    http_exception_handler,
)
from mediagate.api.middleware.response_headers import ResponseHeadersMiddleware
from mediagate.api.routes.health import MEDIAGATE_VERSION
from mediagate.api.routes.health import router as health_router
from mediagate.api.routes.media import router as media_router
from mediagate.config import Settings, load_settings
from mediagate.observability.tracing import configure_tracing, instrument_fastapi


def create_app(
    pipeline: AccessPipeline | None = None,
    *,
    settings: Settings | None = None,
    cors_allow_origin: str | None = None,
    trust_authorizer_headers: bool | None = None,
) -> FastAPI:
    """Create and configure the MediaGate FastAPI application.

    This factory:
    - Creates a FastAPI app with MediaGate metadata
    - Wires the access pipeline (injected, or built from settings)
    - Registers ResponseHeadersMiddleware (request ID + CORS)
    - Registers the AccessError, HTTPException and catch-all handlers
    - Mounts the health router and the /v1 media routers

    Settings are only loaded from the environment when something is missing:
    a test passing both a pipeline and cors_allow_origin needs no environment.

    Args:
        pipeline: Optional AccessPipeline for testing. If None, one is built from
            settings with the DynamoDB oracle and S3 issuer.
        settings: Optional Settings. If None and needed, loaded from the environment.
        cors_allow_origin: Optional allow-origin override. Defaults to the
            configured MEDIAGATE_CORS_ALLOW_ORIGIN.
        trust_authorizer_headers: Accept X-Authorizer-* headers when no proxy
            event is present. Defaults to the setting, or off without settings.

    Returns:
        Configured FastAPI application instance.

    Raises:
        ConfigError: If settings must be loaded and the environment is incomplete.
    """
    if settings is None and (pipeline is None or cors_allow_origin is None):
        settings = load_settings()

    if pipeline is None:
        assert settings is not None
        pipeline = build_pipeline(settings)

    if cors_allow_origin is None:
        assert settings is not None
        cors_allow_origin = settings.cors_allow_origin

    if trust_authorizer_headers is None:
        trust_authorizer_headers = (
            settings.trust_authorizer_headers if settings is not None else False
        )

    app = FastAPI(
        title="MediaGate API",
        description="Signed media upload/download URL issuance",
        version=MEDIAGATE_VERSION,
    )

    app.state.pipeline = pipeline
    app.state.cors_allow_origin = cors_allow_origin
    app.state.trust_authorizer_headers = trust_authorizer_headers

    configure_tracing()

    app.add_middleware(ResponseHeadersMiddleware, allow_origin=cors_allow_origin)

    instrument_fastapi(app)

    app.add_exception_handler(AccessError, access_error_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    app.include_router(health_router)
    app.include_router(media_router)

    return app
