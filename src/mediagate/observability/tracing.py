"""OpenTelemetry tracing configuration for MediaGate.

Tracing is off by default and never required for correctness. When enabled,
the FastAPI app is instrumented and the Resource Oracle and Capability Issuer
calls emit spans (see mediagate.access.tracing).

Environment Variables:
    MEDIAGATE_OTEL_ENABLED: Set to "1" to enable tracing (default: disabled)
    MEDIAGATE_REQUIRE_OTEL: Set to "1" to fail startup if tracing cannot initialize
    MEDIAGATE_OTEL_SERVICE_NAME: Service name for spans (default: "mediagate")
    MEDIAGATE_OTEL_EXPORTER: Exporter type - "otlp" or "console" (default: "otlp")
    MEDIAGATE_OTEL_EXPORTER_OTLP_ENDPOINT: OTLP endpoint URL (optional)
    MEDIAGATE_OTEL_TEST_CAPTURE: Set to "1" to use in-memory exporter for tests

Security:
    - Never export signed URLs, credentials, request bodies or raw storage keys
    - Workspace and user IDs allowed as internal attributes
"""

from __future__ import annotations

import logging
import os
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from opentelemetry.sdk.trace import ReadableSpan, TracerProvider

logger = logging.getLogger(__name__)

_tracer_provider: TracerProvider | None = None
_is_configured: bool = False
_test_exporter: Any = None


class TracingConfigError(Exception):
    """Raised when tracing configuration fails and MEDIAGATE_REQUIRE_OTEL=1."""

    pass


def get_env_bool(key: str, default: bool = False) -> bool:
    """Get boolean from environment variable."""
    val = os.environ.get(key, "").strip().lower()
    if val in ("1", "true", "yes"):
        return True
    return default


def _get_env_str(key: str, default: str = "") -> str:
    return os.environ.get(key, default).strip()


def is_tracing_enabled() -> bool:
    """Check if OpenTelemetry tracing is enabled."""
    return get_env_bool("MEDIAGATE_OTEL_ENABLED", False)


def _create_otlp_exporter(endpoint: str | None) -> Any:
    from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter

    if endpoint:
        return OTLPSpanExporter(endpoint=endpoint)
    return OTLPSpanExporter()


def configure_tracing() -> bool:
    """Configure OpenTelemetry tracing for MediaGate.

    Idempotent - safe to call multiple times.

    Returns:
        True if tracing is enabled and configured, False otherwise.

    Raises:
        TracingConfigError: If MEDIAGATE_REQUIRE_OTEL=1 and configuration fails.
    """
    global _tracer_provider, _is_configured, _test_exporter

    require_otel = get_env_bool("MEDIAGATE_REQUIRE_OTEL", False)
    test_capture = get_env_bool("MEDIAGATE_OTEL_TEST_CAPTURE", False)

    if not is_tracing_enabled():
        _is_configured = True
        logger.debug("OpenTelemetry tracing disabled (MEDIAGATE_OTEL_ENABLED not set)")
        return False

    # The global provider can only be set once per process; reuse the capture exporter.
    if _test_exporter is not None and test_capture:
        return True

    if _is_configured and _tracer_provider is not None:
        return True

    _is_configured = True

    try:
        from opentelemetry import trace
        from opentelemetry.sdk.resources import Resource
        from opentelemetry.sdk.trace import TracerProvider
        from opentelemetry.sdk.trace.export import BatchSpanProcessor, SimpleSpanProcessor

        service_name = _get_env_str("MEDIAGATE_OTEL_SERVICE_NAME", "mediagate")
        exporter_type = _get_env_str("MEDIAGATE_OTEL_EXPORTER", "otlp")
        endpoint = _get_env_str("MEDIAGATE_OTEL_EXPORTER_OTLP_ENDPOINT", "")

        provider = TracerProvider(resource=Resource.create({"service.name": service_name}))

        if test_capture:
            from opentelemetry.sdk.trace.export.in_memory_span_exporter import (
                InMemorySpanExporter,
            )

            _test_exporter = InMemorySpanExporter()
            provider.add_span_processor(SimpleSpanProcessor(_test_exporter))
        elif exporter_type == "console":
            from opentelemetry.sdk.trace.export import ConsoleSpanExporter

            provider.add_span_processor(SimpleSpanProcessor(ConsoleSpanExporter()))
        else:
            provider.add_span_processor(BatchSpanProcessor(_create_otlp_exporter(endpoint or None)))

        trace.set_tracer_provider(provider)
        _tracer_provider = provider

        logger.info(
            "OpenTelemetry tracing configured: service=%s, exporter=%s",
            service_name,
            exporter_type if not test_capture else "in-memory",
        )
        return True

    except Exception as e:
        logger.error("Failed to configure OpenTelemetry tracing: %s", e)
        if require_otel:
            raise TracingConfigError(
                f"OpenTelemetry tracing required but configuration failed: {e}"
            ) from e
        return False


def instrument_fastapi(app: Any) -> None:
    """Instrument FastAPI application with OpenTelemetry.

    Args:
        app: FastAPI application instance.
    """
    if not is_tracing_enabled():
        return

    try:
        from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor

        FastAPIInstrumentor.instrument_app(app, excluded_urls="health")
        logger.debug("FastAPI instrumented with OpenTelemetry")
    except Exception as e:
        logger.warning("Failed to instrument FastAPI: %s", e)


def get_current_trace_id() -> str | None:
    """Get the current trace ID for logging correlation.

    Returns:
        Hex string of current trace ID, or None if no active span.
    """
    try:
        from opentelemetry import trace

        ctx = trace.get_current_span().get_span_context()
        if ctx is None or not ctx.is_valid:
            return None
        return format(ctx.trace_id, "032x")
    except ImportError:
        return None


def get_test_spans() -> list[ReadableSpan]:
    """Get captured spans from in-memory exporter (for testing)."""
    if _test_exporter is not None:
        return list(_test_exporter.get_finished_spans())
    return []


def clear_test_spans() -> None:
    """Clear captured spans from in-memory exporter (for testing)."""
    if _test_exporter is not None:
        _test_exporter.clear()


def reset_tracing() -> None:
    """Reset tracing configuration (for testing).

    The TracerProvider cannot be replaced once set, so the capture exporter
    is kept and only its spans are cleared.
    """
    global _is_configured

    clear_test_spans()
    _is_configured = False
