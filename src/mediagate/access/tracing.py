"""Tracing for the access pipeline's I/O-bound calls.

Resource Oracle lookups and Capability Issuer signing emit OpenTelemetry
spans when tracing is enabled.

Security:
    - Never export signed URLs or raw storage keys in span attributes
    - Storage keys are exported as SHA256 digests for correlation
"""

from __future__ import annotations

import functools
import hashlib
from collections.abc import Callable
from typing import Any, TypeVar, cast

from mediagate.access.models import Direction, ResourceReference
from mediagate.observability.tracing import is_tracing_enabled

F = TypeVar("F", bound=Callable[..., Any])

Describe = Callable[..., dict[str, Any]]


def key_digest(key: str) -> str:
    """SHA256 hex digest of a storage key."""
    return hashlib.sha256(key.encode("utf-8")).hexdigest()


def describe_lookup(reference: ResourceReference, *args: Any, **kwargs: Any) -> dict[str, Any]:
    """Span attributes for a Resource Oracle lookup."""
    return {
        "mediagate.workspace_id": reference.workspace_id,
        "mediagate.resource_kind": reference.kind.value,
        "mediagate.resource_id": reference.resource_id,
    }


def describe_issue(
    bucket: str, key: str, direction: Direction, *args: Any, **kwargs: Any
) -> dict[str, Any]:
    """Span attributes for a Capability Issuer call."""
    attributes: dict[str, Any] = {
        "mediagate.bucket": bucket,
        "mediagate.object_key_sha256": key_digest(key),
        "mediagate.direction": direction.value,
    }
    if kwargs.get("ttl_seconds") is not None:
        attributes["mediagate.ttl_seconds"] = kwargs["ttl_seconds"]
    return attributes


def traced_access_call(operation: str, describe: Describe) -> Callable[[F], F]:
    """Decorator to trace an oracle or issuer method with OpenTelemetry.

    Args:
        operation: Span suffix (e.g., "oracle.exists", "issuer.issue").
        describe: Builds safe span attributes from the call's arguments.

    Returns:
        Decorated method that emits a span when tracing is enabled.
    """

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(self: Any, *args: Any, **kwargs: Any) -> Any:
            if not is_tracing_enabled():
                return func(self, *args, **kwargs)

            try:
                from opentelemetry import trace
            except ImportError:
                return func(self, *args, **kwargs)

            tracer = trace.get_tracer("mediagate.access")
            with tracer.start_as_current_span(f"mediagate.{operation}") as span:
                for name, value in describe(*args, **kwargs).items():
                    span.set_attribute(name, value)
                span.set_attribute("mediagate.backend", getattr(self, "backend_name", "unknown"))

                try:
                    result = func(self, *args, **kwargs)
                except Exception as e:
                    span.set_attribute("error", True)
                    span.set_attribute("error.type", type(e).__name__)
                    raise

                if isinstance(result, bool):
                    span.set_attribute("mediagate.found", result)
                return result

        return cast(F, wrapper)

    return decorator
