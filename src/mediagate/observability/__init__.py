"""MediaGate Observability module.

Provides the optional OpenTelemetry tracing baseline.
"""

from mediagate.observability.tracing import configure_tracing, get_current_trace_id

__all__ = ["configure_tracing", "get_current_trace_id"]
