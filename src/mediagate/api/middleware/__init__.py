"""MediaGate API middleware package."""

from mediagate.api.middleware.response_headers import ResponseHeadersMiddleware

__all__ = ["ResponseHeadersMiddleware"]
