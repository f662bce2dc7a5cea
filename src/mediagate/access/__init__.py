"""MediaGate access core.

Authorization-and-capability-issuance pipeline: identity guard, scope gate,
payload schema, cross-field consistency, resource existence/membership,
storage key derivation and signed URL issuance.
"""

from mediagate.access.context import AuthorizationContext
from mediagate.access.errors import (
    AccessError,
    AuthorizerError,
    ConsistencyError,
    ForbiddenError,
    MalformedKeyError,
    NotFoundError,
    UpstreamError,
    ValidationError,
)
from mediagate.access.models import (
    Capability,
    Direction,
    RequestKind,
    ResourceKind,
    ResourceReference,
)

__all__ = [
    "AccessError",
    "AuthorizationContext",
    "AuthorizerError",
    "Capability",
    "ConsistencyError",
    "Direction",
    "ForbiddenError",
    "MalformedKeyError",
    "NotFoundError",
    "RequestKind",
    "ResourceKind",
    "ResourceReference",
    "UpstreamError",
    "ValidationError",
]
