"""Authorization context and its guard.

The upstream authorizer (API Gateway custom authorizer) hands over a
pre-validated identity assertion of the form:

    {"userId": "...", "workspaceId": "...", "scope": "upload:audio download:audio"}

MediaGate does not authenticate the caller; it only verifies the shape of that
assertion before anything else runs. A malformed assertion is an integration
fault and is reported with a server-side status.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict

from mediagate.access.errors import AuthorizerError

USER_ID_FIELD = "userId"
WORKSPACE_ID_FIELD = "workspaceId"
SCOPE_FIELD = "scope"


class AuthorizationContext(BaseModel):
    """Identity and granted scope of the caller for one request.

    Immutable for the request's lifetime and never persisted.
    """

    model_config = ConfigDict(frozen=True)

    user_id: str
    workspace_id: str
    scope: frozenset[str] = frozenset()

    @classmethod
    def from_authorizer(cls, raw: Mapping[str, Any] | None) -> AuthorizationContext:
        """Build a context from a raw authorizer assertion.

        Runs the guard first, so a returned context always has both identifiers.

        Raises:
            AuthorizerError: If the assertion is absent or lacks an identifier.
        """
        check_authorizer(raw)
        assert raw is not None
        return cls(
            user_id=raw[USER_ID_FIELD].strip(),
            workspace_id=raw[WORKSPACE_ID_FIELD].strip(),
            scope=parse_scope(raw.get(SCOPE_FIELD)),
        )


def _has_identifier(raw: Mapping[str, Any], field: str) -> bool:
    value = raw.get(field)
    return isinstance(value, str) and bool(value.strip())


def check_authorizer(raw: Mapping[str, Any] | None) -> None:
    """Verify the shape of the upstream identity assertion.

    Checks, in order: the assertion is present, it carries a user ID, it
    carries a workspace ID.

    Raises:
        AuthorizerError: reason "missing_context", "missing_identity" or "missing_tenant".
    """
    if raw is None or not isinstance(raw, Mapping):
        raise AuthorizerError("missing_context", "Missing Authorizer Data")

    if not _has_identifier(raw, USER_ID_FIELD):
        raise AuthorizerError("missing_identity", "Missing User ID")

    if not _has_identifier(raw, WORKSPACE_ID_FIELD):
        raise AuthorizerError("missing_tenant", "Missing Workspace ID")


def parse_scope(raw_scope: Any) -> frozenset[str]:
    """Normalize a granted scope into a set of scope names.

    Accepts a whitespace-delimited string (OAuth style) or an iterable of
    strings. Anything else yields an empty scope, which the scope gate rejects.
    """
    if raw_scope is None:
        return frozenset()
    if isinstance(raw_scope, str):
        return frozenset(raw_scope.split())
    if isinstance(raw_scope, Iterable):
        return frozenset(s.strip() for s in raw_scope if isinstance(s, str) and s.strip())
    return frozenset()
