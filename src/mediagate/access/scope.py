"""Scope gate.

Plain set membership: no hierarchy, no wildcard expansion. Deny by default.
"""

from __future__ import annotations

from collections.abc import Set

from mediagate.access.errors import ForbiddenError
from mediagate.access.models import Direction

DEFAULT_UPLOAD_SCOPE = "upload:audio"
DEFAULT_DOWNLOAD_SCOPE = "download:audio"


def require_scope(granted: Set[str], required: str) -> None:
    """Require that the granted scope contains the required scope.

    Raises:
        ForbiddenError: Naming the missing scope.
    """
    if required not in granted:
        raise ForbiddenError(required)


def required_scope_for(
    direction: Direction,
    *,
    upload_scope: str = DEFAULT_UPLOAD_SCOPE,
    download_scope: str = DEFAULT_DOWNLOAD_SCOPE,
) -> str:
    """Return the scope a caller needs for the given transfer direction."""
    if direction is Direction.UPLOAD:
        return upload_scope
    return download_scope
