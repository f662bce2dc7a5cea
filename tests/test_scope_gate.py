"""Tests for the scope gate."""

from __future__ import annotations

import pytest

from mediagate.access.errors import ForbiddenError
from mediagate.access.models import Direction
from mediagate.access.scope import require_scope, required_scope_for


class TestRequireScope:
    """Deny-by-default set membership."""

    def test_granted_scope_passes(self) -> None:
        require_scope(frozenset({"upload:audio", "download:audio"}), "upload:audio")

    def test_missing_scope_is_forbidden(self) -> None:
        """The error names the missing scope."""
        with pytest.raises(ForbiddenError) as exc_info:
            require_scope(frozenset({"download:audio"}), "upload:audio")

        err = exc_info.value
        assert err.status_code == 403
        assert err.missing_scope == "upload:audio"
        assert err.to_dict() == {
            "message": "Forbidden",
            "details": 'You need scope "upload:audio"',
            "statusCode": 403,
        }

    def test_empty_scope_is_forbidden(self) -> None:
        with pytest.raises(ForbiddenError):
            require_scope(frozenset(), "download:audio")

    @pytest.mark.parametrize("granted", ["upload:*", "upload", "*", "UPLOAD:AUDIO"])
    def test_no_wildcards_or_hierarchy(self, granted: str) -> None:
        with pytest.raises(ForbiddenError):
            require_scope(frozenset({granted}), "upload:audio")


class TestRequiredScopeFor:
    def test_defaults(self) -> None:
        assert required_scope_for(Direction.UPLOAD) == "upload:audio"
        assert required_scope_for(Direction.DOWNLOAD) == "download:audio"

    def test_configured_scopes(self) -> None:
        kwargs = {"upload_scope": "media:write", "download_scope": "media:read"}

        assert required_scope_for(Direction.UPLOAD, **kwargs) == "media:write"
        assert required_scope_for(Direction.DOWNLOAD, **kwargs) == "media:read"
