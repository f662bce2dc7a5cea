"""Tests for the authorization context guard.

Tests cover:
1. Well-formed assertions produce a context with a parsed scope set
2. Missing assertion / user ID / workspace ID raise AuthorizerError (500)
3. The guard checks fields in a fixed order
"""

from __future__ import annotations

import pydantic
import pytest

from mediagate.access.context import AuthorizationContext, check_authorizer, parse_scope
from mediagate.access.errors import AUTHORIZER_ERROR_DETAILS, AuthorizerError


class TestFromAuthorizer:
    """Building a context from a raw assertion."""

    def test_well_formed_assertion(self) -> None:
        """Identifiers are copied and the scope string is split."""
        ctx = AuthorizationContext.from_authorizer(
            {"userId": "u1", "workspaceId": "w1", "scope": "upload:audio download:audio"}
        )

        assert ctx.user_id == "u1"
        assert ctx.workspace_id == "w1"
        assert ctx.scope == frozenset({"upload:audio", "download:audio"})

    def test_identifiers_are_trimmed(self) -> None:
        ctx = AuthorizationContext.from_authorizer(
            {"userId": " u1 ", "workspaceId": "w1\n", "scope": "upload:audio"}
        )

        assert ctx.user_id == "u1"
        assert ctx.workspace_id == "w1"

    def test_missing_scope_is_empty(self) -> None:
        """An assertion without scope yields an empty scope set, not an error."""
        ctx = AuthorizationContext.from_authorizer({"userId": "u1", "workspaceId": "w1"})

        assert ctx.scope == frozenset()

    def test_context_is_immutable(self) -> None:
        ctx = AuthorizationContext.from_authorizer({"userId": "u1", "workspaceId": "w1"})

        with pytest.raises(pydantic.ValidationError):
            ctx.user_id = "u2"  # type: ignore[misc]


class TestCheckAuthorizer:
    """Shape checks on the upstream assertion."""

    @pytest.mark.parametrize("raw", [None, "u1", ["u1", "w1"], 42])
    def test_missing_context(self, raw: object) -> None:
        """Absent or non-object assertions are reported as missing context."""
        with pytest.raises(AuthorizerError) as exc_info:
            check_authorizer(raw)  # type: ignore[arg-type]

        assert exc_info.value.reason == "missing_context"
        assert exc_info.value.message == "Missing Authorizer Data"
        assert exc_info.value.status_code == 500

    @pytest.mark.parametrize("user_id", [None, "", "   ", 7])
    def test_missing_identity(self, user_id: object) -> None:
        raw = {"workspaceId": "w1"}
        if user_id is not None:
            raw["userId"] = user_id  # type: ignore[assignment]

        with pytest.raises(AuthorizerError) as exc_info:
            check_authorizer(raw)

        assert exc_info.value.reason == "missing_identity"
        assert exc_info.value.message == "Missing User ID"
        assert exc_info.value.details == AUTHORIZER_ERROR_DETAILS

    def test_missing_tenant(self) -> None:
        with pytest.raises(AuthorizerError) as exc_info:
            check_authorizer({"userId": "u1", "workspaceId": ""})

        assert exc_info.value.reason == "missing_tenant"
        assert exc_info.value.message == "Missing Workspace ID"

    def test_user_id_checked_before_workspace_id(self) -> None:
        """With both identifiers missing, the user ID is reported."""
        with pytest.raises(AuthorizerError) as exc_info:
            check_authorizer({})

        assert exc_info.value.reason == "missing_identity"


class TestParseScope:
    """Scope normalization."""

    def test_whitespace_delimited_string(self) -> None:
        assert parse_scope("a  b\tc") == frozenset({"a", "b", "c"})

    def test_iterable_of_strings(self) -> None:
        assert parse_scope(["upload:audio", " download:audio ", "", 3]) == frozenset(
            {"upload:audio", "download:audio"}
        )

    def test_unsupported_type_is_empty(self) -> None:
        assert parse_scope(12) == frozenset()
