"""Tests for the Resource Oracle backends.

DynamoDB tables are replaced with unittest.mock objects; no AWS access.
"""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest
from botocore.exceptions import ClientError, EndpointConnectionError

from mediagate.access.errors import UpstreamError
from mediagate.access.models import ResourceKind, ResourceReference
from mediagate.access.oracle import (
    DynamoDBResourceOracle,
    InMemoryResourceOracle,
    existence_key,
    membership_key,
)

CHANNEL = ResourceReference(ResourceKind.CHANNEL, "w1", "c1")
STANDUP = ResourceReference(ResourceKind.STANDUP, "w1", "s1")


def _throttled() -> ClientError:
    return ClientError(
        {"Error": {"Code": "ProvisionedThroughputExceededException", "Message": "slow down"}},
        "GetItem",
    )


class TestCompositeKeys:
    def test_existence_key(self) -> None:
        assert existence_key(CHANNEL) == {"pk": "workspace#w1", "sk": "channel#c1"}
        assert existence_key(STANDUP) == {"pk": "workspace#w1", "sk": "standup#s1"}

    def test_membership_key(self) -> None:
        assert membership_key(STANDUP, "u1") == {"pk": "standup#s1", "sk": "user#u1"}


class TestDynamoDBResourceOracle:
    """Lookups against mocked boto3 Table resources."""

    @pytest.fixture
    def workspaces(self) -> MagicMock:
        table = MagicMock()
        table.name = "workspaces"
        return table

    @pytest.fixture
    def standups(self) -> MagicMock:
        table = MagicMock()
        table.name = "standups"
        return table

    @pytest.fixture
    def oracle(self, workspaces: MagicMock, standups: MagicMock) -> DynamoDBResourceOracle:
        return DynamoDBResourceOracle(workspaces, standups)

    def test_exists_found(self, oracle: DynamoDBResourceOracle, workspaces: MagicMock) -> None:
        workspaces.get_item.return_value = {"Item": {"pk": "workspace#w1", "sk": "channel#c1"}}

        assert oracle.exists(CHANNEL) is True
        workspaces.get_item.assert_called_once_with(
            Key={"pk": "workspace#w1", "sk": "channel#c1"}
        )

    def test_exists_not_found(self, oracle: DynamoDBResourceOracle, workspaces: MagicMock) -> None:
        workspaces.get_item.return_value = {"ResponseMetadata": {"HTTPStatusCode": 200}}

        assert oracle.exists(CHANNEL) is False

    def test_is_member_uses_standups_table(
        self, oracle: DynamoDBResourceOracle, workspaces: MagicMock, standups: MagicMock
    ) -> None:
        standups.get_item.return_value = {"Item": {"pk": "standup#s1", "sk": "user#u1"}}

        assert oracle.is_member(STANDUP, "u1") is True
        standups.get_item.assert_called_once_with(Key={"pk": "standup#s1", "sk": "user#u1"})
        workspaces.get_item.assert_not_called()

    def test_is_member_of_channel_is_false(
        self, oracle: DynamoDBResourceOracle, standups: MagicMock
    ) -> None:
        assert oracle.is_member(CHANNEL, "u1") is False
        standups.get_item.assert_not_called()

    def test_client_error_is_upstream_error(
        self, oracle: DynamoDBResourceOracle, workspaces: MagicMock
    ) -> None:
        """Backend faults are never coerced to "not found"."""
        throttled = _throttled()
        workspaces.get_item.side_effect = throttled

        with pytest.raises(UpstreamError) as exc_info:
            oracle.exists(CHANNEL)

        assert exc_info.value.service == "dynamodb"
        assert exc_info.value.cause is throttled
        assert exc_info.value.status_code == 502
        assert "slow down" not in str(exc_info.value.to_dict())

    def test_connection_error_is_upstream_error(
        self, oracle: DynamoDBResourceOracle, standups: MagicMock
    ) -> None:
        standups.get_item.side_effect = EndpointConnectionError(endpoint_url="https://dynamodb")

        with pytest.raises(UpstreamError):
            oracle.is_member(STANDUP, "u1")

    def test_from_table_names(self) -> None:
        with patch("boto3.resource") as resource:
            oracle = DynamoDBResourceOracle.from_table_names(
                "ws-table", "standups-table", region="eu-west-1"
            )

        resource.assert_called_once_with("dynamodb", region_name="eu-west-1")
        resource.return_value.Table.assert_any_call("ws-table")
        resource.return_value.Table.assert_any_call("standups-table")
        assert oracle.backend_name == "dynamodb"


class TestInMemoryResourceOracle:
    def test_exists_is_tenant_scoped(self) -> None:
        oracle = InMemoryResourceOracle()
        oracle.add_resource(CHANNEL)

        assert oracle.exists(CHANNEL) is True
        assert oracle.exists(ResourceReference(ResourceKind.CHANNEL, "w2", "c1")) is False
        assert oracle.exists(ResourceReference(ResourceKind.STANDUP, "w1", "c1")) is False

    def test_membership(self) -> None:
        oracle = InMemoryResourceOracle()
        oracle.add_resource(STANDUP, "u1", "u2")

        assert oracle.is_member(STANDUP, "u1") is True
        assert oracle.is_member(STANDUP, "u3") is False

    def test_lookups_are_recorded(self) -> None:
        oracle = InMemoryResourceOracle()

        oracle.exists(CHANNEL)
        oracle.is_member(STANDUP, "u1")

        assert oracle.lookups == [("exists", CHANNEL), ("is_member", STANDUP)]
