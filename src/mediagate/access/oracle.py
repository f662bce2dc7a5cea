"""Resource Oracle: tenant-scoped existence and membership lookups.

Backed by a key-value store where every item is addressed by a composite
partition/sort key pair of the form "<entityType>#<id>":

    existence   pk="workspace#<workspaceId>"  sk="<kind>#<resourceId>"
    membership  pk="standup#<standupId>"      sk="user#<userId>"

Lookups are pure existence checks: "not found" is False, while any transport
or backend fault raises UpstreamError and is never coerced to False.

Backends:
- DynamoDBResourceOracle: AWS DynamoDB tables via boto3 (production)
- InMemoryResourceOracle: process-local sets (dev/test)
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any

from botocore.exceptions import BotoCoreError, ClientError

from mediagate.access.errors import UpstreamError
from mediagate.access.models import ResourceKind, ResourceReference
from mediagate.access.tracing import describe_lookup, traced_access_call

logger = logging.getLogger(__name__)


def existence_key(reference: ResourceReference) -> dict[str, str]:
    """Composite key of a resource item under its workspace."""
    return {
        "pk": f"workspace#{reference.workspace_id}",
        "sk": f"{reference.kind.value}#{reference.resource_id}",
    }


def membership_key(reference: ResourceReference, user_id: str) -> dict[str, str]:
    """Composite key of a user's membership item in a resource."""
    return {
        "pk": f"{reference.kind.value}#{reference.resource_id}",
        "sk": f"user#{user_id}",
    }


class ResourceOracle(ABC):
    """Abstract base class for resource existence/membership lookups."""

    @property
    @abstractmethod
    def backend_name(self) -> str:
        """Return the backend identifier for observability."""
        ...

    @abstractmethod
    def exists(self, reference: ResourceReference) -> bool:
        """Check that a resource exists under its workspace.

        Existence under the caller's workspace implies access.

        Raises:
            UpstreamError: If the backend cannot complete the lookup.
        """
        ...

    @abstractmethod
    def is_member(self, reference: ResourceReference, user_id: str) -> bool:
        """Check that a user is a member of a resource.

        Raises:
            UpstreamError: If the backend cannot complete the lookup.
        """
        ...


class DynamoDBResourceOracle(ResourceOracle):
    """DynamoDB-backed oracle.

    Args:
        workspaces_table: boto3 Table holding workspace-scoped resources.
        standups_table: boto3 Table holding standup memberships.
    """

    def __init__(self, workspaces_table: Any, standups_table: Any) -> None:
        self._workspaces_table = workspaces_table
        self._standups_table = standups_table

    @classmethod
    def from_table_names(
        cls,
        workspaces_table: str,
        standups_table: str,
        *,
        region: str | None = None,
    ) -> DynamoDBResourceOracle:
        """Create an oracle from table names using the default boto3 session."""
        import boto3

        dynamodb = boto3.resource("dynamodb", region_name=region)
        return cls(dynamodb.Table(workspaces_table), dynamodb.Table(standups_table))

    @property
    def backend_name(self) -> str:
        return "dynamodb"

    def _item_exists(self, table: Any, key: dict[str, str]) -> bool:
        try:
            response = table.get_item(Key=key)
        except (ClientError, BotoCoreError) as e:
            logger.error(
                "DynamoDB get_item failed: table=%s error=%s",
                getattr(table, "name", "unknown"),
                type(e).__name__,
            )
            raise UpstreamError("dynamodb", cause=e) from e
        return bool(response.get("Item"))

    @traced_access_call("oracle.exists", describe_lookup)
    def exists(self, reference: ResourceReference) -> bool:
        return self._item_exists(self._workspaces_table, existence_key(reference))

    @traced_access_call("oracle.is_member", describe_lookup)
    def is_member(self, reference: ResourceReference, user_id: str) -> bool:
        if reference.kind is not ResourceKind.STANDUP:
            # Only standups keep a membership table.
            return False
        return self._item_exists(self._standups_table, membership_key(reference, user_id))


class InMemoryResourceOracle(ResourceOracle):
    """In-memory oracle for local development and tests."""

    def __init__(self) -> None:
        self._resources: set[ResourceReference] = set()
        self._members: set[tuple[ResourceReference, str]] = set()
        self.lookups: list[tuple[str, ResourceReference]] = []

    @property
    def backend_name(self) -> str:
        return "memory"

    def add_resource(self, reference: ResourceReference, *members: str) -> None:
        """Register a resource and, optionally, its members."""
        self._resources.add(reference)
        for user_id in members:
            self._members.add((reference, user_id))

    @traced_access_call("oracle.exists", describe_lookup)
    def exists(self, reference: ResourceReference) -> bool:
        self.lookups.append(("exists", reference))
        return reference in self._resources

    @traced_access_call("oracle.is_member", describe_lookup)
    def is_member(self, reference: ResourceReference, user_id: str) -> bool:
        self.lookups.append(("is_member", reference))
        # Membership is keyed by resource only; existence pins the workspace.
        return any(
            ref.kind is reference.kind
            and ref.resource_id == reference.resource_id
            and uid == user_id
            for ref, uid in self._members
        )
