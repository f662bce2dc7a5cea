"""Access Pipeline: authorization and capability issuance.

One strictly linear, fail-fast sequence per request:

    GuardContext -> GateScope -> ValidateSchema -> CheckConsistency
        -> CheckResourceAccess -> DeriveKey -> IssueCapability

The first failing gate raises a typed AccessError and the remaining gates
never run. No state is kept between runs and nothing is retried. The
resource access check runs before the key is derived so that a denied caller
never learns anything about the key.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from enum import Enum
from typing import TYPE_CHECKING, Any

from mediagate.access.consistency import check_download_consistency, check_upload_consistency
from mediagate.access.context import AuthorizationContext, check_authorizer
from mediagate.access.errors import AccessError, NotFoundError, ValidationError
from mediagate.access.issuer import CapabilityIssuer
from mediagate.access.keys import derive_upload_key, parse_download_key, parse_standup_update_key
from mediagate.access.media import DEFAULT_MEDIA_POLICY, MediaPolicy
from mediagate.access.models import (
    CAPABILITY_TTL_SECONDS,
    FLOWS,
    Capability,
    CheckMode,
    Direction,
    Flow,
    ParsedKey,
    RequestKind,
    ResourceReference,
)
from mediagate.access.oracle import ResourceOracle
from mediagate.access.schema import SchemaValidator, resource_metadata_field
from mediagate.access.scope import (
    DEFAULT_DOWNLOAD_SCOPE,
    DEFAULT_UPLOAD_SCOPE,
    require_scope,
    required_scope_for,
)
from mediagate.access.tracing import key_digest

if TYPE_CHECKING:
    from mediagate.config import Settings

logger = logging.getLogger(__name__)


class Stage(str, Enum):
    """Pipeline stages, in execution order."""

    GUARD_CONTEXT = "guard_context"
    GATE_SCOPE = "gate_scope"
    VALIDATE_SCHEMA = "validate_schema"
    CHECK_CONSISTENCY = "check_consistency"
    CHECK_RESOURCE_ACCESS = "check_resource_access"
    DERIVE_KEY = "derive_key"
    ISSUE_CAPABILITY = "issue_capability"


def decode_body(body: Any) -> Any:
    """Decode a raw request body.

    Accepts an already-decoded mapping, a JSON string/bytes, or None (treated
    as an empty object so schema validation reports every required field).

    Raises:
        ValidationError: If the body is not valid JSON.
    """
    if body is None:
        return {}
    if isinstance(body, bytes | bytearray):
        try:
            body = body.decode("utf-8")
        except UnicodeDecodeError:
            raise ValidationError(["Request body must be UTF-8 encoded JSON"]) from None
    if isinstance(body, str):
        if not body.strip():
            return {}
        try:
            return json.loads(body)
        except json.JSONDecodeError:
            raise ValidationError(["Request body must be valid JSON"]) from None
    return body


@contextmanager
def _stage(stage: Stage, kind: RequestKind, request_id: str | None) -> Iterator[None]:
    try:
        yield
    except AccessError as e:
        level = logging.ERROR if e.status_code >= 500 else logging.INFO
        logger.log(
            level,
            "Access denied: request=%s stage=%s error=%s status=%d",
            kind.value,
            stage.value,
            type(e).__name__,
            e.status_code,
            extra={"request_id": request_id},
        )
        raise


class AccessPipeline:
    """Orchestrates the access gates for every request kind.

    The Resource Oracle and Capability Issuer are injected; the pipeline owns
    no clients and no mutable state, so one instance serves concurrent
    requests.

    Args:
        oracle: Resource existence/membership lookups.
        issuer: Signed URL minting.
        recordings_bucket: Bucket that upload capabilities point at.
        transcoded_bucket: Bucket that download capabilities point at.
        upload_scope: Scope required for uploads.
        download_scope: Scope required for downloads.
        policy: Media policy (namespace, content types, extensions).
    """

    def __init__(
        self,
        oracle: ResourceOracle,
        issuer: CapabilityIssuer,
        *,
        recordings_bucket: str,
        transcoded_bucket: str,
        upload_scope: str = DEFAULT_UPLOAD_SCOPE,
        download_scope: str = DEFAULT_DOWNLOAD_SCOPE,
        policy: MediaPolicy = DEFAULT_MEDIA_POLICY,
    ) -> None:
        self._oracle = oracle
        self._issuer = issuer
        self._recordings_bucket = recordings_bucket
        self._transcoded_bucket = transcoded_bucket
        self._upload_scope = upload_scope
        self._download_scope = download_scope
        self._policy = policy
        self._validator = SchemaValidator(policy)

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        oracle: ResourceOracle,
        issuer: CapabilityIssuer,
    ) -> AccessPipeline:
        """Create a pipeline wired to the configured buckets, scopes and policy."""
        return cls(
            oracle,
            issuer,
            recordings_bucket=settings.recordings_bucket,
            transcoded_bucket=settings.transcoded_bucket,
            upload_scope=settings.upload_scope,
            download_scope=settings.download_scope,
            policy=settings.media_policy,
        )

    @property
    def policy(self) -> MediaPolicy:
        return self._policy

    def run(
        self,
        kind: RequestKind,
        authorizer: AuthorizationContext | Mapping[str, Any] | None,
        body: Any,
        *,
        request_id: str | None = None,
    ) -> Capability:
        """Run every gate for one request and mint a capability.

        Args:
            kind: The request kind being served.
            authorizer: Upstream identity assertion (raw mapping or context).
            body: Raw request body (JSON text/bytes or decoded mapping).
            request_id: Correlation ID for logs.

        Returns:
            A freshly minted Capability.

        Raises:
            AccessError: The typed error of the first failing gate.
        """
        flow = FLOWS[kind]

        with _stage(Stage.GUARD_CONTEXT, kind, request_id):
            context = self._guard_context(authorizer)

        with _stage(Stage.GATE_SCOPE, kind, request_id):
            require_scope(context.scope, self._required_scope(flow))

        with _stage(Stage.VALIDATE_SCHEMA, kind, request_id):
            payload = self._validate(kind, body)

        if flow.direction is Direction.UPLOAD:
            return self._run_upload(kind, flow, context, payload, request_id)
        return self._run_download(kind, flow, context, payload, request_id)

    def _run_upload(
        self,
        kind: RequestKind,
        flow: Flow,
        context: AuthorizationContext,
        payload: dict[str, Any],
        request_id: str | None,
    ) -> Capability:
        metadata: dict[str, str] = payload["metadata"]

        with _stage(Stage.CHECK_CONSISTENCY, kind, request_id):
            check_upload_consistency(context, payload, self._policy)

        reference = ResourceReference(
            kind=flow.resource_kind,
            workspace_id=context.workspace_id,
            resource_id=metadata[resource_metadata_field(flow.resource_kind)],
        )

        with _stage(Stage.CHECK_RESOURCE_ACCESS, kind, request_id):
            self._check_access(flow, reference, context)

        with _stage(Stage.DERIVE_KEY, kind, request_id):
            key = derive_upload_key(
                self._policy,
                reference.workspace_id,
                reference.resource_id,
                payload["filename"],
            )

        with _stage(Stage.ISSUE_CAPABILITY, kind, request_id):
            capability = self._issuer.issue(
                self._recordings_bucket,
                key,
                Direction.UPLOAD,
                ttl_seconds=CAPABILITY_TTL_SECONDS,
                mime_type=payload["mimeType"],
                metadata=metadata,
            )

        self._log_issued(kind, context, capability, request_id)
        return capability

    def _run_download(
        self,
        kind: RequestKind,
        flow: Flow,
        context: AuthorizationContext,
        payload: dict[str, Any],
        request_id: str | None,
    ) -> Capability:
        file_key: str = payload["fileKey"]

        with _stage(Stage.CHECK_CONSISTENCY, kind, request_id):
            parsed = self._decode_file_key(flow, context, file_key)

        with _stage(Stage.CHECK_RESOURCE_ACCESS, kind, request_id):
            self._check_access(flow, parsed.reference, context)

        with _stage(Stage.ISSUE_CAPABILITY, kind, request_id):
            capability = self._issuer.issue(
                self._transcoded_bucket,
                parsed.key,
                Direction.DOWNLOAD,
                ttl_seconds=CAPABILITY_TTL_SECONDS,
            )

        self._log_issued(kind, context, capability, request_id)
        return capability

    def _guard_context(
        self, authorizer: AuthorizationContext | Mapping[str, Any] | None
    ) -> AuthorizationContext:
        if isinstance(authorizer, AuthorizationContext):
            check_authorizer({"userId": authorizer.user_id, "workspaceId": authorizer.workspace_id})
            return authorizer
        return AuthorizationContext.from_authorizer(authorizer)

    def _required_scope(self, flow: Flow) -> str:
        return required_scope_for(
            flow.direction,
            upload_scope=self._upload_scope,
            download_scope=self._download_scope,
        )

    def _validate(self, kind: RequestKind, body: Any) -> dict[str, Any]:
        result = self._validator.validate(kind, decode_body(body))
        if not result.passed:
            raise ValidationError(result.messages)
        return result.value

    def _decode_file_key(
        self, flow: Flow, context: AuthorizationContext, file_key: str
    ) -> ParsedKey:
        # The key is the only source of the resource ID before the lookup.
        if flow.standup_update:
            return parse_standup_update_key(self._policy, file_key, context.workspace_id)

        parsed = parse_download_key(self._policy, file_key, flow.resource_kind)
        check_download_consistency(context, parsed)
        return parsed

    def _check_access(
        self, flow: Flow, reference: ResourceReference, context: AuthorizationContext
    ) -> None:
        # The resource must exist under the caller's workspace in every flow.
        allowed = self._oracle.exists(reference)
        if allowed and flow.check is CheckMode.MEMBERSHIP:
            allowed = self._oracle.is_member(reference, context.user_id)

        if not allowed:
            raise NotFoundError(reference.kind.label)

    def _log_issued(
        self,
        kind: RequestKind,
        context: AuthorizationContext,
        capability: Capability,
        request_id: str | None,
    ) -> None:
        logger.info(
            "Capability issued: request=%s workspace_id=%s user_id=%s key_sha256=%s",
            kind.value,
            context.workspace_id,
            context.user_id,
            key_digest(capability.key),
            extra={"request_id": request_id},
        )


def build_pipeline(settings: Settings) -> AccessPipeline:
    """Wire a pipeline to the DynamoDB oracle and S3 issuer from settings.

    Clients are created once here, at startup, and injected.
    """
    from mediagate.access.issuer import S3CapabilityIssuer
    from mediagate.access.oracle import DynamoDBResourceOracle

    oracle = DynamoDBResourceOracle.from_table_names(
        settings.workspaces_table,
        settings.standups_table,
        region=settings.aws_region,
    )
    issuer = S3CapabilityIssuer.from_region(settings.aws_region)
    return AccessPipeline.from_settings(settings, oracle, issuer)
