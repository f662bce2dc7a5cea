"""Pytest configuration and fixtures for MediaGate tests.

This module provides common fixtures and configuration for all tests:
an in-memory Resource Oracle seeded with one workspace, a recording
Capability Issuer that never touches AWS, and a FastAPI test client wired
to both.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Any

import pytest
from fastapi.testclient import TestClient

from mediagate.access.context import AuthorizationContext
from mediagate.access.issuer import CapabilityIssuer
from mediagate.access.models import Capability, Direction, ResourceKind, ResourceReference
from mediagate.access.oracle import InMemoryResourceOracle
from mediagate.access.pipeline import AccessPipeline
from mediagate.api.auth import SCOPE_HEADER, USER_ID_HEADER, WORKSPACE_ID_HEADER
from mediagate.api.main import create_app

TEST_ORIGIN = "https://app.example.com"
RECORDINGS_BUCKET = "recordings-test"
TRANSCODED_BUCKET = "transcoded-test"

CHANNEL_C1 = ResourceReference(ResourceKind.CHANNEL, "w1", "c1")
STANDUP_S1 = ResourceReference(ResourceKind.STANDUP, "w1", "s1")

OTEL_ENV_VARS = (
    "MEDIAGATE_OTEL_ENABLED",
    "MEDIAGATE_REQUIRE_OTEL",
    "MEDIAGATE_OTEL_SERVICE_NAME",
    "MEDIAGATE_OTEL_EXPORTER",
    "MEDIAGATE_OTEL_EXPORTER_OTLP_ENDPOINT",
    "MEDIAGATE_OTEL_TEST_CAPTURE",
)


@dataclass
class IssueCall:
    """Arguments of one CapabilityIssuer.issue call."""

    bucket: str
    key: str
    direction: Direction
    ttl_seconds: int
    mime_type: str | None
    metadata: dict[str, str] | None


@dataclass
class RecordingIssuer(CapabilityIssuer):
    """Issuer that records every call and mints fake URLs.

    Set `error` to make the next issue() calls raise it.
    """

    calls: list[IssueCall] = field(default_factory=list)
    error: Exception | None = None

    @property
    def backend_name(self) -> str:
        return "recording"

    def issue(
        self,
        bucket: str,
        key: str,
        direction: Direction,
        *,
        ttl_seconds: int,
        mime_type: str | None = None,
        metadata: Mapping[str, str] | None = None,
    ) -> Capability:
        if self.error is not None:
            raise self.error

        self.calls.append(
            IssueCall(
                bucket=bucket,
                key=key,
                direction=direction,
                ttl_seconds=ttl_seconds,
                mime_type=mime_type,
                metadata=dict(metadata) if metadata is not None else None,
            )
        )
        return Capability(
            url=f"https://{bucket}.s3.test/{key}?X-Amz-Expires={ttl_seconds}&n={len(self.calls)}",
            expires_at=datetime.now(UTC) + timedelta(seconds=ttl_seconds),
            bucket=bucket,
            key=key,
            direction=direction,
        )


@pytest.fixture(autouse=True)
def disable_tracing(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep OpenTelemetry off unless a test turns it on."""
    for name in OTEL_ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def authorizer() -> dict[str, Any]:
    """Raw authorizer assertion for user u1 in workspace w1 with both scopes."""
    return {"userId": "u1", "workspaceId": "w1", "scope": "upload:audio download:audio"}


@pytest.fixture
def context(authorizer: dict[str, Any]) -> AuthorizationContext:
    """Authorization context built from the default assertion."""
    return AuthorizationContext.from_authorizer(authorizer)


@pytest.fixture
def oracle() -> InMemoryResourceOracle:
    """Oracle knowing channel c1 and standup s1 (member u1) in workspace w1."""
    oracle = InMemoryResourceOracle()
    oracle.add_resource(CHANNEL_C1)
    oracle.add_resource(STANDUP_S1, "u1")
    return oracle


@pytest.fixture
def issuer() -> RecordingIssuer:
    return RecordingIssuer()


@pytest.fixture
def pipeline(oracle: InMemoryResourceOracle, issuer: RecordingIssuer) -> AccessPipeline:
    return AccessPipeline(
        oracle,
        issuer,
        recordings_bucket=RECORDINGS_BUCKET,
        transcoded_bucket=TRANSCODED_BUCKET,
    )


def make_upload_payload(resource_field: str = "channel-id", resource_id: str = "c1") -> dict:
    """Valid upload payload for recording 1a2z3x9 by u1 in w1."""
    return {
        "mimeType": "audio/webm",
        "filename": "1a2z3x9.webm",
        "metadata": {
            "workspace-id": "w1",
            "user-id": "u1",
            resource_field: resource_id,
            "recording-id": "1a2z3x9",
            "date": "2024-01-01",
            "name": "Weekly sync",
        },
    }


@pytest.fixture
def upload_payload() -> dict[str, Any]:
    return make_upload_payload()


@pytest.fixture
def auth_headers() -> dict[str, str]:
    """Gateway-injected authorizer headers for u1 in w1 with both scopes."""
    return {
        USER_ID_HEADER: "u1",
        WORKSPACE_ID_HEADER: "w1",
        SCOPE_HEADER: "upload:audio download:audio",
    }


@pytest.fixture
def client(pipeline: AccessPipeline) -> TestClient:
    """Test client for an app wired to the in-memory pipeline."""
    app = create_app(pipeline, cors_allow_origin=TEST_ORIGIN, trust_authorizer_headers=True)
    return TestClient(app, raise_server_exceptions=False)
