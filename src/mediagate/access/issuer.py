"""Capability Issuer: time-bounded signed URLs for one bucket/key pair.

Upload capabilities are only usable for a PUT of the exact key with the exact
content type, with server-side encryption enforced and the caller's metadata
attached to the object. Download capabilities are only usable for a GET of the
exact key.

Any backend fault while signing raises UpstreamError. There are no retries
here; retry policy belongs to the caller.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Mapping
from datetime import UTC, datetime, timedelta
from typing import Any

from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from mediagate.access.errors import UpstreamError
from mediagate.access.models import Capability, Direction
from mediagate.access.tracing import describe_issue, key_digest, traced_access_call

logger = logging.getLogger(__name__)

SERVER_SIDE_ENCRYPTION = "AES256"


class CapabilityIssuer(ABC):
    """Abstract base class for signed URL minting backends."""

    @property
    @abstractmethod
    def backend_name(self) -> str:
        """Return the backend identifier for observability."""
        ...

    @abstractmethod
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
        """Mint a fresh capability for one bucket/key pair.

        Args:
            bucket: Bucket name.
            key: Storage key within the bucket.
            direction: UPLOAD (PUT) or DOWNLOAD (GET).
            ttl_seconds: Lifetime of the capability.
            mime_type: Content type the upload must use (uploads only).
            metadata: User metadata attached to the object (uploads only).

        Raises:
            UpstreamError: If signing fails.
        """
        ...


class S3CapabilityIssuer(CapabilityIssuer):
    """S3 presigned URL issuer.

    Args:
        client: boto3 S3 client. Must sign with SigV4.
    """

    def __init__(self, client: Any) -> None:
        self._client = client

    @classmethod
    def from_region(cls, region: str | None = None) -> S3CapabilityIssuer:
        """Create an issuer with a SigV4 S3 client from the default boto3 session."""
        import boto3

        client = boto3.client(
            "s3",
            region_name=region,
            config=Config(signature_version="s3v4"),
        )
        return cls(client)

    @property
    def backend_name(self) -> str:
        return "s3"

    @staticmethod
    def _params(
        bucket: str,
        key: str,
        direction: Direction,
        mime_type: str | None,
        metadata: Mapping[str, str] | None,
    ) -> tuple[str, dict[str, Any]]:
        params: dict[str, Any] = {"Bucket": bucket, "Key": key}

        if direction is Direction.DOWNLOAD:
            return "get_object", params

        # Metadata must be sent by the uploader as "x-amz-meta-<key>" headers.
        params["ServerSideEncryption"] = SERVER_SIDE_ENCRYPTION
        if mime_type:
            params["ContentType"] = mime_type
        if metadata:
            params["Metadata"] = dict(metadata)
        return "put_object", params

    @traced_access_call("issuer.issue", describe_issue)
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
        operation, params = self._params(bucket, key, direction, mime_type, metadata)
        expires_at = datetime.now(UTC) + timedelta(seconds=ttl_seconds)

        try:
            url = self._client.generate_presigned_url(
                operation,
                Params=params,
                ExpiresIn=ttl_seconds,
            )
        except (ClientError, BotoCoreError) as e:
            logger.error(
                "S3 presign failed: bucket=%s key_sha256=%s error=%s",
                bucket,
                key_digest(key),
                type(e).__name__,
            )
            raise UpstreamError("s3", cause=e) from e

        return Capability(
            url=url,
            expires_at=expires_at,
            bucket=bucket,
            key=key,
            direction=direction,
        )
