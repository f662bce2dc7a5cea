"""MediaGate access data models.

Value types shared by the access pipeline gates:
- ResourceKind / ResourceReference: tenant-scoped resource a media object belongs to
- Direction: upload (PUT) or download (GET)
- RequestKind / Flow: the request kinds the pipeline serves
- Capability: a freshly minted, time-bounded signed URL
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

CAPABILITY_TTL_SECONDS = 60 * 5


class ResourceKind(str, Enum):
    """Tenant-owned resource kinds that media objects belong to."""

    STANDUP = "standup"
    CHANNEL = "channel"

    @property
    def label(self) -> str:
        """Human-readable label used in error messages."""
        return self.value


class Direction(str, Enum):
    """Transfer direction a capability grants."""

    UPLOAD = "upload"
    DOWNLOAD = "download"


class CheckMode(str, Enum):
    """How the resource access gate is evaluated."""

    EXISTS = "exists"
    MEMBERSHIP = "membership"


class RequestKind(str, Enum):
    """Request kinds served by the access pipeline."""

    UPLOAD_CHANNEL_MEDIA = "upload-channel-media"
    UPLOAD_STANDUP_MEDIA = "upload-standup-media"
    DOWNLOAD_CHANNEL_MEDIA = "download-channel-media"
    DOWNLOAD_STANDUP_MEDIA = "download-standup-media"
    DOWNLOAD_STANDUP_UPDATE = "download-standup-update"


@dataclass(frozen=True, slots=True)
class Flow:
    """Static description of one request kind.

    Attributes:
        direction: Whether the capability is for upload or download.
        resource_kind: The resource the media object belongs to.
        check: Existence under the workspace, plus caller membership when MEMBERSHIP.
        standup_update: True for per-standup update keys (no tenant segment).
    """

    direction: Direction
    resource_kind: ResourceKind
    check: CheckMode = CheckMode.EXISTS
    standup_update: bool = False


FLOWS: dict[RequestKind, Flow] = {
    RequestKind.UPLOAD_CHANNEL_MEDIA: Flow(Direction.UPLOAD, ResourceKind.CHANNEL),
    RequestKind.UPLOAD_STANDUP_MEDIA: Flow(Direction.UPLOAD, ResourceKind.STANDUP),
    RequestKind.DOWNLOAD_CHANNEL_MEDIA: Flow(Direction.DOWNLOAD, ResourceKind.CHANNEL),
    RequestKind.DOWNLOAD_STANDUP_MEDIA: Flow(Direction.DOWNLOAD, ResourceKind.STANDUP),
    RequestKind.DOWNLOAD_STANDUP_UPDATE: Flow(
        Direction.DOWNLOAD,
        ResourceKind.STANDUP,
        check=CheckMode.MEMBERSHIP,
        standup_update=True,
    ),
}


@dataclass(frozen=True, slots=True)
class ResourceReference:
    """The tenant-scoped resource a piece of media belongs to."""

    kind: ResourceKind
    workspace_id: str
    resource_id: str


@dataclass(frozen=True, slots=True)
class ParsedKey:
    """A storage key decoded positionally into its identifiers.

    Attributes:
        reference: Resource the object belongs to.
        object_name: Final path segment without the extension.
        extension: File extension (without the dot).
        key: Canonical storage key rebuilt from the decoded segments.
        author_id: Author user ID (standup update keys only).
        update_date: Update date segment as written in the key (standup update keys only).
    """

    reference: ResourceReference
    object_name: str
    extension: str
    key: str
    author_id: str | None = None
    update_date: str | None = None


@dataclass(frozen=True, slots=True)
class Capability:
    """A time-bounded, single-object access capability.

    Always points at exactly one bucket/key pair. Never reused: every
    pipeline run mints a new one with a new expiry.
    """

    url: str
    expires_at: datetime
    bucket: str
    key: str
    direction: Direction

    def to_response(self) -> dict[str, str]:
        """Response body for a successful request."""
        return {"url": self.url}
