"""Cross-field consistency checks.

Run after schema validation and before any lookup. Caller-claimed
identifiers must agree with the authenticated identity, and the object ID
embedded in the filename must agree with the one in the metadata.
"""

from __future__ import annotations

from typing import Any

from mediagate.access.context import AuthorizationContext
from mediagate.access.errors import ConsistencyError
from mediagate.access.keys import split_filename
from mediagate.access.media import MediaPolicy
from mediagate.access.models import ParsedKey


_MISMATCH_TEXT: dict[str, tuple[str, str]] = {
    "workspace-id": ("Workspace ID", "Provide your own workspace ID."),
    "user-id": ("User ID", "Provide your own user ID."),
    "recording-id": ("Recording ID", "The recording ID must match the filename."),
}


def _mismatch(field: str) -> ConsistencyError:
    label, hint = _MISMATCH_TEXT[field]
    return ConsistencyError(field, label, hint)


def check_upload_consistency(
    context: AuthorizationContext,
    payload: dict[str, Any],
    policy: MediaPolicy,
) -> str:
    """Compare upload metadata against the authorization context and filename.

    Checks workspace ID, then user ID, then recording ID; the first mismatch wins.

    Returns:
        The object ID shared by the filename and the metadata.

    Raises:
        ConsistencyError: Naming the offending field.
    """
    metadata: dict[str, str] = payload["metadata"]

    if metadata["workspace-id"] != context.workspace_id:
        raise _mismatch("workspace-id")

    if metadata["user-id"] != context.user_id:
        raise _mismatch("user-id")

    object_id, _ = split_filename(policy, payload["filename"])
    if metadata["recording-id"] != object_id:
        raise _mismatch("recording-id")

    return object_id


def check_download_consistency(context: AuthorizationContext, parsed: ParsedKey) -> None:
    """Compare the tenant decoded from a resource media key with the caller's.

    Raises:
        ConsistencyError: If the key belongs to another workspace.
    """
    if parsed.reference.workspace_id != context.workspace_id:
        raise _mismatch("workspace-id")
