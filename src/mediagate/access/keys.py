"""Storage key derivation and parsing.

Key grammars (namespace comes from the media policy, "audio" by default):

    upload / resource media:  <ns>/<workspaceId>/<resourceId>/<objectId>.<ext>
    standup update:           <ns>/standups/<standupId>/<D-M-YYYY>/<userId>/<name>.<ext>

Keys are built only from validated identifiers. Display text (the recording
name, its date) never takes part in a key, so two requests that differ only
in display text always map to the same key.
"""

from __future__ import annotations

from mediagate.access.errors import MalformedKeyError
from mediagate.access.media import IDENTIFIER_RE, STANDUPS_SEGMENT, MediaPolicy
from mediagate.access.models import ParsedKey, ResourceKind, ResourceReference


def _require_identifier(segment: str, name: str) -> None:
    if not IDENTIFIER_RE.fullmatch(segment):
        raise MalformedKeyError(name, "is not a valid identifier")


def derive_upload_key(
    policy: MediaPolicy,
    workspace_id: str,
    resource_id: str,
    filename: str,
) -> str:
    """Build the storage key an upload capability points at.

    Deterministic: identical inputs always produce the identical key.

    Raises:
        MalformedKeyError: If any segment is not a validated identifier or the
            filename does not match the policy's filename grammar.
    """
    _require_identifier(workspace_id, "workspaceId")
    _require_identifier(resource_id, "resourceId")
    if not policy.filename_regex().fullmatch(filename):
        raise MalformedKeyError("filename", "does not match the filename grammar")

    return f"{policy.namespace}/{workspace_id}/{resource_id}/{filename}"


def split_filename(policy: MediaPolicy, filename: str) -> tuple[str, str]:
    """Split "<objectId>.<ext>" into its object ID and extension.

    Raises:
        MalformedKeyError: If the filename does not match the policy grammar.
    """
    match = policy.filename_regex().fullmatch(filename)
    if match is None:
        raise MalformedKeyError("filename", "does not match the filename grammar")
    return match.group(1), match.group(2)


def parse_download_key(policy: MediaPolicy, file_key: str, kind: ResourceKind) -> ParsedKey:
    """Decode a resource media key positionally.

    The resource kind is not encoded in the key; it is supplied by the
    request kind being served.

    Raises:
        MalformedKeyError: If the key does not match the grammar.
    """
    match = policy.download_key_regex().fullmatch(file_key)
    if match is None:
        raise MalformedKeyError("fileKey", "does not match the file key grammar")

    workspace_id, resource_id, object_name, extension = match.groups()
    return ParsedKey(
        reference=ResourceReference(kind, workspace_id, resource_id),
        object_name=object_name,
        extension=extension,
        key=f"{policy.namespace}/{workspace_id}/{resource_id}/{object_name}.{extension}",
    )


def parse_standup_update_key(policy: MediaPolicy, file_key: str, workspace_id: str) -> ParsedKey:
    """Decode a standup update key positionally.

    Standup update keys carry no tenant segment, so the reference is scoped
    to the caller's workspace. The user ID segment names the update's author,
    not the caller.

    Raises:
        MalformedKeyError: If the key does not match the grammar.
    """
    match = policy.standup_update_key_regex().fullmatch(file_key)
    if match is None:
        raise MalformedKeyError("fileKey", "does not match the standup update key grammar")

    standup_id, update_date, author_id, object_name, extension = match.groups()
    return ParsedKey(
        reference=ResourceReference(ResourceKind.STANDUP, workspace_id, standup_id),
        object_name=object_name,
        extension=extension,
        key=(
            f"{policy.namespace}/{STANDUPS_SEGMENT}/{standup_id}/{update_date}/"
            f"{author_id}/{object_name}.{extension}"
        ),
        author_id=author_id,
        update_date=update_date,
    )
