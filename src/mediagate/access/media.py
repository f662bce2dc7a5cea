"""Media policies and identifier grammars.

A media policy fixes the storage namespace prefix, the accepted upload
content types and the file extensions used in upload and download keys.
The default policy only accepts WebM audio recordings, which are transcoded
to MP3 before they can be downloaded.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

# Workspace, resource and user identifiers as they appear in storage keys.
IDENTIFIER = r"[A-Za-z0-9_-]{1,64}"
# Object identifiers are short URL-safe ids (7 to 14 characters).
OBJECT_ID = r"[A-Za-z0-9_-]{7,14}"
# Standup update folders are dated "(D)D-(M)M-YYYY".
UPDATE_DATE = r"[0-9]{1,2}-[0-9]{1,2}-[0-9]{4}"

IDENTIFIER_RE = re.compile(rf"^{IDENTIFIER}$")
OBJECT_ID_RE = re.compile(rf"^{OBJECT_ID}$")

STANDUPS_SEGMENT = "standups"


@dataclass(frozen=True, slots=True)
class MediaPolicy:
    """Accepted media for one deployment.

    Attributes:
        name: Policy name used in configuration.
        namespace: Fixed first segment of every storage key.
        allowed_mime_types: Exact content types accepted, or None to use mime_pattern.
        mime_pattern: Content type pattern, used when allowed_mime_types is None.
        upload_extensions: Extensions accepted in upload filenames.
        download_extensions: Extensions accepted in download keys.
    """

    name: str
    namespace: str
    upload_extensions: tuple[str, ...]
    download_extensions: tuple[str, ...]
    allowed_mime_types: frozenset[str] | None = None
    mime_pattern: str | None = None

    def filename_regex(self) -> re.Pattern[str]:
        """Pattern for "<objectId>.<ext>" upload filenames."""
        return re.compile(rf"^({OBJECT_ID})\.({_alternation(self.upload_extensions)})$")

    def download_key_regex(self) -> re.Pattern[str]:
        """Pattern for "<ns>/<workspaceId>/<resourceId>/<objectId>.<ext>" keys."""
        return re.compile(
            rf"^{re.escape(self.namespace)}/(?!{STANDUPS_SEGMENT}/)({IDENTIFIER})/({IDENTIFIER})/"
            rf"({OBJECT_ID})\.({_alternation(self.download_extensions)})$"
        )

    def standup_update_key_regex(self) -> re.Pattern[str]:
        """Pattern for "<ns>/standups/<standupId>/<D-M-YYYY>/<userId>/<name>.<ext>" keys."""
        return re.compile(
            rf"^{re.escape(self.namespace)}/{STANDUPS_SEGMENT}/({IDENTIFIER})/({UPDATE_DATE})/"
            rf"({IDENTIFIER})/({IDENTIFIER})\.({_alternation(self.download_extensions)})$"
        )


def _alternation(extensions: tuple[str, ...]) -> str:
    return "|".join(re.escape(ext) for ext in extensions)


AUDIO_WEBM = MediaPolicy(
    name="audio-webm",
    namespace="audio",
    upload_extensions=("webm",),
    download_extensions=("mp3",),
    allowed_mime_types=frozenset({"audio/webm"}),
)

AUDIO = MediaPolicy(
    name="audio",
    namespace="audio",
    upload_extensions=("webm", "ogg", "mp3", "wav", "m4a"),
    download_extensions=("mp3",),
    mime_pattern=r"^audio/[a-z0-9.+-]+$",
)

IMAGE = MediaPolicy(
    name="image",
    namespace="image",
    upload_extensions=("png", "jpg", "jpeg", "gif", "webp"),
    download_extensions=("png", "jpg", "jpeg", "gif", "webp"),
    mime_pattern=r"^image/[a-z0-9.+-]+$",
)

MEDIA_POLICIES: dict[str, MediaPolicy] = {p.name: p for p in (AUDIO_WEBM, AUDIO, IMAGE)}
DEFAULT_MEDIA_POLICY = AUDIO_WEBM


def get_media_policy(name: str) -> MediaPolicy:
    """Look up a media policy by name.

    Raises:
        KeyError: If no policy has that name.
    """
    return MEDIA_POLICIES[name.strip().lower()]
