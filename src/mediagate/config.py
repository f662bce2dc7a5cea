"""MediaGate process configuration.

Loaded once at process start from environment variables. Fails closed:
missing required values raise ConfigError instead of falling back to
defaults, so a misconfigured service never starts.

Environment Variables:
    MEDIAGATE_CORS_ALLOW_ORIGIN: Access-Control-Allow-Origin value (required)
    MEDIAGATE_RECORDINGS_BUCKET: Bucket receiving uploads (required)
    MEDIAGATE_TRANSCODED_BUCKET: Bucket serving downloads (required)
    MEDIAGATE_WORKSPACES_TABLE: DynamoDB table of workspace resources (required)
    MEDIAGATE_STANDUPS_TABLE: DynamoDB table of standup memberships (required)
    MEDIAGATE_UPLOAD_SCOPE: Scope required to upload (default: "upload:audio")
    MEDIAGATE_DOWNLOAD_SCOPE: Scope required to download (default: "download:audio")
    MEDIAGATE_MEDIA_POLICY: "audio-webm", "audio" or "image" (default: "audio-webm")
    MEDIAGATE_AWS_REGION: AWS region for boto3 clients (default: boto3 chain)
    MEDIAGATE_LOG_LEVEL: Root log level (default: "INFO")
    MEDIAGATE_TRUST_AUTHORIZER_HEADERS: Accept X-Authorizer-* headers as the
        authorizer assertion when no proxy event is present (default: off)
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass

from mediagate.access.media import DEFAULT_MEDIA_POLICY, MediaPolicy, get_media_policy
from mediagate.access.scope import DEFAULT_DOWNLOAD_SCOPE, DEFAULT_UPLOAD_SCOPE

CORS_ALLOW_ORIGIN_ENV = "MEDIAGATE_CORS_ALLOW_ORIGIN"
RECORDINGS_BUCKET_ENV = "MEDIAGATE_RECORDINGS_BUCKET"
TRANSCODED_BUCKET_ENV = "MEDIAGATE_TRANSCODED_BUCKET"
WORKSPACES_TABLE_ENV = "MEDIAGATE_WORKSPACES_TABLE"
STANDUPS_TABLE_ENV = "MEDIAGATE_STANDUPS_TABLE"
UPLOAD_SCOPE_ENV = "MEDIAGATE_UPLOAD_SCOPE"
DOWNLOAD_SCOPE_ENV = "MEDIAGATE_DOWNLOAD_SCOPE"
MEDIA_POLICY_ENV = "MEDIAGATE_MEDIA_POLICY"
AWS_REGION_ENV = "MEDIAGATE_AWS_REGION"
LOG_LEVEL_ENV = "MEDIAGATE_LOG_LEVEL"
TRUST_AUTHORIZER_HEADERS_ENV = "MEDIAGATE_TRUST_AUTHORIZER_HEADERS"

_TRUE_VALUES = ("1", "true", "yes")

REQUIRED_ENV = (
    CORS_ALLOW_ORIGIN_ENV,
    RECORDINGS_BUCKET_ENV,
    TRANSCODED_BUCKET_ENV,
    WORKSPACES_TABLE_ENV,
    STANDUPS_TABLE_ENV,
)


class ConfigError(Exception):
    """Raised when process configuration is missing or invalid.

    This is a startup error, not a request-time error.
    """

    pass


@dataclass(frozen=True, slots=True)
class Settings:
    """Immutable process configuration."""

    cors_allow_origin: str
    recordings_bucket: str
    transcoded_bucket: str
    workspaces_table: str
    standups_table: str
    upload_scope: str = DEFAULT_UPLOAD_SCOPE
    download_scope: str = DEFAULT_DOWNLOAD_SCOPE
    media_policy: MediaPolicy = DEFAULT_MEDIA_POLICY
    aws_region: str | None = None
    log_level: str = "INFO"
    trust_authorizer_headers: bool = False


def load_settings(environ: Mapping[str, str] | None = None) -> Settings:
    """Load settings from environment variables.

    Args:
        environ: Mapping to read from (defaults to os.environ).

    Raises:
        ConfigError: If a required variable is missing/empty or a value is invalid.
    """
    env = os.environ if environ is None else environ

    def get(name: str, default: str = "") -> str:
        return env.get(name, default).strip()

    missing = [name for name in REQUIRED_ENV if not get(name)]
    if missing:
        raise ConfigError(f"Missing required environment variables: {', '.join(missing)}")

    policy_name = get(MEDIA_POLICY_ENV, DEFAULT_MEDIA_POLICY.name)
    try:
        policy = get_media_policy(policy_name)
    except KeyError:
        raise ConfigError(f"Unknown media policy: {policy_name!r}") from None

    log_level = get(LOG_LEVEL_ENV, "INFO").upper()
    if log_level not in logging.getLevelNamesMapping():
        raise ConfigError(f"Unknown log level: {log_level!r}")

    return Settings(
        cors_allow_origin=get(CORS_ALLOW_ORIGIN_ENV),
        recordings_bucket=get(RECORDINGS_BUCKET_ENV),
        transcoded_bucket=get(TRANSCODED_BUCKET_ENV),
        workspaces_table=get(WORKSPACES_TABLE_ENV),
        standups_table=get(STANDUPS_TABLE_ENV),
        upload_scope=get(UPLOAD_SCOPE_ENV, DEFAULT_UPLOAD_SCOPE) or DEFAULT_UPLOAD_SCOPE,
        download_scope=get(DOWNLOAD_SCOPE_ENV, DEFAULT_DOWNLOAD_SCOPE) or DEFAULT_DOWNLOAD_SCOPE,
        media_policy=policy,
        aws_region=get(AWS_REGION_ENV) or None,
        log_level=log_level,
        trust_authorizer_headers=get(TRUST_AUTHORIZER_HEADERS_ENV).lower() in _TRUE_VALUES,
    )


def configure_logging(settings: Settings) -> None:
    """Configure root logging from settings. Safe to call more than once."""
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    logging.getLogger().setLevel(settings.log_level)
