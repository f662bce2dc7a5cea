"""Tests for declarative payload validation.

Tests cover:
1. Valid payloads normalize (unknown fields stripped, strings trimmed)
2. Every violation is reported, with its path
3. Policy-dependent rules (content type, extensions)
4. Download key grammars per request kind
"""

from __future__ import annotations

from typing import Any

import pytest
from conftest import make_upload_payload

from mediagate.access.media import AUDIO, IMAGE
from mediagate.access.models import RequestKind
from mediagate.access.schema import SchemaValidator, validate_payload


@pytest.fixture
def validator() -> SchemaValidator:
    return SchemaValidator()


class TestUploadSchema:
    """Upload payloads (default audio-webm policy)."""

    def test_valid_payload_passes(self, validator: SchemaValidator) -> None:
        result = validator.validate(RequestKind.UPLOAD_CHANNEL_MEDIA, make_upload_payload())

        assert result.passed is True
        assert result.errors == []
        assert result.value["metadata"]["channel-id"] == "c1"

    def test_unknown_fields_are_stripped(self, validator: SchemaValidator) -> None:
        payload = make_upload_payload()
        payload["extra"] = "x"
        payload["metadata"]["x-tracking"] = "y"

        result = validator.validate(RequestKind.UPLOAD_CHANNEL_MEDIA, payload)

        assert result.passed is True
        assert "extra" not in result.value
        assert "x-tracking" not in result.value["metadata"]

    def test_strings_are_trimmed(self, validator: SchemaValidator) -> None:
        payload = make_upload_payload()
        payload["filename"] = "  1a2z3x9.webm "
        payload["metadata"]["user-id"] = "u1 "

        result = validator.validate(RequestKind.UPLOAD_CHANNEL_MEDIA, payload)

        assert result.passed is True
        assert result.value["filename"] == "1a2z3x9.webm"
        assert result.value["metadata"]["user-id"] == "u1"

    def test_empty_payload_reports_every_required_field(
        self, validator: SchemaValidator
    ) -> None:
        result = validator.validate(RequestKind.UPLOAD_CHANNEL_MEDIA, {})

        assert result.passed is False
        assert result.messages == [
            '"mimeType" is required',
            '"filename" is required',
            '"metadata" is required',
        ]

    def test_nested_violations_carry_their_path(self, validator: SchemaValidator) -> None:
        payload = make_upload_payload()
        del payload["metadata"]["workspace-id"]
        payload["metadata"]["recording-id"] = "abc"

        result = validator.validate(RequestKind.UPLOAD_CHANNEL_MEDIA, payload)

        assert result.passed is False
        assert [e.path for e in result.errors] == [
            "metadata.workspace-id",
            "metadata.recording-id",
        ]
        assert result.messages[1] == (
            '"metadata.recording-id" with value "abc" fails to match the recording-id pattern'
        )

    def test_mime_type_must_be_allowed(self, validator: SchemaValidator) -> None:
        payload = make_upload_payload()
        payload["mimeType"] = "audio/mpeg"

        result = validator.validate(RequestKind.UPLOAD_CHANNEL_MEDIA, payload)

        assert result.messages == ['"mimeType" must be one of [audio/webm]']

    def test_filename_extension_must_match_policy(self, validator: SchemaValidator) -> None:
        payload = make_upload_payload()
        payload["filename"] = "1a2z3x9.mp3"

        result = validator.validate(RequestKind.UPLOAD_CHANNEL_MEDIA, payload)

        assert result.passed is False
        assert result.errors[0].path == "filename"
        assert result.errors[0].code == "string.pattern"

    def test_non_string_value(self, validator: SchemaValidator) -> None:
        payload = make_upload_payload()
        payload["mimeType"] = 5

        result = validator.validate(RequestKind.UPLOAD_CHANNEL_MEDIA, payload)

        assert result.messages == ['"mimeType" must be a string']

    def test_empty_string_is_not_allowed(self, validator: SchemaValidator) -> None:
        payload = make_upload_payload()
        payload["mimeType"] = "   "

        result = validator.validate(RequestKind.UPLOAD_CHANNEL_MEDIA, payload)

        assert result.messages == ['"mimeType" is not allowed to be empty']

    def test_metadata_must_be_an_object(self, validator: SchemaValidator) -> None:
        payload = make_upload_payload()
        payload["metadata"] = "w1/u1"

        result = validator.validate(RequestKind.UPLOAD_CHANNEL_MEDIA, payload)

        assert result.messages == ['"metadata" must be an object']

    @pytest.mark.parametrize("payload", [None, [], "text", 3])
    def test_non_object_payload(self, validator: SchemaValidator, payload: Any) -> None:
        result = validator.validate(RequestKind.UPLOAD_CHANNEL_MEDIA, payload)

        assert result.passed is False
        assert result.errors[0].path == "$"
        assert result.messages == ['"value" must be an object']

    def test_date_format(self, validator: SchemaValidator) -> None:
        payload = make_upload_payload()
        payload["metadata"]["date"] = "01-01-2024"

        result = validator.validate(RequestKind.UPLOAD_CHANNEL_MEDIA, payload)

        assert result.errors[0].path == "metadata.date"

    def test_date_digits_are_ascii(self, validator: SchemaValidator) -> None:
        payload = make_upload_payload()
        payload["metadata"]["date"] = "\u0662\u0660\u0662\u0664-01-01"

        result = validator.validate(RequestKind.UPLOAD_CHANNEL_MEDIA, payload)

        assert result.passed is False
        assert result.errors[0].path == "metadata.date"


class TestRecordingName:
    """The optional display name."""

    def test_name_is_optional(self, validator: SchemaValidator) -> None:
        payload = make_upload_payload()
        del payload["metadata"]["name"]

        assert validator.validate(RequestKind.UPLOAD_CHANNEL_MEDIA, payload).passed is True

    def test_empty_name_counts_as_absent(self, validator: SchemaValidator) -> None:
        payload = make_upload_payload()
        payload["metadata"]["name"] = ""

        result = validator.validate(RequestKind.UPLOAD_CHANNEL_MEDIA, payload)

        assert result.passed is True
        assert "name" not in result.value["metadata"]

    def test_name_at_max_length(self, validator: SchemaValidator) -> None:
        payload = make_upload_payload()
        payload["metadata"]["name"] = "a" * 70

        assert validator.validate(RequestKind.UPLOAD_CHANNEL_MEDIA, payload).passed is True

    def test_name_over_max_length(self, validator: SchemaValidator) -> None:
        payload = make_upload_payload()
        payload["metadata"]["name"] = "a" * 71

        result = validator.validate(RequestKind.UPLOAD_CHANNEL_MEDIA, payload)

        assert result.messages == [
            '"metadata.name" length must be less than or equal to 70 characters long'
        ]

    def test_name_rejects_punctuation(self, validator: SchemaValidator) -> None:
        payload = make_upload_payload()
        payload["metadata"]["name"] = "hi!"

        result = validator.validate(RequestKind.UPLOAD_CHANNEL_MEDIA, payload)

        assert result.messages == [
            '"metadata.name" with value "hi!" fails to match the name pattern'
        ]


class TestStandupUploadSchema:
    def test_requires_standup_id(self, validator: SchemaValidator) -> None:
        """A channel payload sent to the standup route lacks standup-id."""
        result = validator.validate(RequestKind.UPLOAD_STANDUP_MEDIA, make_upload_payload())

        assert result.messages == ['"metadata.standup-id" is required']

    def test_standup_payload_passes(self, validator: SchemaValidator) -> None:
        payload = make_upload_payload("standup-id", "s1")

        result = validator.validate(RequestKind.UPLOAD_STANDUP_MEDIA, payload)

        assert result.passed is True
        assert result.value["metadata"]["standup-id"] == "s1"


class TestDownloadSchema:
    """fileKey grammars."""

    def test_resource_media_key(self, validator: SchemaValidator) -> None:
        result = validator.validate(
            RequestKind.DOWNLOAD_CHANNEL_MEDIA, {"fileKey": "audio/w1/c1/1a2z3x9.mp3"}
        )

        assert result.passed is True
        assert result.value == {"fileKey": "audio/w1/c1/1a2z3x9.mp3"}

    def test_upload_extension_is_not_downloadable(self, validator: SchemaValidator) -> None:
        result = validator.validate(
            RequestKind.DOWNLOAD_CHANNEL_MEDIA, {"fileKey": "audio/w1/c1/1a2z3x9.webm"}
        )

        assert result.passed is False

    @pytest.mark.parametrize(
        "file_key",
        [
            "audio/w1/../1a2z3x9.mp3",
            "/audio/w1/c1/1a2z3x9.mp3",
            "image/w1/c1/1a2z3x9.mp3",
            "audio/w1/c1/extra/1a2z3x9.mp3",
            "audio/standups/s1/1a2z3x9.mp3",
        ],
    )
    def test_malformed_resource_keys(self, validator: SchemaValidator, file_key: str) -> None:
        result = validator.validate(RequestKind.DOWNLOAD_STANDUP_MEDIA, {"fileKey": file_key})

        assert result.passed is False
        assert result.errors[0].path == "fileKey"

    def test_standup_update_key(self, validator: SchemaValidator) -> None:
        result = validator.validate(
            RequestKind.DOWNLOAD_STANDUP_UPDATE,
            {"fileKey": "audio/standups/s1/1-2-2024/u9/update.mp3"},
        )

        assert result.passed is True

    def test_standup_update_date_digits_are_ascii(self, validator: SchemaValidator) -> None:
        result = validator.validate(
            RequestKind.DOWNLOAD_STANDUP_UPDATE,
            {"fileKey": "audio/standups/s1/\u0661-\u0662-2024/u9/update.mp3"},
        )

        assert result.passed is False

    def test_resource_key_is_not_a_standup_update_key(self, validator: SchemaValidator) -> None:
        result = validator.validate(
            RequestKind.DOWNLOAD_STANDUP_UPDATE, {"fileKey": "audio/w1/s1/1a2z3x9.mp3"}
        )

        assert result.passed is False

    def test_missing_file_key(self, validator: SchemaValidator) -> None:
        result = validator.validate(RequestKind.DOWNLOAD_CHANNEL_MEDIA, {})

        assert result.messages == ['"fileKey" is required']


class TestMediaPolicies:
    """Non-default policies."""

    def test_audio_policy_accepts_audio_subtypes(self) -> None:
        payload = make_upload_payload()
        payload["mimeType"] = "audio/ogg"
        payload["filename"] = "1a2z3x9.ogg"

        assert SchemaValidator(AUDIO).validate(RequestKind.UPLOAD_CHANNEL_MEDIA, payload).passed

    def test_audio_policy_rejects_images(self) -> None:
        payload = make_upload_payload()
        payload["mimeType"] = "image/png"

        result = SchemaValidator(AUDIO).validate(RequestKind.UPLOAD_CHANNEL_MEDIA, payload)

        assert result.messages == [
            '"mimeType" with value "image/png" fails to match the mime-type pattern'
        ]

    def test_image_policy(self) -> None:
        payload = make_upload_payload()
        payload["mimeType"] = "image/png"
        payload["filename"] = "1a2z3x9.png"

        validator = SchemaValidator(IMAGE)

        assert validator.validate(RequestKind.UPLOAD_CHANNEL_MEDIA, payload).passed
        assert validator.validate(
            RequestKind.DOWNLOAD_CHANNEL_MEDIA, {"fileKey": "image/w1/c1/1a2z3x9.png"}
        ).passed


class TestSchemaTable:
    def test_every_kind_is_built_up_front(self, validator: SchemaValidator) -> None:
        for kind in RequestKind:
            assert validator.schema_for(kind) is validator.schema_for(kind)

    def test_table_is_read_only(self, validator: SchemaValidator) -> None:
        with pytest.raises(TypeError):
            validator._schemas[RequestKind.UPLOAD_CHANNEL_MEDIA] = None  # type: ignore[index]

    def test_schema_is_built_once_per_kind(self, validator: SchemaValidator) -> None:
        first = validator.schema_for(RequestKind.UPLOAD_CHANNEL_MEDIA)

        assert validator.schema_for(RequestKind.UPLOAD_CHANNEL_MEDIA) is first
        assert validator.schema_for(RequestKind.UPLOAD_STANDUP_MEDIA) is not first

    def test_validate_payload_is_pure(self, validator: SchemaValidator) -> None:
        """Validation never mutates its input."""
        payload = make_upload_payload()
        payload["filename"] = " 1a2z3x9.webm"
        schema = validator.schema_for(RequestKind.UPLOAD_CHANNEL_MEDIA)

        validate_payload(schema, payload)

        assert payload["filename"] == " 1a2z3x9.webm"
