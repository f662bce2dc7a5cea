"""Declarative request payload validation.

Payload schemas are plain data: a PayloadSchema maps field names to FieldRule
constraint structs. The validator walks the rules without reflection and:

- strips unknown fields at every level
- trims string values (no other coercion: a non-string is a violation)
- collects every violation instead of stopping at the first one
- never performs I/O

Recognized rule options:
    required        field must be present (and non-empty)
    pattern         value must match the regular expression
    max_length      value length must not exceed the bound
    allowed_values  value must be one of the listed strings
    empty_as_missing  an empty string counts as absent
    nested          field is an object validated against a nested schema
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from mediagate.access.media import (
    DEFAULT_MEDIA_POLICY,
    IDENTIFIER_RE,
    OBJECT_ID_RE,
    MediaPolicy,
)
from mediagate.access.models import FLOWS, Direction, RequestKind, ResourceKind

DATE_RE = re.compile(r"^[0-9]{4}-[0-9]{2}-[0-9]{2}$")
NAME_RE = re.compile(r"^[a-zA-Z0-9 ]*$")
NAME_MAX_LENGTH = 70


@dataclass(frozen=True, slots=True)
class FieldRule:
    """Constraints for a single payload field."""

    required: bool = False
    pattern: re.Pattern[str] | None = None
    pattern_name: str | None = None
    max_length: int | None = None
    allowed_values: frozenset[str] | None = None
    empty_as_missing: bool = False
    nested: PayloadSchema | None = None


@dataclass(frozen=True, slots=True)
class PayloadSchema:
    """Ordered field rules for one payload object."""

    fields: Mapping[str, FieldRule]


@dataclass(frozen=True)
class Violation:
    """A single validation violation."""

    code: str
    message: str
    path: str


@dataclass
class ValidationResult:
    """Result of validation - fail-closed by default.

    value holds the normalized payload (unknown fields stripped, strings
    trimmed) and is only meaningful when passed is True.
    """

    passed: bool
    errors: list[Violation] = field(default_factory=list)
    value: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def fail(cls, errors: list[Violation]) -> ValidationResult:
        """Create a failed result."""
        return cls(passed=False, errors=errors)

    @classmethod
    def success(cls, value: dict[str, Any]) -> ValidationResult:
        """Create a successful result."""
        return cls(passed=True, value=value)

    @property
    def messages(self) -> list[str]:
        """Violation messages in the order they were found."""
        return [e.message for e in self.errors]


def _check_string(path: str, text: str, rule: FieldRule) -> list[Violation]:
    violations: list[Violation] = []

    if rule.allowed_values is not None and text not in rule.allowed_values:
        allowed = ", ".join(sorted(rule.allowed_values))
        violations.append(
            Violation("any.only", f'"{path}" must be one of [{allowed}]', path)
        )

    if rule.pattern is not None and not rule.pattern.fullmatch(text):
        name = rule.pattern_name or "required"
        violations.append(
            Violation(
                "string.pattern",
                f'"{path}" with value "{text}" fails to match the {name} pattern',
                path,
            )
        )

    if rule.max_length is not None and len(text) > rule.max_length:
        violations.append(
            Violation(
                "string.max",
                f'"{path}" length must be less than or equal to {rule.max_length} '
                "characters long",
                path,
            )
        )

    return violations


def _validate_object(
    schema: PayloadSchema,
    data: Mapping[str, Any],
    prefix: str,
    errors: list[Violation],
) -> dict[str, Any]:
    value: dict[str, Any] = {}

    for name, rule in schema.fields.items():
        path = f"{prefix}.{name}" if prefix else name

        if name not in data:
            if rule.required:
                errors.append(Violation("any.required", f'"{path}" is required', path))
            continue

        raw = data[name]

        if rule.nested is not None:
            if not isinstance(raw, Mapping):
                errors.append(Violation("object.base", f'"{path}" must be an object', path))
                continue
            value[name] = _validate_object(rule.nested, raw, path, errors)
            continue

        if not isinstance(raw, str):
            errors.append(Violation("string.base", f'"{path}" must be a string', path))
            continue

        text = raw.strip()
        if not text:
            if not rule.empty_as_missing:
                errors.append(
                    Violation("string.empty", f'"{path}" is not allowed to be empty', path)
                )
            elif rule.required:
                errors.append(Violation("any.required", f'"{path}" is required', path))
            continue

        violations = _check_string(path, text, rule)
        if violations:
            errors.extend(violations)
            continue

        value[name] = text

    return value


def validate_payload(schema: PayloadSchema, payload: Any) -> ValidationResult:
    """Validate a decoded payload against a schema.

    Returns:
        ValidationResult with every violation found, or the normalized value.
    """
    if not isinstance(payload, Mapping):
        return ValidationResult.fail(
            [Violation("object.base", '"value" must be an object', "$")]
        )

    errors: list[Violation] = []
    value = _validate_object(schema, payload, "", errors)

    if errors:
        return ValidationResult.fail(errors)
    return ValidationResult.success(value)


def resource_metadata_field(kind: ResourceKind) -> str:
    """Metadata key that carries the resource identifier for a resource kind."""
    return f"{kind.value}-id"


def _identifier(required: bool = True) -> FieldRule:
    return FieldRule(required=required, pattern=IDENTIFIER_RE, pattern_name="identifier")


def build_upload_schema(policy: MediaPolicy, kind: ResourceKind) -> PayloadSchema:
    """Schema for upload requests targeting a resource of the given kind."""
    if policy.allowed_mime_types is not None:
        mime_rule = FieldRule(required=True, allowed_values=policy.allowed_mime_types)
    else:
        mime_rule = FieldRule(
            required=True,
            pattern=re.compile(policy.mime_pattern or r"^$"),
            pattern_name="mime-type",
        )

    metadata = PayloadSchema(
        fields={
            "workspace-id": _identifier(),
            "user-id": _identifier(),
            resource_metadata_field(kind): _identifier(),
            "recording-id": FieldRule(
                required=True, pattern=OBJECT_ID_RE, pattern_name="recording-id"
            ),
            "date": FieldRule(required=True, pattern=DATE_RE, pattern_name="date"),
            "name": FieldRule(
                pattern=NAME_RE,
                pattern_name="name",
                max_length=NAME_MAX_LENGTH,
                empty_as_missing=True,
            ),
        }
    )

    return PayloadSchema(
        fields={
            "mimeType": mime_rule,
            "filename": FieldRule(
                required=True, pattern=policy.filename_regex(), pattern_name="filename"
            ),
            "metadata": FieldRule(required=True, nested=metadata),
        }
    )


def build_download_schema(policy: MediaPolicy, standup_update: bool = False) -> PayloadSchema:
    """Schema for download requests (resource media or standup update keys)."""
    pattern = policy.standup_update_key_regex() if standup_update else policy.download_key_regex()
    return PayloadSchema(
        fields={
            "fileKey": FieldRule(required=True, pattern=pattern, pattern_name="file-key"),
        }
    )


def _build_schema(policy: MediaPolicy, kind: RequestKind) -> PayloadSchema:
    flow = FLOWS[kind]
    if flow.direction is Direction.UPLOAD:
        return build_upload_schema(policy, flow.resource_kind)
    return build_download_schema(policy, flow.standup_update)


class SchemaValidator:
    """Validates request payloads per request kind for one media policy.

    Every request kind's schema is built at construction and the table is
    read-only afterwards, so one validator can be shared across threads.
    """

    def __init__(self, policy: MediaPolicy = DEFAULT_MEDIA_POLICY) -> None:
        self._policy = policy
        self._schemas: Mapping[RequestKind, PayloadSchema] = MappingProxyType(
            {kind: _build_schema(policy, kind) for kind in RequestKind}
        )

    @property
    def policy(self) -> MediaPolicy:
        return self._policy

    def schema_for(self, kind: RequestKind) -> PayloadSchema:
        """Return the schema for a request kind."""
        return self._schemas[kind]

    def validate(self, kind: RequestKind, payload: Any) -> ValidationResult:
        """Validate a decoded payload for the given request kind."""
        return validate_payload(self.schema_for(kind), payload)
