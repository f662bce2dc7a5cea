"""MediaGate access error taxonomy.

Closed set of typed errors raised by the access pipeline gates. Each variant
carries a fixed HTTP status code plus a client-safe message and details:

- ValidationError (400): malformed or missing payload fields
- MalformedKeyError (400): storage key does not match its grammar
- AuthorizerError (500): malformed upstream identity assertion
- ForbiddenError (403): caller lacks the required scope
- ConsistencyError (400): claimed identifiers disagree with the authenticated identity
- NotFoundError (404): resource absent or caller not a member (same presentation)
- UpstreamError (502): key-value store or signer failure

No gate catches and downgrades another gate's error.
"""

from __future__ import annotations

from typing import Any

AUTHORIZER_ERROR_DETAILS = "Corrupt authorizer data. Contact support."


class AccessError(Exception):
    """Base class for all access pipeline errors.

    Attributes:
        status_code: HTTP status code presented to the client.
        message: Human-readable error message.
        details: Client-safe additional context (string or list of strings).
    """

    status_code: int = 500

    def __init__(self, message: str, details: Any = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict[str, Any]:
        """Structured error body for the response."""
        return {
            "message": self.message,
            "details": self.details,
            "statusCode": self.status_code,
        }


class ValidationError(AccessError):
    """Raised when the request payload fails schema validation.

    details always holds the full list of violation messages.
    """

    status_code = 400

    def __init__(self, violations: list[str], message: str = "Invalid Request Data") -> None:
        super().__init__(message, details=list(violations))
        self.violations = list(violations)


class MalformedKeyError(ValidationError):
    """Raised when a storage key does not match its grammar."""

    def __init__(self, key_kind: str, reason: str) -> None:
        super().__init__([f'"{key_kind}" {reason}'], message="Invalid Storage Key")
        self.key_kind = key_kind


class AuthorizerError(AccessError):
    """Raised when the upstream authorizer assertion is malformed.

    This is an integration fault, not the caller's fault, and is reported
    with a server-side status.
    """

    status_code = 500

    def __init__(self, reason: str, message: str) -> None:
        super().__init__(message, details=AUTHORIZER_ERROR_DETAILS)
        self.reason = reason


class ForbiddenError(AccessError):
    """Raised when the granted scope lacks the required permission."""

    status_code = 403

    def __init__(self, missing_scope: str) -> None:
        super().__init__("Forbidden", details=f'You need scope "{missing_scope}"')
        self.missing_scope = missing_scope


class ConsistencyError(AccessError):
    """Raised when a claimed identifier disagrees with the authenticated identity."""

    status_code = 400

    def __init__(self, field: str, label: str, hint: str) -> None:
        super().__init__(f"Incorrect {label}", details=hint)
        self.field = field


class NotFoundError(AccessError):
    """Raised when the resource does not exist or the caller is not a member.

    Both cases share one presentation so callers cannot enumerate resources.
    """

    status_code = 404

    def __init__(self, resource_label: str) -> None:
        super().__init__(
            "Not Found",
            details=f"You might not be a member of this {resource_label}",
        )
        self.resource_label = resource_label


class UpstreamError(AccessError):
    """Raised when the key-value store or the URL signer fails.

    The backend error is kept on `cause` for logs and never exposed to clients.
    """

    status_code = 502

    def __init__(self, service: str, cause: Exception | None = None) -> None:
        super().__init__(
            "Bad Gateway",
            details="An upstream service failed. Try again later.",
        )
        self.service = service
        self.cause = cause
