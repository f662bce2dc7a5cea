"""MediaGate CLI - offline helpers for storage keys and request payloads.

Usage:
    python -m mediagate derive-key --workspace W --resource R --filename F [--policy P]
    python -m mediagate validate --request <kind> [--input PATH] [--policy P]

Request kinds: upload-channel-media, upload-standup-media,
download-channel-media, download-standup-media, download-standup-update

Neither command touches AWS.

Exit codes:
    0: Key derived / validation passed
    1: Internal error
    2: Invalid input / validation failed
"""

from __future__ import annotations

import argparse
import json
import sys
from typing import Any

from mediagate.access.errors import MalformedKeyError
from mediagate.access.keys import derive_upload_key
from mediagate.access.media import DEFAULT_MEDIA_POLICY, MEDIA_POLICIES, get_media_policy
from mediagate.access.models import RequestKind
from mediagate.access.schema import SchemaValidator, ValidationResult

VALID_REQUEST_KINDS = tuple(kind.value for kind in RequestKind)


def _result_to_dict(result: ValidationResult) -> dict[str, Any]:
    """Convert ValidationResult to a deterministic dict for JSON output."""
    return {
        "errors": [{"code": e.code, "message": e.message, "path": e.path} for e in result.errors],
        "pass": result.passed,
        "value": result.value if result.passed else None,
    }


def _output_json(data: dict[str, Any]) -> None:
    """Output JSON to stdout with deterministic ordering."""
    print(json.dumps(data, sort_keys=True, indent=2))


def _make_error_result(code: str, message: str) -> dict[str, Any]:
    """Create a failed result dict with a single error."""
    return {
        "errors": [{"code": code, "message": message, "path": "$"}],
        "pass": False,
        "value": None,
    }


def _load_json_input(input_path: str | None) -> tuple[Any, str | None]:
    """Load JSON from file or stdin.

    Returns:
        Tuple of (parsed_data, error_message). If error_message is not None,
        parsed_data should be ignored.
    """
    try:
        if input_path:
            with open(input_path, encoding="utf-8") as f:
                content = f.read()
        else:
            content = sys.stdin.read()

        if not content.strip():
            return None, "Empty input"

        return json.loads(content), None
    except FileNotFoundError:
        return None, f"File not found: {input_path}"
    except json.JSONDecodeError as e:
        return None, f"Invalid JSON: {e}"
    except OSError as e:
        return None, f"Cannot read input: {e}"


def cmd_derive_key(args: argparse.Namespace) -> int:
    """Print the upload storage key for a workspace, resource and filename.

    Exit codes:
        0: key printed
        2: a segment is malformed
    """
    policy = get_media_policy(args.policy)

    try:
        key = derive_upload_key(policy, args.workspace, args.resource, args.filename)
    except MalformedKeyError as e:
        _output_json(_make_error_result("MALFORMED_KEY", "; ".join(e.violations)))
        return 2

    print(key)
    return 0


def cmd_validate(args: argparse.Namespace) -> int:
    """Validate a JSON payload against a request kind's schema.

    Exit codes:
        0: pass=True
        2: pass=False (validation failed or invalid input)
    """
    data, error_msg = _load_json_input(args.input)
    if error_msg is not None:
        _output_json(_make_error_result("INVALID_JSON", error_msg))
        return 2

    validator = SchemaValidator(get_media_policy(args.policy))
    result = validator.validate(RequestKind(args.request), data)

    _output_json(_result_to_dict(result))
    return 0 if result.passed else 2


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="mediagate",
        description="MediaGate - signed media URL issuance helpers",
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    derive_parser = subparsers.add_parser("derive-key", help="Print an upload storage key")
    derive_parser.add_argument("--workspace", required=True, help="Workspace ID")
    derive_parser.add_argument("--resource", required=True, help="Channel or standup ID")
    derive_parser.add_argument("--filename", required=True, help="<objectId>.<ext>")
    derive_parser.add_argument(
        "--policy",
        choices=sorted(MEDIA_POLICIES),
        default=DEFAULT_MEDIA_POLICY.name,
        help="Media policy (default: %(default)s)",
    )

    validate_parser = subparsers.add_parser(
        "validate", help="Validate a request payload against its schema"
    )
    validate_parser.add_argument(
        "--request",
        required=True,
        choices=VALID_REQUEST_KINDS,
        help="Request kind",
    )
    validate_parser.add_argument(
        "--input",
        help="Path to JSON input file (reads from stdin if not provided)",
    )
    validate_parser.add_argument(
        "--policy",
        choices=sorted(MEDIA_POLICIES),
        default=DEFAULT_MEDIA_POLICY.name,
        help="Media policy (default: %(default)s)",
    )

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point.

    Exit codes:
        0: Success / validation passed
        1: Internal error (unexpected)
        2: Invalid input / validation failed
    """
    try:
        parser = create_parser()
        args = parser.parse_args(argv)

        if args.command is None:
            parser.print_help()
            return 0

        if args.command == "derive-key":
            return cmd_derive_key(args)

        if args.command == "validate":
            return cmd_validate(args)

        return 0

    except Exception as e:
        # Fail-closed: unexpected errors return exit code 1
        _output_json(_make_error_result("INTERNAL_ERROR", str(e)))
        return 1


if __name__ == "__main__":
    sys.exit(main())
