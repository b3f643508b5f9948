"""tfscore CLI.

Usage:
    python -m tfscore assess --input PATH [--out PATH]

Reads a JSON AssessmentRequest (stdin when --input is omitted) and writes
the AssessmentReport JSON to --out, or stdout.

Exit codes:
    0: Report produced
    1: Invalid input / assessment failed / internal error
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Any

from pydantic import ValidationError

from tfscore.models.inputs import AssessmentRequest
from tfscore.scoring.engine import AssessmentEngine, AssessmentError, build_engine_from_env

logger = logging.getLogger(__name__)


def _output_json(data: dict[str, Any]) -> None:
    """Output JSON to stdout with deterministic ordering."""
    print(json.dumps(data, sort_keys=True, indent=2))


def _make_error_result(code: str, message: str) -> dict[str, Any]:
    return {"error": {"code": code, "message": message}}


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


def cmd_assess(args: argparse.Namespace, engine: AssessmentEngine | None = None) -> int:
    """Execute the assess command.

    Exit codes:
        0: Report written
        1: Invalid input or assessment failure
    """
    data, error = _load_json_input(args.input)
    if error is not None:
        _output_json(_make_error_result("INVALID_INPUT", error))
        return 1

    try:
        request = AssessmentRequest.model_validate(data)
    except ValidationError as e:
        _output_json(_make_error_result("INVALID_REQUEST", str(e)))
        return 1

    engine = engine or build_engine_from_env()
    try:
        report = engine.assess(request)
    except AssessmentError as e:
        _output_json(_make_error_result("ASSESSMENT_FAILED", str(e)))
        return 1

    report_json = json.dumps(report.model_dump(mode="json"), sort_keys=True, indent=2)
    if args.out:
        with open(args.out, mode="w", encoding="utf-8") as f:
            f.write(report_json + "\n")
        logger.info("Report written to %s", args.out)
    else:
        print(report_json)
    return 0


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="tfscore",
        description="tfscore - transition finance compliance scoring",
    )
    parser.add_argument("--log-level", default="WARNING", help="Logging level (default: WARNING)")

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    assess_parser = subparsers.add_parser("assess", help="Assess one project")
    assess_parser.add_argument(
        "--input",
        required=False,
        default=None,
        metavar="PATH",
        help="Path to AssessmentRequest JSON (reads from stdin if omitted)",
    )
    assess_parser.add_argument(
        "--out",
        required=False,
        default=None,
        metavar="PATH",
        help="Write the report JSON here instead of stdout",
    )

    return parser


def main(argv: list[str] | None = None, engine: AssessmentEngine | None = None) -> int:
    """Main entry point.

    Exit codes:
        0: Success
        1: Failure / internal error
    """
    try:
        parser = create_parser()
        args = parser.parse_args(argv)
        logging.basicConfig(
            level=getattr(logging, str(args.log_level).upper(), logging.WARNING),
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
            stream=sys.stderr,
        )

        if args.command is None:
            parser.print_help()
            return 0

        if args.command == "assess":
            return cmd_assess(args, engine)

        return 0

    except Exception as e:
        # Fail-closed: unexpected errors return exit code 1
        _output_json(_make_error_result("INTERNAL_ERROR", str(e)))
        return 1


if __name__ == "__main__":
    sys.exit(main())
