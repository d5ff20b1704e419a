"""
Main entry point for the AI code editor backend.

Usage:
    python -m code_editor.main --serve
    python -m code_editor.main --file broken.py --language python --mode fix
    python -m code_editor.main --file algo.js --language javascript --strict
"""

import argparse
import json
import sys

from code_editor.config import Settings, configure_logging
from code_editor.models import VALID_MODES
from code_editor.reviewer import (
    GeminiClient,
    NormalizationFailure,
    UpstreamError,
    review_code,
    validate_request,
)


def load_code_from_file(filepath: str) -> str:
    """Load source code from a file."""
    with open(filepath, 'r') as f:
        return f.read()


def print_result(outcome):
    """Print the normalized result as JSON."""
    print(json.dumps(
        {"success": True, "mode": outcome.mode, "status": outcome.status.value, "data": outcome.data},
        indent=2,
    ))


def serve(settings: Settings):
    import uvicorn

    uvicorn.run("api:app", host="0.0.0.0", port=settings.port)


def main(argv=None):
    """Main CLI entry point."""
    settings = Settings.from_env()
    configure_logging(settings.log_level)

    parser = argparse.ArgumentParser(
        description="AI Code Editor - review, fix, optimize or explain code with Gemini"
    )
    parser.add_argument(
        "--serve",
        action="store_true",
        help="Start the HTTP server on $PORT"
    )
    parser.add_argument(
        "--file",
        help="Path to the source file to send"
    )
    parser.add_argument(
        "--language",
        help="Programming language of the file"
    )
    parser.add_argument(
        "--mode",
        choices=VALID_MODES,
        default="review",
        help="Operating mode (default: review)"
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        default=settings.strict_schema,
        help="Validate parsed replies against the mode's schema"
    )

    args = parser.parse_args(argv)

    if args.serve:
        serve(settings)
        return 0

    if not args.file:
        parser.error("--file is required unless --serve is given")

    try:
        code = load_code_from_file(args.file)
        request = validate_request({"code": code, "language": args.language, "mode": args.mode})
        client = GeminiClient.from_settings(settings)
        outcome = review_code(request, client, strict=args.strict)
        print_result(outcome)
        return 0

    except FileNotFoundError:
        print(f"Error: file not found: {args.file}", file=sys.stderr)
        return 1

    except UpstreamError as e:
        print(f"Error: Gemini API returned {e.status_code}: {e.message}", file=sys.stderr)
        return 1

    except NormalizationFailure as e:
        print(f"Error: {e} ({e.parse_error})", file=sys.stderr)
        print(e.raw_text, file=sys.stderr)
        return 1

    except Exception as e:
        print(f"Error: {str(e)}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
