#!/usr/bin/env python3
"""
vcode-report — Pull a build's detailed report and list its flaws.

Usage:
  python main.py 1234567
  python main.py 1234567 --format json
  python main.py 1234567 --format csv > flaws.csv
  python main.py --file detailedreport.xml
  python main.py --file detailedreport.xml --categories categories.json
  python main.py 1234567 --no-color --verbose

Environment variables (or .env):
  VERACODE_USERNAME   API user name.
  VERACODE_PASSWORD   API password.
  VERACODE_API_BASE   Optional. Defaults to https://analysiscenter.veracode.com/api/5.0
  CATEGORY_MAP_FILE   Optional JSON file of {"<categoryid>": "<name>"}.

Exit codes: 0 success, 1 fetch or parse failure, 2 the report carried an API error.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from core.categories import load_category_map
from core.config import get_settings
from core.errors import VeracodeReportError
from core.formatter import disable_color, print_summary, to_csv, to_json, to_markdown
from core.models import DetailedReport
from core.pipeline import load_report_file, process_build, resolve_categories

logger = logging.getLogger("vcodereport.cli")

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_API_ERROR = 2


def _render(report: DetailedReport, output_format: str) -> None:
    if output_format == "json":
        print(to_json(report))
    elif output_format == "csv":
        print(to_csv(report.flaws), end="")
    elif output_format == "markdown":
        print(to_markdown(report.flaws), end="")
    else:
        print_summary(report)


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        prog="vcode-report",
        description="Fetch and parse a build's detailed security report.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py 1234567
  python main.py 1234567 --format csv > flaws.csv
  python main.py --file detailedreport.xml --format markdown
        """,
    )
    parser.add_argument(
        "build_id",
        nargs="?",
        metavar="BUILD-ID",
        help="Build identifier to fetch the detailed report for",
    )
    parser.add_argument(
        "--file",
        metavar="PATH",
        help="Parse a saved detailed report XML file instead of calling the API",
    )
    parser.add_argument(
        "--categories",
        metavar="PATH",
        help="JSON file mapping category IDs to names (overrides CATEGORY_MAP_FILE)",
    )
    parser.add_argument(
        "--format",
        choices=["terminal", "json", "csv", "markdown"],
        default="terminal",
        metavar="FORMAT",
        help="Output format: terminal (default), json, csv, or markdown",
    )
    parser.add_argument(
        "--no-color",
        action="store_true",
        help="Disable ANSI color codes in terminal output",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Log progress and per-flaw warnings to stderr",
    )
    args = parser.parse_args(argv)

    if not args.build_id and not args.file:
        parser.print_help()
        return EXIT_FAILURE

    try:
        settings = get_settings()
    except ValidationError as e:
        print(f"  [!] Invalid configuration: {e}", file=sys.stderr)
        return EXIT_FAILURE

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else settings.log_level,
        format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stderr,
    )

    if args.no_color:
        disable_color()

    try:
        if args.categories:
            categories = load_category_map(Path(args.categories))
        else:
            categories = resolve_categories(settings)

        if args.file:
            report = load_report_file(Path(args.file), categories)
        else:
            report = process_build(args.build_id, categories=categories, settings=settings)
    except (VeracodeReportError, ValueError) as e:
        print(f"  [!] {e}", file=sys.stderr)
        return EXIT_FAILURE
    except OSError as e:
        print(f"  [!] Could not read file '{args.file}': {e}", file=sys.stderr)
        return EXIT_FAILURE

    _render(report, args.format)

    if report.warnings:
        logger.info("%d flaw attribute warning(s) while parsing", len(report.warnings))

    if report.error is not None:
        print(f"  [!] {report.error}", file=sys.stderr)
        return EXIT_API_ERROR
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
