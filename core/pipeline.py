"""
core/pipeline.py — Fetch-then-parse pipeline for a single build.

No side effects beyond the one HTTP call. No print statements. Designed to be
called by the CLI (main.py) or any other caller that wants a DetailedReport.
"""

import logging
from pathlib import Path
from typing import Optional

from core.categories import DEFAULT_CATEGORIES, CategoryMap, load_category_map
from core.config import Settings, get_settings
from core.errors import ReportFetchError
from core.fetcher import fetch_detailed_report
from core.models import DetailedReport
from core.parser import parse_detailed_report

logger = logging.getLogger("vcodereport.pipeline")


def resolve_categories(settings: Optional[Settings] = None) -> CategoryMap:
    """Return the configured category table, or the built-in one."""
    settings = settings or get_settings()
    if settings.category_map_file is None:
        return DEFAULT_CATEGORIES
    return load_category_map(settings.category_map_file)


def process_build(
    build_id: str,
    username: Optional[str] = None,
    password: Optional[str] = None,
    categories: Optional[CategoryMap] = None,
    settings: Optional[Settings] = None,
) -> DetailedReport:
    """Fetch and parse the detailed report for one build.

    Credentials default to the configured ones. Fetch errors propagate and the
    parser is never invoked for them. A document-level API error is returned
    on DetailedReport.error together with whatever data the document held.
    """
    settings = settings or get_settings()
    if username is None:
        username = settings.veracode_username
    if password is None:
        password = settings.veracode_password.get_secret_value()
    if not username or not password:
        raise ReportFetchError("No API credentials configured", {"build_id": build_id})

    if categories is None:
        categories = resolve_categories(settings)

    document = fetch_detailed_report(
        username,
        password,
        build_id,
        base_url=settings.veracode_api_base,
        timeout=settings.request_timeout,
    )
    report = parse_detailed_report(document, categories)
    logger.info("Build %s: %d flaw(s), %d custom field(s)", build_id, len(report.flaws), len(report.custom_fields))
    return report


def load_report_file(path: Path, categories: Optional[CategoryMap] = None) -> DetailedReport:
    """Parse a detailed report previously saved to disk.

    OSError from reading the file propagates to the caller.
    """
    document = Path(path).read_bytes()
    return parse_detailed_report(document, categories)
