"""
core/errors.py -- Exception hierarchy for report retrieval and parsing.

Only fetch-level and document-level failures cross the core/ boundary.
Attribute-level problems inside a single flaw are absorbed by the parser
and reported as warnings instead.
"""

from typing import Any, Optional


class VeracodeReportError(Exception):
    """Base exception for all report retrieval and parsing errors."""

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            detail_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({detail_str})"
        return self.message


class ReportFetchError(VeracodeReportError):
    """The detailed report could not be retrieved (transport or HTTP status)."""


class ReportAuthError(ReportFetchError):
    """The API rejected the supplied credentials (HTTP 401/403)."""


class ReportParseError(VeracodeReportError):
    """The response body is not well-formed XML."""


class DetailedReportAPIError(VeracodeReportError):
    """The response document carried an <error> element.

    Returned alongside the parsed data rather than raised, so callers still
    see whatever flaws and custom fields the document contained.
    """

    def __init__(self, detail: str = "") -> None:
        super().__init__("API returned an error", {"detail": detail} if detail else None)
        self.detail = detail


class CategoryMapError(VeracodeReportError):
    """A custom category map file is missing or not a JSON object of strings."""
