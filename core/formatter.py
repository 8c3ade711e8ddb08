"""
formatter.py — Renders a DetailedReport to terminal output, JSON, CSV or Markdown.
"""

import csv
import io
import json
import os
import re
import sys
from dataclasses import asdict
from typing import Optional

from .models import DetailedReport, Flaw

W = 68  # output width

SEVERITY_LABELS = {
    5: "Very High",
    4: "High",
    3: "Medium",
    2: "Low",
    1: "Very Low",
    0: "Informational",
}

# ---------------------------------------------------------------------------
# ANSI color control
# ---------------------------------------------------------------------------

_ANSI_RE = re.compile(r"\x1b\[[0-9;]*m")


def strip_ansi(text: str) -> str:
    """Remove ANSI escape sequences from a string."""
    return _ANSI_RE.sub("", text)


def _use_color() -> bool:
    """Return True if stdout is a TTY and color has not been disabled.

    Respects NO_COLOR env var (https://no-color.org) and checks sys.stdout.isatty().
    Can be overridden by calling disable_color() / enable_color().
    """
    if os.environ.get("NO_COLOR"):
        return False
    if os.environ.get("FORCE_COLOR"):
        return True
    return hasattr(sys.stdout, "isatty") and sys.stdout.isatty()


_color_enabled: Optional[bool] = None  # None = auto-detect


def disable_color() -> None:
    """Force-disable color output (called when --no-color flag is set)."""
    global _color_enabled
    _color_enabled = False


def enable_color() -> None:
    global _color_enabled
    _color_enabled = True


def _color_active() -> bool:
    if _color_enabled is not None:
        return _color_enabled
    return _use_color()


SEVERITY_COLORS = {
    5: "\033[91m",  # red
    4: "\033[93m",  # yellow
    3: "\033[94m",  # blue
    2: "\033[92m",  # green
}


def _reset() -> str:
    return "\033[0m" if _color_active() else ""


def _bold() -> str:
    return "\033[1m" if _color_active() else ""


def _red() -> str:
    return "\033[91m" if _color_active() else ""


def _s_color(severity: Optional[int]) -> str:
    return SEVERITY_COLORS.get(severity, "") if _color_active() else ""


def _bar(char: str = "═") -> str:
    return char * W


def _severity_label(flaw: Flaw) -> str:
    level = flaw.severity_level
    return SEVERITY_LABELS.get(level, "Unknown") if level is not None else "Unknown"


# ---------------------------------------------------------------------------
# Summary table renderer
# ---------------------------------------------------------------------------


def print_summary(report: DetailedReport) -> None:
    """Print the report header and a flaw table grouped by severity, highest first."""
    bold = _bold()
    reset = _reset()
    red = _red()
    meta = report.metadata

    print(f"\n{bold}{_bar()}{reset}")
    print(f"  {bold}{meta.app_name or 'Unknown application'}{reset}  │  app {meta.app_id or '?'}")
    if meta.policy_name:
        print(f"  Policy  {meta.policy_name}  ({meta.policy_compliance_status or 'unknown status'})")
    if meta.business_unit:
        print(f"  Business unit  {meta.business_unit}")
    print(f"{bold}{_bar()}{reset}")

    if report.error is not None:
        print(f"\n  {red}{bold}[!] {report.error}{reset}")

    by_severity: dict[Optional[int], list[Flaw]] = {}
    for flaw in report.flaws:
        by_severity.setdefault(flaw.severity_level, []).append(flaw)

    order = sorted((s for s in by_severity if s is not None), reverse=True)
    if None in by_severity:
        order.append(None)

    for severity in order:
        group = by_severity[severity]
        s_color = _s_color(severity)
        label = SEVERITY_LABELS.get(severity, "Unknown") if severity is not None else "Unknown"
        header = f"{severity if severity is not None else '?'} — {label}"
        count = f"({len(group)})"
        print(f"\n  {s_color}{bold}{header:<46}{count}{reset}")
        print(f"  {'─' * (W - 2)}")

        for flaw in group:
            mitigated = "MIT" if flaw.is_mitigated else "   "
            policy = f"{bold}{red}POL{reset}" if flaw.is_policy_affecting else "   "
            category = (flaw.category_name or flaw.cwe_name or "Unknown")[:30]
            print(f"  {flaw.issue_id:<8} CWE-{flaw.cwe_id or '?':<6} {policy}  {mitigated}  {category}")

    if report.custom_fields:
        print(f"\n  {bold}CUSTOM FIELDS{reset}\n  {'─' * (W - 2)}")
        for cf in report.custom_fields:
            print(f"    {cf.name:<24}  {cf.value}")

    print(f"\n{_bar()}\n")


# ---------------------------------------------------------------------------
# JSON export
# ---------------------------------------------------------------------------


def to_json(report: DetailedReport) -> str:
    """Return the report as JSON. The error becomes its message string or null."""
    d = {
        "metadata": asdict(report.metadata),
        "flaws": [asdict(f) for f in report.flaws],
        "custom_fields": [asdict(cf) for cf in report.custom_fields],
        "error": str(report.error) if report.error is not None else None,
        "warnings": list(report.warnings),
    }
    return json.dumps(d, indent=2)


# ---------------------------------------------------------------------------
# CSV export
# ---------------------------------------------------------------------------

_FORMULA_PREFIXES = ("=", "+", "-", "@")


def _sanitize_csv_cell(value: str) -> str:
    """Prefix spreadsheet formula triggers with a tab so the cell is read as text."""
    if value and value.startswith(_FORMULA_PREFIXES):
        return "\t" + value
    return value


def to_csv(flaws: list[Flaw]) -> str:
    """Render a list of Flaw as CSV.

    Columns: issue_id, severity, category_id, category_name, cwe_id, cwe_name,
             policy_name, affects_policy_compliance, remediation_status,
             mitigation_status, module, source_file, line, mitigation_count,
             annotation_count, description
    """
    headers = [
        "issue_id",
        "severity",
        "category_id",
        "category_name",
        "cwe_id",
        "cwe_name",
        "policy_name",
        "affects_policy_compliance",
        "remediation_status",
        "mitigation_status",
        "module",
        "source_file",
        "line",
        "mitigation_count",
        "annotation_count",
        "description",
    ]

    buf = io.StringIO()
    writer = csv.writer(buf)
    writer.writerow(headers)

    for f in flaws:
        row = [
            f.issue_id,
            f.severity,
            f.category_id,
            f.category_name,
            f.cwe_id,
            f.cwe_name,
            f.policy_name,
            f.affects_policy_compliance,
            f.remediation_status,
            f.mitigation_status,
            f.module,
            f.source_file,
            f.line,
            len(f.mitigations),
            len(f.annotations),
            f.description[:200],
        ]
        # Every string cell comes from the report XML unvalidated.
        writer.writerow([_sanitize_csv_cell(c) if isinstance(c, str) else c for c in row])

    return buf.getvalue()


# ---------------------------------------------------------------------------
# Markdown export
# ---------------------------------------------------------------------------


def to_markdown(flaws: list[Flaw]) -> str:
    """Render a list of Flaw as a Markdown table.

    Suitable for GitHub issues and pull-request comments.
    """
    header = "| Issue | Severity | Category | CWE | Policy | Status | Location |"
    separator = "|-------|----------|----------|-----|--------|--------|----------|"
    lines = [header, separator]

    for f in flaws:
        location = f"{f.source_file}:{f.line}" if f.source_file and f.line else f.source_file or f.module
        # Escape pipe characters in free-text fields to avoid breaking table layout.
        cells = [
            f.issue_id,
            _severity_label(f),
            f.category_name or f.cwe_name,
            f"CWE-{f.cwe_id}" if f.cwe_id else "-",
            f.policy_name or "-",
            f.remediation_status or "-",
            location or "-",
        ]
        lines.append("| " + " | ".join(c.replace("|", "\\|") for c in cells) + " |")

    return "\n".join(lines) + "\n"
