from dataclasses import dataclass, field
from typing import Optional

from .errors import DetailedReportAPIError

# ---------------------------------------------------------------------------
# Domain constants
# ---------------------------------------------------------------------------

# Vendor build IDs are numeric. All layers that accept a build ID import from here.
BUILD_ID_PATTERN = r"^\d+$"

# mitigation_status is one of none / proposed / accepted / rejected; only an
# accepted mitigation takes the flaw out of policy evaluation.
MITIGATED_STATUSES = frozenset({"accepted"})


def _to_int(value: str) -> Optional[int]:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


@dataclass
class ReportMetadata:
    app_name: str = ""
    app_id: str = ""
    policy_name: str = ""
    policy_compliance_status: str = ""
    policy_rules_status: str = ""
    grace_period_expired: str = ""
    business_unit: str = ""


@dataclass
class Mitigation:
    action: str = ""
    description: str = ""
    user: str = ""
    date: str = ""


@dataclass
class Annotation:
    """A reviewer comment on a flaw, separate from formal mitigation actions."""

    action: str = ""
    description: str = ""
    user: str = ""
    date: str = ""


@dataclass
class Flaw:
    issue_id: str = ""
    cwe_name: str = ""  # raw categoryname attribute
    category_id: str = ""
    category_name: str = ""  # from the category lookup table
    cwe_id: str = ""
    remediation_status: str = ""
    mitigation_status: str = ""
    affects_policy_compliance: str = ""
    policy_name: str = ""  # copied from the report root
    date_first_occurrence: str = ""
    severity: str = ""
    exploit_level: str = ""
    module: str = ""
    source_file: str = ""
    line: str = ""
    description: str = ""
    mitigations: list[Mitigation] = field(default_factory=list)
    annotations: list[Annotation] = field(default_factory=list)

    @property
    def severity_level(self) -> Optional[int]:
        return _to_int(self.severity)

    @property
    def line_number(self) -> Optional[int]:
        return _to_int(self.line)

    @property
    def is_policy_affecting(self) -> bool:
        return self.affects_policy_compliance.strip().lower() == "true"

    @property
    def is_mitigated(self) -> bool:
        return self.mitigation_status.strip().lower() in MITIGATED_STATUSES


@dataclass
class CustomField:
    name: str = ""
    value: str = ""


@dataclass
class DetailedReport:
    metadata: ReportMetadata = field(default_factory=ReportMetadata)
    flaws: list[Flaw] = field(default_factory=list)
    custom_fields: list[CustomField] = field(default_factory=list)
    error: Optional[DetailedReportAPIError] = None
    warnings: list[str] = field(default_factory=list)

    def as_tuple(self) -> tuple[list[Flaw], list[CustomField], Optional[DetailedReportAPIError]]:
        """Return the (flaws, custom_fields, error) triple."""
        return self.flaws, self.custom_fields, self.error
