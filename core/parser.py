"""
parser.py — Turns a raw detailedreport.do XML document into a DetailedReport.

The document is parsed once into a tree and every field is projected from it.
Root attributes are therefore known before any flaw is built, so each flaw is
stamped with the policy name directly.

No I/O, no shared mutable state. Element names are matched on their local
part, so reports with and without the vendor's default namespace parse the same.
"""

import logging
from collections.abc import Iterator
from typing import Optional
from xml.etree.ElementTree import Element

from defusedxml import DefusedXmlException
from defusedxml import ElementTree as DefusedElementTree

from .categories import DEFAULT_CATEGORIES, CategoryMap
from .errors import DetailedReportAPIError, ReportParseError
from .models import Annotation, CustomField, DetailedReport, Flaw, Mitigation, ReportMetadata

logger = logging.getLogger("vcodereport.parser")

ROOT_TAG = "detailedreport"
ERROR_TAG = "error"
FLAW_TAG = "flaw"
CUSTOM_FIELD_TAG = "customfield"

# Flaw attributes that must hold integers when present.
_NUMERIC_FLAW_ATTRS = ("severity", "exploitLevel", "line")


def _local(tag: str) -> str:
    """Strip an ElementTree "{namespace}" prefix from a tag."""
    return tag.rsplit("}", 1)[-1] if isinstance(tag, str) else ""


def _children(element: Element, name: str) -> list[Element]:
    return [child for child in element if _local(child.tag) == name]


def _walk(element: Element) -> Iterator[Element]:
    """Yield element and its descendants in document order, without entering flaws.

    A flaw's subtree belongs to that flaw; anything nested inside it is read
    only by _parse_flaw.
    """
    yield element
    if _local(element.tag) == FLAW_TAG:
        return
    for child in element:
        yield from _walk(child)


def _parse_metadata(root: Element) -> ReportMetadata:
    if _local(root.tag) != ROOT_TAG:
        return ReportMetadata()
    get = root.attrib.get
    return ReportMetadata(
        app_name=get("app_name", ""),
        app_id=get("app_id", ""),
        policy_name=get("policy_name", ""),
        policy_compliance_status=get("policy_compliance_status", ""),
        policy_rules_status=get("policy_rules_status", ""),
        grace_period_expired=get("grace_period_expired", ""),
        business_unit=get("business_unit", ""),
    )


def _parse_history(flaw_el: Element, container: str, entry: str, cls):
    """Collect <container><entry .../></container> children of a flaw as cls instances."""
    items = []
    for group in _children(flaw_el, container):
        for el in _children(group, entry):
            items.append(
                cls(
                    action=el.get("action", ""),
                    description=el.get("description", ""),
                    user=el.get("user", ""),
                    date=el.get("date", ""),
                )
            )
    return items


def _check_flaw_attrs(flaw_el: Element) -> list[str]:
    """Return warnings for attributes that are missing or malformed on one flaw."""
    issue_id = flaw_el.get("issueid", "")
    label = f"flaw {issue_id}" if issue_id else "flaw without issueid"
    problems = []
    if not issue_id:
        problems.append(f"{label}: missing issueid attribute")
    for attr in _NUMERIC_FLAW_ATTRS:
        value = flaw_el.get(attr)
        if value is None or value.strip() == "":
            continue
        try:
            int(value)
        except ValueError:
            problems.append(f"{label}: non-numeric {attr}={value!r}")
    return problems


def _parse_flaw(flaw_el: Element, categories: CategoryMap, policy_name: str) -> Flaw:
    get = flaw_el.get
    category_id = get("categoryid", "")
    return Flaw(
        issue_id=get("issueid", ""),
        cwe_name=get("categoryname", ""),
        category_id=category_id,
        category_name=categories.lookup(category_id),
        cwe_id=get("cweid", ""),
        remediation_status=get("remediation_status", ""),
        mitigation_status=get("mitigation_status", ""),
        affects_policy_compliance=get("affects_policy_compliance", ""),
        policy_name=policy_name,
        date_first_occurrence=get("date_first_occurrence", ""),
        severity=get("severity", ""),
        exploit_level=get("exploitLevel", ""),
        module=get("module", ""),
        source_file=get("sourcefile", ""),
        line=get("line", ""),
        description=get("description", ""),
        mitigations=_parse_history(flaw_el, "mitigations", "mitigation", Mitigation),
        annotations=_parse_history(flaw_el, "annotations", "annotation", Annotation),
    )


def parse_detailed_report(document: bytes, categories: Optional[CategoryMap] = None) -> DetailedReport:
    """Parse a detailed-report XML document.

    Flaws and custom fields are returned in document order. An <error> element
    outside a flaw sets DetailedReport.error but does not stop the
    remaining elements from being collected.

    Raises ReportParseError if the document is empty or not well-formed XML.
    """
    if categories is None:
        categories = DEFAULT_CATEGORIES

    if not document or not document.strip():
        raise ReportParseError("Empty detailed report document")

    try:
        root = DefusedElementTree.fromstring(document)
    except DefusedElementTree.ParseError as e:
        raise ReportParseError("Malformed detailed report XML", {"error": e}) from e
    except DefusedXmlException as e:
        raise ReportParseError("Detailed report XML uses forbidden constructs", {"error": e}) from e

    report = DetailedReport(metadata=_parse_metadata(root))
    policy_name = report.metadata.policy_name

    for el in _walk(root):
        name = _local(el.tag)
        if name == ERROR_TAG:
            detail = (el.text or "").strip()
            logger.warning("Detailed report contains an error element: %s", detail or "<no detail>")
            report.error = DetailedReportAPIError(detail)
        elif name == FLAW_TAG:
            for problem in _check_flaw_attrs(el):
                logger.warning("Malformed flaw attribute: %s", problem)
                report.warnings.append(problem)
            report.flaws.append(_parse_flaw(el, categories, policy_name))
        elif name == CUSTOM_FIELD_TAG:
            report.custom_fields.append(CustomField(name=el.get("name", ""), value=el.get("value", "")))

    logger.debug(
        "Parsed detailed report for app %r: %d flaw(s), %d custom field(s)",
        report.metadata.app_name,
        len(report.flaws),
        len(report.custom_fields),
    )
    return report
