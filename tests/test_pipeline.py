"""Unit tests for core/pipeline.py — process_build, load_report_file, resolve_categories.

The HTTP fetcher is mocked. Tests focus on:
- credentials defaulting from settings
- fetch errors propagating without invoking the parser
- API error elements returned alongside data
"""

import json
from unittest.mock import patch

import pytest

from core.categories import DEFAULT_CATEGORIES, CategoryMap
from core.config import Settings
from core.errors import ReportAuthError, ReportFetchError, ReportParseError
from core.pipeline import load_report_file, process_build, resolve_categories

# ---------------------------------------------------------------------------
# Shared test data
# ---------------------------------------------------------------------------

_BUILD_ID = "5551234"

_DOC = (
    b'<detailedreport policy_name="P1">'
    b'<flaw issueid="1" categoryid="10"/>'
    b'<customfield name="x" value="y"/>'
    b"</detailedreport>"
)

_DOC_WITH_ERROR = _DOC.replace(b"</detailedreport>", b"<error/></detailedreport>")


def _settings(**overrides) -> Settings:
    values = {"veracode_username": "api-user", "veracode_password": "api-pass"}
    values.update(overrides)
    return Settings(_env_file=None, **values)


# ---------------------------------------------------------------------------
# TestProcessBuild
# ---------------------------------------------------------------------------


class TestProcessBuild:
    def test_fetches_and_parses(self):
        categories = CategoryMap({"10": "XSS"})
        with patch("core.pipeline.fetch_detailed_report", return_value=_DOC):
            report = process_build(_BUILD_ID, categories=categories, settings=_settings())

        assert len(report.flaws) == 1
        assert report.flaws[0].policy_name == "P1"
        assert report.flaws[0].category_name == "XSS"
        assert report.custom_fields[0].name == "x"
        assert report.error is None

    def test_credentials_default_from_settings(self):
        settings = _settings(veracode_api_base="https://api.example.test/5.0", request_timeout=12)
        with patch("core.pipeline.fetch_detailed_report", return_value=_DOC) as mock_fetch:
            process_build(_BUILD_ID, settings=settings)

        mock_fetch.assert_called_once_with(
            "api-user",
            "api-pass",
            _BUILD_ID,
            base_url="https://api.example.test/5.0",
            timeout=12,
        )

    def test_explicit_credentials_override_settings(self):
        with patch("core.pipeline.fetch_detailed_report", return_value=_DOC) as mock_fetch:
            process_build(_BUILD_ID, username="other", password="secret", settings=_settings())

        args, _ = mock_fetch.call_args
        assert args[:2] == ("other", "secret")

    def test_missing_credentials_raise_before_fetch(self):
        settings = Settings(_env_file=None, veracode_username="", veracode_password="")
        with patch("core.pipeline.fetch_detailed_report") as mock_fetch:
            with pytest.raises(ReportFetchError, match="No API credentials"):
                process_build(_BUILD_ID, settings=settings)
        mock_fetch.assert_not_called()

    def test_fetch_error_propagates_and_parser_not_called(self):
        with (
            patch("core.pipeline.fetch_detailed_report", side_effect=ReportAuthError("rejected")),
            patch("core.pipeline.parse_detailed_report") as mock_parse,
        ):
            with pytest.raises(ReportAuthError):
                process_build(_BUILD_ID, settings=_settings())

        mock_parse.assert_not_called()

    def test_api_error_returned_with_data(self):
        with patch("core.pipeline.fetch_detailed_report", return_value=_DOC_WITH_ERROR):
            report = process_build(_BUILD_ID, settings=_settings())

        assert report.error is not None
        assert len(report.flaws) == 1
        assert len(report.custom_fields) == 1

    def test_malformed_response_raises_parse_error(self):
        with patch("core.pipeline.fetch_detailed_report", return_value=b"<html><body>oops"):
            with pytest.raises(ReportParseError):
                process_build(_BUILD_ID, settings=_settings())

    def test_configured_category_file_used(self, tmp_path):
        path = tmp_path / "categories.json"
        path.write_text(json.dumps({"10": "From File"}))
        with patch("core.pipeline.fetch_detailed_report", return_value=_DOC):
            report = process_build(_BUILD_ID, settings=_settings(category_map_file=path))

        assert report.flaws[0].category_name == "From File"


# ---------------------------------------------------------------------------
# TestLoadReportFile / TestResolveCategories
# ---------------------------------------------------------------------------


class TestLoadReportFile:
    def test_parses_saved_report(self, tmp_path):
        path = tmp_path / "detailedreport.xml"
        path.write_bytes(_DOC)
        report = load_report_file(path, CategoryMap({"10": "XSS"}))
        assert report.flaws[0].category_name == "XSS"

    def test_missing_file_raises_os_error(self, tmp_path):
        with pytest.raises(OSError):
            load_report_file(tmp_path / "absent.xml")


class TestResolveCategories:
    def test_default_when_not_configured(self):
        assert resolve_categories(_settings()) is DEFAULT_CATEGORIES

    def test_loads_configured_file(self, tmp_path):
        path = tmp_path / "categories.json"
        path.write_text(json.dumps({"7": "Seven"}))
        categories = resolve_categories(_settings(category_map_file=path))
        assert categories.lookup("7") == "Seven"
