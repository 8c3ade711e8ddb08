"""Unit tests for core/fetcher.py — fetch_detailed_report.

The shared requests session is patched; no network access. Tests focus on:
- build ID validation
- request shape (URL, params, auth, timeout)
- error mapping (transport, auth, other HTTP statuses)
"""

from unittest.mock import MagicMock, patch

import pytest
import requests

from core.errors import ReportAuthError, ReportFetchError
from core.fetcher import fetch_detailed_report

_XML = b'<detailedreport policy_name="P1"/>'


def _response(status: int, content: bytes = _XML) -> MagicMock:
    resp = MagicMock()
    resp.status_code = status
    resp.content = content
    if status >= 400:
        resp.raise_for_status.side_effect = requests.HTTPError(f"{status} error")
    else:
        resp.raise_for_status.return_value = None
    return resp


class TestFetchDetailedReport:
    def test_returns_body_bytes(self):
        with patch("core.fetcher._session") as session:
            session.get.return_value = _response(200)
            body = fetch_detailed_report("user", "pass", "1234")
        assert body == _XML

    def test_request_shape(self):
        with patch("core.fetcher._session") as session:
            session.get.return_value = _response(200)
            fetch_detailed_report("user", "pass", " 1234 ", base_url="https://api.example.test/5.0/", timeout=7)

        args, kwargs = session.get.call_args
        assert args[0] == "https://api.example.test/5.0/detailedreport.do"
        assert kwargs["params"] == {"build_id": "1234"}
        assert kwargs["auth"].username == "user"
        assert kwargs["auth"].password == "pass"
        assert kwargs["timeout"] == 7

    def test_invalid_build_id_raises_value_error(self):
        with patch("core.fetcher._session") as session:
            with pytest.raises(ValueError, match="Invalid build ID"):
                fetch_detailed_report("user", "pass", "abc")
        session.get.assert_not_called()

    def test_empty_build_id_raises_value_error(self):
        with pytest.raises(ValueError):
            fetch_detailed_report("user", "pass", "")

    def test_transport_error_raises_fetch_error(self):
        with patch("core.fetcher._session") as session:
            session.get.side_effect = requests.ConnectionError("connection refused")
            with pytest.raises(ReportFetchError, match="Could not reach") as exc_info:
                fetch_detailed_report("user", "pass", "1234")
        assert exc_info.value.details["build_id"] == "1234"

    def test_timeout_raises_fetch_error(self):
        with patch("core.fetcher._session") as session:
            session.get.side_effect = requests.Timeout("read timed out")
            with pytest.raises(ReportFetchError):
                fetch_detailed_report("user", "pass", "1234")

    @pytest.mark.parametrize("status", [401, 403])
    def test_auth_failure_raises_auth_error(self, status):
        with patch("core.fetcher._session") as session:
            session.get.return_value = _response(status)
            with pytest.raises(ReportAuthError) as exc_info:
                fetch_detailed_report("user", "wrong", "1234")
        assert exc_info.value.details["status"] == status

    def test_auth_error_is_a_fetch_error(self):
        assert issubclass(ReportAuthError, ReportFetchError)

    def test_server_error_raises_fetch_error(self):
        with patch("core.fetcher._session") as session:
            session.get.return_value = _response(500)
            with pytest.raises(ReportFetchError, match="HTTP error") as exc_info:
                fetch_detailed_report("user", "pass", "1234")
        assert not isinstance(exc_info.value, ReportAuthError)
        assert exc_info.value.details["status"] == 500
