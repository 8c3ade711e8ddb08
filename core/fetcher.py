"""
fetcher.py -- Retrieves the raw detailed report XML for a build.

Failures are raised, never swallowed: the caller decides what a missing
report means. No retries -- one request per call.
"""

import logging
import re

import requests
from requests.auth import HTTPBasicAuth

from .config import DEFAULT_API_BASE
from .errors import ReportAuthError, ReportFetchError
from .models import BUILD_ID_PATTERN

logger = logging.getLogger("vcodereport.fetcher")

DETAILED_REPORT_ENDPOINT = "detailedreport.do"

_BUILD_ID_RE = re.compile(BUILD_ID_PATTERN)

# Module-level session shared across calls for connection pooling.
# max_redirects=3 replaces the requests default of 30 -- the API does not
# redirect in normal operation and credentials must not follow long chains.
_session = requests.Session()
_session.max_redirects = 3


def fetch_detailed_report(
    username: str,
    password: str,
    build_id: str,
    *,
    base_url: str = DEFAULT_API_BASE,
    timeout: float = 30.0,
) -> bytes:
    """Fetch the detailed report XML for build_id.

    Args:
        username: API user name (HTTP Basic).
        password: API password (HTTP Basic).
        build_id: Numeric build identifier.
        base_url: API base, e.g. "https://analysiscenter.veracode.com/api/5.0".
        timeout:  Seconds to wait for connect and for each read.

    Returns the raw response body. Raises ValueError for a malformed build_id,
    ReportAuthError on HTTP 401/403 and ReportFetchError on any other transport
    or HTTP failure.
    """
    build_id = str(build_id).strip()
    if not _BUILD_ID_RE.match(build_id):
        raise ValueError(f"Invalid build ID format: {build_id!r}")

    url = f"{base_url.rstrip('/')}/{DETAILED_REPORT_ENDPOINT}"
    try:
        resp = _session.get(
            url,
            params={"build_id": build_id},
            auth=HTTPBasicAuth(username, password),
            timeout=timeout,
        )
    except requests.RequestException as e:
        logger.warning("Detailed report fetch failed for build %s: %s", build_id, e)
        raise ReportFetchError("Could not reach the detailed report API", {"build_id": build_id, "error": e}) from e

    if resp.status_code in (401, 403):
        logger.warning("Detailed report fetch rejected for build %s: HTTP %d", build_id, resp.status_code)
        raise ReportAuthError(
            "Detailed report API rejected the credentials",
            {"build_id": build_id, "status": resp.status_code},
        )

    try:
        resp.raise_for_status()
    except requests.HTTPError as e:
        logger.warning("Detailed report fetch failed for build %s: %s", build_id, e)
        raise ReportFetchError(
            "Detailed report API returned an HTTP error",
            {"build_id": build_id, "status": resp.status_code},
        ) from e

    logger.debug("Fetched %d bytes of detailed report for build %s", len(resp.content), build_id)
    return resp.content
