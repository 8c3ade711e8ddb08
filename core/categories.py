"""
categories.py — Category ID to display-name lookup used to enrich flaws.

The table is an explicitly constructed immutable mapping. The parser takes one
as an argument; DEFAULT_CATEGORIES is only the value used when the caller
does not supply its own.
"""

import json
import logging
from collections.abc import Iterator, Mapping
from pathlib import Path
from types import MappingProxyType

from .errors import CategoryMapError

logger = logging.getLogger("vcodereport.categories")

# ---------------------------------------------------------------------------
# Built-in category table, keyed by the categoryid attribute
# ---------------------------------------------------------------------------

_BUILTIN_CATEGORIES: dict[str, str] = {
    "1": "Authentication Issues",
    "2": "Buffer Management Errors",
    "3": "Buffer Overflow",
    "4": "Code Injection",
    "5": "Code Quality",
    "6": "Command or Argument Injection",
    "7": "Credentials Management",
    "8": "CRLF Injection",
    "9": "Cross-Site Request Forgery (CSRF)",
    "10": "Cross-Site Scripting (XSS)",
    "11": "Cryptographic Issues",
    "12": "Deployment Configuration",
    "13": "Directory Traversal",
    "14": "Dangerous Functions",
    "15": "Encapsulation",
    "16": "Error Handling",
    "17": "Format String",
    "18": "Information Leakage",
    "19": "SQL Injection",
    "20": "Insufficient Input Validation",
    "21": "Integer Overflow",
    "22": "LDAP Injection",
    "23": "Numeric Errors",
    "24": "OS Command Injection",
    "25": "Potential Backdoor",
    "26": "Race Conditions",
    "27": "Session Fixation",
    "28": "Time and State",
    "29": "Trust Boundary Violation",
    "30": "Untrusted Initialization",
    "31": "Untrusted Search Path",
    "32": "API Abuse",
    "33": "Server Configuration",
    "34": "Insecure Dependencies",
    "35": "Open Redirect",
    "36": "XML External Entity (XXE)",
    "37": "Server-Side Request Forgery (SSRF)",
    "38": "Improper Certificate Validation",
    "39": "Insecure Deserialization",
    "40": "Resource Management",
}


class CategoryMap(Mapping[str, str]):
    """Read-only category table. Safe for concurrent reads once constructed."""

    def __init__(self, categories: Mapping[str, str]) -> None:
        self._table = MappingProxyType({str(k): str(v) for k, v in categories.items()})

    def __getitem__(self, category_id: str) -> str:
        return self._table[category_id]

    def __iter__(self) -> Iterator[str]:
        return iter(self._table)

    def __len__(self) -> int:
        return len(self._table)

    def __repr__(self) -> str:
        return f"CategoryMap({len(self._table)} categories)"

    def lookup(self, category_id: str) -> str:
        """Return the display name for category_id, or "" when it is not mapped."""
        return self._table.get(category_id.strip(), "")


DEFAULT_CATEGORIES = CategoryMap(_BUILTIN_CATEGORIES)


def load_category_map(path: Path) -> CategoryMap:
    """Build a CategoryMap from a JSON file holding a {"<id>": "<name>"} object.

    Raises CategoryMapError if the file is unreadable, not JSON, or not a flat
    object of string/number keys to string values.
    """
    file_path = Path(path)
    try:
        raw = json.loads(file_path.read_text(encoding="utf-8"))
    except OSError as e:
        raise CategoryMapError("Could not read category map", {"path": str(file_path), "error": e}) from e
    except json.JSONDecodeError as e:
        raise CategoryMapError("Category map is not valid JSON", {"path": str(file_path), "error": e}) from e

    if not isinstance(raw, dict) or not all(isinstance(v, str) for v in raw.values()):
        raise CategoryMapError("Category map must be a JSON object of id -> name strings", {"path": str(file_path)})

    logger.info("Loaded %d categories from %s", len(raw), file_path)
    return CategoryMap(raw)
