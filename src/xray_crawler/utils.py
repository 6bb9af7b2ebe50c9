"""
Utility functions for xray_crawler.

Provides URL and HTML sniffing, scope helpers and result compaction.
"""

import re
from typing import Any, List, Optional

# protocol://host.tld... or protocol://localhost[:port]
_URL_RE = re.compile(r'^(?:\w+:)//(?:[^\s.]+\.\S{2}|localhost[:?\d]*)\S*$')
_HTML_RE = re.compile(r'<[a-z!][\s\S]*>', re.IGNORECASE)


class _Missing:
    """Marker for a leaf that produced no value at all."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "MISSING"


MISSING = _Missing()


def is_url(value: Any) -> bool:
    """
    Check whether a value is an absolute URL.

    Args:
        value: Value to check

    Returns:
        True if value is a string holding an absolute URL
    """
    if not isinstance(value, str):
        return False
    return bool(_URL_RE.match(value.strip()))


def is_html(value: Any) -> bool:
    """Check whether a string looks like HTML markup."""
    return isinstance(value, str) and bool(_HTML_RE.search(value))


def root_scope(scope: Any) -> Optional[str]:
    """
    Return the scope if it can be used as a CSS scope.

    A scope containing ``@`` points at a URL to follow, and a URL is a
    source, so neither narrows a document.

    Args:
        scope: Scope selector or None

    Returns:
        The scope selector, or None
    """
    if not isinstance(scope, str) or not scope:
        return None
    if '@' in scope or is_url(scope):
        return None
    return scope


def is_empty_value(value: Any) -> bool:
    """Check whether a value carries no data (None, MISSING, '' or an empty container)."""
    if value is None or value is MISSING:
        return True
    if isinstance(value, (str, list, tuple, dict)):
        return len(value) == 0
    return False


def compact(values: List[Any]) -> List[Any]:
    """
    Drop empty entries from a list while keeping order.

    Args:
        values: Values to compact

    Returns:
        List without empty entries
    """
    return [value for value in values if not is_empty_value(value)]


def strip_missing(value: Any) -> Any:
    """Replace the MISSING marker with None for values handed to callers."""
    return None if value is MISSING else value
