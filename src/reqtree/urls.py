"""URL and parameter-table helpers.

Small pure functions shared by the importer, exporter, compiler and
workspace: placeholder extraction, query-row encoding, and
normalisation of server URLs and saved request paths.
"""

from __future__ import annotations

import re
from typing import Optional
from urllib.parse import urlencode, urlsplit

from reqtree.models import KeyValueRow

_PLACEHOLDER_RE = re.compile(r"\{([^{}]+)\}")


def is_absolute_http_url(text: str) -> bool:
    """Return True when *text* is an absolute ``http``/``https`` URL with a host."""
    try:
        parts = urlsplit(text.strip())
    except ValueError:
        return False
    return parts.scheme.lower() in ("http", "https") and bool(parts.netloc)


def path_placeholders(url: str) -> list[str]:
    """Return the ``{name}`` placeholder names in *url*, first occurrence order, no duplicates."""
    path = url.split("?", 1)[0]
    seen: list[str] = []
    for match in _PLACEHOLDER_RE.finditer(path):
        name = match.group(1).strip()
        if name and name not in seen:
            seen.append(name)
    return seen


def substitute_placeholders(path: str, values: dict[str, str]) -> str:
    """Replace every ``{name}`` in *path* with ``values[name]``; unknown names stay verbatim."""

    def _replace(match: re.Match[str]) -> str:
        name = match.group(1).strip()
        if name in values:
            return values[name]
        return match.group(0)

    return _PLACEHOLDER_RE.sub(_replace, path)


def encode_rows(rows: list[KeyValueRow]) -> str:
    """Form-encode the active rows, in order."""
    return urlencode([(row.key, row.value) for row in rows if row.is_active])


def normalize_server_url(value: str) -> Optional[str]:
    """Validate and normalise a server base URL.

    Only absolute ``http``/``https`` URLs are accepted; trailing slashes are
    stripped.

    Returns:
        The normalised URL, or ``None`` when *value* is not acceptable.
    """
    trimmed = value.strip()
    if not trimmed or not is_absolute_http_url(trimmed):
        return None
    normalized = trimmed.rstrip("/")
    return normalized or None


def normalize_request_path(value: str) -> str:
    """Trim *value* and prefix ``/`` unless it already starts with ``/`` or ``?``."""
    trimmed = value.strip()
    if not trimmed:
        return ""
    if trimmed.startswith(("/", "?")):
        return trimmed
    return f"/{trimmed}"


def strip_query(value: str) -> str:
    """Return *value* up to (not including) the first ``?``."""
    return value.split("?", 1)[0]


def request_path(url: str) -> str:
    """Reduce a saved request url to a normalised path without query.

    Absolute URLs are reduced to their path component. The result always
    starts with ``/``.
    """
    text = url.strip()
    if is_absolute_http_url(text):
        text = urlsplit(text).path
    path = strip_query(text)
    if not path.startswith("/"):
        path = f"/{path}"
    return path
