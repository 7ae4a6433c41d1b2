"""Parse OpenAPI document text.

This module turns raw OpenAPI text into a Python dictionary. It supports both
JSON and YAML with automatic format detection and checks that the document
declares a supported OpenAPI version (3.x).

The public functions are:

* :func:`parse_document` -- Parse document text (JSON or YAML).
* :func:`format_hint` -- Guess the format from a file name.
* :func:`validate_openapi_version` -- Check and return the ``openapi``
  version string, rejecting Swagger 2.x and non-3.x documents.

After loading, the dict is handed to
:func:`~reqtree.parser.importer.build_tree_from_openapi`.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import yaml

from reqtree.exceptions import ParseError


def format_hint(path: str | Path) -> str:
    """Return the :func:`parse_document` hint for a file name.

    ``.json`` gives ``"json"``, ``.yaml`` / ``.yml`` give ``"yaml"``; other
    extensions give ``""`` (content-based detection).
    """
    suffix = Path(path).suffix.lower()
    if suffix == ".json":
        return "json"
    if suffix in (".yaml", ".yml"):
        return "yaml"
    return ""


def parse_document(content: str, hint: str = "") -> dict[str, Any]:
    """Parse *content* as JSON or YAML.

    Tries JSON first (unless *hint* is ``"yaml"``), then falls back to YAML.
    Valid JSON is also valid YAML, but JSON parsing is stricter and faster.

    Args:
        content: The raw document text.
        hint: Optional format hint (``"json"`` or ``"yaml"``).

    Returns:
        The parsed top-level mapping.

    Raises:
        ParseError: If the content is empty, cannot be parsed as either
            format, or is not a mapping.
    """
    if not content.strip():
        raise ParseError("Document is empty")

    json_error: Exception | None = None

    if hint != "yaml":
        try:
            result = json.loads(content)
        except json.JSONDecodeError as exc:
            json_error = exc
            if hint == "json":
                raise ParseError(f"Invalid JSON: {exc}") from exc
        else:
            return _require_mapping(result)

    try:
        result = yaml.safe_load(content)
    except yaml.YAMLError as exc:
        msg = "YAML parse error"
        if json_error:
            msg += f"\n  JSON error: {json_error}"
        msg += f"\n  YAML error: {exc}"
        raise ParseError(msg) from exc

    return _require_mapping(result)


def _require_mapping(result: Any) -> dict[str, Any]:
    if not isinstance(result, dict):
        got = type(result).__name__ if result is not None else "empty document"
        raise ParseError(f"Document must be a JSON/YAML object (got {got})")
    return result


def validate_openapi_version(document: dict[str, Any]) -> str:
    """Validate and return the OpenAPI version string.

    Args:
        document: The parsed document.

    Returns:
        The version string (e.g. ``'3.0.3'``).

    Raises:
        ParseError: For Swagger 2.x documents, a missing ``openapi`` field,
            or a non-3.x version.
    """
    if "swagger" in document:
        raise ParseError(
            f"Swagger {document['swagger']} is not supported. "
            "Only OpenAPI 3.x documents can be imported."
        )

    openapi_version = document.get("openapi")
    if openapi_version is None:
        raise ParseError("Missing 'openapi' field. Is this an OpenAPI 3.x document?")

    version_str = str(openapi_version)
    if version_str.startswith("3."):
        return version_str

    raise ParseError(
        f"Unsupported OpenAPI version: {version_str}. Only OpenAPI 3.x is supported."
    )
