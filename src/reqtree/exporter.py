"""Export a saved-request tree as an OpenAPI 3.0 document.

:func:`build_document` walks the tree and returns the document as a dict;
:func:`export_openapi` serialises it to YAML. The walk mirrors the import
layout:

* top-level leaves become untagged operations;
* top-level folders become tags, and their direct leaf children become
  operations tagged with the folder label.

Operations are keyed on ``(method, normalised path)`` and the first
occurrence wins. Folders sharing a label merge under one tag.

Servers are exported with their auth in two forms: a de-duplicated entry in
``components.securitySchemes`` (secrets omitted) and the descriptor in the
``x-reqtree-auth`` vendor extension, which the importer prefers. Every server
carries the extension, ``{"type": "none"}`` included. Credential fields in the
extension are blanked unless ``include_secrets`` is set.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Iterator, Optional
from urllib.parse import parse_qsl, urlsplit

import yaml

from reqtree.auth.schemes import (
    AUTH_EXTENSION,
    requirement_scopes,
    scheme_base_name,
    scheme_from_descriptor,
)
from reqtree.exceptions import ValidationError
from reqtree.models import AuthDescriptor, KeyValueRow, NoAuth, RequestContent, ServerEntry, TreeNode
from reqtree.urls import is_absolute_http_url, request_path

logger = logging.getLogger(__name__)

OPENAPI_VERSION = "3.0.3"
_EXCLUDED_HEADERS = frozenset({"content-type", "accept"})
_SECRET_FIELDS = ("value", "password", "token", "access_token")


def export_openapi(
    root: TreeNode,
    servers: list[ServerEntry],
    include_secrets: bool = False,
) -> str:
    """Render the tree and servers as OpenAPI YAML text.

    Args:
        root: Collection root.
        servers: Servers to list, with their auth.
        include_secrets: Keep tokens, passwords and key values in the
            ``x-reqtree-auth`` extension instead of blanking them.

    Raises:
        ValidationError: If the tree is empty or has no exportable operation.
    """
    document = build_document(root, servers, include_secrets=include_secrets)
    return yaml.safe_dump(document, sort_keys=False, allow_unicode=True)


def build_document(
    root: TreeNode,
    servers: list[ServerEntry],
    include_secrets: bool = False,
) -> dict[str, Any]:
    """Build the OpenAPI document for *root* and *servers*.

    See :func:`export_openapi` for *include_secrets*.

    Raises:
        ValidationError: If the tree is empty or has no exportable operation.
    """
    if not root.children:
        raise ValidationError("Nothing to export: the collection is empty")

    paths: dict[str, dict[str, Any]] = {}
    tags: list[str] = []
    seen: set[tuple[str, str]] = set()

    for tag, content in _walk(root):
        path = request_path(content.url)
        key = (content.method.key, path)
        if key in seen:
            logger.debug("Skipping duplicate operation %s %s", content.method.value, path)
            continue
        seen.add(key)
        paths.setdefault(path, {})[content.method.key] = _build_operation(content, tag)
        if tag is not None and tag not in tags:
            tags.append(tag)

    if not paths:
        raise ValidationError("Nothing to export: no exportable operations")

    document: dict[str, Any] = {
        "openapi": OPENAPI_VERSION,
        "info": {"title": root.label or "Collection", "version": "1.0.0"},
    }

    server_objects, schemes, scheme_for_server = _build_servers(servers, include_secrets)
    if server_objects:
        document["servers"] = server_objects
    if tags:
        document["tags"] = [{"name": tag} for tag in tags]
    document["paths"] = paths

    if schemes:
        document["components"] = {"securitySchemes": schemes}
        if len(schemes) == 1:
            name = next(iter(schemes))
            document["security"] = [{name: requirement_scopes(scheme_for_server[name])}]

    return document


def _walk(root: TreeNode) -> Iterator[tuple[Optional[str], RequestContent]]:
    """Yield ``(tag, content)`` for every exportable leaf."""
    for child in root.children:
        if child.content is not None:
            yield None, child.content
            continue
        for grand in child.children:
            if grand.content is not None:
                yield child.label, grand.content


def _string_parameter(name: str, location: str, value: str, required: bool = False) -> dict[str, Any]:
    param: dict[str, Any] = {"name": name, "in": location}
    if required:
        param["required"] = True
    param["schema"] = {"type": "string"}
    if value.strip():
        param["example"] = value
    return param


def _query_rows(content: RequestContent) -> list[KeyValueRow]:
    explicit = [row for row in content.query_params if row.is_active]
    if explicit:
        return explicit
    url = content.url.strip()
    query = urlsplit(url).query if is_absolute_http_url(url) else url.partition("?")[2]
    return [
        KeyValueRow(key=key, value=value)
        for key, value in parse_qsl(query, keep_blank_values=True)
        if key.strip()
    ]


def _build_operation(content: RequestContent, tag: Optional[str]) -> dict[str, Any]:
    operation: dict[str, Any] = {}
    if tag is not None:
        operation["tags"] = [tag]

    parameters: list[dict[str, Any]] = []
    for row in content.path_params:
        if row.is_active:
            parameters.append(_string_parameter(row.key.strip(), "path", row.value, required=True))
    for row in _query_rows(content):
        parameters.append(_string_parameter(row.key.strip(), "query", row.value))
    for row in content.headers:
        if row.is_active and row.key.strip().lower() not in _EXCLUDED_HEADERS:
            parameters.append(_string_parameter(row.key.strip(), "header", row.value))
    if parameters:
        operation["parameters"] = parameters

    if content.body.strip():
        try:
            example = json.loads(content.body)
        except ValueError:
            media = {"text/plain": {"schema": {"type": "string"}, "example": content.body}}
        else:
            media = {"application/json": {"example": example}}
        operation["requestBody"] = {"content": media}

    operation["responses"] = {"200": {"description": "OK"}}
    return operation


def _build_servers(
    servers: list[ServerEntry],
    include_secrets: bool,
) -> tuple[list[dict[str, Any]], dict[str, dict[str, Any]], dict[str, Any]]:
    """Collect distinct server URLs and their de-duplicated security schemes.

    Returns:
        ``(server_objects, security_schemes, descriptor_by_scheme_name)``.
    """
    server_objects: list[dict[str, Any]] = []
    schemes: dict[str, dict[str, Any]] = {}
    descriptors: dict[str, Any] = {}
    seen_urls: set[str] = set()

    for server in servers:
        url = server.base_url.strip()
        if not url or url in seen_urls:
            continue
        seen_urls.add(url)

        entry: dict[str, Any] = {"url": url, AUTH_EXTENSION: _auth_extension(server.auth, include_secrets)}
        if not isinstance(server.auth, NoAuth):
            scheme = scheme_from_descriptor(server.auth)
            if scheme is not None and scheme not in schemes.values():
                name = _unique_name(scheme_base_name(server.auth) or "auth", schemes)
                schemes[name] = scheme
                descriptors[name] = server.auth
        server_objects.append(entry)

    return server_objects, schemes, descriptors


def _auth_extension(auth: AuthDescriptor, include_secrets: bool) -> dict[str, Any]:
    data = auth.model_dump(mode="json")
    if not include_secrets:
        for field in _SECRET_FIELDS:
            if field in data:
                data[field] = ""
    return data


def _unique_name(base: str, taken: dict[str, Any]) -> str:
    if base not in taken:
        return base
    suffix = 2
    while f"{base}{suffix}" in taken:
        suffix += 1
    return f"{base}{suffix}"
