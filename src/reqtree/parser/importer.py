"""Build a saved-request tree from an OpenAPI document.

This module walks a parsed OpenAPI 3.x document and produces an
:class:`ImportResult`: a root :class:`~reqtree.models.TreeNode` holding one
leaf per path + method, grouped into folders by first tag, plus the list of
:class:`~reqtree.models.ServerEntry` objects declared by the document.

The public entry points are :func:`import_openapi` (text in) and
:func:`build_tree_from_openapi` (dict in). Internally, private helpers each
handle one section of the OpenAPI structure:

* ``_extract_servers`` -- the ``servers`` array and its auth.
* ``_default_auth`` -- the top-level ``security`` requirement.
* ``_build_leaf`` -- one operation (parameters, body, content type).

``$ref`` pointers are resolved lazily with
:func:`~reqtree.parser.resolver.resolve`; nothing here raises on a broken
reference.
"""

from __future__ import annotations

import json
import logging
from typing import Any, NamedTuple

from reqtree.auth.schemes import (
    AUTH_EXTENSION,
    descriptor_from_extension,
    descriptor_from_scheme,
)
from reqtree.models import (
    AuthDescriptor,
    HTTPMethod,
    KeyValueRow,
    NoAuth,
    RequestContent,
    ServerEntry,
    TreeNode,
)
from reqtree.parser.examples import example_for_media, example_for_parameter, render_text
from reqtree.parser.loader import parse_document, validate_openapi_version
from reqtree.parser.resolver import resolve
from reqtree.urls import path_placeholders

logger = logging.getLogger(__name__)

DEFAULT_TITLE = "OpenAPI"
FALLBACK_SERVER_URL = "http://localhost"
_JSON_MEDIA_TYPE = "application/json"


class ImportResult(NamedTuple):
    """The tree and server list produced by an import."""

    root: TreeNode
    servers: list[ServerEntry]


def import_openapi(text: str, hint: str = "", strict: bool = False) -> ImportResult:
    """Parse OpenAPI text (YAML or JSON) and build the tree and servers.

    Args:
        text: The document text.
        hint: Format hint passed to :func:`~reqtree.parser.loader.parse_document`.
        strict: Reject documents that do not declare OpenAPI 3.x.

    Raises:
        ParseError: If the text is not a parseable mapping, or *strict* is set
            and the version check fails. No partial result is produced.
    """
    return build_tree_from_openapi(parse_document(text, hint=hint), strict=strict)


def build_tree_from_openapi(document: dict[str, Any], strict: bool = False) -> ImportResult:
    """Build the saved-request tree and server list from a parsed document.

    Folders (one per first tag, sorted by name, all expanded) come first,
    followed by untagged leaves. Paths are visited in sorted order and
    methods in the canonical GET..TRACE order. With *strict*, the
    ``openapi`` version is checked first.

    Raises:
        ParseError: If *strict* is set and the document is not OpenAPI 3.x.

    Example::

        result = build_tree_from_openapi(parse_document(text), strict=True)
        for folder in result.root.children:
            print(folder.label, len(folder.children))
    """
    if strict:
        validate_openapi_version(document)
    elif "openapi" not in document:
        logger.warning("Document has no 'openapi' field, importing anyway")

    info = document.get("info")
    title = info.get("title") if isinstance(info, dict) else None
    if not isinstance(title, str) or not title.strip():
        title = DEFAULT_TITLE

    paths = document.get("paths")
    paths = paths if isinstance(paths, dict) else {}

    default_auth = _default_auth(document)
    servers = _extract_servers(document, default_auth)
    if not servers and paths:
        servers = [ServerEntry(base_url=FALLBACK_SERVER_URL, auth=default_auth)]

    folders: dict[str, list[TreeNode]] = {}
    untagged: list[TreeNode] = []

    for path_key in sorted(paths, key=str):
        path_item = resolve(document, paths[path_key])
        if not isinstance(path_item, dict):
            continue
        path_params = _as_list(path_item.get("parameters"))

        for method in HTTPMethod:
            operation = path_item.get(method.key)
            if not isinstance(operation, dict):
                continue
            leaf = _build_leaf(document, str(path_key), method, operation, path_params)
            tag = _first_tag(operation)
            if tag is None:
                untagged.append(leaf)
            else:
                folders.setdefault(tag, []).append(leaf)

    children = [
        TreeNode(label=tag, expanded=True, children=folders[tag])
        for tag in sorted(folders)
    ]
    children.extend(untagged)
    logger.debug(
        "Imported %d folders, %d untagged requests, %d servers",
        len(folders),
        len(untagged),
        len(servers),
    )

    root = TreeNode(label=title, expanded=True, children=children)
    return ImportResult(root=root, servers=servers)


def _as_list(value: Any) -> list[Any]:
    return value if isinstance(value, list) else []


def _first_tag(operation: dict[str, Any]) -> str | None:
    tags = operation.get("tags")
    if isinstance(tags, list) and tags and isinstance(tags[0], str):
        return tags[0]
    return None


# --- Servers and auth ---


def _default_auth(document: dict[str, Any]) -> AuthDescriptor:
    """Derive the auth applied to servers without an explicit extension.

    Only the first requirement object of the top-level ``security`` array,
    and the first scheme name inside it, are considered.
    """
    requirements = document.get("security")
    if not isinstance(requirements, list) or not requirements:
        return NoAuth()
    first = requirements[0]
    if not isinstance(first, dict) or not first:
        return NoAuth()
    scheme_name = next(iter(first))

    components = document.get("components")
    schemes = components.get("securitySchemes") if isinstance(components, dict) else None
    if not isinstance(schemes, dict) or scheme_name not in schemes:
        logger.debug("Security scheme %r is not declared", scheme_name)
        return NoAuth()
    return descriptor_from_scheme(resolve(document, schemes[scheme_name]))


def _extract_servers(
    document: dict[str, Any], default_auth: AuthDescriptor
) -> list[ServerEntry]:
    servers: list[ServerEntry] = []
    for server in _as_list(document.get("servers")):
        if not isinstance(server, dict):
            continue
        url = server.get("url")
        if not isinstance(url, str) or not url.strip():
            continue
        auth = descriptor_from_extension(server.get(AUTH_EXTENSION))
        if auth is None:
            auth = default_auth.model_copy(deep=True)
        servers.append(ServerEntry(base_url=url.strip(), auth=auth))
    return servers


# --- Operations ---


def _merge_parameters(
    document: dict[str, Any],
    path_params: list[Any],
    op_params: list[Any],
) -> list[dict[str, Any]]:
    """Merge path-level and operation-level parameters.

    Operation-level parameters override path-level ones with the same
    ``name`` and ``in``, as OpenAPI defines.
    """
    resolved_path = [p for p in (resolve(document, p) for p in path_params) if isinstance(p, dict)]
    resolved_op = [p for p in (resolve(document, p) for p in op_params) if isinstance(p, dict)]

    op_keys = {(p.get("name", ""), p.get("in", "")) for p in resolved_op}
    merged = [p for p in resolved_path if (p.get("name", ""), p.get("in", "")) not in op_keys]
    merged.extend(resolved_op)
    return merged


def _set_header(rows: list[KeyValueRow], key: str, value: str) -> None:
    for row in rows:
        if row.key.strip().lower() == key.lower():
            row.value = value
            row.enabled = True
            return
    rows.append(KeyValueRow(key=key, value=value))


def _build_leaf(
    document: dict[str, Any],
    path_key: str,
    method: HTTPMethod,
    operation: dict[str, Any],
    path_params: list[Any],
) -> TreeNode:
    path = path_key if path_key.startswith("/") else f"/{path_key}"

    headers: list[KeyValueRow] = []
    query_params: list[KeyValueRow] = []
    for param in _merge_parameters(document, path_params, _as_list(operation.get("parameters"))):
        name = param.get("name")
        if not isinstance(name, str) or not name.strip():
            continue
        location = param.get("in")
        if location == "header":
            headers.append(
                KeyValueRow(key=name, value=render_text(example_for_parameter(document, param)))
            )
        elif location == "query":
            query_params.append(
                KeyValueRow(key=name, value=render_text(example_for_parameter(document, param)))
            )

    body = ""
    content_type = None
    request_body = resolve(document, operation.get("requestBody"))
    if isinstance(request_body, dict):
        content = request_body.get("content")
        if isinstance(content, dict) and content:
            content_type = _JSON_MEDIA_TYPE if _JSON_MEDIA_TYPE in content else next(iter(content))
            body = _render_body(document, content_type, content[content_type])
    if content_type is not None:
        _set_header(headers, "Content-Type", str(content_type))

    request = RequestContent(
        method=method,
        url=path,
        headers=headers,
        query_params=query_params,
        path_params=[KeyValueRow(key=name) for name in path_placeholders(path)],
        body=body,
    )
    return TreeNode(label=path, content=request)


def _render_body(document: dict[str, Any], content_type: str, media: Any) -> str:
    found, value = example_for_media(document, media)
    if not found:
        return ""
    if "json" in content_type.lower():
        return json.dumps(value, indent=2, ensure_ascii=False, default=str)
    if isinstance(value, str):
        return value
    return render_text(value)
