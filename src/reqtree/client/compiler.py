"""Compile a saved request into a concrete HTTP request.

:func:`compile_request` is pure: it reads a
:class:`~reqtree.models.RequestContent` and the selected
:class:`~reqtree.models.ServerEntry` and returns a :class:`CompiledRequest`
ready for a transport. Every problem is reported as
:class:`~reqtree.exceptions.RequestBuildError` before any network activity.

Steps, in order:

1. normalise the saved url (absolute ``http(s)`` urls keep their origin);
2. substitute ``{name}`` placeholders from the path-parameter rows;
3. rebuild the query string from the query rows;
4. join with the server base URL;
5. collect headers and add ``Accept`` / ``Content-Type`` defaults;
6. inject auth through the :class:`~reqtree.auth.manager.AuthManager`;
7. attach the body for POST, PUT and PATCH.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional
from urllib.parse import quote, urlencode, urlsplit

from reqtree.auth.base import AuthResult
from reqtree.auth.manager import AuthManager, create_default_manager
from reqtree.exceptions import ReqtreeError, RequestBuildError
from reqtree.models import HTTPMethod, KeyValueRow, RequestContent, ServerEntry
from reqtree.urls import encode_rows, is_absolute_http_url, substitute_placeholders

logger = logging.getLogger(__name__)

DEFAULT_ACCEPT = "*/*"
DEFAULT_CONTENT_TYPE = "application/json"


@dataclass
class CompiledRequest:
    """A fully resolved request: absolute URL, final headers and body."""

    method: HTTPMethod
    url: str
    headers: dict[str, str] = field(default_factory=dict)
    body: Optional[str] = None


def compile_request(
    content: RequestContent,
    server: Optional[ServerEntry] = None,
    auth_manager: Optional[AuthManager] = None,
) -> CompiledRequest:
    """Turn *content* into a :class:`CompiledRequest`.

    Args:
        content: The saved request.
        server: The selected server. Optional only when ``content.url`` is an
            absolute URL.
        auth_manager: Plugin registry used for auth injection. Defaults to
            :func:`~reqtree.auth.manager.create_default_manager`.

    Returns:
        The compiled request.

    Raises:
        RequestBuildError: On an empty path, a missing server, an invalid
            base URL, or an auth descriptor without a registered plugin.

    Example::

        content = RequestContent(url="/users/{id}", path_params=[KeyValueRow(key="id", value="7")])
        compiled = compile_request(content, ServerEntry(base_url="https://api.test"))
        assert compiled.url == "https://api.test/users/7"
    """
    origin, path = _split_saved_url(content.url)
    path = _substitute_path(path, content.path_params)
    query = encode_rows(content.query_params)

    if origin is not None:
        base = origin
    else:
        base = _server_base(server)

    headers = _collect_headers(content)
    auth_result = _authenticate(server, auth_manager) if server is not None else AuthResult()

    for key, value in auth_result.headers.items():
        _set_header(headers, key, value)
    for key, value in auth_result.cookies.items():
        _append_cookie(headers, key, value)
    if auth_result.params:
        extra = urlencode(list(auth_result.params.items()))
        query = f"{query}&{extra}" if query else extra

    url = f"{base}{path}"
    if query:
        url = f"{url}?{query}"

    body: Optional[str] = None
    if content.method.sends_body and content.body:
        body = content.body

    logger.debug("Compiled %s %s", content.method.value, url)
    return CompiledRequest(method=content.method, url=url, headers=headers, body=body)


# --- URL ---


def _split_saved_url(url: str) -> tuple[Optional[str], str]:
    """Return ``(origin or None, path)`` for a saved url; the literal query is dropped."""
    text = url.strip()
    if not text:
        raise RequestBuildError("empty path")

    origin: Optional[str] = None
    if is_absolute_http_url(text):
        parts = urlsplit(text)
        origin = f"{parts.scheme}://{parts.netloc}"
        path = parts.path
    else:
        path = text.split("?", 1)[0]

    if not path.startswith("/"):
        path = f"/{path}"
    return origin, path


def _substitute_path(path: str, rows: list[KeyValueRow]) -> str:
    values: dict[str, str] = {}
    for row in rows:
        if row.is_active and row.value.strip():
            values.setdefault(row.key.strip(), quote(row.value, safe=""))
    return substitute_placeholders(path, values)


def _server_base(server: Optional[ServerEntry]) -> str:
    if server is None:
        raise RequestBuildError("select a server")
    base_url = server.base_url.strip()
    if not is_absolute_http_url(base_url):
        raise RequestBuildError("invalid base URL")
    return base_url.rstrip("/")


# --- Headers and auth ---


def _set_header(headers: dict[str, str], key: str, value: str) -> None:
    """Set *key*, reusing the casing of an existing case-insensitive match."""
    for existing in headers:
        if existing.lower() == key.lower():
            headers[existing] = value
            return
    headers[key] = value


def _append_cookie(headers: dict[str, str], name: str, value: str) -> None:
    pair = f"{name}={value}"
    for existing in headers:
        if existing.lower() == "cookie":
            current = headers[existing]
            headers[existing] = f"{current}; {pair}" if current.strip() else pair
            return
    headers["Cookie"] = pair


def _collect_headers(content: RequestContent) -> dict[str, str]:
    headers: dict[str, str] = {}
    for row in content.headers:
        if row.is_active:
            _set_header(headers, row.key.strip(), row.value)

    lowered = {key.lower() for key in headers}
    if "accept" not in lowered:
        headers["Accept"] = DEFAULT_ACCEPT
    if (
        "content-type" not in lowered
        and content.method.sends_body
        and content.body.strip()
    ):
        headers["Content-Type"] = DEFAULT_CONTENT_TYPE
    return headers


def _authenticate(server: ServerEntry, auth_manager: Optional[AuthManager]) -> AuthResult:
    manager = auth_manager or create_default_manager()
    try:
        return manager.authenticate(server.auth)
    except ReqtreeError as exc:
        raise RequestBuildError(exc.message) from exc
