"""Bearer token authentication plugin.

This module provides :class:`BearerAuthPlugin`, which implements the
``http_bearer`` auth type. The stored token is sent as
``Authorization: <bearer_format> <token>``.

When the descriptor has ``auto_update`` set, :meth:`token_from_response`
parses response bodies as JSON and follows ``token_path`` to pick up a
rotated token, e.g. from a login endpoint returning
``{"data": {"token": "..."}}`` with ``token_path="$.data.token"``.

See Also:
    :class:`reqtree.auth.base.AuthPlugin` for the base interface.
    :func:`reqtree.client.sender.apply_token_refresh` for where the new
    token is stored.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Optional

from reqtree.auth.base import AuthPlugin, AuthResult, expect_descriptor
from reqtree.models import AuthDescriptor, HttpBearerAuth

logger = logging.getLogger(__name__)


def resolve_token_path(data: Any, token_path: str) -> Optional[str]:
    """Follow a ``$.a.b.0`` style path through parsed JSON.

    A leading ``$`` or ``$.`` is optional, empty segments are skipped and
    numeric segments index into arrays. Only scalar targets yield a value;
    booleans render as ``true``/``false``.

    Returns:
        The value as text, or ``None`` when the path does not lead to a
        non-null scalar.

    Example::

        >>> resolve_token_path({"data": {"items": [{"t": "x"}]}}, "$.data.items.0.t")
        'x'
    """
    path = token_path.strip()
    if path.startswith("$."):
        path = path[2:]
    elif path.startswith("$"):
        path = path[1:]

    current = data
    for segment in path.split("."):
        segment = segment.strip()
        if not segment:
            continue
        if isinstance(current, dict):
            if segment not in current:
                return None
            current = current[segment]
        elif isinstance(current, list):
            try:
                current = current[int(segment)]
            except (ValueError, IndexError):
                return None
        else:
            return None

    if isinstance(current, bool):
        return "true" if current else "false"
    if isinstance(current, str):
        return current
    if isinstance(current, (int, float)):
        return str(current)
    return None


class BearerAuthPlugin(AuthPlugin):
    """Authenticate via a bearer token in the Authorization header.

    ``bearer_format`` is used as the scheme word (``Bearer`` when blank).
    A blank token contributes nothing.
    """

    @property
    def auth_type(self) -> str:
        return "http_bearer"

    def authenticate(self, auth: AuthDescriptor) -> AuthResult:
        auth = expect_descriptor(auth, HttpBearerAuth)
        token = auth.token.strip()
        if not token:
            return AuthResult()
        scheme = auth.bearer_format.strip() or "Bearer"
        return AuthResult(headers={"Authorization": f"{scheme} {token}"})

    def token_from_response(self, auth: AuthDescriptor, body: str) -> Optional[str]:
        """Return a new token found at ``token_path`` in *body*.

        ``None`` is returned when auto-update is off, the body is not JSON,
        the path yields nothing, or the value equals the current token.
        """
        auth = expect_descriptor(auth, HttpBearerAuth)
        if not auth.auto_update or not auth.token_path.strip():
            return None
        try:
            data = json.loads(body)
        except ValueError:
            logger.debug("Response body is not JSON, token left unchanged")
            return None

        token = resolve_token_path(data, auth.token_path)
        if token is None or not token.strip():
            logger.debug("Token path %r matched nothing", auth.token_path)
            return None
        token = token.strip()
        if token == auth.token.strip():
            return None
        return token
