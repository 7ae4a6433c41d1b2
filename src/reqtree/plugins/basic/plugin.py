"""HTTP Basic authentication plugin.

This module provides :class:`BasicAuthPlugin`, which implements the
``http_basic`` auth type. ``username:password`` is Base64-encoded and sent
as an ``Authorization: Basic <encoded>`` header per :rfc:`7617`.
"""

from __future__ import annotations

import base64

from reqtree.auth.base import AuthPlugin, AuthResult, expect_descriptor
from reqtree.models import AuthDescriptor, HttpBasicAuth


def encode_basic_credentials(username: str, password: str) -> str:
    """Return the Base64 token for ``username:password``."""
    raw = f"{username}:{password}"
    return base64.b64encode(raw.encode("utf-8")).decode("ascii")


class BasicAuthPlugin(AuthPlugin):
    """Authenticate via HTTP Basic authentication.

    The header is always sent. Empty credentials encode to ``Og==``.
    """

    @property
    def auth_type(self) -> str:
        return "http_basic"

    def authenticate(self, auth: AuthDescriptor) -> AuthResult:
        auth = expect_descriptor(auth, HttpBasicAuth)
        encoded = encode_basic_credentials(auth.username, auth.password)
        return AuthResult(headers={"Authorization": f"Basic {encoded}"})
