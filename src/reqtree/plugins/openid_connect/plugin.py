"""OpenID Connect auth plugin.

The discovery URL on :class:`~reqtree.models.OpenIdConnectAuth` is kept for
export. Requests carry the access token the user pasted in, as
``Authorization: Bearer <access_token>``.
"""

from __future__ import annotations

from reqtree.auth.base import AuthPlugin, AuthResult, expect_descriptor
from reqtree.models import AuthDescriptor, OpenIdConnectAuth


class OpenIDConnectPlugin(AuthPlugin):
    """Authenticate with an OpenID Connect access token."""

    @property
    def auth_type(self) -> str:
        return "openid_connect"

    def authenticate(self, auth: AuthDescriptor) -> AuthResult:
        auth = expect_descriptor(auth, OpenIdConnectAuth)
        token = auth.access_token.strip()
        if not token:
            return AuthResult()
        return AuthResult(headers={"Authorization": f"Bearer {token}"})
