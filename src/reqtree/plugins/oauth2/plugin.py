from __future__ import annotations

from reqtree.auth.base import AuthPlugin, AuthResult, expect_descriptor
from reqtree.models import AuthDescriptor, OAuth2Auth


class OAuth2Plugin(AuthPlugin):
    """Send an already-obtained OAuth2 access token as a Bearer header.

    No token exchange is performed; the flow, endpoints and scopes on the
    descriptor only describe the API for export.
    """

    @property
    def auth_type(self) -> str:
        return "oauth2"

    def authenticate(self, auth: AuthDescriptor) -> AuthResult:
        auth = expect_descriptor(auth, OAuth2Auth)
        token = auth.access_token.strip()
        if not token:
            return AuthResult()
        return AuthResult(headers={"Authorization": f"Bearer {token}"})
