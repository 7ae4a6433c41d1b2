from __future__ import annotations

from reqtree.auth.base import AuthPlugin, AuthResult
from reqtree.models import AuthDescriptor


class NoAuthPlugin(AuthPlugin):
    """Contribute nothing to the request."""

    @property
    def auth_type(self) -> str:
        return "none"

    def authenticate(self, auth: AuthDescriptor) -> AuthResult:
        return AuthResult()
