"""Auth manager -- registry and dispatcher for auth plugins.

The :class:`AuthManager` maps descriptor ``type`` literals (``"api_key"``,
``"http_bearer"``, ``"oauth2"``, ...) to concrete
:class:`~reqtree.auth.base.AuthPlugin` instances and exposes a single
:meth:`~AuthManager.authenticate` method that the request compiler calls.

For most use cases, call :func:`create_default_manager` to get a manager
pre-loaded with one plugin per :data:`~reqtree.models.AuthDescriptor`
variant.

See Also:
    :class:`~reqtree.auth.base.AuthPlugin` -- the plugin interface.
    :func:`~reqtree.client.compiler.compile_request` -- consumes the
    :class:`~reqtree.auth.base.AuthResult` produced here.
"""

from __future__ import annotations

from typing import Optional

from reqtree.auth.base import AuthPlugin, AuthResult
from reqtree.exceptions import AuthError
from reqtree.models import AuthDescriptor


class AuthManager:
    """Registry and dispatcher for authentication plugins.

    Example::

        from reqtree.auth import AuthManager
        from reqtree.plugins.bearer import BearerAuthPlugin

        manager = AuthManager()
        manager.register(BearerAuthPlugin())
        result = manager.authenticate(server.auth)
    """

    def __init__(self) -> None:
        self._plugins: dict[str, AuthPlugin] = {}

    def register(self, plugin: AuthPlugin) -> None:
        """Register *plugin* under its :attr:`~AuthPlugin.auth_type`.

        A plugin already registered for the same type is replaced.
        """
        self._plugins[plugin.auth_type] = plugin

    def get_plugin(self, auth_type: str) -> AuthPlugin:
        """Retrieve a registered plugin by its auth type identifier.

        Raises:
            AuthError: If no plugin is registered for *auth_type*.
        """
        plugin = self._plugins.get(auth_type)
        if plugin is None:
            available = ", ".join(sorted(self._plugins)) or "(none)"
            raise AuthError(
                f"No auth plugin registered for type '{auth_type}'. "
                f"Available types: {available}"
            )
        return plugin

    def authenticate(self, auth: Optional[AuthDescriptor]) -> AuthResult:
        """Authenticate with the plugin matching ``auth.type``.

        Returns:
            The plugin's :class:`~reqtree.auth.base.AuthResult`, or an empty
            one when *auth* is ``None``.

        Raises:
            AuthError: If the auth type has no registered plugin.
        """
        if auth is None:
            return AuthResult()
        return self.get_plugin(auth.type).authenticate(auth)

    def token_from_response(self, auth: AuthDescriptor, body: str) -> Optional[str]:
        """Ask the plugin for *auth* whether *body* carries a new credential."""
        return self.get_plugin(auth.type).token_from_response(auth, body)

    def list_types(self) -> list[str]:
        """Return the sorted identifiers of all registered auth types."""
        return sorted(self._plugins.keys())


def create_default_manager() -> AuthManager:
    """Create an :class:`AuthManager` pre-loaded with all built-in plugins.

    The following plugins are registered:

    - ``none`` -- contributes nothing.
    - ``api_key`` -- key in a header, query parameter, or cookie.
    - ``http_basic`` -- HTTP Basic authentication.
    - ``http_bearer`` -- bearer token with optional auto-refresh.
    - ``oauth2`` -- already-obtained OAuth2 access token.
    - ``openid_connect`` -- already-obtained OpenID Connect access token.

    Returns:
        A fully initialised :class:`AuthManager`.
    """
    from reqtree.plugins.api_key import APIKeyAuthPlugin
    from reqtree.plugins.basic import BasicAuthPlugin
    from reqtree.plugins.bearer import BearerAuthPlugin
    from reqtree.plugins.no_auth import NoAuthPlugin
    from reqtree.plugins.oauth2 import OAuth2Plugin
    from reqtree.plugins.openid_connect import OpenIDConnectPlugin

    manager = AuthManager()
    manager.register(NoAuthPlugin())
    manager.register(APIKeyAuthPlugin())
    manager.register(BasicAuthPlugin())
    manager.register(BearerAuthPlugin())
    manager.register(OAuth2Plugin())
    manager.register(OpenIDConnectPlugin())
    return manager
