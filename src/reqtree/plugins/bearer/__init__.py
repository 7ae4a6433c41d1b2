"""Bearer token authentication plugin.

Implements the ``http_bearer`` auth type, which sends the stored token as an
``Authorization`` header and can pick up a replacement token from response
bodies.

See Also:
    :class:`~reqtree.plugins.bearer.plugin.BearerAuthPlugin`
    :mod:`reqtree.auth.base` for the plugin interface contract.
"""

from reqtree.plugins.bearer.plugin import BearerAuthPlugin, resolve_token_path

__all__ = ["BearerAuthPlugin", "resolve_token_path"]
