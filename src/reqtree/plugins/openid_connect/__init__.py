"""OpenID Connect access-token plugin.

Implements the ``openid_connect`` auth type.

See Also:
    :class:`~reqtree.plugins.openid_connect.plugin.OpenIDConnectPlugin`
"""

from reqtree.plugins.openid_connect.plugin import OpenIDConnectPlugin

__all__ = ["OpenIDConnectPlugin"]
