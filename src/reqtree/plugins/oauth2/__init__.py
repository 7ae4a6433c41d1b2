"""OAuth2 access-token plugin.

Implements the ``oauth2`` auth type. Flow metadata is carried for export
only; the plugin sends the access token the user already obtained.

See Also:
    :class:`~reqtree.plugins.oauth2.plugin.OAuth2Plugin`
"""

from reqtree.plugins.oauth2.plugin import OAuth2Plugin

__all__ = ["OAuth2Plugin"]
