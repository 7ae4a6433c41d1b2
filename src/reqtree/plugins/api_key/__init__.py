"""API key authentication plugin.

Implements the ``api_key`` auth type: the key is placed in a header, a query
parameter, or a cookie, as declared by the OpenAPI ``in`` field.

See Also:
    :class:`~reqtree.plugins.api_key.plugin.APIKeyAuthPlugin`
"""

from reqtree.plugins.api_key.plugin import APIKeyAuthPlugin

__all__ = ["APIKeyAuthPlugin"]
