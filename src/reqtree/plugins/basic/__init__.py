"""HTTP Basic authentication plugin.

Implements the ``http_basic`` auth type, which encodes the
``username:password`` pair using Base64 and sends it as an
``Authorization: Basic`` header per :rfc:`7617`.

See Also:
    :class:`~reqtree.plugins.basic.plugin.BasicAuthPlugin`
"""

from reqtree.plugins.basic.plugin import BasicAuthPlugin, encode_basic_credentials

__all__ = ["BasicAuthPlugin", "encode_basic_credentials"]
