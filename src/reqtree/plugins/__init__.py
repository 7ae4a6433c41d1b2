"""Built-in auth plugins, one per auth descriptor variant.

Each sub-package exposes a single :class:`~reqtree.auth.base.AuthPlugin`
subclass. :func:`reqtree.auth.create_default_manager` registers all of them.

* :class:`NoAuthPlugin` -- ``none``
* :class:`APIKeyAuthPlugin` -- ``api_key``
* :class:`BasicAuthPlugin` -- ``http_basic``
* :class:`BearerAuthPlugin` -- ``http_bearer``
* :class:`OAuth2Plugin` -- ``oauth2``
* :class:`OpenIDConnectPlugin` -- ``openid_connect``
"""

from reqtree.plugins.api_key import APIKeyAuthPlugin
from reqtree.plugins.basic import BasicAuthPlugin
from reqtree.plugins.bearer import BearerAuthPlugin
from reqtree.plugins.no_auth import NoAuthPlugin
from reqtree.plugins.oauth2 import OAuth2Plugin
from reqtree.plugins.openid_connect import OpenIDConnectPlugin

__all__ = [
    "APIKeyAuthPlugin",
    "BasicAuthPlugin",
    "BearerAuthPlugin",
    "NoAuthPlugin",
    "OAuth2Plugin",
    "OpenIDConnectPlugin",
]
