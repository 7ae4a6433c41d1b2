"""API Key auth plugin -- supports header, query parameter, and cookie placement.

This module provides the :class:`APIKeyAuthPlugin`, which injects
``auth.value`` under ``auth.name`` at the descriptor's ``location``. How
each artifact is merged into the request (header overwrite, query append,
cookie ``; ``-join) is up to the compiler.

See Also:
    :class:`reqtree.auth.base.AuthPlugin` for the base interface.
"""

from __future__ import annotations

import logging

from reqtree.auth.base import AuthPlugin, AuthResult, expect_descriptor
from reqtree.models import ApiKeyAuth, ApiKeyLocation, AuthDescriptor

logger = logging.getLogger(__name__)


class APIKeyAuthPlugin(AuthPlugin):
    """Authenticate via API key placed in a header, query parameter, or cookie.

    A descriptor with a blank ``name`` or a blank ``value`` contributes
    nothing.
    """

    @property
    def auth_type(self) -> str:
        return "api_key"

    def authenticate(self, auth: AuthDescriptor) -> AuthResult:
        """Build an :class:`~reqtree.auth.base.AuthResult` for the key.

        The key is placed according to ``auth.location``:

        * ``header`` -- sent as a request header.
        * ``query``  -- appended as a query-string parameter.
        * ``cookie`` -- sent as a cookie.
        """
        auth = expect_descriptor(auth, ApiKeyAuth)
        name = auth.name.strip()
        if not name:
            logger.debug("API key auth has no key name, skipping")
            return AuthResult()
        if not auth.value.strip():
            logger.debug("API key %r has no value, skipping", name)
            return AuthResult()

        if auth.location == ApiKeyLocation.QUERY:
            return AuthResult(params={name: auth.value})
        if auth.location == ApiKeyLocation.COOKIE:
            return AuthResult(cookies={name: auth.value})
        return AuthResult(headers={name: auth.value})
