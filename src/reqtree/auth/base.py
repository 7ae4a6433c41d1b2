"""Abstract base class for authentication plugins.

This module defines the two foundational types of the auth subsystem:

- :class:`AuthResult` -- a plain container for the HTTP headers, query
  parameters, and cookies that an auth plugin produces.
- :class:`AuthPlugin` -- the abstract base class that every auth descriptor
  variant is served by.

To support a new descriptor variant, subclass :class:`AuthPlugin`, return
the variant's ``type`` literal from :attr:`~AuthPlugin.auth_type`, and
implement :meth:`~AuthPlugin.authenticate`. Override
:meth:`~AuthPlugin.token_from_response` when the scheme can pick up a new
credential from a response body.

See Also:
    :mod:`reqtree.auth.manager` for plugin registration and dispatch.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional, TypeVar

from reqtree.exceptions import AuthError
from reqtree.models import AuthDescriptor

_D = TypeVar("_D")


class AuthResult:
    """Container for authentication artifacts to inject into HTTP requests.

    After a plugin authenticates, the resulting headers, query parameters,
    and cookies are collected here and later merged into the outgoing request
    by :func:`~reqtree.client.compiler.compile_request`.

    Args:
        headers: HTTP headers to set (e.g. ``{"Authorization": "Bearer ..."}``).
        params: Query-string parameters to append (e.g. ``{"api_key": "..."}``).
        cookies: Cookies to add (merged into the ``Cookie`` header by the compiler).

    Example::

        result = AuthResult(headers={"Authorization": "Bearer tok123"})
        assert result.headers["Authorization"] == "Bearer tok123"
    """

    def __init__(
        self,
        headers: dict[str, str] | None = None,
        params: dict[str, str] | None = None,
        cookies: dict[str, str] | None = None,
    ):
        self.headers = headers or {}
        self.params = params or {}
        self.cookies = cookies or {}

    def __bool__(self) -> bool:
        return bool(self.headers or self.params or self.cookies)


class AuthPlugin(ABC):
    """Abstract base class for authentication plugins.

    Every descriptor variant in :data:`~reqtree.models.AuthDescriptor` is
    served by exactly one plugin, which must provide:

    1. An :attr:`auth_type` property returning the variant's ``type`` literal
       (e.g. ``"api_key"``, ``"http_bearer"``).
    2. An :meth:`authenticate` implementation that turns the descriptor into
       an :class:`AuthResult`.

    Plugins are registered with :class:`~reqtree.auth.manager.AuthManager`
    and looked up by the descriptor's ``type`` at compile time.
    """

    @property
    @abstractmethod
    def auth_type(self) -> str:
        """Return the descriptor ``type`` literal this plugin handles."""
        ...

    @abstractmethod
    def authenticate(self, auth: AuthDescriptor) -> AuthResult:
        """Return the auth artifacts to inject for *auth*.

        Plugins never fail on blank credentials; they simply contribute
        nothing.

        Args:
            auth: The descriptor of the selected server.

        Returns:
            An :class:`AuthResult` containing headers, params, and/or cookies
            to inject into the outgoing request.
        """
        ...

    def token_from_response(self, auth: AuthDescriptor, body: str) -> Optional[str]:
        """Extract a replacement credential from a response body.

        The default implementation never refreshes.

        Args:
            auth: The descriptor that authenticated the request.
            body: The raw response body text.

        Returns:
            The new credential, or ``None`` when nothing should change.
        """
        return None


def expect_descriptor(auth: AuthDescriptor, kind: type[_D]) -> _D:
    """Narrow *auth* to *kind*, raising :class:`AuthError` on a mismatch."""
    if not isinstance(auth, kind):
        raise AuthError(
            f"Expected a {kind.__name__} descriptor, got {type(auth).__name__}"
        )
    return auth
