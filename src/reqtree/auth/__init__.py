"""Plugin-based authentication for compiled requests.

Each :data:`~reqtree.models.AuthDescriptor` variant is served by one
:class:`AuthPlugin`. The main entry points are:

- :class:`AuthPlugin` -- abstract base class for auth strategies.
- :class:`AuthManager` -- registry that maps descriptor ``type`` literals to
  plugin instances.
- :func:`create_default_manager` -- factory that returns an
  :class:`AuthManager` pre-loaded with all built-in plugins.

Typical usage::

    from reqtree.auth import create_default_manager

    manager = create_default_manager()
    auth_result = manager.authenticate(server.auth)
    # auth_result.headers / .params / .cookies are ready to inject.
"""

from reqtree.auth.base import AuthPlugin, AuthResult
from reqtree.auth.manager import AuthManager, create_default_manager

__all__ = [
    "AuthPlugin",
    "AuthResult",
    "AuthManager",
    "create_default_manager",
]
