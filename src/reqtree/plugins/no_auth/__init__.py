"""Plugin for servers without authentication."""

from reqtree.plugins.no_auth.plugin import NoAuthPlugin

__all__ = ["NoAuthPlugin"]
