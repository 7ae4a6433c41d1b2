"""Request compilation and dispatch.

- :func:`compile_request` -- saved request + server -> :class:`CompiledRequest`.
- :func:`send_request` / :func:`async_send_request` -- compile, send through
  a transport, and record a :class:`~reqtree.models.ResponseSnapshot`.
- :class:`HttpxTransport` / :class:`AsyncHttpxTransport` -- :mod:`httpx`
  backed transports.

Example::

    from reqtree.client import HttpxTransport, send_request

    with HttpxTransport() as transport:
        snapshot = send_request(leaf.content, server, transport)
"""

from reqtree.client.compiler import CompiledRequest, compile_request
from reqtree.client.sender import apply_token_refresh, async_send_request, send_request
from reqtree.client.transport import (
    AsyncHttpxTransport,
    AsyncTransport,
    HttpxTransport,
    Transport,
    TransportResponse,
)

__all__ = [
    "AsyncHttpxTransport",
    "AsyncTransport",
    "CompiledRequest",
    "HttpxTransport",
    "Transport",
    "TransportResponse",
    "apply_token_refresh",
    "async_send_request",
    "compile_request",
    "send_request",
]
