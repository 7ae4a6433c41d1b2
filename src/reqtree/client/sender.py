"""Compile, dispatch and record one saved request.

:func:`send_request` ties the pieces together: the request is compiled with
:func:`~reqtree.client.compiler.compile_request`, handed to a
:class:`~reqtree.client.transport.Transport`, and the outcome is recorded as
a :class:`~reqtree.models.ResponseSnapshot`. Transport failures do not
propagate; they become a snapshot with ``ok=False`` and ``status=0`` whose
``data`` is the error message. Requests are never retried.

After each response :func:`apply_token_refresh` lets the server's auth
plugin pick up a rotated credential from the body.
"""

from __future__ import annotations

import logging
import time
from typing import Optional

from reqtree.auth.manager import AuthManager, create_default_manager
from reqtree.client.compiler import CompiledRequest, compile_request
from reqtree.client.transport import AsyncTransport, Transport, TransportResponse
from reqtree.exceptions import TransportError
from reqtree.models import HttpBearerAuth, RequestContent, RequestEcho, ResponseSnapshot, ServerEntry

logger = logging.getLogger(__name__)


def send_request(
    content: RequestContent,
    server: Optional[ServerEntry],
    transport: Transport,
    auth_manager: Optional[AuthManager] = None,
) -> ResponseSnapshot:
    """Compile *content*, send it through *transport* and return the snapshot.

    When *server* uses an auto-updating bearer token, the token on *server*
    is replaced in place if the response carries a new one.

    Raises:
        RequestBuildError: If the request cannot be compiled. Nothing is sent.
    """
    manager = auth_manager or create_default_manager()
    compiled = compile_request(content, server, manager)

    started = time.perf_counter()
    try:
        response = transport.send(
            compiled.method.value, compiled.url, compiled.headers, compiled.body
        )
    except TransportError as exc:
        logger.debug("Transport failed: %s", exc.message)
        return _failure_snapshot(compiled, exc, started)

    snapshot = _snapshot(compiled, response, started)
    if server is not None:
        apply_token_refresh(server, snapshot, manager)
    return snapshot


async def async_send_request(
    content: RequestContent,
    server: Optional[ServerEntry],
    transport: AsyncTransport,
    auth_manager: Optional[AuthManager] = None,
) -> ResponseSnapshot:
    """Async counterpart of :func:`send_request`."""
    manager = auth_manager or create_default_manager()
    compiled = compile_request(content, server, manager)

    started = time.perf_counter()
    try:
        response = await transport.send(
            compiled.method.value, compiled.url, compiled.headers, compiled.body
        )
    except TransportError as exc:
        logger.debug("Transport failed: %s", exc.message)
        return _failure_snapshot(compiled, exc, started)

    snapshot = _snapshot(compiled, response, started)
    if server is not None:
        apply_token_refresh(server, snapshot, manager)
    return snapshot


def apply_token_refresh(
    server: ServerEntry,
    response: ResponseSnapshot,
    auth_manager: Optional[AuthManager] = None,
) -> bool:
    """Store a rotated bearer token found in *response* on *server*.

    Only :class:`~reqtree.models.HttpBearerAuth` with ``auto_update`` set
    is considered.

    Returns:
        True when the stored token changed.
    """
    auth = server.auth
    if not isinstance(auth, HttpBearerAuth) or not auth.auto_update:
        return False
    manager = auth_manager or create_default_manager()
    token = manager.token_from_response(auth, response.data)
    if token is None:
        return False
    server.auth = auth.model_copy(update={"token": token})
    logger.info("Bearer token for %s updated from response", server.base_url)
    return True


def _echo(compiled: CompiledRequest) -> RequestEcho:
    return RequestEcho(
        method=compiled.method.value,
        url=compiled.url,
        headers=dict(compiled.headers),
        body=compiled.body,
    )


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 2)


def _snapshot(
    compiled: CompiledRequest, response: TransportResponse, started: float
) -> ResponseSnapshot:
    return ResponseSnapshot(
        url=response.url,
        status=response.status,
        ok=response.ok,
        headers=response.headers,
        raw_headers=response.raw_headers,
        data=response.body_text,
        request=_echo(compiled),
        duration_ms=_elapsed_ms(started),
    )


def _failure_snapshot(
    compiled: CompiledRequest, exc: TransportError, started: float
) -> ResponseSnapshot:
    return ResponseSnapshot(
        url=compiled.url,
        status=0,
        ok=False,
        data=exc.message,
        request=_echo(compiled),
        duration_ms=_elapsed_ms(started),
    )
