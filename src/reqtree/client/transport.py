"""HTTP transports -- the only place network I/O happens.

A transport takes the fully compiled method, URL, headers and body and
returns a :class:`TransportResponse`. Any failure to obtain a response is
raised as :class:`~reqtree.exceptions.TransportError` with a categorised
message; HTTP error statuses are *not* failures and come back as ordinary
responses with ``ok=False``.

:class:`HttpxTransport` and :class:`AsyncHttpxTransport` wrap
:class:`httpx.Client` / :class:`httpx.AsyncClient`. Pass ``client=`` to
reuse a preconfigured client (e.g. one built on :class:`httpx.MockTransport`
in tests).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional, Protocol

import httpx

from reqtree.exceptions import TransportError
from reqtree.models import RequestConfig

logger = logging.getLogger(__name__)


@dataclass
class TransportResponse:
    """What a transport hands back for one request."""

    url: str
    status: int
    ok: bool
    headers: dict[str, str] = field(default_factory=dict)
    raw_headers: dict[str, list[str]] = field(default_factory=dict)
    body_text: str = ""


class Transport(Protocol):
    def send(
        self,
        method: str,
        url: str,
        headers: dict[str, str],
        body: Optional[str] = None,
    ) -> TransportResponse: ...


class AsyncTransport(Protocol):
    async def send(
        self,
        method: str,
        url: str,
        headers: dict[str, str],
        body: Optional[str] = None,
    ) -> TransportResponse: ...


def _to_response(response: httpx.Response) -> TransportResponse:
    raw: dict[str, list[str]] = {}
    for key, value in response.headers.multi_items():
        raw.setdefault(key, []).append(value)
    return TransportResponse(
        url=str(response.url),
        status=response.status_code,
        ok=response.is_success,
        headers=dict(response.headers),
        raw_headers=raw,
        body_text=response.text,
    )


def _transport_error(exc: httpx.HTTPError) -> TransportError:
    """Map an httpx exception onto a categorised :class:`TransportError`."""
    if isinstance(exc, httpx.TimeoutException):
        message = f"request timed out: {exc}"
    elif isinstance(exc, httpx.ConnectError):
        message = f"connection failed: {exc}"
    elif isinstance(exc, httpx.ProtocolError):
        message = f"protocol error: {exc}"
    else:
        message = f"request failed: {exc}"
    return TransportError(message)


def _client_options(config: RequestConfig) -> dict[str, object]:
    return {
        "timeout": config.timeout,
        "verify": config.verify_ssl,
        "follow_redirects": config.follow_redirects,
    }


class HttpxTransport:
    """Blocking transport backed by :class:`httpx.Client`.

    Args:
        config: Timeout, TLS verification and redirect settings. Ignored
            when *client* is given.
        client: An existing client to send through. It is not closed by
            :meth:`close`.

    Example::

        with HttpxTransport(RequestConfig(timeout=5)) as transport:
            response = transport.send("GET", "https://api.test/ping", {})
    """

    def __init__(
        self,
        config: Optional[RequestConfig] = None,
        client: Optional[httpx.Client] = None,
    ) -> None:
        self._owns_client = client is None
        self._client = client or httpx.Client(**_client_options(config or RequestConfig()))

    def __enter__(self) -> HttpxTransport:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def send(
        self,
        method: str,
        url: str,
        headers: dict[str, str],
        body: Optional[str] = None,
    ) -> TransportResponse:
        """Send one request.

        Raises:
            TransportError: When no response could be obtained.
        """
        logger.debug("%s %s", method, url)
        try:
            response = self._client.request(method, url, headers=headers, content=body)
        except httpx.HTTPError as exc:
            raise _transport_error(exc) from exc
        except (httpx.InvalidURL, UnicodeEncodeError) as exc:
            raise TransportError(f"request failed: {exc}") from exc
        return _to_response(response)


class AsyncHttpxTransport:
    """Non-blocking transport backed by :class:`httpx.AsyncClient`.

    Example::

        async with AsyncHttpxTransport() as transport:
            response = await transport.send("GET", "https://api.test/ping", {})
    """

    def __init__(
        self,
        config: Optional[RequestConfig] = None,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            **_client_options(config or RequestConfig())
        )

    async def __aenter__(self) -> AsyncHttpxTransport:
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def send(
        self,
        method: str,
        url: str,
        headers: dict[str, str],
        body: Optional[str] = None,
    ) -> TransportResponse:
        """Send one request.

        Raises:
            TransportError: When no response could be obtained.
        """
        logger.debug("%s %s", method, url)
        try:
            response = await self._client.request(method, url, headers=headers, content=body)
        except httpx.HTTPError as exc:
            raise _transport_error(exc) from exc
        except (httpx.InvalidURL, UnicodeEncodeError) as exc:
            raise TransportError(f"request failed: {exc}") from exc
        return _to_response(response)
