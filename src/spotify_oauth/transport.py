"""Default :class:`~spotify_oauth.exchange.TokenTransport` backed by :mod:`httpx`.

:class:`HttpxTransport` sends a :class:`~spotify_oauth.exchange.TokenRequest`
with :class:`httpx.AsyncClient` and maps every failure onto
:class:`~spotify_oauth.exceptions.TransportError`:

- network and timeout errors -- no status code, ``cause`` is the
  :class:`httpx.HTTPError`;
- non-2xx responses -- the status code, plus Spotify's ``error`` /
  ``error_description`` in the message when the body carries them;
- a 2xx body that is not JSON -- the status code and the decode error.

A single attempt is made; retry policy is left to callers.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from spotify_oauth.exceptions import TransportError
from spotify_oauth.exchange import TokenRequest, TokenTransport

logger = logging.getLogger(__name__)


class HttpxTransport(TokenTransport):
    """Send token requests with :class:`httpx.AsyncClient`.

    Args:
        client: Optional caller-owned client. When given it is reused and
            never closed by the transport; otherwise a short-lived client is
            opened for each request.
        timeout: Request timeout in seconds for the short-lived client.

    Example::

        async with httpx.AsyncClient() as client:
            token = await exchange_code(
                outcome, credentials, redirect_uri, HttpxTransport(client)
            )
    """

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 30.0,
    ) -> None:
        self._client = client
        self._timeout = timeout

    async def fetch_token(self, request: TokenRequest) -> Any:
        if self._client is not None:
            return await self._send(self._client, request)
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            return await self._send(client, request)

    async def _send(self, client: httpx.AsyncClient, request: TokenRequest) -> Any:
        try:
            response = await client.request(
                request.method,
                request.url,
                headers=request.headers,
                data=request.form,
            )
        except httpx.HTTPError as exc:
            raise TransportError(f"Token request failed: {exc}", cause=exc) from exc

        logger.debug("Token endpoint answered HTTP %d", response.status_code)

        if not response.is_success:
            raise TransportError(
                _describe_failure(response), status_code=response.status_code
            )

        try:
            return response.json()
        except ValueError as exc:
            raise TransportError(
                "Token response is not valid JSON",
                status_code=response.status_code,
                cause=exc,
            ) from exc


def _describe_failure(response: httpx.Response) -> str:
    """Build an error message from a non-2xx token endpoint response."""
    prefix = f"HTTP {response.status_code}"
    try:
        detail = response.json()
    except ValueError:
        text = response.text[:200] if response.text else ""
        return f"{prefix}: {text}" if text else prefix

    if isinstance(detail, dict):
        error = detail.get("error") or ""
        description = detail.get("error_description") or ""
        if error and description:
            return f"{prefix}: {error} ({description})"
        if error or description:
            return f"{prefix}: {error or description}"
    return prefix
