"""Authorization code to token exchange.

This module provides the last stage of the flow:

- :class:`TokenRequest` -- the fully built POST to Spotify's token
  endpoint (Basic auth header, form content type, three form fields).
- :class:`TokenTransport` -- the abstract HTTP capability that sends a
  :class:`TokenRequest` and returns the decoded JSON body.
- :func:`exchange_code` -- turns a :class:`~spotify_oauth.callback.Granted`
  outcome into a :class:`~spotify_oauth.models.Token` with one request.

The exchange is a single best-effort attempt. It never retries: Spotify
authorization codes are single-use, so a failed exchange means starting a
new authorization attempt with a new ``state``. Timeouts and connection
handling belong to the transport.

See Also:
    :class:`spotify_oauth.transport.HttpxTransport` for the default
    transport backed by :mod:`httpx`.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable

from pydantic import ValidationError

from spotify_oauth.callback import CallbackOutcome, Denied
from spotify_oauth.exceptions import TokenError, TransportError
from spotify_oauth.models import ClientCredentials, Token
from spotify_oauth.util import now_timestamp

logger = logging.getLogger(__name__)

TOKEN_URL = "https://accounts.spotify.com/api/token"
"""Spotify's fixed token endpoint."""

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


@dataclass(frozen=True)
class TokenRequest:
    """A token endpoint request ready to hand to a :class:`TokenTransport`.

    ``headers`` is left out of ``repr`` because it carries the encoded
    client secret.

    Attributes:
        headers: ``Authorization`` and ``Content-Type`` headers.
        form: ``grant_type``, ``code`` and ``redirect_uri`` form fields.
        method: Always ``"POST"``.
        url: Always :data:`TOKEN_URL`.
    """

    headers: dict[str, str] = field(repr=False)
    form: dict[str, str]
    method: str = "POST"
    url: str = TOKEN_URL

    @classmethod
    def build(
        cls,
        credentials: ClientCredentials,
        code: str,
        redirect_uri: str,
    ) -> TokenRequest:
        """Build the authorization-code token request for *code*."""
        return cls(
            headers={
                "Authorization": f"Basic {credentials.basic_auth_value()}",
                "Content-Type": FORM_CONTENT_TYPE,
            },
            form={
                "grant_type": "authorization_code",
                "code": code,
                "redirect_uri": redirect_uri,
            },
        )


class TokenTransport(ABC):
    """Abstract HTTP capability used by :func:`exchange_code`.

    Implementations send the request once and either return the decoded
    JSON body of a 2xx response or raise
    :class:`~spotify_oauth.exceptions.TransportError` carrying the HTTP
    status (when one was received) and the underlying cause.
    """

    @abstractmethod
    async def fetch_token(self, request: TokenRequest) -> Any:
        """Send *request* and return the decoded JSON response body.

        Raises:
            TransportError: On network failures, non-2xx statuses, or an
                undecodable body.
        """
        ...


async def exchange_code(
    outcome: CallbackOutcome,
    credentials: ClientCredentials,
    redirect_uri: str,
    transport: TokenTransport,
    *,
    clock: Callable[[], int] = now_timestamp,
) -> Token:
    """Exchange the authorization code in *outcome* for a :class:`Token`.

    Args:
        outcome: The parsed callback. Must be a
            :class:`~spotify_oauth.callback.Granted` outcome; its code is
            consumed by this call and must not be exchanged again.
        credentials: The application credentials used for Basic auth.
        redirect_uri: The same redirect URI the authorization request used.
        transport: The HTTP capability that sends the request.
        clock: Returns the receipt time used to compute ``expires_at``.

    Returns:
        The decoded token with ``expires_at`` set to receipt time plus
        ``expires_in``.

    Raises:
        TokenError: If *outcome* is :class:`~spotify_oauth.callback.Denied`.
            No request is sent in that case.
        TransportError: If the transport fails or the response does not
            have the token shape.
    """
    if isinstance(outcome, Denied):
        raise TokenError("callback did not contain an authorization code")

    request = TokenRequest.build(credentials, outcome.code, redirect_uri)
    logger.debug("Requesting token from %s", request.url)
    payload = await transport.fetch_token(request)

    try:
        token = Token.from_response(payload, now=clock())
    except ValidationError as exc:
        raise TransportError(
            f"Unable to decode token response: {exc.error_count()} invalid field(s)",
            cause=exc,
        ) from exc

    logger.debug(
        "Received %s token valid for %d seconds", token.token_type, token.expires_in
    )
    return token
