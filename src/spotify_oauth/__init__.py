"""spotify_oauth -- the Spotify Authorization Code flow for Python.

The package covers the client side of the flow in three steps:

1. :class:`AuthorizationRequest` renders the URL the user opens to grant
   access.
2. :func:`parse_callback` turns the URL Spotify redirects back to into a
   :class:`Granted` or :class:`Denied` outcome.
3. :func:`exchange_code` trades a granted code for a :class:`Token` with a
   single POST through a :class:`TokenTransport` (by default
   :class:`HttpxTransport`).

Typical usage::

    request = AuthorizationRequest(credentials, "http://localhost:8888/callback",
                                   scopes=(SpotifyScope.STREAMING,))
    print(request.render_url())
    outcome = parse_callback(input("Callback URL: "))
    token = await exchange_code(outcome, credentials, request.redirect_uri,
                                HttpxTransport())

Modules:
    scope: The closed set of Spotify scopes.
    authorize: Authorization URL construction.
    callback: Callback URL parsing.
    exchange: Token request construction and the transport interface.
    transport: The httpx-backed transport.
    models: Pydantic models for credentials, tokens and configuration.
    config: XDG-aware configuration and credential sources.
    exceptions: Exception hierarchy with exit-code mapping.
    app: Typer CLI entry point.
"""

__version__ = "0.3.0"

from spotify_oauth.authorize import AUTHORIZE_URL, AuthorizationRequest
from spotify_oauth.callback import CallbackOutcome, Denied, Granted, parse_callback, verify_state
from spotify_oauth.exceptions import (
    CallbackError,
    ConfigError,
    ScopeParseError,
    SpotifyOAuthError,
    TokenError,
    TransportError,
    UrlParseError,
)
from spotify_oauth.exchange import TOKEN_URL, TokenRequest, TokenTransport, exchange_code
from spotify_oauth.models import ClientCredentials, Token
from spotify_oauth.scope import SpotifyScope, join, parse_scope_list
from spotify_oauth.transport import HttpxTransport
from spotify_oauth.util import expiry_timestamp, generate_random_string

__all__ = [
    "AUTHORIZE_URL",
    "TOKEN_URL",
    "AuthorizationRequest",
    "CallbackError",
    "CallbackOutcome",
    "ClientCredentials",
    "ConfigError",
    "Denied",
    "Granted",
    "HttpxTransport",
    "ScopeParseError",
    "SpotifyOAuthError",
    "SpotifyScope",
    "Token",
    "TokenError",
    "TokenRequest",
    "TokenTransport",
    "TransportError",
    "UrlParseError",
    "exchange_code",
    "expiry_timestamp",
    "generate_random_string",
    "join",
    "parse_callback",
    "parse_scope_list",
    "verify_state",
]
