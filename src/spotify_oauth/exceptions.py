"""Exception hierarchy for spotify_oauth.

All exceptions inherit from :class:`SpotifyOAuthError`, which carries an
``exit_code`` attribute mapped to a constant from
:mod:`spotify_oauth.exit_codes`. The top-level error handler in
:func:`spotify_oauth.app.main` catches ``SpotifyOAuthError`` and exits with
the appropriate code, while unexpected exceptions produce a crash log.

Subclass hierarchy::

    SpotifyOAuthError (exit 1)
    +-- ScopeParseError   (exit 2)
    +-- UrlParseError     (exit 2)
    +-- CallbackError     (exit 3)
    +-- TokenError        (exit 3)
    +-- TransportError    (exit 5 with a status code, 6 without)
    +-- ConfigError       (exit 1)

None of these messages ever contain the client secret.
"""

from __future__ import annotations

from typing import Optional

from spotify_oauth.exit_codes import (
    EXIT_AUTH_FAILURE,
    EXIT_CONNECTION_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_SERVER_ERROR,
)


class SpotifyOAuthError(Exception):
    """Base exception for all spotify_oauth errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`spotify_oauth.exit_codes`.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class ScopeParseError(SpotifyOAuthError, ValueError):
    """Raised when a string is not one of the known Spotify scopes.

    Also a :class:`ValueError` so that pydantic validators surface it as a
    regular validation failure.
    """

    exit_code = EXIT_INVALID_USAGE

    def __init__(self, token: str):
        super().__init__(f"Unknown scope: {token!r}")
        self.token = token


class UrlParseError(SpotifyOAuthError):
    """Raised when an authorization, redirect, or callback URL is malformed."""

    exit_code = EXIT_INVALID_USAGE

    def __init__(self, url: str, reason: str = "not an absolute URL"):
        super().__init__(f"Unable to parse URL {url!r}: {reason}")
        self.url = url


class CallbackError(SpotifyOAuthError):
    """Raised when a callback URL lacks the ``state`` or response parameters.

    ``str(exc)`` is exactly the validation message, e.g.
    ``"missing state parameter"``.
    """

    exit_code = EXIT_AUTH_FAILURE


class TokenError(SpotifyOAuthError):
    """Raised when a token exchange cannot proceed (no authorization code)."""

    exit_code = EXIT_AUTH_FAILURE


class TransportError(SpotifyOAuthError):
    """Raised on HTTP-level failures of the token request.

    Args:
        message: Human-readable error description.
        status_code: HTTP status of the response, when one was received.
        cause: The underlying exception (network error, JSON or shape
            decode error), when there is one.
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        cause: Optional[BaseException] = None,
    ):
        super().__init__(
            message,
            exit_code=EXIT_SERVER_ERROR if status_code is not None else EXIT_CONNECTION_ERROR,
        )
        self.status_code = status_code
        self.cause = cause


class ConfigError(SpotifyOAuthError):
    """Raised for configuration problems (invalid JSON, unresolvable credential sources)."""

    exit_code = EXIT_GENERIC_FAILURE
