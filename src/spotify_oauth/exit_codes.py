"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~spotify_oauth.exceptions.SpotifyOAuthError` subclass.
Shell wrappers can inspect the exit code to tell a denied authorization
apart from a network failure without parsing stderr.

Example::

    $ spotify-oauth exchange "http://localhost:8888/callback?error=access_denied&state=x"
    $ echo $?
    3   # EXIT_AUTH_FAILURE -- the user denied the authorization request
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments (bad scope, malformed URL)."""

EXIT_AUTH_FAILURE = 3
"""The callback was rejected or carried no authorization code."""

EXIT_SERVER_ERROR = 5
"""The token endpoint answered with a non-success HTTP status."""

EXIT_CONNECTION_ERROR = 6
"""A network-level error occurred (timeout, DNS failure, connection refused)."""
