"""Callback URL parsing.

After the user grants or denies access, Spotify redirects the browser to
the registered redirect URI with either ``code`` or ``error`` plus the
``state`` the request carried. :func:`parse_callback` turns that URL into
a :class:`Granted` or :class:`Denied` outcome.

Query parameters are scanned as an ordered list of ``(key, value)`` pairs;
for repeated keys the first occurrence wins. When a URL carries both
``code`` and ``error`` (Spotify never sends both) the code wins.

Example::

    outcome = parse_callback("http://localhost:8888/callback?code=NApCCgBkWtQ&state=test")
    assert outcome == Granted(code="NApCCgBkWtQ", state="test")
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Union
from urllib.parse import parse_qsl

from spotify_oauth.exceptions import CallbackError
from spotify_oauth.util import parse_absolute_url

logger = logging.getLogger(__name__)

MISSING_BOTH = "missing both state and response parameters"
MISSING_STATE = "missing state parameter"
MISSING_RESPONSE = "missing response parameter"
STATE_MISMATCH = "state parameter does not match the authorization request"


@dataclass(frozen=True)
class Granted:
    """The user approved the request; *code* can be exchanged once for a token."""

    code: str
    state: str


@dataclass(frozen=True)
class Denied:
    """The user (or Spotify) refused the request; *error* holds the reason."""

    error: str
    state: str


CallbackOutcome = Union[Granted, Denied]


def _first(pairs: list[tuple[str, str]], key: str) -> Optional[str]:
    for name, value in pairs:
        if name == key:
            return value
    return None


def parse_callback(redirect_url: str) -> CallbackOutcome:
    """Parse the redirect URL Spotify sent the browser to.

    Args:
        redirect_url: The full callback URL including its query string.

    Returns:
        :class:`Granted` when a ``code`` parameter is present, otherwise
        :class:`Denied`.

    Raises:
        UrlParseError: If *redirect_url* is not an absolute URL.
        CallbackError: If ``state`` and/or the response parameter is
            missing. The message is one of ``"missing both state and
            response parameters"``, ``"missing state parameter"`` or
            ``"missing response parameter"``.
    """
    parts = parse_absolute_url(redirect_url.strip())
    pairs = parse_qsl(parts.query, keep_blank_values=True)

    state = _first(pairs, "state")
    code = _first(pairs, "code")
    error = _first(pairs, "error")

    has_state = state is not None
    has_response = code is not None or error is not None

    if not has_state and not has_response:
        raise CallbackError(MISSING_BOTH)
    if not has_state:
        raise CallbackError(MISSING_STATE)
    if not has_response:
        raise CallbackError(MISSING_RESPONSE)

    assert state is not None  # has_state guarantees this
    if code is not None:
        logger.debug("Callback granted an authorization code")
        return Granted(code=code, state=state)

    assert error is not None  # has_response guarantees this
    logger.debug("Callback denied: %s", error)
    return Denied(error=error, state=state)


def verify_state(outcome: CallbackOutcome, expected_state: str) -> None:
    """Check that the callback echoes the state of the originating request.

    Raises:
        CallbackError: If the states differ.
    """
    if outcome.state != expected_state:
        raise CallbackError(STATE_MISMATCH)
