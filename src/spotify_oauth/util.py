"""Clock, random, and URL helpers shared by the authorization and exchange steps."""

from __future__ import annotations

import secrets
import string
from datetime import datetime, timezone
from typing import Optional
from urllib.parse import SplitResult, urlsplit

from spotify_oauth.exceptions import UrlParseError

_STATE_ALPHABET = string.ascii_letters + string.digits

DEFAULT_STATE_LENGTH = 20


def now_timestamp() -> int:
    """Return the current UTC time as whole unix seconds."""
    return int(datetime.now(timezone.utc).timestamp())


def expiry_timestamp(expires_in: int, now: Optional[int] = None) -> int:
    """Return the unix timestamp *expires_in* seconds after *now*.

    Args:
        expires_in: Validity window in seconds.
        now: Reference unix timestamp. Defaults to :func:`now_timestamp`.
    """
    if now is None:
        now = now_timestamp()
    return now + expires_in


def generate_random_string(length: int = DEFAULT_STATE_LENGTH) -> str:
    """Generate a random alphanumeric string of *length* characters."""
    if length < 1:
        raise ValueError("length must be at least 1")
    return "".join(secrets.choice(_STATE_ALPHABET) for _ in range(length))


def parse_absolute_url(url: str) -> SplitResult:
    """Split *url* and require it to carry both a scheme and a host.

    Raises:
        UrlParseError: If *url* is not an absolute URL.
    """
    try:
        parts = urlsplit(url)
        # Accessing the port validates it; urlsplit defers that check.
        parts.port
    except ValueError as exc:
        raise UrlParseError(url, str(exc)) from exc
    if not parts.scheme or not parts.netloc:
        raise UrlParseError(url)
    return parts
