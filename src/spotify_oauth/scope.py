"""Spotify permission scopes.

:class:`SpotifyScope` is a closed enumeration whose values are the exact
wire strings Spotify uses, so the value table doubles as the bijective
string mapping. Parsing is case-sensitive and rejects anything outside the
table.

All scopes are listed in the `Spotify scopes guide
<https://developer.spotify.com/documentation/web-api/concepts/scopes>`_.

Example::

    >>> SpotifyScope.parse("streaming")
    <SpotifyScope.STREAMING: 'streaming'>
    >>> join([SpotifyScope.USER_READ_EMAIL, SpotifyScope.STREAMING])
    'user-read-email streaming'
"""

from __future__ import annotations

from enum import Enum
from typing import Iterable, Optional

from spotify_oauth.exceptions import ScopeParseError


class SpotifyScope(str, Enum):
    """A single Spotify authorization scope."""

    # Listening history
    USER_READ_RECENTLY_PLAYED = "user-read-recently-played"
    USER_TOP_READ = "user-top-read"
    USER_READ_PLAYBACK_POSITION = "user-read-playback-position"

    # Library
    USER_LIBRARY_MODIFY = "user-library-modify"
    USER_LIBRARY_READ = "user-library-read"

    # Playlists
    PLAYLIST_READ_PRIVATE = "playlist-read-private"
    PLAYLIST_MODIFY_PUBLIC = "playlist-modify-public"
    PLAYLIST_MODIFY_PRIVATE = "playlist-modify-private"
    PLAYLIST_READ_COLLABORATIVE = "playlist-read-collaborative"

    # Users
    USER_READ_EMAIL = "user-read-email"
    USER_READ_BIRTHDATE = "user-read-birthdate"
    USER_READ_PRIVATE = "user-read-private"

    # Spotify Connect
    USER_READ_PLAYBACK_STATE = "user-read-playback-state"
    USER_MODIFY_PLAYBACK_STATE = "user-modify-playback-state"
    USER_READ_CURRENTLY_PLAYING = "user-read-currently-playing"

    # Playback
    APP_REMOTE_CONTROL = "app-remote-control"
    STREAMING = "streaming"

    # Follow
    USER_FOLLOW_READ = "user-follow-read"
    USER_FOLLOW_MODIFY = "user-follow-modify"

    # Images
    UGC_IMAGE_UPLOAD = "ugc-image-upload"

    @classmethod
    def parse(cls, text: str) -> SpotifyScope:
        """Return the scope whose wire string is exactly *text*.

        Raises:
            ScopeParseError: If *text* is not a known scope.
        """
        try:
            return cls(text)
        except ValueError:
            raise ScopeParseError(text) from None

    def to_text(self) -> str:
        """Return the canonical wire string for this scope."""
        return self.value

    def __str__(self) -> str:
        return self.value


def join(scopes: Iterable[SpotifyScope]) -> str:
    """Serialise *scopes* as a space-separated string, preserving order.

    An empty iterable yields an empty string.
    """
    return " ".join(scope.to_text() for scope in scopes)


def parse_scope_list(text: Optional[str]) -> list[SpotifyScope]:
    """Parse a whitespace-separated scope string.

    ``None`` and blank strings yield an empty list.

    Raises:
        ScopeParseError: On the first unknown scope token.
    """
    if not text:
        return []
    return [SpotifyScope.parse(token) for token in text.split()]
