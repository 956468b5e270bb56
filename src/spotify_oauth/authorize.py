"""Authorization URL construction.

:class:`AuthorizationRequest` holds everything Spotify needs to show the
consent page: the client id, the redirect target, the anti-forgery
``state`` and the requested scopes. :meth:`AuthorizationRequest.render_url`
turns it into the URL the user opens in a browser.

The request parameters follow the `Spotify authorization code guide
<https://developer.spotify.com/documentation/web-api/tutorials/code-flow>`_.

Example::

    request = AuthorizationRequest(
        credentials=ClientCredentials(id="0000", secret="s3cr3t"),
        redirect_uri="http://localhost:8888/callback",
        scopes=(SpotifyScope.STREAMING,),
    )
    webbrowser.open(request.render_url())
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable
from urllib.parse import urlencode

from spotify_oauth.models import ClientCredentials
from spotify_oauth.scope import SpotifyScope, join
from spotify_oauth.util import DEFAULT_STATE_LENGTH, generate_random_string, parse_absolute_url

AUTHORIZE_URL = "https://accounts.spotify.com/authorize"
"""Spotify's fixed authorization endpoint."""


@dataclass(frozen=True)
class AuthorizationRequest:
    """A single authorization attempt.

    Immutable once constructed. The redirect URI is validated here so that
    :meth:`render_url` never has to reject it later.

    Args:
        credentials: The application credentials. Only ``id`` is ever
            rendered into the URL.
        redirect_uri: Absolute URL Spotify redirects to after consent.
        scopes: Requested scopes, in the order they are serialised.
            Duplicates are kept as given.
        state: Anti-forgery value echoed back in the callback. Defaults to
            20 random alphanumeric characters.
        show_dialog: Force the user to approve the app again even if they
            already did.

    Raises:
        UrlParseError: If *redirect_uri* is not an absolute URL.
    """

    credentials: ClientCredentials
    redirect_uri: str
    scopes: tuple[SpotifyScope, ...] = ()
    state: str = field(default_factory=generate_random_string)
    show_dialog: bool = False
    response_type: str = field(default="code", init=False)

    def __post_init__(self) -> None:
        parse_absolute_url(self.redirect_uri)
        # Accept any iterable of scopes but store a tuple.
        object.__setattr__(self, "scopes", tuple(self.scopes))

    @classmethod
    def create(
        cls,
        credentials: ClientCredentials,
        redirect_uri: str,
        scopes: Iterable[SpotifyScope] = (),
        show_dialog: bool = False,
        state_length: int = DEFAULT_STATE_LENGTH,
    ) -> AuthorizationRequest:
        """Build a request with a freshly generated state of *state_length* characters."""
        return cls(
            credentials=credentials,
            redirect_uri=redirect_uri,
            scopes=tuple(scopes),
            state=generate_random_string(state_length),
            show_dialog=show_dialog,
        )

    @property
    def scope_text(self) -> str:
        """The scopes as the space-separated ``scope`` query value."""
        return join(self.scopes)

    def query_params(self) -> list[tuple[str, str]]:
        """Return the authorization query parameters in rendering order."""
        return [
            ("client_id", self.credentials.id),
            ("response_type", self.response_type),
            ("redirect_uri", self.redirect_uri),
            ("state", self.state),
            ("scope", self.scope_text),
            ("show_dialog", "true" if self.show_dialog else "false"),
        ]

    def render_url(self) -> str:
        """Render the authorization URL.

        Pure and deterministic: repeated calls return the same string.

        Raises:
            UrlParseError: If the authorization endpoint is not a valid URL.
        """
        parse_absolute_url(AUTHORIZE_URL)
        return f"{AUTHORIZE_URL}?{urlencode(self.query_params())}"
