"""Canonical Pydantic models shared across spotify_oauth.

The models fall into two groups:

**Flow models** -- values produced and consumed by the authorization flow:
    :class:`ClientCredentials` and :class:`Token`.

**Configuration models** -- serialised as JSON in the user's config
directory: :class:`AppConfig`.

The in-memory request and callback values (``AuthorizationRequest``,
``Granted``, ``Denied``) are plain frozen dataclasses living next to the
code that builds them in :mod:`spotify_oauth.authorize` and
:mod:`spotify_oauth.callback`.
"""

from __future__ import annotations

import base64
from collections.abc import Mapping
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, SecretStr, field_validator

from spotify_oauth.scope import SpotifyScope, parse_scope_list
from spotify_oauth.util import DEFAULT_STATE_LENGTH, expiry_timestamp, now_timestamp


# --- Flow models ---


class ClientCredentials(BaseModel):
    """The Spotify application's client id and secret.

    The secret is a :class:`~pydantic.SecretStr`, so it renders as
    ``'**********'`` in ``repr``, ``str``, and log output. It only leaves
    this object through :meth:`basic_auth_value`.

    Example::

        creds = ClientCredentials(id="0000", secret="s3cr3t")
        header = f"Basic {creds.basic_auth_value()}"
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1, description="Spotify application client id")
    secret: SecretStr = Field(description="Spotify application client secret")

    def basic_auth_value(self) -> str:
        """Return ``base64(id:secret)`` for an ``Authorization: Basic`` header."""
        raw = f"{self.id}:{self.secret.get_secret_value()}"
        return base64.b64encode(raw.encode("utf-8")).decode("ascii")


class Token(BaseModel):
    """An access/refresh token pair returned by the Spotify token endpoint.

    Decoded from the JSON body of a successful token exchange. The wire
    field ``scope`` is a whitespace-separated string that is parsed into
    :attr:`scopes`; an empty, ``null`` or absent string means no scopes.

    The remaining fields are strict: a numeric string, a boolean or a
    float for ``expires_in`` (or a negative value) is a shape mismatch,
    not something to coerce.

    :attr:`expires_at` never appears on the wire. :meth:`from_response`
    computes it from :attr:`expires_in` when the response arrives and
    returns the finished, frozen token in one step.
    """

    model_config = ConfigDict(frozen=True)

    access_token: str = Field(strict=True, description="Token for subsequent Web API calls")
    token_type: str = Field(
        strict=True, description="How the access token may be used, e.g. 'Bearer'"
    )
    scopes: frozenset[SpotifyScope] = Field(
        default_factory=frozenset,
        validation_alias="scope",
        description="Scopes granted for this access token",
    )
    expires_in: int = Field(strict=True, ge=0, description="Validity window in seconds")
    expires_at: Optional[int] = Field(
        default=None, description="Unix timestamp at which the token expires"
    )
    refresh_token: str = Field(
        strict=True, description="Token used to request a new access token"
    )

    @field_validator("scopes", mode="before")
    @classmethod
    def _parse_scope_field(cls, value: Any) -> frozenset[SpotifyScope]:
        if value is None:
            return frozenset()
        if not isinstance(value, str):
            raise ValueError("scope must be a space-separated string")
        return frozenset(parse_scope_list(value))

    @classmethod
    def from_response(cls, payload: Any, now: Optional[int] = None) -> Token:
        """Decode a token endpoint response and stamp its absolute expiry.

        Args:
            payload: The decoded JSON body.
            now: Receipt time as a unix timestamp. Defaults to the current
                time.

        Raises:
            pydantic.ValidationError: If *payload* does not have the token
                shape or names an unknown scope.
        """
        if isinstance(payload, Mapping):
            payload = {k: v for k, v in payload.items() if k != "expires_at"}
        token = cls.model_validate(payload)
        return token.model_copy(
            update={"expires_at": expiry_timestamp(token.expires_in, now)}
        )

    def is_expired(self, leeway: int = 0, now: Optional[int] = None) -> bool:
        """Return whether the token expires within *leeway* seconds of *now*.

        Tokens without an ``expires_at`` are treated as expired.
        """
        if self.expires_at is None:
            return True
        if now is None:
            now = now_timestamp()
        return now + leeway >= self.expires_at

    def scope_text(self) -> str:
        """Return the granted scopes as a sorted, space-separated string."""
        return " ".join(sorted(scope.value for scope in self.scopes))


# --- Configuration models ---


class AppConfig(BaseModel):
    """User configuration persisted at ``~/.config/spotify-oauth/config.json``.

    Loaded and saved by :func:`~spotify_oauth.config.load_app_config` and
    :func:`~spotify_oauth.config.save_app_config`. Fields here have the
    lowest precedence and are overridden by environment variables and CLI
    flags. See :func:`~spotify_oauth.config.resolve_config`.
    """

    client_id_source: Optional[str] = Field(
        default=None,
        description="Credential source for the client id: env:VAR, file:/path, prompt",
    )
    client_secret_source: Optional[str] = Field(
        default=None,
        description="Credential source for the client secret: env:VAR, file:/path, prompt",
    )
    redirect_uri: Optional[str] = Field(
        default=None, description="Redirect URI registered with the Spotify application"
    )
    scopes: list[SpotifyScope] = Field(
        default_factory=list, description="Scopes requested by default"
    )
    show_dialog: bool = Field(
        default=False, description="Force the approval dialog on every login"
    )
    state_length: int = Field(
        default=DEFAULT_STATE_LENGTH, ge=1, description="Length of the generated state value"
    )
    request_timeout: float = Field(
        default=30.0, gt=0, description="Token request timeout in seconds"
    )
