"""Authorization flow commands.

Implements the top-level commands that drive the Spotify Authorization
Code flow:

* ``spotify-oauth scopes`` -- list every known scope.
* ``spotify-oauth authorize`` -- print (and optionally open) the
  authorization URL.
* ``spotify-oauth exchange CALLBACK_URL`` -- turn a callback URL into a
  token.
* ``spotify-oauth login`` -- the whole flow interactively: open the
  browser, read the pasted callback URL, verify ``state``, exchange.

Library errors are reported on stderr and mapped to their exit codes.
"""

from __future__ import annotations

import asyncio
import webbrowser
from dataclasses import replace
from typing import Optional

import typer

from spotify_oauth.authorize import AuthorizationRequest
from spotify_oauth.callback import CallbackOutcome, Denied, parse_callback, verify_state
from spotify_oauth.config import load_credentials, require_redirect_uri, resolve_config
from spotify_oauth.exceptions import SpotifyOAuthError
from spotify_oauth.exchange import exchange_code
from spotify_oauth.models import AppConfig, ClientCredentials, Token
from spotify_oauth.output import debug, error, get_output, info, success, suggest, warning
from spotify_oauth.scope import SpotifyScope, parse_scope_list
from spotify_oauth.transport import HttpxTransport


def _fail(exc: SpotifyOAuthError) -> typer.Exit:
    """Report *exc* on stderr and build the matching ``typer.Exit``."""
    error(str(exc))
    return typer.Exit(code=exc.exit_code)


def _no_input(ctx: typer.Context) -> bool:
    return bool(ctx.obj and ctx.obj.get("no_input"))


def _parse_scope_options(values: Optional[list[str]]) -> Optional[list[SpotifyScope]]:
    """Parse repeated ``--scope`` values, each space or comma separated."""
    if not values:
        return None
    scopes: list[SpotifyScope] = []
    for value in values:
        scopes.extend(parse_scope_list(value.replace(",", " ")))
    return scopes


def _run_exchange(
    outcome: CallbackOutcome,
    credentials: ClientCredentials,
    redirect_uri: str,
    config: AppConfig,
) -> Token:
    if isinstance(outcome, Denied):
        warning(f"Spotify denied the authorization request: {outcome.error}")
    transport = HttpxTransport(timeout=config.request_timeout)
    return asyncio.run(
        exchange_code(outcome, credentials, redirect_uri, transport)
    )


def scopes_command() -> None:
    """List every Spotify scope.

    Example::

        spotify-oauth scopes
        spotify-oauth --json scopes
    """
    get_output().print_scopes(SpotifyScope)


def authorize_command(
    ctx: typer.Context,
    scope: Optional[list[str]] = typer.Option(
        None, "--scope", "-s", help="Scope to request (repeatable, or space/comma separated)."
    ),
    redirect_uri: Optional[str] = typer.Option(
        None, "--redirect-uri", help="Override the configured redirect URI."
    ),
    state: Optional[str] = typer.Option(
        None, "--state", help="Use this state value instead of a random one."
    ),
    show_dialog: Optional[bool] = typer.Option(
        None, "--show-dialog/--no-show-dialog", help="Force the approval dialog."
    ),
    open_browser: bool = typer.Option(
        False, "--open", help="Open the URL in the default browser."
    ),
) -> None:
    """Print the Spotify authorization URL.

    The URL goes to stdout; the generated state goes to stderr so it can
    be checked against the callback later with ``exchange --state``.

    Example::

        spotify-oauth authorize --scope user-read-email --scope streaming
        spotify-oauth authorize --open
    """
    try:
        config = resolve_config(
            cli_redirect_uri=redirect_uri,
            cli_scopes=_parse_scope_options(scope),
            cli_show_dialog=show_dialog,
        )
        credentials = load_credentials(config, no_input=_no_input(ctx))
        request = AuthorizationRequest.create(
            credentials,
            require_redirect_uri(config),
            config.scopes,
            show_dialog=config.show_dialog,
            state_length=config.state_length,
        )
        if state is not None:
            request = replace(request, state=state)
        url = request.render_url()
    except SpotifyOAuthError as exc:
        raise _fail(exc) from None

    get_output().print_line(url)
    info(f"State: {request.state}")
    if open_browser:
        debug("Opening authorization URL in the default browser")
        webbrowser.open(url)
    suggest(f"After approving, run: spotify-oauth exchange '<callback url>' --state {request.state}")


def exchange_command(
    ctx: typer.Context,
    callback_url: str = typer.Argument(help="The full URL Spotify redirected to."),
    redirect_uri: Optional[str] = typer.Option(
        None, "--redirect-uri", help="Override the configured redirect URI."
    ),
    state: Optional[str] = typer.Option(
        None, "--state", help="Reject the callback unless it echoes this state."
    ),
) -> None:
    """Exchange a callback URL for an access token.

    Example::

        spotify-oauth exchange "http://localhost:8888/callback?code=AQD...&state=sN"
    """
    try:
        config = resolve_config(cli_redirect_uri=redirect_uri)
        outcome = parse_callback(callback_url)
        if state is not None:
            verify_state(outcome, state)
        credentials = load_credentials(config, no_input=_no_input(ctx))
        token = _run_exchange(outcome, credentials, require_redirect_uri(config), config)
    except SpotifyOAuthError as exc:
        raise _fail(exc) from None

    success("Token received.")
    get_output().print_token(token)


def login_command(
    ctx: typer.Context,
    scope: Optional[list[str]] = typer.Option(
        None, "--scope", "-s", help="Scope to request (repeatable, or space/comma separated)."
    ),
    redirect_uri: Optional[str] = typer.Option(
        None, "--redirect-uri", help="Override the configured redirect URI."
    ),
    show_dialog: Optional[bool] = typer.Option(
        None, "--show-dialog/--no-show-dialog", help="Force the approval dialog."
    ),
    no_browser: bool = typer.Option(
        False, "--no-browser", help="Print the URL instead of opening a browser."
    ),
) -> None:
    """Run the full authorization flow interactively.

    Opens the authorization URL, asks for the URL the browser was
    redirected to, checks that it echoes the generated state, and
    exchanges the code for a token.

    Example::

        spotify-oauth login --scope user-read-private --scope user-read-email
    """
    if _no_input(ctx):
        error("login needs to prompt for the callback URL; use 'authorize' and 'exchange' instead.")
        raise typer.Exit(code=2)

    try:
        config = resolve_config(
            cli_redirect_uri=redirect_uri,
            cli_scopes=_parse_scope_options(scope),
            cli_show_dialog=show_dialog,
        )
        credentials = load_credentials(config)
        request = AuthorizationRequest.create(
            credentials,
            require_redirect_uri(config),
            config.scopes,
            show_dialog=config.show_dialog,
            state_length=config.state_length,
        )
        url = request.render_url()
    except SpotifyOAuthError as exc:
        raise _fail(exc) from None

    info("Open this URL to authorize the application:")
    info(url)
    if not no_browser:
        webbrowser.open(url)

    callback_url = typer.prompt("Callback URL")

    try:
        outcome = parse_callback(callback_url)
        verify_state(outcome, request.state)
        token = _run_exchange(outcome, credentials, request.redirect_uri, config)
    except SpotifyOAuthError as exc:
        raise _fail(exc) from None

    success("Token received.")
    get_output().print_token(token)
