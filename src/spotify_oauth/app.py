"""The ``spotify-oauth`` command line.

Registers the flow commands from :mod:`spotify_oauth.commands.flow` on the
root app and mounts the ``config`` group. :func:`main` is the console
script: library errors that escape a command exit with their own code,
Ctrl-C exits with 130, and anything else leaves a traceback in the crash
log directory instead of on the terminal.
"""

from __future__ import annotations

import logging
import signal
import sys
import traceback
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

import typer

from spotify_oauth import __version__
from spotify_oauth.commands.config import config_app
from spotify_oauth.commands.flow import (
    authorize_command,
    exchange_command,
    login_command,
    scopes_command,
)
from spotify_oauth.exceptions import SpotifyOAuthError
from spotify_oauth.exit_codes import EXIT_GENERIC_FAILURE
from spotify_oauth.output import OutputFormat, OutputManager, error, set_output

EXIT_INTERRUPTED = 130

app = typer.Typer(
    name="spotify-oauth",
    help="Get a Spotify access token through the Authorization Code flow.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)

app.command("scopes")(scopes_command)
app.command("authorize")(authorize_command)
app.command("exchange")(exchange_command)
app.command("login")(login_command)
app.add_typer(config_app, name="config", help="Inspect and edit config.json.")


def _show_version(value: bool) -> None:
    if value:
        typer.echo(f"spotify-oauth {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False, "--version", callback=_show_version, is_eager=True, help="Show version and exit."
    ),
    json_output: bool = typer.Option(False, "--json", help="Print tokens and tables as JSON."),
    plain_output: bool = typer.Option(False, "--plain", help="Print tab-separated text."),
    no_color: bool = typer.Option(False, "--no-color", help="Disable colour."),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Only print data, warnings and errors."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log each flow step to stderr."),
    no_input: bool = typer.Option(
        False, "--no-input", help="Never prompt; fail instead of asking for input."
    ),
    output_file: Optional[str] = typer.Option(
        None, "-o", "--output", help="Write the token, URL or table to this file."
    ),
) -> None:
    """Install the output manager and remember ``--no-input`` for the sub-command."""
    formats = {(True, False): OutputFormat.JSON, (False, True): OutputFormat.PLAIN}
    set_output(
        OutputManager(
            format=formats.get((json_output, plain_output), OutputFormat.AUTO),
            no_color=no_color,
            quiet=quiet,
            verbose=verbose,
            output_file=output_file,
        )
    )

    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            stream=sys.stderr,
            format="[debug] %(name)s: %(message)s",
        )
        # httpcore logs every socket event at DEBUG.
        logging.getLogger("httpcore").setLevel(logging.WARNING)

    ctx.obj = {"no_input": no_input}


def _on_interrupt(signum: Optional[int] = None, frame: Any = None) -> None:
    sys.stderr.write("\nCancelled.\n")
    sys.exit(EXIT_INTERRUPTED)


def _install_interrupt_handler() -> None:
    signal.signal(signal.SIGINT, _on_interrupt)


def _write_crash_log() -> Path:
    """Save the active traceback, with version and argv, under the data directory."""
    from spotify_oauth.config import get_data_dir

    log_dir = get_data_dir() / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)
    path = log_dir / f"crash-{datetime.now():%Y%m%d-%H%M%S}.log"
    path.write_text(
        f"spotify-oauth {__version__}\n"
        f"argv: {' '.join(sys.argv)}\n\n"
        f"{traceback.format_exc()}",
        encoding="utf-8",
    )
    return path


def main() -> None:
    """Console-script entry point; always ends in ``SystemExit``."""
    _install_interrupt_handler()
    try:
        app()
    except SpotifyOAuthError as exc:
        error(str(exc))
        sys.exit(exc.exit_code)
    except KeyboardInterrupt:
        _on_interrupt()
    except Exception:
        path = _write_crash_log()
        error(f"Unexpected error. Traceback written to {path}")
        sys.exit(EXIT_GENERIC_FAILURE)
