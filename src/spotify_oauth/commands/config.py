"""Config commands -- view and modify the app configuration.

Provides the ``spotify-oauth config`` sub-command group for reading,
updating, and resetting ``config.json``
(:class:`~spotify_oauth.models.AppConfig`). The file stores credential
*sources* (``env:VAR``, ``file:/path``, ``prompt``), never the secrets
themselves.
"""

from __future__ import annotations

from typing import Any

import typer
from pydantic import ValidationError

from spotify_oauth.output import error, get_output, info, success


config_app = typer.Typer(no_args_is_help=True)


@config_app.command("show")
def config_show() -> None:
    """Show the configuration stored on disk.

    Example::

        spotify-oauth config show
        spotify-oauth --json config show
    """
    from spotify_oauth.config import config_path, load_app_config

    config = load_app_config()
    info(f"Config file: {config_path()}")
    get_output().print_record(config.model_dump(mode="json"), title="Configuration")


@config_app.command("path")
def config_show_path() -> None:
    """Print the path of the config file."""
    from spotify_oauth.config import config_path

    get_output().print_line(str(config_path()))


@config_app.command("set")
def config_set(
    key: str = typer.Argument(help="Config key, e.g. 'redirect_uri' or 'scopes'."),
    value: str = typer.Argument(help="Value to set. Scopes are space or comma separated."),
) -> None:
    """Set a configuration value.

    The value is coerced to the type of the existing field (bool, int,
    float, list, or str) and the result is validated against
    :class:`~spotify_oauth.models.AppConfig` before saving.

    Raises:
        typer.Exit: With code 2 if the key is unknown or the value fails
            validation.

    Example::

        spotify-oauth config set client_id_source env:SPOTIFY_CLIENT_ID
        spotify-oauth config set redirect_uri http://localhost:8888/callback
        spotify-oauth config set scopes "user-read-email streaming"
        spotify-oauth config set show_dialog true
    """
    from spotify_oauth.config import load_app_config, save_app_config
    from spotify_oauth.models import AppConfig

    config = load_app_config()
    data = config.model_dump(mode="json")

    if key not in data:
        error(f"Unknown config key: {key}")
        raise typer.Exit(code=2)

    coerced = _coerce(data[key], value)
    data[key] = coerced

    try:
        new_config = AppConfig.model_validate(data)
    except ValidationError as exc:
        error(f"Validation error: {exc}")
        raise typer.Exit(code=2) from None

    save_app_config(new_config)
    success(f"Set {key} = {value}")


@config_app.command("reset")
def config_reset(
    force: bool = typer.Option(False, "--force", "-f", help="Skip confirmation."),
) -> None:
    """Reset the configuration to defaults."""
    from spotify_oauth.config import save_app_config
    from spotify_oauth.models import AppConfig

    if not force:
        confirmed = typer.confirm("Reset all config to defaults?")
        if not confirmed:
            info("Cancelled.")
            raise typer.Exit()

    save_app_config(AppConfig())
    success("Configuration reset to defaults.")


def _coerce(current: Any, value: str) -> Any:
    """Coerce *value* to the type of the field's *current* value."""
    if isinstance(current, bool):
        return value.lower() in ("true", "1", "yes")
    if isinstance(current, list):
        return value.replace(",", " ").split()
    # Numeric strings are left to pydantic, which rejects non-numbers.
    return value
