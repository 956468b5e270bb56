"""Configuration management with XDG paths, atomic writes, and precedence resolution.

This module handles all persistent configuration for spotify_oauth:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.spotify-oauth/`` on macOS and Windows. See :func:`get_config_dir`
  and :func:`get_data_dir`.
* **App config** -- A single :class:`~spotify_oauth.models.AppConfig` JSON
  file storing credential sources, the redirect URI and default scopes.
* **Precedence resolution** -- :func:`resolve_config` merges CLI flags,
  the ``SPOTIFY_*`` environment variables and the config file.
* **Credential resolution** -- :func:`resolve_credential` reads secrets
  from env vars, files, or interactive prompts, and
  :func:`load_credentials` turns them into
  :class:`~spotify_oauth.models.ClientCredentials`.

All file writes use an atomic temp-file-then-rename strategy
(:func:`_atomic_write`).
"""

from __future__ import annotations

import getpass
import json
import os
import platform
import sys
import tempfile
from pathlib import Path
from typing import Iterable, Optional

from pydantic import ValidationError

from spotify_oauth.exceptions import ConfigError
from spotify_oauth.models import AppConfig, ClientCredentials
from spotify_oauth.scope import SpotifyScope

_APP_NAME = "spotify-oauth"
_CONFIG_FILENAME = "config.json"

ENV_CLIENT_ID = "SPOTIFY_CLIENT_ID"
ENV_CLIENT_SECRET = "SPOTIFY_CLIENT_SECRET"
ENV_REDIRECT_URI = "SPOTIFY_REDIRECT_URI"


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG Base Directory spec (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def _fallback_base_dir() -> Path:
    """Fallback base directory for non-XDG platforms (macOS, Windows)."""
    return Path.home() / f".{_APP_NAME}"


def _xdg_base(env_var: str, default_segments: tuple[str, ...]) -> Path:
    """Resolve an XDG base directory from an env var with fallback segments under $HOME."""
    env_value = os.environ.get(env_var, "")
    if env_value:
        return Path(env_value)
    base = Path.home()
    for seg in default_segments:
        base = base / seg
    return base


def get_config_dir() -> Path:
    """Return the configuration directory, creating it if necessary.

    On Linux/BSD: ``$XDG_CONFIG_HOME/spotify-oauth/`` (default
    ``~/.config/spotify-oauth/``). On macOS/Windows: ``~/.spotify-oauth/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CONFIG_HOME", (".config",)) / _APP_NAME
    else:
        path = _fallback_base_dir()
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_data_dir() -> Path:
    """Return the data directory (crash logs), creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/spotify-oauth/`` (default
    ``~/.local/share/spotify-oauth/``). On macOS/Windows:
    ``~/.spotify-oauth/logs/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_DATA_HOME", (".local", "share")) / _APP_NAME
    else:
        path = _fallback_base_dir() / "logs"
    path.mkdir(parents=True, exist_ok=True)
    return path


# --- Atomic file writes ---


def _atomic_write(path: Path, data: str) -> None:
    """Write data to file atomically using temp file + rename.

    The temporary file is created in the same directory as *path* so that
    ``os.replace`` is an atomic rename on POSIX systems. On any failure the
    temp file is removed.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    fd = None
    tmp_path: Optional[str] = None
    try:
        fd = tempfile.NamedTemporaryFile(
            mode="w",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
            encoding="utf-8",
        )
        tmp_path = fd.name
        # The file may name credential sources; keep it private.
        os.chmod(tmp_path, 0o600)
        fd.write(data)
        fd.flush()
        os.fsync(fd.fileno())
        fd.close()
        fd = None
        os.replace(tmp_path, path)
    except BaseException:
        if fd is not None:
            fd.close()
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
        raise


# --- App config ---


def config_path() -> Path:
    """Path to the app config file."""
    return get_config_dir() / _CONFIG_FILENAME


def load_app_config() -> AppConfig:
    """Load the app configuration from the config directory.

    Returns:
        The deserialised :class:`~spotify_oauth.models.AppConfig`, or a
        default instance if the file does not exist.

    Raises:
        ConfigError: If the file contains invalid JSON or fails validation.
    """
    path = config_path()
    if not path.is_file():
        return AppConfig()
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        return AppConfig.model_validate(data)
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigError(f"Invalid config at {path}: {exc}") from exc


def save_app_config(config: AppConfig) -> None:
    """Persist the app configuration atomically to disk."""
    data = config.model_dump(mode="json")
    _atomic_write(config_path(), json.dumps(data, indent=2) + "\n")


# --- Precedence resolution ---


def resolve_config(
    cli_redirect_uri: Optional[str] = None,
    cli_scopes: Optional[Iterable[SpotifyScope]] = None,
    cli_show_dialog: Optional[bool] = None,
) -> AppConfig:
    """Resolve the effective configuration.

    Precedence (high to low):
        1. CLI flags
        2. Environment variables (``SPOTIFY_CLIENT_ID``,
           ``SPOTIFY_CLIENT_SECRET``, ``SPOTIFY_REDIRECT_URI``)
        3. ``config.json``
        4. Defaults

    Returns:
        A fresh :class:`~spotify_oauth.models.AppConfig`; the file on disk
        is not modified.
    """
    config = load_app_config()

    if os.environ.get(ENV_CLIENT_ID):
        config.client_id_source = f"env:{ENV_CLIENT_ID}"
    if os.environ.get(ENV_CLIENT_SECRET):
        config.client_secret_source = f"env:{ENV_CLIENT_SECRET}"
    env_redirect_uri = os.environ.get(ENV_REDIRECT_URI)
    if env_redirect_uri:
        config.redirect_uri = env_redirect_uri

    if cli_redirect_uri is not None:
        config.redirect_uri = cli_redirect_uri
    if cli_scopes is not None:
        scopes = list(cli_scopes)
        if scopes:
            config.scopes = scopes
    if cli_show_dialog is not None:
        config.show_dialog = cli_show_dialog

    return config


def require_redirect_uri(config: AppConfig) -> str:
    """Return the configured redirect URI.

    Raises:
        ConfigError: If no redirect URI is configured anywhere.
    """
    if not config.redirect_uri:
        raise ConfigError(
            f"No redirect URI configured. Set {ENV_REDIRECT_URI}, pass "
            "--redirect-uri, or run: spotify-oauth config set redirect_uri <url>"
        )
    return config.redirect_uri


# --- Credential source resolution ---


def resolve_credential(source: str, label: str = "Credential", no_input: bool = False) -> str:
    """Resolve a credential from its source descriptor.

    Supported formats:
        - ``"env:VAR_NAME"`` -- reads ``os.environ["VAR_NAME"]``
        - ``"file:/path/to/file"`` -- reads file content, stripped of whitespace
        - ``"prompt"`` -- asks for *label* interactively (requires a TTY and
          prompting to be allowed)

    Raises:
        ConfigError: If the source can't be resolved.
    """
    if source.startswith("env:"):
        var_name = source[4:]
        value = os.environ.get(var_name)
        if value is None:
            raise ConfigError(
                f"Environment variable '{var_name}' is not set (source: {source})"
            )
        return value

    if source.startswith("file:"):
        path = Path(source[5:]).expanduser()
        if not path.is_file():
            raise ConfigError(f"Credential file not found: {path} (source: {source})")
        try:
            return path.read_text(encoding="utf-8").strip()
        except OSError as exc:
            raise ConfigError(f"Cannot read credential file {path}: {exc}") from exc

    if source == "prompt":
        if no_input:
            raise ConfigError(
                f"{label} is set to 'prompt' but prompts are disabled by --no-input"
            )
        if not sys.stdin.isatty():
            raise ConfigError(
                f"Cannot prompt for {label.lower()}: stdin is not a TTY (source: prompt)"
            )
        return getpass.getpass(f"{label}: ")

    raise ConfigError(f"Unknown credential source format: {source}")


def load_credentials(config: AppConfig, no_input: bool = False) -> ClientCredentials:
    """Resolve the client id and secret named by *config*.

    Args:
        config: The resolved configuration.
        no_input: Refuse ``prompt`` sources instead of asking on the terminal.

    Raises:
        ConfigError: If either source is missing, cannot be resolved, or
            yields an empty client id.
    """
    if not config.client_id_source:
        raise ConfigError(
            f"No client id configured. Set {ENV_CLIENT_ID} or run: "
            "spotify-oauth config set client_id_source env:VAR"
        )
    if not config.client_secret_source:
        raise ConfigError(
            f"No client secret configured. Set {ENV_CLIENT_SECRET} or run: "
            "spotify-oauth config set client_secret_source env:VAR"
        )

    client_id = resolve_credential(config.client_id_source, "Client id", no_input)
    client_secret = resolve_credential(config.client_secret_source, "Client secret", no_input)
    try:
        return ClientCredentials(id=client_id, secret=client_secret)
    except ValidationError as exc:
        raise ConfigError("Client id must not be empty") from exc
