"""Terminal output for the spotify-oauth CLI.

The CLI prints three kinds of data, always on stdout so they can be piped:

* the authorization URL (and other single values such as the config path)
  as one bare line, never wrapped or decorated, so it stays copy-pasteable;
* records -- the issued token and the stored configuration -- as JSON,
  ``key<TAB>value`` lines, or a two-column Rich table;
* the scope catalogue as JSON records, tab-separated rows, or a Rich table.

Everything else (progress, warnings, errors, next-step hints, debug lines)
goes to stderr through :meth:`OutputManager.diagnostic` and the module
helpers :func:`info`, :func:`success`, :func:`warning`, :func:`error`,
:func:`suggest` and :func:`debug`.

``--output FILE`` sends the data to a file instead: records and the scope
catalogue as JSON, single values as appended lines.
"""

from __future__ import annotations

import json
import os
import sys
from collections.abc import Iterable, Mapping
from enum import Enum
from typing import Any, Optional

from rich.console import Console
from rich.table import Table
from rich.text import Text

from spotify_oauth.models import Token
from spotify_oauth.scope import SpotifyScope


class OutputFormat(str, Enum):
    """How data on stdout is rendered. ``AUTO`` picks ``RICH`` on a colour TTY."""

    AUTO = "auto"
    JSON = "json"
    PLAIN = "plain"
    RICH = "rich"


# kind -> (style, prefix, shown when quiet)
_DIAGNOSTICS: dict[str, tuple[str, str, bool]] = {
    "info": ("", "", False),
    "success": ("green", "", False),
    "warning": ("yellow", "Warning: ", True),
    "error": ("bold red", "Error: ", True),
    "suggest": ("dim", "→ ", False),
    "debug": ("dim", "[debug] ", False),
}


class OutputManager:
    """Renders CLI data on stdout and diagnostics on stderr.

    Args:
        format: Data format; ``AUTO`` resolves to ``RICH`` when stdout is a
            TTY and colour is enabled, ``PLAIN`` otherwise.
        no_color: Disable colour. ``NO_COLOR`` and ``TERM=dumb`` do the same.
        quiet: Drop info, success and suggestion messages.
        verbose: Show debug messages.
        output_file: Write data to this path instead of stdout.
    """

    def __init__(
        self,
        format: OutputFormat = OutputFormat.AUTO,
        no_color: bool = False,
        quiet: bool = False,
        verbose: bool = False,
        output_file: Optional[str] = None,
    ) -> None:
        self.no_color = no_color or _color_disabled_by_env()
        self.quiet = quiet
        self.verbose = verbose
        self.output_file = output_file

        if format is OutputFormat.AUTO:
            use_rich = _stdout_is_terminal() and not self.no_color
            format = OutputFormat.RICH if use_rich else OutputFormat.PLAIN
        self.format = format

        self._stdout = Console(
            file=sys.stdout,
            no_color=self.no_color,
            force_terminal=format is OutputFormat.RICH,
        )
        self._stderr = Console(file=sys.stderr, no_color=self.no_color, stderr=True)

    # --- data (stdout) ---

    def print_line(self, text: str) -> None:
        """Print one bare line of data, e.g. the authorization URL."""
        if self.output_file:
            with open(self.output_file, "a", encoding="utf-8") as f:
                f.write(text.rstrip("\n") + "\n")
        else:
            sys.stdout.write(text + "\n")
            sys.stdout.flush()

    def print_token(self, token: Token) -> None:
        """Print the issued token with its scopes in wire form (sorted, space-separated)."""
        record = token.model_dump(mode="json", exclude={"scopes"})
        record["scope"] = token.scope_text()
        self.print_record(record, title="Access token")

    def print_record(self, record: Mapping[str, Any], title: Optional[str] = None) -> None:
        """Print a flat mapping such as the token or the stored configuration."""
        if self.output_file or self.format is OutputFormat.JSON:
            self._emit_json(dict(record))
            return

        if self.format is OutputFormat.PLAIN:
            for key, value in record.items():
                self.print_line(f"{key}\t{_plain_value(value)}")
            return

        table = Table(title=title, show_header=False, box=None, pad_edge=False)
        table.add_column(style="bold cyan", no_wrap=True)
        table.add_column(overflow="fold")
        for key, value in record.items():
            table.add_row(key, _plain_value(value))
        self._stdout.print(table)

    def print_scopes(self, scopes: Iterable[SpotifyScope]) -> None:
        """Print the scope catalogue: wire string and member name per scope."""
        rows = [(scope.value, scope.name) for scope in scopes]

        if self.output_file or self.format is OutputFormat.JSON:
            self._emit_json([{"scope": value, "name": name} for value, name in rows])
            return

        if self.format is OutputFormat.PLAIN:
            self.print_line("Scope\tName")
            for value, name in rows:
                self.print_line(f"{value}\t{name}")
            return

        table = Table(title="Spotify scopes", header_style="bold cyan")
        table.add_column("Scope", no_wrap=True)
        table.add_column("Name", style="dim")
        for value, name in rows:
            table.add_row(value, name)
        self._stdout.print(table)

    def _emit_json(self, data: Any) -> None:
        text = json.dumps(data, indent=2, ensure_ascii=False)
        if self.output_file:
            with open(self.output_file, "w", encoding="utf-8") as f:
                f.write(text + "\n")
        else:
            self.print_line(text)

    # --- diagnostics (stderr) ---

    def diagnostic(self, kind: str, message: str) -> None:
        """Print a *kind* message (see ``_DIAGNOSTICS``) to stderr.

        Warnings and errors survive ``--quiet``; debug lines need
        ``--verbose``.
        """
        style, prefix, always = _DIAGNOSTICS[kind]
        if kind == "debug" and not self.verbose:
            return
        if self.quiet and not always:
            return

        line = f"{prefix}{message}"
        if self.no_color or not style:
            sys.stderr.write(line + "\n")
            sys.stderr.flush()
        else:
            # Text, not markup: URLs and scope lists may contain brackets.
            self._stderr.print(Text(line, style=style), soft_wrap=True)


def _plain_value(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        return " ".join(str(item) for item in value)
    return str(value)


def _stdout_is_terminal() -> bool:
    isatty = getattr(sys.stdout, "isatty", None)
    return bool(isatty and isatty())


def _color_disabled_by_env() -> bool:
    """``NO_COLOR`` (any value, even empty) or ``TERM=dumb`` disable colour."""
    return "NO_COLOR" in os.environ or os.environ.get("TERM") == "dumb"


# --- process-wide instance, installed by the root CLI callback ---

_output: Optional[OutputManager] = None


def get_output() -> OutputManager:
    global _output
    if _output is None:
        _output = OutputManager()
    return _output


def set_output(output: OutputManager) -> None:
    global _output
    _output = output


def reset_output() -> None:
    """Forget the installed manager; tests call this between CLI runs."""
    global _output
    _output = None


def info(message: str) -> None:
    get_output().diagnostic("info", message)


def success(message: str) -> None:
    get_output().diagnostic("success", message)


def warning(message: str) -> None:
    get_output().diagnostic("warning", message)


def error(message: str) -> None:
    get_output().diagnostic("error", message)


def suggest(message: str) -> None:
    get_output().diagnostic("suggest", message)


def debug(message: str) -> None:
    get_output().diagnostic("debug", message)
