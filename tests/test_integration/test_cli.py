"""Integration tests for the spotify-oauth CLI.

Drives the real Typer app through ``CliRunner`` with configuration
isolated to a temp directory. The token endpoint is replaced by a stub
transport so the exchange path runs end to end without network access.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Optional
from urllib.parse import parse_qsl, urlsplit

import pytest
from typer.testing import CliRunner

from spotify_oauth import __version__
from spotify_oauth.app import app
from spotify_oauth.config import config_path, load_app_config
from spotify_oauth.exceptions import TransportError
from spotify_oauth.exchange import TokenRequest, TokenTransport
from spotify_oauth.scope import SpotifyScope


TOKEN_BODY = {
    "access_token": "A",
    "token_type": "Bearer",
    "scope": "user-read-private user-read-email",
    "expires_in": 3600,
    "refresh_token": "R",
}

CALLBACK = "http://localhost:8888/callback?code=AQD0yXvFEOvw&state=sN"


class StubTransport(TokenTransport):
    def __init__(self, payload: Any = None, error: Optional[Exception] = None) -> None:
        self.payload = payload
        self.error = error
        self.requests: list[TokenRequest] = []

    async def fetch_token(self, request: TokenRequest) -> Any:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return self.payload


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def transport(monkeypatch: pytest.MonkeyPatch) -> StubTransport:
    """Replace the httpx transport used by the flow commands."""
    stub = StubTransport(payload=TOKEN_BODY)
    monkeypatch.setattr(
        "spotify_oauth.commands.flow.HttpxTransport", lambda timeout: stub
    )
    return stub


@pytest.fixture
def opened(monkeypatch: pytest.MonkeyPatch) -> list[str]:
    """Record URLs passed to the browser instead of opening them."""
    urls: list[str] = []
    monkeypatch.setattr("spotify_oauth.commands.flow.webbrowser.open", urls.append)
    return urls


def _authorize_url(output: str) -> str:
    for line in output.splitlines():
        if line.startswith("https://accounts.spotify.com/authorize?"):
            return line
    raise AssertionError(f"no authorization URL in output:\n{output}")


class TestGlobalOptions:
    def test_version(self, runner: CliRunner) -> None:
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert f"spotify-oauth {__version__}" in result.output

    def test_no_args_shows_help(self, runner: CliRunner) -> None:
        result = runner.invoke(app, [])
        assert "authorize" in result.output
        assert "exchange" in result.output


class TestScopesCommand:
    def test_lists_every_scope(self, runner: CliRunner, isolated_config: Path) -> None:
        result = runner.invoke(app, ["--plain", "scopes"])
        assert result.exit_code == 0
        for scope in SpotifyScope:
            assert f"{scope.value}\t{scope.name}" in result.output


class TestAuthorizeCommand:
    def test_prints_url(self, runner: CliRunner, spotify_env: Path, opened: list[str]) -> None:
        result = runner.invoke(
            app,
            [
                "--plain",
                "authorize",
                "--scope",
                "user-read-email streaming",
                "--state",
                "fixed",
            ],
        )

        assert result.exit_code == 0, result.output
        url = _authorize_url(result.output)
        assert parse_qsl(urlsplit(url).query, keep_blank_values=True) == [
            ("client_id", "client-123"),
            ("response_type", "code"),
            ("redirect_uri", "http://localhost:8888/callback"),
            ("state", "fixed"),
            ("scope", "user-read-email streaming"),
            ("show_dialog", "false"),
        ]
        assert "s3cr3t-value" not in result.output
        assert opened == []

    def test_repeated_scope_options(self, runner: CliRunner, spotify_env: Path) -> None:
        result = runner.invoke(
            app, ["--plain", "authorize", "-s", "streaming", "-s", "user-top-read,user-follow-read"]
        )
        assert result.exit_code == 0, result.output
        query = dict(parse_qsl(urlsplit(_authorize_url(result.output)).query))
        assert query["scope"] == "streaming user-top-read user-follow-read"

    def test_uses_configured_scopes(self, runner: CliRunner, spotify_env: Path) -> None:
        runner.invoke(app, ["config", "set", "scopes", "user-library-read"])
        result = runner.invoke(app, ["--plain", "authorize", "--show-dialog"])
        query = dict(parse_qsl(urlsplit(_authorize_url(result.output)).query))
        assert query["scope"] == "user-library-read"
        assert query["show_dialog"] == "true"

    def test_open_launches_browser(
        self, runner: CliRunner, spotify_env: Path, opened: list[str]
    ) -> None:
        result = runner.invoke(app, ["--plain", "authorize", "--open"])
        assert result.exit_code == 0, result.output
        assert opened == [_authorize_url(result.output)]

    def test_unknown_scope(self, runner: CliRunner, spotify_env: Path) -> None:
        result = runner.invoke(app, ["--plain", "--no-color", "authorize", "-s", "bogus"])
        assert result.exit_code == 2
        assert "Unknown scope: 'bogus'" in result.output

    def test_missing_credentials(self, runner: CliRunner, isolated_config: Path) -> None:
        result = runner.invoke(app, ["--plain", "--no-color", "authorize"])
        assert result.exit_code == 1
        assert "No client id configured" in result.output

    def test_no_input_refuses_prompt_credentials(
        self, runner: CliRunner, isolated_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setattr(
            "spotify_oauth.config.getpass.getpass",
            lambda prompt: pytest.fail("prompted despite --no-input"),
        )
        runner.invoke(app, ["config", "set", "client_id_source", "prompt"])
        runner.invoke(app, ["config", "set", "client_secret_source", "prompt"])
        runner.invoke(app, ["config", "set", "redirect_uri", "http://localhost:8888/callback"])

        result = runner.invoke(app, ["--no-input", "--no-color", "authorize"])

        assert result.exit_code == 1
        assert "--no-input" in result.output

    def test_invalid_redirect_uri(self, runner: CliRunner, spotify_env: Path) -> None:
        result = runner.invoke(app, ["--plain", "authorize", "--redirect-uri", "/callback"])
        assert result.exit_code == 2


class TestExchangeCommand:
    def test_success_writes_token(
        self, runner: CliRunner, spotify_env: Path, transport: StubTransport
    ) -> None:
        out = spotify_env / "token.json"
        result = runner.invoke(app, ["-o", str(out), "exchange", CALLBACK, "--state", "sN"])

        assert result.exit_code == 0, result.output
        data = json.loads(out.read_text(encoding="utf-8"))
        assert data["access_token"] == "A"
        assert data["scope"] == "user-read-email user-read-private"
        assert data["expires_at"] >= 3600

        assert len(transport.requests) == 1
        assert transport.requests[0].form == {
            "grant_type": "authorization_code",
            "code": "AQD0yXvFEOvw",
            "redirect_uri": "http://localhost:8888/callback",
        }

    def test_missing_response_parameter(
        self, runner: CliRunner, spotify_env: Path, transport: StubTransport
    ) -> None:
        result = runner.invoke(
            app, ["--no-color", "exchange", "http://localhost:8888/callback?state=sN"]
        )
        assert result.exit_code == 3
        assert "missing response parameter" in result.output
        assert transport.requests == []

    def test_state_mismatch(
        self, runner: CliRunner, spotify_env: Path, transport: StubTransport
    ) -> None:
        result = runner.invoke(app, ["--no-color", "exchange", CALLBACK, "--state", "other"])
        assert result.exit_code == 3
        assert "state parameter does not match" in result.output
        assert transport.requests == []

    def test_denied(self, runner: CliRunner, spotify_env: Path, transport: StubTransport) -> None:
        result = runner.invoke(
            app,
            [
                "--no-color",
                "exchange",
                "http://localhost:8888/callback?error=access_denied&state=sN",
            ],
        )
        assert result.exit_code == 3
        assert "access_denied" in result.output
        assert transport.requests == []

    def test_server_rejection(
        self, runner: CliRunner, spotify_env: Path, transport: StubTransport
    ) -> None:
        transport.error = TransportError("HTTP 400: invalid_grant", status_code=400)
        result = runner.invoke(app, ["--no-color", "exchange", CALLBACK])
        assert result.exit_code == 5
        assert "invalid_grant" in result.output
        assert len(transport.requests) == 1

    def test_connection_failure(
        self, runner: CliRunner, spotify_env: Path, transport: StubTransport
    ) -> None:
        transport.error = TransportError("Token request failed: connection refused")
        result = runner.invoke(app, ["--no-color", "exchange", CALLBACK])
        assert result.exit_code == 6

    def test_malformed_callback(self, runner: CliRunner, spotify_env: Path) -> None:
        result = runner.invoke(app, ["exchange", "not a url"])
        assert result.exit_code == 2


class TestLoginCommand:
    def test_full_flow(
        self,
        runner: CliRunner,
        spotify_env: Path,
        transport: StubTransport,
        opened: list[str],
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        monkeypatch.setattr(
            "spotify_oauth.authorize.generate_random_string", lambda length: "knownstate"
        )
        out = spotify_env / "token.json"
        result = runner.invoke(
            app,
            ["-o", str(out), "login", "-s", "user-read-private"],
            input="http://localhost:8888/callback?code=c1&state=knownstate\n",
        )

        assert result.exit_code == 0, result.output
        assert len(opened) == 1
        assert "state=knownstate" in opened[0]
        assert json.loads(out.read_text(encoding="utf-8"))["refresh_token"] == "R"
        assert transport.requests[0].form["code"] == "c1"

    def test_forged_state_rejected(
        self,
        runner: CliRunner,
        spotify_env: Path,
        transport: StubTransport,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        monkeypatch.setattr(
            "spotify_oauth.authorize.generate_random_string", lambda length: "knownstate"
        )
        result = runner.invoke(
            app,
            ["--no-color", "login", "--no-browser"],
            input="http://localhost:8888/callback?code=c1&state=forged\n",
        )
        assert result.exit_code == 3
        assert transport.requests == []

    def test_no_input_refuses(self, runner: CliRunner, spotify_env: Path) -> None:
        result = runner.invoke(app, ["--no-input", "login"])
        assert result.exit_code == 2


class TestConfigCommands:
    def test_path(self, runner: CliRunner, isolated_config: Path) -> None:
        result = runner.invoke(app, ["config", "path"])
        assert result.exit_code == 0
        assert str(config_path()) in result.output

    def test_set_and_show(self, runner: CliRunner, isolated_config: Path) -> None:
        result = runner.invoke(
            app, ["config", "set", "redirect_uri", "http://localhost:8888/callback"]
        )
        assert result.exit_code == 0, result.output
        runner.invoke(app, ["config", "set", "scopes", "streaming,user-top-read"])
        runner.invoke(app, ["config", "set", "show_dialog", "true"])

        config = load_app_config()
        assert config.redirect_uri == "http://localhost:8888/callback"
        assert config.scopes == [SpotifyScope.STREAMING, SpotifyScope.USER_TOP_READ]
        assert config.show_dialog is True

        shown = runner.invoke(app, ["--json", "config", "show"])
        assert shown.exit_code == 0
        assert '"streaming"' in shown.output

    def test_set_unknown_key(self, runner: CliRunner, isolated_config: Path) -> None:
        result = runner.invoke(app, ["config", "set", "client_secret", "oops"])
        assert result.exit_code == 2
        assert not config_path().exists()

    def test_set_invalid_value(self, runner: CliRunner, isolated_config: Path) -> None:
        result = runner.invoke(app, ["config", "set", "scopes", "not-a-scope"])
        assert result.exit_code == 2

    def test_reset(self, runner: CliRunner, isolated_config: Path) -> None:
        runner.invoke(app, ["config", "set", "show_dialog", "true"])
        result = runner.invoke(app, ["config", "reset", "--force"])
        assert result.exit_code == 0
        assert load_app_config().show_dialog is False


class TestMain:
    @pytest.fixture(autouse=True)
    def _no_signal_handlers(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("spotify_oauth.app._install_interrupt_handler", lambda: None)

    def test_library_error_maps_to_exit_code(
        self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch, capsys
    ) -> None:
        from spotify_oauth import app as app_module
        from spotify_oauth.exceptions import CallbackError

        def _raise() -> None:
            raise CallbackError("missing state parameter")

        monkeypatch.setattr(app_module, "app", _raise)
        with pytest.raises(SystemExit) as exc_info:
            app_module.main()

        assert exc_info.value.code == 3
        assert "missing state parameter" in capsys.readouterr().err

    def test_unexpected_error_writes_crash_log(
        self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        from spotify_oauth import app as app_module

        def _raise() -> None:
            raise RuntimeError("boom")

        monkeypatch.setattr(app_module, "app", _raise)
        with pytest.raises(SystemExit) as exc_info:
            app_module.main()

        assert exc_info.value.code == 1
        logs = list((isolated_config / "data" / "spotify-oauth" / "logs").glob("crash-*.log"))
        assert len(logs) == 1
        assert "RuntimeError: boom" in logs[0].read_text()

    def test_keyboard_interrupt(
        self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        from spotify_oauth import app as app_module

        def _raise() -> None:
            raise KeyboardInterrupt

        monkeypatch.setattr(app_module, "app", _raise)
        with pytest.raises(SystemExit) as exc_info:
            app_module.main()

        assert exc_info.value.code == 130
