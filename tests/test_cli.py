"""Tests for CLI entry point."""

import pytest

from testomat_reporter import cli
from testomat_reporter.cli import main, parse_args

from conftest import BASE_PATH


@pytest.fixture
def cli_env(clean_env, fake_api_client):
    """Enabled configuration with the CLI's client wired to the fake API."""
    clean_env.setenv("TESTOMATIO", "test-key")
    clean_env.setattr(cli, "TestomatApiClient", fake_api_client)
    return clean_env


class TestParseArgs:
    """Tests for argument parsing."""

    def test_start_defaults(self):
        args = parse_args(["start"])

        assert args.command == "start"
        assert args.title is None
        assert args.verbose is False

    def test_start_title(self):
        args = parse_args(["start", "--title", "Nightly"])
        assert args.title == "Nightly"

    def test_start_title_short_flag(self):
        args = parse_args(["start", "-t", "Nightly"])
        assert args.title == "Nightly"

    def test_finish_requires_uid(self):
        with pytest.raises(SystemExit):
            parse_args(["finish"])

    def test_finish_duration(self):
        args = parse_args(["finish", "abc", "--duration", "12.5"])

        assert args.run_uid == "abc"
        assert args.duration == 12.5

    def test_command_is_required(self):
        with pytest.raises(SystemExit):
            parse_args([])


class TestStart:
    """Tests for the start command."""

    def test_prints_uid(self, cli_env, api, capsys):
        exit_code = main(["start", "--title", "Nightly"])

        assert exit_code == 0
        assert capsys.readouterr().out.strip() == "abc"
        assert api.bodies() == [{"title": "Nightly"}]

    def test_title_from_environment(self, cli_env, api):
        cli_env.setenv("TESTOMATIO_TITLE", "From CI")

        main(["start"])

        assert api.bodies() == [{"title": "From CI"}]

    def test_missing_uid(self, cli_env, api, capsys):
        api.respond("POST", BASE_PATH, 200, {"status": "ok"})

        assert main(["start"]) == 1
        assert "did not return a run uid" in capsys.readouterr().err

    def test_api_error(self, cli_env, api, capsys):
        api.respond("POST", BASE_PATH, 401, {"message": "invalid key"})

        assert main(["start"]) == 1
        assert "Testomat.io error" in capsys.readouterr().err


class TestFinish:
    """Tests for the finish command."""

    def test_puts_finish_event(self, cli_env, api):
        exit_code = main(["finish", "abc", "--duration", "120"])

        assert exit_code == 0
        assert api.calls() == [("PUT", f"{BASE_PATH}/abc")]
        assert api.bodies() == [{"status_event": "finish", "duration": 120.0}]

    def test_negative_duration(self, cli_env, api):
        assert main(["finish", "abc", "--duration", "-1"]) == 2
        assert api.requests == []


class TestConfiguration:
    """Configuration problems are usage errors."""

    def test_missing_api_key(self, clean_env, capsys):
        assert main(["start"]) == 2
        assert "TESTOMATIO is not set" in capsys.readouterr().err

    def test_invalid_configuration(self, cli_env, capsys):
        cli_env.setenv("TESTOMATIO_TIMEOUT", "soon")

        assert main(["start"]) == 2
        assert "Configuration error" in capsys.readouterr().err
