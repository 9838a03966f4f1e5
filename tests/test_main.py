"""Tests for the command-line interface."""

import json
import logging
from unittest.mock import patch

import pytest

from fuelflow import __version__
from fuelflow.main import build_parser, main


@pytest.fixture
def backend(user_payload):
    """Patch the HTTP client so commands never reach a server."""
    with patch("fuelflow.api.client.BackendClient.login", return_value=user_payload) as login, \
            patch("fuelflow.api.client.BackendClient.get_station",
                  return_value={"id": "1", "name": "Main Station", "defaultCurrency": "GBP"}):
        yield login


class TestParser:
    """Test argument parsing."""

    def test_no_command(self):
        assert build_parser().parse_args([]).command is None

    def test_format_options(self):
        args = build_parser().parse_args(["format", "12.5", "-c", "usd", "--compact"])
        assert args.amount == "12.5"
        assert args.currency == "usd"
        assert args.compact is True


class TestCommands:
    """Test commands end to end against a patched backend."""

    def test_version(self, capsys):
        assert main(["--version"]) == 0
        assert __version__ in capsys.readouterr().out

    def test_format_with_currency(self, isolated_config, capsys):
        assert main(["format", "1234.5", "--currency", "usd"]) == 0
        assert "$1,234.50" in capsys.readouterr().out

    def test_format_compact(self, isolated_config, capsys):
        assert main(["format", "250000", "-c", "PKR", "--compact"]) == 0
        assert "Rs.2.5L" in capsys.readouterr().out

    def test_format_unknown_currency(self, isolated_config):
        assert main(["format", "1", "--currency", "XYZ"]) == 2

    def test_parse(self, isolated_config, capsys):
        assert main(["parse", "Rs.1,234.56"]) == 0
        assert "1234.56" in capsys.readouterr().out

    def test_parse_with_locale(self, isolated_config, capsys):
        assert main(["parse", "1.234,56 €", "--currency", "eur"]) == 0
        assert "1234.56" in capsys.readouterr().out

    def test_currencies(self, isolated_config, capsys):
        assert main(["currencies"]) == 0
        assert "Saudi Riyal" in capsys.readouterr().out

    def test_whoami_logged_out(self, isolated_config, backend):
        assert main(["whoami"]) == 1

    def test_login_whoami_logout(self, isolated_config, backend, capsys):
        assert main(["login", "admin", "--password", "admin123"]) == 0
        backend.assert_called_once_with("admin", "admin123")
        assert "Station Admin" in capsys.readouterr().out

        assert main(["whoami"]) == 0
        out = capsys.readouterr().out
        assert "admin" in out
        assert "GBP" in out

        assert main(["format", "10"]) == 0
        assert "£10.00" in capsys.readouterr().out

        assert main(["logout"]) == 0
        assert main(["whoami"]) == 1

    def test_login_rejected(self, isolated_config, backend):
        from fuelflow.errors import APIError

        backend.side_effect = APIError("401 Invalid credentials", status_code=401)
        assert main(["login", "admin", "--password", "wrong"]) == 1

    def test_audit_log_written(self, isolated_config, backend):
        main(["login", "admin", "--password", "admin123"])
        audit_log = isolated_config / "logs" / "audit.log"
        assert audit_log.exists()
        assert "admin123" not in audit_log.read_text()

    def test_format_very_large_amount(self, isolated_config, capsys):
        assert main(["format", "1e30", "--currency", "USD"]) == 0
        assert "$1,000,000,000" in capsys.readouterr().out

    def test_debug_shows_error_details(self, isolated_config, backend, monkeypatch, capsys):
        from fuelflow.errors import APIError

        fuelflow_logger = logging.getLogger("fuelflow")
        monkeypatch.setattr(fuelflow_logger, "handlers", [])
        monkeypatch.setattr(fuelflow_logger, "level", fuelflow_logger.level)
        monkeypatch.setenv("FUELFLOW_DEBUG", "")

        backend.side_effect = APIError("401 Invalid credentials", status_code=401)
        assert main(["--debug", "login", "admin", "--password", "wrong"]) == 1

        out = capsys.readouterr().out
        assert "Invalid credentials" in out
        assert "[MEDIUM] auth: login" in out

    def test_errors_are_audited(self, isolated_config, backend):
        from fuelflow.errors import APIError

        backend.side_effect = APIError("401 Invalid credentials", status_code=401)
        main(["login", "admin", "--password", "wrong"])

        entries = [json.loads(line) for line in
                   (isolated_config / "logs" / "audit.log").read_text().splitlines()]
        assert [e["action_type"] for e in entries] == ["login_failed", "error"]
        assert entries[-1]["success"] is False
