"""
Tests for the command line interface (src/cli.py)
"""

import json

import pytest

from cli import __version__, main


@pytest.fixture
def clean_env(monkeypatch):
    for name in ("ROYALTY_MIN_RATE", "ROYALTY_MAX_RATE", "ROYALTY_MAX_AGREEMENTS", "ROYALTY_AUTHORITY"):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestInfo:

    def test_info_json(self, clean_env, capsys):
        assert main(["info", "--json"]) == 0

        config = json.loads(capsys.readouterr().out)
        assert config["min_rate"] == 100
        assert config["max_agreements"] == 1000

    def test_info_text(self, clean_env, capsys):
        assert main(["info"]) == 0

        out = capsys.readouterr().out
        assert __version__ in out
        assert "payment_asset" in out

    def test_info_bad_config(self, clean_env, capsys):
        clean_env.setenv("ROYALTY_MAX_RATE", "lots")

        assert main(["info"]) == 1
        assert "ROYALTY_MAX_RATE" in capsys.readouterr().out


class TestCheck:

    def test_check_passes(self, clean_env, capsys):
        assert main(["check"]) == 0
        assert "All checks passed!" in capsys.readouterr().out

    def test_check_reports_bad_config(self, clean_env, capsys):
        clean_env.setenv("ROYALTY_MIN_RATE", "5000")

        assert main(["check"]) == 1
        assert "Configuration: FAIL" in capsys.readouterr().out


class TestServe:

    @pytest.fixture
    def served(self, clean_env, monkeypatch):
        """Capture Flask.run instead of binding a socket."""
        import flask
        import monitoring

        calls = {}
        monkeypatch.setattr(flask.Flask, "run", lambda app, **kwargs: calls.update(run=kwargs))
        monkeypatch.setattr(monitoring, "configure_logging", lambda **kwargs: calls.update(logging=kwargs))
        for name in ("HOST", "PORT", "FLASK_DEBUG", "LOG_LEVEL"):
            monkeypatch.delenv(name, raising=False)
        return calls

    def test_serve_defaults(self, served, capsys):
        assert main(["serve"]) == 0

        assert served["run"] == {"host": "0.0.0.0", "port": 5000, "debug": False}
        assert served["logging"] == {"level": "INFO"}
        assert "0.0.0.0:5000" in capsys.readouterr().out

    def test_serve_arguments(self, served):
        assert main(["serve", "--host", "127.0.0.1", "--port", "8080", "--debug"]) == 0

        assert served["run"] == {"host": "127.0.0.1", "port": 8080, "debug": True}

    def test_serve_env(self, served, monkeypatch):
        monkeypatch.setenv("PORT", "9000")
        monkeypatch.setenv("FLASK_DEBUG", "true")
        monkeypatch.setenv("LOG_LEVEL", "DEBUG")

        assert main(["serve"]) == 0

        assert served["run"]["port"] == 9000
        assert served["run"]["debug"] is True
        assert served["logging"] == {"level": "DEBUG"}


class TestParser:

    def test_no_command_prints_help(self, capsys):
        assert main([]) == 1
        assert "usage" in capsys.readouterr().out

    def test_version(self, capsys):
        with pytest.raises(SystemExit):
            main(["--version"])
        assert __version__ in capsys.readouterr().out
