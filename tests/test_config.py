"""Tests for settings loading."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from tradelog.cli import apply_args_to_settings, parse_args
from tradelog.config import AuditConfig, Settings


def test_defaults(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    settings = Settings()

    assert settings.storage.path == Path("tradelog.db")
    assert settings.audit.max_trades == 200
    assert settings.audit.default_last_n == 20
    assert settings.audit.streak_threshold == 3
    assert settings.audit.milestone_every == 10
    assert settings.audit.dismiss_window == 10
    assert settings.export.decimal_separator == ","
    assert settings.export.thousands_separator == "."
    assert settings.journal.default_initial_capital == 0


def test_environment_overrides(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("TRADELOG_AUDIT__MAX_TRADES", "50")
    monkeypatch.setenv("TRADELOG_STORAGE__PATH", "/tmp/journal.db")

    settings = Settings()

    assert settings.audit.max_trades == 50
    assert settings.storage.path == Path("/tmp/journal.db")


def test_invalid_audit_limits():
    with pytest.raises(ValidationError):
        AuditConfig(milestone_every=0)


def test_cli_flags_override_settings(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    args = parse_args(["--db", "other.db", "--log-level", "DEBUG", "metrics"])
    settings = apply_args_to_settings(args, Settings())

    assert settings.storage.path == Path("other.db")
    assert settings.logging.level == "DEBUG"


def test_cli_filter_flags():
    args = parse_args(["list", "--asset", "btc", "--outcome", "win", "--id", "2-4"])

    assert args.command == "list"
    assert args.asset == "btc"
    assert args.outcome == "win"
    assert args.trade_id == "2-4"
