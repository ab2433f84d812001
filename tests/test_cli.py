"""Tests for the command-line interface."""

from uuid import uuid4

from typer.testing import CliRunner

from blueprint_engine import __version__
from blueprint_engine.cli import app

runner = CliRunner()


def test_version() -> None:
    result = runner.invoke(app, ["--version"])

    assert result.exit_code == 0
    assert __version__ in result.output


def test_init_db_then_process_once() -> None:
    assert runner.invoke(app, ["init-db"]).exit_code == 0

    result = runner.invoke(app, ["process-once"])

    assert result.exit_code == 0


def test_status_of_unknown_blueprint() -> None:
    runner.invoke(app, ["init-db"])

    result = runner.invoke(app, ["status", str(uuid4())])

    assert result.exit_code == 1
    assert "not found" in result.output


def test_status_rejects_bad_id() -> None:
    result = runner.invoke(app, ["status", "not-a-uuid"])

    assert result.exit_code == 1
    assert "Invalid blueprint ID" in result.output
