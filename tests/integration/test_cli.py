"""
Integration tests for the CLI.
"""

import json

import pytest
from click.testing import CliRunner

from aiobserver.cli import main as cli_main
from aiobserver.cli.commands import common, demo, replay
from aiobserver.config import Config


@pytest.fixture
def cli_config(tmp_path, monkeypatch):
    cfg = Config(data_dir=tmp_path / "data", storage_limit=100)
    for module in (common, demo, replay):
        monkeypatch.setattr(module, "config", cfg)
    return cfg


@pytest.fixture
def runner():
    return CliRunner()


class TestCli:
    """Test CLI commands against a temporary data directory."""

    def test_add_test_data_then_stats(self, runner, cli_config):
        result = runner.invoke(cli_main.cli, ["add-test-data"])
        assert result.exit_code == 0, result.output
        assert "Added 5 test interactions" in result.output

        result = runner.invoke(cli_main.cli, ["stats", "--format", "json"])
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["totalInteractions"] == 5
        assert data["acceptanceRate"] == 60

    def test_stats_table_when_empty(self, runner, cli_config):
        result = runner.invoke(cli_main.cli, ["stats"])
        assert result.exit_code == 0, result.output
        assert "No interactions captured yet" in result.output

    def test_list_filters_by_language(self, runner, cli_config):
        runner.invoke(cli_main.cli, ["add-test-data"])
        result = runner.invoke(cli_main.cli, ["list", "--language", "go"])
        assert result.exit_code == 0, result.output
        assert "(1 of 1)" in result.output

    def test_export_csv_and_unsupported(self, runner, cli_config, tmp_path):
        runner.invoke(cli_main.cli, ["add-test-data", "-n", "2"])

        target = tmp_path / "out.csv"
        result = runner.invoke(cli_main.cli, ["export", str(target)])
        assert result.exit_code == 0, result.output
        lines = target.read_text().split("\n")
        assert lines[0] == "ID,Timestamp,Type,Language,Accepted,Latency,Model"
        assert len(lines) == 3

        result = runner.invoke(cli_main.cli, ["export", str(tmp_path / "out.xml")])
        assert result.exit_code == 1
        assert not (tmp_path / "out.xml").exists()

    def test_clear(self, runner, cli_config):
        runner.invoke(cli_main.cli, ["add-test-data"])
        result = runner.invoke(cli_main.cli, ["clear", "--yes"])
        assert result.exit_code == 0, result.output

        assert json.loads(cli_config.storage_path.read_text()) == []

    def test_clear_declined(self, runner, cli_config):
        runner.invoke(cli_main.cli, ["add-test-data"])
        result = runner.invoke(cli_main.cli, ["clear"], input="n\n")
        assert result.exit_code == 0
        assert len(json.loads(cli_config.storage_path.read_text())) == 5

    def test_replay(self, runner, cli_config, tmp_path):
        log = tmp_path / "signals.jsonl"
        uri = "file:///w/a.py"
        log.write_text(
            "\n".join(
                [
                    json.dumps({"signal": "selection", "uri": uri, "language": "python", "text": "x", "line": 0, "character": 1, "time": 1000}),
                    json.dumps({"signal": "text", "uri": uri, "language": "python", "time": 1500,
                                "changes": [{"line": 0, "character": 1, "text": "z" * 60}]}),
                ]
            )
        )

        result = runner.invoke(cli_main.cli, ["replay", str(log)])
        assert result.exit_code == 0, result.output
        assert "captured 1 completions" in result.output
        stored = json.loads(cli_config.storage_path.read_text())
        assert stored[0]["latency"] == 500
        assert stored[0]["prompt"] == "x"
