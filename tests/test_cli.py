"""Tests for the click CLI."""

import pytest
from click.testing import CliRunner


@pytest.fixture
def cli_env(settings, monkeypatch):
    """Point the CLI at the temp settings and keep logging untouched."""
    monkeypatch.setattr("cli.main.get_settings", lambda: settings)
    monkeypatch.setattr("cli.main.setup_logging", lambda **kwargs: None)
    return settings


@pytest.fixture
def runner():
    return CliRunner()


class TestScheduleInfo:
    def test_prints_cron_line(self, runner, cli_env):
        from cli.main import cli
        result = runner.invoke(cli, ["schedule-info"])
        assert result.exit_code == 0
        assert "CRON_TZ=UTC" in result.output
        assert "0 9 * * * eduforge start --defaults" in result.output


class TestStatus:
    def test_unknown_run(self, runner, cli_env):
        from cli.main import cli
        result = runner.invoke(cli, ["status", "edu-missing"])
        assert result.exit_code == 1
        assert "No progress found for workflow edu-missing" in result.output

    def test_known_run(self, runner, cli_env, initialized_store):
        from models.enums import RunOutcome
        initialized_store.fail("run-1", "Content not approved", outcome=RunOutcome.REJECTED)

        from cli.main import cli
        result = runner.invoke(cli, ["status", "run-1"])
        assert result.exit_code == 0
        assert "Python" in result.output
        assert "rejected" in result.output
        assert "Content not approved" in result.output


class TestRuns:
    def test_empty(self, runner, cli_env):
        from cli.main import cli
        result = runner.invoke(cli, ["runs"])
        assert result.exit_code == 0
        assert "No runs yet" in result.output

    def test_lists_runs(self, runner, cli_env, initialized_store):
        from cli.main import cli
        result = runner.invoke(cli, ["runs"])
        assert result.exit_code == 0
        assert "run-1" in result.output

    def test_status_filter(self, runner, cli_env, initialized_store):
        from cli.main import cli
        result = runner.invoke(cli, ["runs", "--status", "completed"])
        assert "No runs yet" in result.output


class TestStart:
    def test_defaults_run_generates_book(self, runner, cli_env, stub_agents, monkeypatch):
        monkeypatch.setattr("workflow.graph.PipelineAgents.from_settings", lambda settings: stub_agents)

        from cli.main import cli
        result = runner.invoke(cli, ["start", "--defaults", "--no-research"])

        assert result.exit_code == 0, result.output
        assert "Book generated" in result.output
        assert len(list(cli_env.output_dir.glob("*.html"))) == 1

    def test_rejected_run_exits_nonzero(self, runner, cli_env, stubs, monkeypatch):
        from workflow.graph import PipelineAgents
        agents = PipelineAgents(
            outline=stubs.Outline(), writer=stubs.Writer(), reviewer=stubs.Reviewer("Quality score: 3"),
        )
        monkeypatch.setattr("workflow.graph.PipelineAgents.from_settings", lambda settings: agents)

        from cli.main import cli
        result = runner.invoke(cli, ["start", "-t", "Go", "-w", "5000"])

        assert result.exit_code == 1
        assert "Not approved for publication" in result.output
        assert list(cli_env.output_dir.glob("*.html")) == []

    def test_blank_topic_exits_2(self, runner, cli_env):
        from cli.main import cli
        result = runner.invoke(cli, ["start", "-t", "  "])
        assert result.exit_code == 2
        assert "Topic is required" in result.output
