"""Tests for the CLI commands: argument parsing, output, errors."""

from __future__ import annotations

from pathlib import Path

import pytest
from click.testing import CliRunner, Result

from upvoting.cli.app import cli


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def config_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> str:
    """Config pointing at a file-based SQLite DB inside tmp_path."""
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    monkeypatch.delenv("UPVOTING_CONFIG", raising=False)
    monkeypatch.delenv("UPVOTING_DATABASE_URL", raising=False)
    monkeypatch.chdir(tmp_path)
    path = tmp_path / "upvoting-test.toml"
    path.write_text(
        "[database]\n"
        f'url = "sqlite+aiosqlite:///{tmp_path / "votes.db"}"\n'
        "[logging]\n"
        'level = "WARNING"\n'
    )
    return str(path)


def _invoke(runner: CliRunner, config_file: str, *args: str) -> Result:
    return runner.invoke(cli, ["--config", config_file, *args])


# ── CLI group ────────────────────────────────────────────────────


class TestCliGroup:
    def test_no_command_shows_help(self, runner: CliRunner) -> None:
        result = runner.invoke(cli)
        assert result.exit_code == 0
        assert "Reviewer-gated vote ledger" in result.output

    def test_version(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "upvoting" in result.output
        assert "0.1.0" in result.output

    def test_help_lists_commands(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["--help"])
        for name in ("init", "show", "upvote", "downvote", "retract", "toggle"):
            assert name in result.output


# ── End to end against a file database ───────────────────────────


class TestVotingFlow:
    def test_init_and_show(self, runner: CliRunner, config_file: str) -> None:
        result = _invoke(runner, config_file, "init", "post1", "ann", "bob")
        assert result.exit_code == 0, result.output
        assert "Vote record created" in result.output

        result = _invoke(runner, config_file, "show", "post1")
        assert result.exit_code == 0
        assert "ann" in result.output
        assert "no vote" in result.output

    def test_upvote_and_count(self, runner: CliRunner, config_file: str) -> None:
        _invoke(runner, config_file, "init", "post1", "ann", "bob")
        result = _invoke(runner, config_file, "upvote", "post1", "ann")
        assert result.exit_code == 0
        assert "Upvoted" in result.output

        result = _invoke(runner, config_file, "downvote", "post1", "bob")
        assert "Downvoted" in result.output

        result = _invoke(runner, config_file, "count", "post1")
        assert "+1" in result.output
        assert "-1" in result.output

    def test_double_upvote_errors(self, runner: CliRunner, config_file: str) -> None:
        _invoke(runner, config_file, "init", "post1", "ann")
        _invoke(runner, config_file, "upvote", "post1", "ann")
        result = _invoke(runner, config_file, "downvote", "post1", "ann")
        assert result.exit_code == 1
        assert "Error:" in result.output
        assert "already upvoted" in result.output

    def test_non_reviewer(self, runner: CliRunner, config_file: str) -> None:
        _invoke(runner, config_file, "init", "post1", "ann")
        result = _invoke(runner, config_file, "upvote", "post1", "zed")
        assert result.exit_code == 1
        assert "not in reviewers" in result.output

    def test_retract(self, runner: CliRunner, config_file: str) -> None:
        _invoke(runner, config_file, "init", "post1", "ann")
        _invoke(runner, config_file, "downvote", "post1", "ann")
        result = _invoke(
            runner, config_file, "retract", "post1", "ann", "--direction", "down"
        )
        assert result.exit_code == 0
        assert "Downvote removed" in result.output

        result = _invoke(runner, config_file, "retract", "post1", "ann")
        assert result.exit_code == 1
        assert "no upvote" in result.output

    def test_toggle(self, runner: CliRunner, config_file: str) -> None:
        _invoke(runner, config_file, "init", "post1", "ann")
        first = _invoke(runner, config_file, "toggle", "post1", "ann")
        second = _invoke(runner, config_file, "toggle", "post1", "ann")
        assert "Upvoted" in first.output
        assert "Upvote removed" in second.output

    def test_unknown_item(self, runner: CliRunner, config_file: str) -> None:
        result = _invoke(runner, config_file, "show", "ghost")
        assert result.exit_code == 1
        assert "does not exist" in result.output

    def test_duplicate_init(self, runner: CliRunner, config_file: str) -> None:
        _invoke(runner, config_file, "init", "post1", "ann")
        result = _invoke(runner, config_file, "init", "post1", "bob")
        assert result.exit_code == 1
        assert "already has a vote record" in result.output

    def test_delete_is_idempotent(self, runner: CliRunner, config_file: str) -> None:
        _invoke(runner, config_file, "init", "post1", "ann")
        assert _invoke(runner, config_file, "delete", "post1").exit_code == 0
        assert _invoke(runner, config_file, "delete", "post1").exit_code == 0
        result = _invoke(runner, config_file, "show", "post1")
        assert result.exit_code == 1


class TestConfigErrors:
    def test_invalid_config(self, runner: CliRunner, tmp_path: Path) -> None:
        bad = tmp_path / "bad.toml"
        bad.write_text("[database\n")
        result = runner.invoke(cli, ["--config", str(bad), "show", "x"])
        assert result.exit_code == 1
        assert "Invalid TOML" in result.output


# ── VoteDisplay ──────────────────────────────────────────────────


class TestVoteDisplay:
    def _display(self):  # type: ignore[no-untyped-def]
        from rich.console import Console

        from upvoting.cli.display import VoteDisplay

        console = Console(record=True, width=80)
        return VoteDisplay(console), console

    def test_state_lists_each_reviewer(self) -> None:
        from upvoting.ledger.store import VoteState

        display, console = self._display()
        display.state(
            VoteState(
                item="post1",
                reviewers=frozenset({"ann", "bob", "cat"}),
                upvoters=frozenset({"ann"}),
                downvoters=frozenset({"bob"}),
            )
        )
        text = console.export_text()
        assert "Item post1" in text
        assert "upvoted" in text
        assert "downvoted" in text
        assert "no vote" in text
        assert "+1  -1" in text

    def test_public_surface(self) -> None:
        display, _ = self._display()
        public = {name for name in dir(display) if not name.startswith("_")}
        assert public == {"state", "counts"}
