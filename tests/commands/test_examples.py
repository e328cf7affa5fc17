"""Tests for the --examples flag on CLI commands."""

from __future__ import annotations

import pytest
from click.testing import CliRunner

from cdpgen.cli import cli

# (CLI args, expected keywords in output)
EXAMPLES_COMMANDS: list[tuple[list[str], list[str]]] = [
    (["generate", "--examples"], ["cdpgen generate protocol.json --dry-run", "-d Page"]),
    (["check", "--examples"], ["cdpgen check protocol.yaml"]),
    (["plan", "--examples"], ["cdpgen plan protocol.json -d Debugger"]),
]


@pytest.mark.usefixtures("_isolated_project")
class TestExamplesFlag:
    @pytest.mark.parametrize(
        ("args", "keywords"),
        EXAMPLES_COMMANDS,
        ids=[" ".join(a[:-1]) for a, _ in EXAMPLES_COMMANDS],
    )
    def test_examples_output(
        self, cli_runner: CliRunner, args: list[str], keywords: list[str]
    ) -> None:
        result = cli_runner.invoke(cli, args)
        assert result.exit_code == 0, result.output
        assert "Examples for" in result.output
        for keyword in keywords:
            assert keyword in result.output

    def test_examples_not_in_help(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["generate", "--help"])
        assert result.exit_code == 0
        assert "--examples" in result.output
        assert "cdpgen generate protocol.json --dry-run" not in result.output
