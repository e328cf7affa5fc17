"""Tests for the plan CLI command."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from cdpgen.cli import cli


@pytest.mark.usefixtures("_isolated_project")
class TestPlanCommand:
    def test_plan_table(self, cli_runner: CliRunner, schema_file: Path) -> None:
        result = cli_runner.invoke(cli, ["plan", schema_file.name])
        assert result.exit_code == 0
        assert "setBreakpointByUrl" in result.stdout
        assert "10 members, 13 signatures" in result.stdout

    def test_plan_domain_quiet(self, cli_runner: CliRunner, schema_file: Path) -> None:
        result = cli_runner.invoke(cli, ["-q", "plan", schema_file.name, "-d", "Debugger"])
        assert result.exit_code == 0
        lines = result.stdout.strip().splitlines()
        assert lines[0] == "Debugger.setBreakpointByUrl"
        assert "Debugger.paused" in lines
        assert all(line.startswith("Debugger.") for line in lines)

    def test_plan_json(self, cli_runner: CliRunner, schema_file: Path) -> None:
        result = cli_runner.invoke(cli, ["--json", "plan", schema_file.name, "-d", "Runtime"])
        assert result.exit_code == 0
        items = {i["name"]: i for i in json.loads(result.stdout)["data"]["items"]}
        assert items["setAsyncCallStackDepth"]["forward_to"] == "Debugger.setAsyncCallStackDepth"
        assert items["evaluate"]["returns"] == "Runtime.Evaluate"

    def test_plan_unknown_domain(self, cli_runner: CliRunner, schema_file: Path) -> None:
        result = cli_runner.invoke(cli, ["plan", schema_file.name, "-d", "Nope"])
        assert result.exit_code == 1
        assert "UNKNOWN_DOMAIN" in result.stderr
