"""Tests for GenerateService."""

from __future__ import annotations

import ast
import json
from pathlib import Path
from typing import Any

from cdpgen.config.settings import CdpgenSettings
from cdpgen.services.generate import GenerateService


class TestGenerate:
    def test_writes_package(
        self, settings: CdpgenSettings, schema_file: Path, tmp_path: Path
    ) -> None:
        out = tmp_path / "out"
        result = GenerateService(settings).generate([schema_file], output=out)
        assert result.ok, result.error
        assert result.data["package"] == "cdp"
        assert result.data["domains"] == ["Runtime", "Debugger"]
        assert result.data["unit_count"] == len(result.data["written"])
        assert (out / "cdp" / "commands" / "debugger.py").is_file()
        for path in out.rglob("*.py"):
            ast.parse(path.read_text(encoding="utf-8"))

    def test_rerun_is_diff_stable(
        self, settings: CdpgenSettings, schema_file: Path, tmp_path: Path
    ) -> None:
        out = tmp_path / "out"
        service = GenerateService(settings)
        first = service.generate([schema_file], output=out)
        second = service.generate([schema_file], output=out)
        assert second.ok
        assert second.data["written"] == []
        assert sorted(second.data["unchanged"]) == sorted(first.data["written"])

    def test_undeclared_dependency_is_a_warning(
        self, settings: CdpgenSettings, schema_file: Path, tmp_path: Path
    ) -> None:
        result = GenerateService(settings).generate([schema_file], output=tmp_path / "out")
        assert result.warnings == [
            "Domain Runtime references Debugger without declaring the dependency"
        ]

    def test_custom_package(
        self, settings: CdpgenSettings, schema_file: Path, tmp_path: Path
    ) -> None:
        out = tmp_path / "out"
        result = GenerateService(settings).generate(
            [schema_file], output=out, package="devtools.v1"
        )
        assert result.ok
        assert (out / "devtools" / "v1" / "__init__.py").is_file()

    def test_invalid_package(self, settings: CdpgenSettings, schema_file: Path) -> None:
        result = GenerateService(settings).generate([schema_file], package="class.cdp")
        assert not result.ok
        assert result.error is not None
        assert result.error.code == "INVALID_PACKAGE"

    def test_dry_run_writes_nothing(
        self, settings: CdpgenSettings, schema_file: Path, tmp_path: Path
    ) -> None:
        out = tmp_path / "out"
        result = GenerateService(settings).generate([schema_file], output=out, dry_run=True)
        assert result.ok
        assert result.data["dry_run"] is True
        assert "cdp/commands/runtime.py" in result.data["units"]
        assert not out.exists()


class TestDomainSelection:
    def test_closure_pulls_in_dependencies(
        self, settings: CdpgenSettings, schema_file: Path, tmp_path: Path
    ) -> None:
        result = GenerateService(settings).generate(
            [schema_file], output=tmp_path / "out", domains=["Debugger"]
        )
        assert result.ok
        assert result.data["domains"] == ["Runtime", "Debugger"]

    def test_independent_domain_alone(
        self, settings: CdpgenSettings, tmp_path: Path, sample_schema: dict[str, Any]
    ) -> None:
        sample_schema["domains"].append({"domain": "Log", "commands": [{"name": "clear"}]})
        path = tmp_path / "protocol.json"
        path.write_text(json.dumps(sample_schema), encoding="utf-8")
        result = GenerateService(settings).generate([path], dry_run=True, domains=["Log"])
        assert result.ok
        assert result.data["domains"] == ["Log"]
        assert "cdp/commands/runtime.py" not in result.data["units"]

    def test_unknown_domain(self, settings: CdpgenSettings, schema_file: Path) -> None:
        result = GenerateService(settings).generate([schema_file], domains=["Nope"], dry_run=True)
        assert not result.ok
        assert result.error is not None
        assert result.error.code == "UNKNOWN_DOMAIN"
        assert result.error.detail["available"] == ["Runtime", "Debugger"]


class TestFailures:
    def test_unresolved_reference_produces_no_output(
        self, settings: CdpgenSettings, tmp_path: Path, sample_schema: dict[str, Any]
    ) -> None:
        command = sample_schema["domains"][1]["commands"][2]
        command["parameters"][0]["$ref"] = "Foo.Bar"
        path = tmp_path / "protocol.json"
        path.write_text(json.dumps(sample_schema), encoding="utf-8")
        out = tmp_path / "out"

        result = GenerateService(settings).generate([path], output=out)

        assert not result.ok
        assert result.error is not None
        assert result.error.code == "UNRESOLVED_TYPE_REFERENCE"
        assert result.error.detail["owner"] == "getScriptSource"
        assert result.error.detail["property"] == "scriptId"
        assert not out.exists()

    def test_malformed_schema(self, settings: CdpgenSettings, tmp_path: Path) -> None:
        path = tmp_path / "protocol.json"
        path.write_text(json.dumps([{"domain": "A"}, {"domain": "A"}]), encoding="utf-8")
        result = GenerateService(settings).generate([path], dry_run=True)
        assert result.error is not None
        assert result.error.code == "MALFORMED_SCHEMA"
        assert result.error.detail["source"] == str(path)

    def test_invalid_redirect(self, settings: CdpgenSettings, tmp_path: Path) -> None:
        path = tmp_path / "protocol.json"
        path.write_text(
            json.dumps([{"domain": "A", "commands": [{"name": "run", "redirect": "B"}]}]),
            encoding="utf-8",
        )
        result = GenerateService(settings).generate([path], dry_run=True)
        assert result.error is not None
        assert result.error.code == "INVALID_REDIRECT"

    def test_no_schema(self, settings: CdpgenSettings) -> None:
        result = GenerateService(settings).generate([])
        assert result.error is not None
        assert result.error.code == "NO_SCHEMA"

    def test_write_failure(
        self, settings: CdpgenSettings, schema_file: Path, tmp_path: Path
    ) -> None:
        blocker = tmp_path / "out"
        blocker.write_text("not a directory", encoding="utf-8")
        result = GenerateService(settings).generate([schema_file], output=blocker)
        assert result.error is not None
        assert result.error.code == "WRITE_FAILED"


class TestConfiguredDefaults:
    def test_uses_input_and_generate_sections(
        self, tmp_path: Path, schema_file: Path, monkeypatch: Any
    ) -> None:
        monkeypatch.delenv("CDPGEN_CONFIG", raising=False)
        (tmp_path / "cdpgen.toml").write_text(
            '[input]\npaths = ["protocol.json"]\n\n'
            '[generate]\npackage = "browser"\noutput = "gen"\ndomains = ["Runtime"]\n',
            encoding="utf-8",
        )
        settings = CdpgenSettings.from_cli(project_root=tmp_path)
        result = GenerateService(settings).generate()
        assert result.ok, result.error
        assert result.data["package"] == "browser"
        assert result.data["output_dir"] == str(tmp_path / "gen")
        assert (tmp_path / "gen" / "browser" / "commands" / "runtime.py").is_file()
