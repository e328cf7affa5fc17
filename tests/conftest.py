"""Shared pytest fixtures for cdpgen tests."""

from __future__ import annotations

import copy
import json
import logging
from collections.abc import Generator
from pathlib import Path
from typing import Any

import pytest
import structlog
from click.testing import CliRunner

from cdpgen.config.settings import CdpgenSettings
from cdpgen.domain.loader import parse_document
from cdpgen.domain.planner import SchemaPlan, plan_schema
from cdpgen.domain.resolver import ResolvedSchema, resolve_schema
from cdpgen.services.telemetry import _current_span, disable_telemetry

# Two interdependent domains modelled on the DevTools protocol: a recursive
# type pair, inline enums and objects, a composite return, a redirect and
# events with and without payloads.
SAMPLE_SCHEMA: dict[str, Any] = {
    "version": {"major": "1", "minor": "3"},
    "domains": [
        {
            "domain": "Runtime",
            "description": (
                "Runtime domain exposes JavaScript runtime by means of remote evaluation."
            ),
            "types": [
                {"id": "ScriptId", "type": "string", "description": "Unique script identifier."},
                {
                    "id": "RemoteObject",
                    "type": "object",
                    "description": "Mirror object referencing original JavaScript object.",
                    "properties": [
                        {
                            "name": "type",
                            "type": "string",
                            "enum": ["object", "function", "undefined"],
                            "description": "Object type.",
                        },
                        {"name": "value", "type": "any", "optional": True},
                        {"name": "preview", "$ref": "ObjectPreview", "optional": True},
                    ],
                },
                {
                    "id": "ObjectPreview",
                    "type": "object",
                    "experimental": True,
                    "properties": [
                        {
                            "name": "properties",
                            "type": "array",
                            "items": {"$ref": "PropertyPreview"},
                        },
                    ],
                },
                {
                    "id": "PropertyPreview",
                    "type": "object",
                    "experimental": True,
                    "properties": [
                        {"name": "name", "type": "string"},
                        {"name": "valuePreview", "$ref": "ObjectPreview", "optional": True},
                    ],
                },
            ],
            "commands": [
                {
                    "name": "evaluate",
                    "description": "Evaluates expression on global object.",
                    "parameters": [
                        {"name": "expression", "type": "string"},
                        {"name": "returnByValue", "type": "boolean", "optional": True},
                    ],
                    "returns": [
                        {"name": "result", "$ref": "RemoteObject"},
                        {"name": "exceptionDetails", "type": "object", "optional": True},
                    ],
                },
                {"name": "enable"},
                {"name": "setAsyncCallStackDepth", "redirect": "Debugger"},
            ],
            "events": [
                {
                    "name": "executionContextCreated",
                    "parameters": [{"name": "context", "type": "object"}],
                },
            ],
        },
        {
            "domain": "Debugger",
            "description": "Debugger domain exposes JavaScript debugging capabilities.",
            "dependencies": ["Runtime"],
            "types": [
                {"id": "BreakpointId", "type": "string"},
                {
                    "id": "Location",
                    "type": "object",
                    "properties": [
                        {"name": "scriptId", "$ref": "Runtime.ScriptId"},
                        {"name": "lineNumber", "type": "integer"},
                        {"name": "columnNumber", "type": "integer", "optional": True},
                    ],
                },
            ],
            "commands": [
                {
                    "name": "setBreakpointByUrl",
                    "parameters": [
                        {"name": "lineNumber", "type": "integer"},
                        {"name": "url", "type": "string", "optional": True},
                        {"name": "urlRegex", "type": "string", "optional": True},
                        {"name": "columnNumber", "type": "integer", "optional": True},
                        {"name": "condition", "type": "string", "optional": True},
                    ],
                    "returns": [
                        {"name": "breakpointId", "$ref": "BreakpointId"},
                        {"name": "locations", "type": "array", "items": {"$ref": "Location"}},
                    ],
                },
                {
                    "name": "setAsyncCallStackDepth",
                    "parameters": [{"name": "maxDepth", "type": "integer"}],
                },
                {
                    "name": "getScriptSource",
                    "deprecated": True,
                    "parameters": [{"name": "scriptId", "$ref": "Runtime.ScriptId"}],
                    "returns": [{"name": "scriptSource", "type": "string"}],
                },
                {"name": "pause"},
            ],
            "events": [
                {
                    "name": "paused",
                    "parameters": [
                        {"name": "callFrames", "type": "array", "items": {"type": "object"}},
                        {"name": "reason", "type": "string", "enum": ["other", "exception"]},
                        {
                            "name": "hitBreakpoints",
                            "type": "array",
                            "items": {"type": "string"},
                            "optional": True,
                        },
                    ],
                },
                {"name": "resumed"},
            ],
        },
    ],
}


@pytest.fixture
def sample_schema() -> dict[str, Any]:
    """A fresh, mutable copy of the sample protocol document."""
    return copy.deepcopy(SAMPLE_SCHEMA)


@pytest.fixture
def resolved(sample_schema: dict[str, Any]) -> ResolvedSchema:
    return resolve_schema(parse_document(sample_schema))


@pytest.fixture
def plan(resolved: ResolvedSchema) -> SchemaPlan:
    return plan_schema(resolved)


@pytest.fixture
def schema_file(tmp_path: Path, sample_schema: dict[str, Any]) -> Path:
    """The sample schema written as ``protocol.json`` under tmp_path."""
    path = tmp_path / "protocol.json"
    path.write_text(json.dumps(sample_schema, indent=2), encoding="utf-8")
    return path


@pytest.fixture
def settings(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> CdpgenSettings:
    """Default settings rooted at tmp_path, isolated from the environment."""
    monkeypatch.delenv("CDPGEN_CONFIG", raising=False)
    return CdpgenSettings.from_cli(project_root=tmp_path)


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def _isolated_project(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Run from tmp_path so config discovery cannot escape the test."""
    monkeypatch.delenv("CDPGEN_CONFIG", raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture(autouse=True)
def _reset_telemetry_state() -> Generator[None]:
    """``-v`` enables telemetry for the rest of the context; undo it."""
    yield
    disable_telemetry()
    _current_span.set(None)


@pytest.fixture(autouse=True)
def _restore_logging() -> Generator[None]:
    """Commands reconfigure the root logger and bind log context; undo both."""
    root = logging.getLogger()
    original_handlers = root.handlers[:]
    original_level = root.level
    cdpgen = logging.getLogger("cdpgen")
    cdpgen_level = cdpgen.level
    yield
    root.handlers = original_handlers
    root.setLevel(original_level)
    cdpgen.setLevel(cdpgen_level)
    structlog.contextvars.clear_contextvars()
