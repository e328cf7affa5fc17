"""Tests for protocol-to-Python identifier conversion."""

from __future__ import annotations

import pytest

from cdpgen.domain.naming import enum_member, snake_case, unique_names, upper_first


class TestSnakeCase:
    @pytest.mark.parametrize(
        ("name", "expected"),
        [
            ("setBreakpointByUrl", "set_breakpoint_by_url"),
            ("includeCommandLineAPI", "include_command_line_api"),
            ("innerHTML", "inner_html"),
            ("URL", "url"),
            ("enable", "enable"),
            ("Runtime", "runtime"),
            ("DOMStorage", "dom_storage"),
        ],
    )
    def test_conversion(self, name: str, expected: str) -> None:
        assert snake_case(name) == expected

    @pytest.mark.parametrize("name", ["from", "class", "import", "type", "match"])
    def test_keywords_get_trailing_underscore(self, name: str) -> None:
        assert snake_case(name) == f"{name}_"

    def test_leading_digit(self) -> None:
        assert snake_case("3d").startswith("_")

    def test_hyphens(self) -> None:
        assert snake_case("no-cache") == "no_cache"


class TestOtherHelpers:
    def test_upper_first(self) -> None:
        assert upper_first("getScriptSource") == "GetScriptSource"
        assert upper_first("") == ""

    @pytest.mark.parametrize(
        ("literal", "expected"),
        [
            ("object", "OBJECT"),
            ("camelCase-x", "CAMEL_CASE_X"),
            ("class", "CLASS"),
            ("", "VALUE"),
        ],
    )
    def test_enum_member(self, literal: str, expected: str) -> None:
        assert enum_member(literal) == expected

    def test_unique_names(self) -> None:
        assert unique_names(["a", "a", "b", "a"]) == ["a", "a_2", "b", "a_3"]
