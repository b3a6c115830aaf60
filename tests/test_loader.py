"""Tests for dualforge.loader - YAML positions, expectation validation, artifacts."""

from __future__ import annotations

import json

import pytest

from dualforge.loader.artifacts import load_artifact_set
from dualforge.loader.errors import ErrorFormatter
from dualforge.loader.validator import (
    ValidationErrorDetail,
    validate_expectation_file,
    validate_expectation_string,
)
from dualforge.loader.yaml_parser import YAMLParseError, parse_yaml_with_positions

VALID = """\
contracts:
  MathTest:
    - test: testAdd
      should_pass: true
      logs: ["x=2"]
    - test: testOverflow
      should_pass: false
      reason: arithmetic overflow
"""


class TestYamlPositions:
    def test_records_nested_key_positions(self):
        data, positions = parse_yaml_with_positions(VALID)
        assert data["contracts"]["MathTest"][1]["reason"] == "arithmetic overflow"
        assert positions["contracts"] == (1, 1)
        assert positions["contracts.MathTest"] == (2, 3)
        assert positions["contracts.MathTest.0.test"] == (3, 7)
        assert positions["contracts.MathTest.1.reason"] == (8, 7)

    def test_non_mapping_document(self):
        assert parse_yaml_with_positions("- a\n- b\n") == (None, {})
        assert parse_yaml_with_positions("") == (None, {})

    def test_syntax_error_has_position(self):
        with pytest.raises(YAMLParseError) as exc_info:
            parse_yaml_with_positions("contracts: [unclosed\n", filename="bad.yaml")
        assert exc_info.value.filename == "bad.yaml"
        assert exc_info.value.line is not None


class TestValidateExpectations:
    def test_valid_document(self):
        expectations, errors = validate_expectation_string(VALID)
        assert errors == []
        table = expectations.table()
        assert [t.test for t in table["MathTest"]] == ["testAdd", "testOverflow"]
        assert table["MathTest"][0].logs == ["x=2"]
        assert table["MathTest"][1].reason == "arithmetic overflow"

    def test_misspelled_entry_field(self):
        source = "contracts:\n  A:\n    - test: testX\n      should_pas: true\n"
        expectations, errors = validate_expectation_string(source)
        assert expectations is None
        extra = next(e for e in errors if e.type == "extra_forbidden")
        assert extra.field == "contracts.A.0.should_pas"
        assert extra.line == 4
        assert extra.suggestion == "Did you mean 'should_pass'?"
        assert any(e.type == "missing" for e in errors)

    def test_misspelled_top_level_field(self):
        _, errors = validate_expectation_string("contract:\n  A: []\n")
        extra = next(e for e in errors if e.type == "extra_forbidden")
        assert extra.suggestion == "Did you mean 'contracts'?"
        assert extra.line == 1

    def test_negative_warning_count(self):
        source = "contracts:\n  A:\n    - test: t\n      should_pass: true\n      warning_count: -1\n"
        _, errors = validate_expectation_string(source)
        assert [e.type for e in errors] == ["greater_than_equal"]
        assert errors[0].line == 5

    def test_empty_document(self):
        expectations, errors = validate_expectation_string("")
        assert expectations is None
        assert errors[0].type == "empty_input"

    def test_yaml_syntax_error(self):
        _, errors = validate_expectation_string("contracts: [\n")
        assert errors[0].type == "yaml_syntax_error"
        assert errors[0].field == "<yaml>"

    def test_file(self, tmp_path):
        path = tmp_path / "expect.yaml"
        path.write_text(VALID)
        expectations, errors = validate_expectation_file(path)
        assert errors == []
        assert list(expectations.contracts) == ["MathTest"]


class TestErrorFormatter:
    def _error(self, **kwargs) -> ValidationErrorDetail:
        defaults = dict(
            field="contracts.A.0.should_pas",
            message="Extra inputs are not permitted",
            type="extra_forbidden",
            line=2,
            col=3,
            suggestion="Did you mean 'should_pass'?",
        )
        defaults.update(kwargs)
        return ValidationErrorDetail(**defaults)

    def test_ci_mode_single_line(self):
        out = ErrorFormatter(ci_mode=True).format_error(self._error(), [], "e.yaml")
        assert out == (
            "e.yaml:2:3 -- contracts.A.0.should_pas: Extra inputs are not permitted "
            "(Did you mean 'should_pass'?)"
        )

    def test_rich_mode_annotates_source(self):
        lines = ["contracts:", "  should_pas: true"]
        out = ErrorFormatter(ci_mode=False).format_error(self._error(), lines, "e.yaml")
        assert out.startswith("error[E001]: unknown field")
        assert "--> e.yaml:2:3" in out
        assert " 2 |   should_pas: true" in out
        assert "^^^^^^^^^^ Extra inputs are not permitted" in out
        assert "= help: Did you mean 'should_pass'?" in out

    def test_rich_mode_without_line(self):
        error = self._error(line=None, col=None, suggestion=None, type="missing")
        out = ErrorFormatter(ci_mode=False).format_error(error, [], "e.yaml")
        assert out.startswith("error[E002]")
        assert "--> e.yaml\n" in out

    def test_unknown_type_code(self):
        assert ErrorFormatter.error_code("something_else") == "E999"

    def test_ci_mode_from_env(self, monkeypatch):
        monkeypatch.setenv("CI", "true")
        assert ErrorFormatter().ci_mode is True
        monkeypatch.setenv("CI", "")
        assert ErrorFormatter().ci_mode is False

    def test_format_all_separates_errors(self):
        errors = [self._error(), self._error(field="x", line=None, col=None)]
        out = ErrorFormatter(ci_mode=True).format_all(errors, "", "e.yaml")
        assert out.split("\n\n")[1].startswith("e.yaml:0:0 -- x:")


class TestLoadArtifactSet:
    ARTIFACT = {
        "bytecode": {"object": "0x6080"},
        "deployedBytecode": {"object": "0x6001"},
        "abi": [{"type": "function", "name": "testAdd"}, {"type": "event", "name": "Log"}],
        "sourcePath": "test/Math.t.sol",
    }

    def test_from_file(self, tmp_path):
        path = tmp_path / "artifacts.json"
        path.write_text(json.dumps({"MathTest": self.ARTIFACT}))
        artifacts = load_artifact_set(path)
        assert list(artifacts) == ["MathTest"]
        assert artifacts["MathTest"].abi_functions == ("testAdd",)
        assert artifacts["MathTest"].source_path == "test/Math.t.sol"

    def test_from_directory(self, tmp_path):
        (tmp_path / "Math.t.sol").mkdir()
        (tmp_path / "Math.t.sol" / "MathTest.json").write_text(json.dumps(self.ARTIFACT))
        (tmp_path / "Token.sol").mkdir()
        (tmp_path / "Token.sol" / "Token.json").write_text(json.dumps({"bytecode": "0x6002"}))

        artifacts = load_artifact_set(tmp_path)
        assert sorted(artifacts) == ["MathTest", "Token"]
        assert artifacts["Token"].get_bytecode_bytes() == b"\x60\x02"

    def test_duplicate_names_in_directory(self, tmp_path):
        for sub in ("a", "b"):
            (tmp_path / sub).mkdir()
            (tmp_path / sub / "Token.json").write_text(json.dumps(self.ARTIFACT))
        with pytest.raises(ValueError, match="duplicate artifact name"):
            load_artifact_set(tmp_path)

    def test_missing_path(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_artifact_set(tmp_path / "nope")

    def test_non_object_document(self, tmp_path):
        path = tmp_path / "artifacts.json"
        path.write_text("[]")
        with pytest.raises(ValueError):
            load_artifact_set(path)
