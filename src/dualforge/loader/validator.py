"""Expectation file validation: YAML parsing followed by Pydantic validation.

Errors from both stages carry source positions where they can be found
and are returned together so every problem in a file is reported at once.
"""

from __future__ import annotations

import difflib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from dualforge.loader.yaml_parser import (
    YAMLParseError,
    parse_yaml_file,
    parse_yaml_with_positions,
)
from dualforge.models.expectation import ExpectationFile, ExpectedTest

# Field names used for "did you mean" hints, per nesting level
TOP_LEVEL_FIELDS: list[str] = list(ExpectationFile.model_fields)
ENTRY_FIELDS: list[str] = list(ExpectedTest.model_fields)


@dataclass
class ValidationErrorDetail:
    """A single validation error with its source position.

    Attributes:
        field: Dotted path of the offending field.
        message: Human-readable description.
        type: Pydantic error type (e.g. 'missing', 'extra_forbidden').
        line: 1-indexed line in the YAML source, if known.
        col: 1-indexed column in the YAML source, if known.
        suggestion: "Did you mean ...?" hint for misspelled keys.
    """

    field: str
    message: str
    type: str
    line: int | None = None
    col: int | None = None
    suggestion: str | None = None
    input_value: Any = field(default=None)


def _position_for(path: str, positions: dict[str, tuple[int, int]]) -> tuple[int | None, int | None]:
    """Find the position of path, falling back to its closest located parent."""
    parts = path.split(".")
    while parts:
        candidate = ".".join(parts)
        if candidate in positions:
            return positions[candidate]
        parts.pop()
    return None, None


def _suggest(name: str, loc: tuple[str | int, ...]) -> str | None:
    candidates = TOP_LEVEL_FIELDS if len(loc) == 1 else ENTRY_FIELDS
    matches = difflib.get_close_matches(name, candidates, n=1, cutoff=0.6)
    return f"Did you mean '{matches[0]}'?" if matches else None


def validate_expectations(
    raw_data: dict[str, Any],
    positions: dict[str, tuple[int, int]],
) -> tuple[ExpectationFile | None, list[ValidationErrorDetail]]:
    """Validate parsed YAML against the ExpectationFile model.

    Returns:
        (ExpectationFile, []) on success, or (None, errors) on failure.
    """
    try:
        return ExpectationFile.model_validate(raw_data), []
    except ValidationError as e:
        errors: list[ValidationErrorDetail] = []
        for err in e.errors():
            loc = tuple(err.get("loc", ()))
            path = ".".join(str(part) for part in loc)
            error_type = err.get("type", "unknown")
            line, col = _position_for(path, positions)
            suggestion = None
            if error_type == "extra_forbidden" and loc:
                suggestion = _suggest(str(loc[-1]), loc)
            errors.append(
                ValidationErrorDetail(
                    field=path,
                    message=err.get("msg", "Validation error"),
                    type=error_type,
                    line=line,
                    col=col,
                    suggestion=suggestion,
                    input_value=err.get("input"),
                )
            )
        return None, errors


def _parse_failure(e: YAMLParseError) -> list[ValidationErrorDetail]:
    return [
        ValidationErrorDetail(
            field="<yaml>",
            message=e.message,
            type="yaml_syntax_error",
            line=e.line,
            col=e.column,
        )
    ]


def _empty_failure() -> list[ValidationErrorDetail]:
    return [
        ValidationErrorDetail(
            field="<yaml>",
            message="Document is empty or not a mapping",
            type="empty_input",
        )
    ]


def validate_expectation_string(
    source: str,
    filename: str = "<string>",
) -> tuple[ExpectationFile | None, list[ValidationErrorDetail]]:
    """Validate an expectation table given as YAML text."""
    try:
        raw_data, positions = parse_yaml_with_positions(source, filename=filename)
    except YAMLParseError as e:
        return None, _parse_failure(e)
    if raw_data is None:
        return None, _empty_failure()
    return validate_expectations(raw_data, positions)


def validate_expectation_file(
    filepath: Path,
) -> tuple[ExpectationFile | None, list[ValidationErrorDetail]]:
    """Validate an expectation table YAML file."""
    try:
        raw_data, positions = parse_yaml_file(filepath)
    except YAMLParseError as e:
        return None, _parse_failure(e)
    if raw_data is None:
        return None, _empty_failure()
    return validate_expectations(raw_data, positions)
