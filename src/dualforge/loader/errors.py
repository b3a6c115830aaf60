"""Formatting of expectation-file validation errors.

Human mode annotates the offending source line; CI mode prints one
``file:line:col -- field: message`` line per error.
"""

from __future__ import annotations

import os
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from dualforge.loader.validator import ValidationErrorDetail


ERROR_CODES: dict[str, str] = {
    "extra_forbidden": "E001",
    "missing": "E002",
    "bool_type": "E003",
    "bool_parsing": "E003",
    "string_type": "E003",
    "int_type": "E003",
    "int_parsing": "E003",
    "list_type": "E003",
    "dict_type": "E003",
    "greater_than_equal": "E004",
    "yaml_syntax_error": "E005",
    "empty_input": "E006",
}

ERROR_DESCRIPTIONS: dict[str, str] = {
    "E001": "unknown field",
    "E002": "required field missing",
    "E003": "type mismatch",
    "E004": "invalid value",
    "E005": "YAML syntax error",
    "E006": "empty input",
}


def _ci_from_env() -> bool:
    return os.environ.get("CI", "").lower() in ("true", "1", "yes")


class ErrorFormatter:
    """Formats validation errors for a terminal or for CI logs.

    Args:
        ci_mode: Force CI output on or off; None reads the CI env var.
    """

    def __init__(self, ci_mode: bool | None = None) -> None:
        self.ci_mode = _ci_from_env() if ci_mode is None else ci_mode

    @staticmethod
    def error_code(error_type: str) -> str:
        return ERROR_CODES.get(error_type, "E999")

    def format_error(
        self,
        error: ValidationErrorDetail,
        source_lines: list[str],
        filename: str,
    ) -> str:
        if self.ci_mode:
            hint = f" ({error.suggestion})" if error.suggestion else ""
            return f"{filename}:{error.line or 0}:{error.col or 0} -- {error.field}: {error.message}{hint}"

        code = self.error_code(error.type)
        out = [f"error[{code}]: {ERROR_DESCRIPTIONS.get(code, 'validation error')}"]
        if error.line is None:
            out += [f"  --> {filename}", "   |", f"   | {error.field}: {error.message}", "   |"]
        else:
            out.append(f"  --> {filename}:{error.line}:{error.col or 1}")
            out.append("   |")
            if 0 < error.line <= len(source_lines):
                text = source_lines[error.line - 1].rstrip()
                gutter = " " * len(str(error.line))
                out.append(f" {error.line} | {text}")
                key = error.field.split(".")[-1]
                start = text.find(key)
                if start >= 0:
                    out.append(f" {gutter} | {' ' * start}{'^' * len(key)} {error.message}")
                else:
                    out.append(f" {gutter} | {error.message}")
            else:
                out.append(f"   | {error.message}")
            out.append("   |")
        if error.suggestion:
            out.append(f"   = help: {error.suggestion}")
        return "\n".join(out)

    def format_all(
        self,
        errors: list[ValidationErrorDetail],
        source: str,
        filename: str,
    ) -> str:
        """Format every error, separated by blank lines."""
        lines = source.splitlines()
        return "\n\n".join(self.format_error(e, lines, filename) for e in errors)
