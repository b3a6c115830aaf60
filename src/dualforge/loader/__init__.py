"""dualforge loaders - artifact files and expectation YAML validation."""

from dualforge.loader.artifacts import load_artifact_set
from dualforge.loader.errors import ErrorFormatter
from dualforge.loader.validator import (
    ValidationErrorDetail,
    validate_expectation_file,
    validate_expectation_string,
)
from dualforge.loader.yaml_parser import YAMLParseError, parse_yaml_with_positions

__all__ = [
    "ErrorFormatter",
    "ValidationErrorDetail",
    "YAMLParseError",
    "load_artifact_set",
    "parse_yaml_with_positions",
    "validate_expectation_file",
    "validate_expectation_string",
]
