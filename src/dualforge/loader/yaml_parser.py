"""YAML parsing with key positions for expectation files.

A SafeLoader subclass records the 1-indexed (line, column) of every
mapping key under its dotted path (list items contribute their index),
so validation errors can point into the source file.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml


class YAMLParseError(Exception):
    """Raised when YAML syntax cannot be parsed.

    Attributes:
        line: 1-indexed line of the error, if known.
        column: 1-indexed column of the error, if known.
        filename: Name of the parsed file, or '<string>'.
    """

    def __init__(
        self,
        message: str,
        line: int | None = None,
        column: int | None = None,
        filename: str = "<string>",
    ) -> None:
        self.message = message
        self.line = line
        self.column = column
        self.filename = filename
        super().__init__(message)


class PositionTrackingLoader(yaml.SafeLoader):
    """SafeLoader that fills ``positions`` with dotted key path -> (line, col)."""

    def __init__(self, stream: str) -> None:
        super().__init__(stream)
        self.positions: dict[str, tuple[int, int]] = {}
        self._path: list[str] = []

    def _nested(self, segment: str, node: yaml.Node) -> Any:
        self._path.append(segment)
        try:
            return self.construct_object(node, deep=True)
        finally:
            self._path.pop()

    def construct_mapping(self, node: yaml.MappingNode, deep: bool = False) -> dict[Any, Any]:
        self.flatten_mapping(node)
        mapping: dict[Any, Any] = {}
        for key_node, value_node in node.value:
            key = self.construct_object(key_node, deep=True)
            if isinstance(key, str):
                dotted = ".".join([*self._path, key])
                mark = key_node.start_mark
                self.positions[dotted] = (mark.line + 1, mark.column + 1)
            if isinstance(value_node, (yaml.MappingNode, yaml.SequenceNode)):
                mapping[key] = self._nested(str(key), value_node)
            else:
                mapping[key] = self.construct_object(value_node, deep=True)
        return mapping

    def construct_sequence(self, node: yaml.SequenceNode, deep: bool = False) -> list[Any]:
        return [self._nested(str(i), child) for i, child in enumerate(node.value)]

    def _construct_map(self, node: yaml.MappingNode) -> Any:
        yield self.construct_mapping(node)

    def _construct_seq(self, node: yaml.SequenceNode) -> Any:
        yield self.construct_sequence(node)


PositionTrackingLoader.add_constructor("tag:yaml.org,2002:map", PositionTrackingLoader._construct_map)
PositionTrackingLoader.add_constructor("tag:yaml.org,2002:seq", PositionTrackingLoader._construct_seq)


def parse_yaml_with_positions(
    source: str,
    filename: str = "<string>",
) -> tuple[dict[str, Any] | None, dict[str, tuple[int, int]]]:
    """Parse YAML text into (data, positions).

    Returns (None, {}) when the document is empty or not a mapping.

    Raises:
        YAMLParseError: If the text is not valid YAML.
    """
    loader = PositionTrackingLoader(source)
    try:
        data = loader.get_single_data()
    except yaml.YAMLError as e:
        mark = getattr(e, "problem_mark", None)
        raise YAMLParseError(
            message=str(e),
            line=mark.line + 1 if mark is not None else None,
            column=mark.column + 1 if mark is not None else None,
            filename=filename,
        ) from e
    finally:
        loader.dispose()

    if not isinstance(data, dict):
        return None, {}
    return data, loader.positions


def parse_yaml_file(filepath: Path) -> tuple[dict[str, Any] | None, dict[str, tuple[int, int]]]:
    """Read and parse a YAML file. See parse_yaml_with_positions()."""
    return parse_yaml_with_positions(filepath.read_text(encoding="utf-8"), filename=str(filepath))
