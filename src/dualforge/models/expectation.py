"""Expectation table models for structural suite assertions."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any, Union

from pydantic import BaseModel, Field


class ExpectedTest(BaseModel):
    """Expected outcome of one test function.

    ``logs`` and ``warning_count`` are only checked when set.
    """

    model_config = {"extra": "forbid", "frozen": True}

    test: str
    should_pass: bool
    reason: str | None = None
    logs: list[str] | None = None
    warning_count: int | None = Field(default=None, ge=0)

    @classmethod
    def from_tuple(cls, entry: Sequence[Any]) -> ExpectedTest:
        """Build from a ``(test, should_pass, reason, logs, warnings)`` literal."""
        test, should_pass, reason, logs, warning_count = entry
        return cls(
            test=test,
            should_pass=should_pass,
            reason=reason,
            logs=list(logs) if logs is not None else None,
            warning_count=warning_count,
        )


ExpectationEntry = Union[ExpectedTest, Sequence[Any]]

# Contract name -> ordered expected tests
ExpectationTable = dict[str, list[ExpectedTest]]


class ExpectationFile(BaseModel):
    """Expectation table as written in YAML: contracts mapped to test entries."""

    model_config = {"extra": "forbid"}

    contracts: dict[str, list[ExpectedTest]]

    def table(self) -> ExpectationTable:
        return {name: list(tests) for name, tests in self.contracts.items()}


def normalize_expectations(
    expecteds: Mapping[str, Sequence[ExpectationEntry]],
) -> ExpectationTable:
    """Turn tuple literals into ExpectedTest records, preserving order."""
    table: ExpectationTable = {}
    for contract, entries in expecteds.items():
        table[contract] = [
            e if isinstance(e, ExpectedTest) else ExpectedTest.from_tuple(e)
            for e in entries
        ]
    return table
