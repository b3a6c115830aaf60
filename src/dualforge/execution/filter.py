"""Regex-based selection of test functions by name, contract, and source path."""

from __future__ import annotations

import re
from dataclasses import dataclass


@dataclass(frozen=True)
class TestFilter:
    """Selects the test functions a run executes.

    Patterns are searched (not fully matched) against the test function
    name, contract name, and source path. Exclusion patterns win over
    inclusion patterns.
    """

    __test__ = False

    test_pattern: re.Pattern[str]
    contract_pattern: re.Pattern[str]
    path_pattern: re.Pattern[str]
    exclude_tests: re.Pattern[str] | None = None
    exclude_paths: re.Pattern[str] | None = None

    @classmethod
    def new(cls, test: str, contract: str, path: str) -> TestFilter:
        return cls(re.compile(test), re.compile(contract), re.compile(path))

    @classmethod
    def matches_all(cls) -> TestFilter:
        return cls.new(".*", ".*", ".*")

    def excluding_tests(self, pattern: str) -> TestFilter:
        return TestFilter(
            self.test_pattern,
            self.contract_pattern,
            self.path_pattern,
            re.compile(pattern),
            self.exclude_paths,
        )

    def excluding_paths(self, pattern: str) -> TestFilter:
        return TestFilter(
            self.test_pattern,
            self.contract_pattern,
            self.path_pattern,
            self.exclude_tests,
            re.compile(pattern),
        )

    def matches_test(self, name: str) -> bool:
        if self.exclude_tests is not None and self.exclude_tests.search(name):
            return False
        return self.test_pattern.search(name) is not None

    def matches_contract(self, name: str) -> bool:
        return self.contract_pattern.search(name) is not None

    def matches_path(self, path: str | None) -> bool:
        path = path or ""
        if self.exclude_paths is not None and self.exclude_paths.search(path):
            return False
        return self.path_pattern.search(path) is not None

    def describe(self) -> str:
        parts = [
            f"test={self.test_pattern.pattern!r}",
            f"contract={self.contract_pattern.pattern!r}",
            f"path={self.path_pattern.pattern!r}",
        ]
        if self.exclude_tests is not None:
            parts.append(f"exclude_tests={self.exclude_tests.pattern!r}")
        if self.exclude_paths is not None:
            parts.append(f"exclude_paths={self.exclude_paths.pattern!r}")
        return " ".join(parts)
