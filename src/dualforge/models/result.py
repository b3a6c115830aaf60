"""Result data models for dualforge suite runs.

These models encode what a single runner invocation produces: one
SuiteResult per test contract, each holding a TestResult per test
function. They live only as long as the diagnostics or assertions that
consume them.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field


class TestStatus(str, Enum):
    """Outcome of a single test function."""

    __test__ = False

    Success = "Success"
    Failure = "Failure"


class TraceKind(str, Enum):
    """Phase of a test run a call-trace arena was captured in."""

    Deployment = "Deployment"
    Setup = "Setup"
    Execution = "Execution"


class RawLog(BaseModel):
    """A raw log record emitted during execution."""

    address: str = ""
    topics: list[bytes] = Field(default_factory=list)
    data: bytes = b""


class CallTraceNode(BaseModel):
    """One call frame in a call-trace arena."""

    idx: int
    parent: int | None = None
    children: list[int] = Field(default_factory=list)
    depth: int = 0
    address: str = ""
    label: str | None = None
    kind: str = "CALL"
    success: bool = True
    gas_used: int = 0
    output: bytes = b""


class CallTraceArena(BaseModel):
    """Flat arena of call frames; node 0 is the root."""

    nodes: list[CallTraceNode] = Field(default_factory=list)

    def root(self) -> CallTraceNode | None:
        return self.nodes[0] if self.nodes else None


class TestResult(BaseModel):
    """Result of executing one test function."""

    __test__ = False

    status: TestStatus
    reason: str | None = None
    logs: list[RawLog] = Field(default_factory=list)
    decoded_logs: list[str] = Field(default_factory=list)
    traces: list[tuple[TraceKind, CallTraceArena]] = Field(default_factory=list)
    gas_used: int = 0

    def is_success(self) -> bool:
        return self.status == TestStatus.Success

    def is_failure(self) -> bool:
        return self.status == TestStatus.Failure


class SuiteResult(BaseModel):
    """All test results of one contract plus suite-level warnings."""

    test_results: dict[str, TestResult] = Field(default_factory=dict)
    warnings: list[str] = Field(default_factory=list)
    duration_seconds: float = 0.0

    def __len__(self) -> int:
        return len(self.test_results)

    def successes(self) -> list[str]:
        return [name for name, r in self.test_results.items() if r.is_success()]

    def failures(self) -> list[str]:
        return [name for name, r in self.test_results.items() if r.is_failure()]


# Suite name -> SuiteResult, sorted by suite name
SuiteResultMap = dict[str, SuiteResult]
