"""dualforge execution - runner construction, correlation, and orchestration."""

from dualforge.execution.builder import (
    CheatsConfig,
    RunnerSettings,
    build_runner,
    resolve_environment,
    rpc_endpoints,
    test_opts,
    with_overrides,
)
from dualforge.execution.correlator import BytecodeCorrelator, correlate
from dualforge.execution.errors import (
    DualforgeError,
    EnvironmentResolutionFailed,
    FilterMatchedNothing,
    OutcomeMismatch,
    RunnerBuildError,
    TraceRenderFailed,
)
from dualforge.execution.filter import TestFilter
from dualforge.execution.harness import Harness
from dualforge.execution.orchestrator import ExecutionOrchestrator, verify_outcomes
from dualforge.execution.runner import MultiContractRunner

__all__ = [
    "BytecodeCorrelator",
    "CheatsConfig",
    "DualforgeError",
    "EnvironmentResolutionFailed",
    "ExecutionOrchestrator",
    "FilterMatchedNothing",
    "Harness",
    "MultiContractRunner",
    "OutcomeMismatch",
    "RunnerBuildError",
    "RunnerSettings",
    "TestFilter",
    "TraceRenderFailed",
    "build_runner",
    "correlate",
    "resolve_environment",
    "rpc_endpoints",
    "test_opts",
    "verify_outcomes",
    "with_overrides",
]
