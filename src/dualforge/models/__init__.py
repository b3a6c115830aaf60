"""dualforge data models - re-exports all public model classes."""

from dualforge.models.artifacts import (
    ArtifactSet,
    BytecodeObject,
    CompiledArtifact,
    DualCompiledContract,
    PackedEraBytecode,
)
from dualforge.models.config import (
    EvmOpts,
    FsPermissions,
    FuzzConfig,
    FuzzDictionaryConfig,
    HarnessConfig,
    InvariantConfig,
    PathPermission,
    RpcEndpoint,
    RpcEndpoints,
    TestOptions,
)
from dualforge.models.expectation import ExpectationTable, ExpectedTest
from dualforge.models.result import (
    CallTraceArena,
    CallTraceNode,
    RawLog,
    SuiteResult,
    SuiteResultMap,
    TestResult,
    TestStatus,
    TraceKind,
)

__all__ = [
    "ArtifactSet",
    "BytecodeObject",
    "CallTraceArena",
    "CallTraceNode",
    "CompiledArtifact",
    "DualCompiledContract",
    "EvmOpts",
    "ExpectationTable",
    "ExpectedTest",
    "FsPermissions",
    "FuzzConfig",
    "FuzzDictionaryConfig",
    "HarnessConfig",
    "InvariantConfig",
    "PackedEraBytecode",
    "PathPermission",
    "RawLog",
    "RpcEndpoint",
    "RpcEndpoints",
    "SuiteResult",
    "SuiteResultMap",
    "TestOptions",
    "TestResult",
    "TestStatus",
    "TraceKind",
]
