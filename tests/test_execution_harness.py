"""Tests for dualforge.execution.harness - lazy artifacts and runner variants."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from dualforge.execution.errors import EnvironmentResolutionFailed, RunnerBuildError
from dualforge.execution.harness import TRACING_VERBOSITY, Harness
from dualforge.execution.interfaces import (
    ContractExecutor,
    ExecutionEnvironment,
    ExecutionEnvironmentResolver,
)
from dualforge.models.artifacts import ArtifactSet, BytecodeObject, CompiledArtifact
from dualforge.models.config import (
    EvmOpts,
    HarnessConfig,
    PathPermission,
    RpcEndpoint,
    RpcEndpoints,
)
from dualforge.models.result import TestResult, TestStatus

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class RecordingResolver(ExecutionEnvironmentResolver):
    def __init__(self, fail: bool = False) -> None:
        self.calls: list[EvmOpts] = []
        self._fail = fail

    async def resolve(self, opts: EvmOpts) -> ExecutionEnvironment:
        self.calls.append(opts)
        if self._fail:
            raise ConnectionError("rpc unreachable")
        return ExecutionEnvironment(chain_id=opts.chain_id or 1, block_number=19_000_000)


class PassingExecutor(ContractExecutor):
    async def execute(self, contract, artifact, test, options, settings, env) -> TestResult:
        return TestResult(status=TestStatus.Success)


class CountingLoader:
    def __init__(self, artifacts: ArtifactSet) -> None:
        self.artifacts = artifacts
        self.calls = 0

    def __call__(self) -> ArtifactSet:
        self.calls += 1
        return self.artifacts


def _packed(hash_byte: str) -> str:
    doc = {"hash": "0x" + hash_byte * 32, "bytecode": "0x00000001", "factory_deps": []}
    return "0x" + json.dumps(doc).encode().hex()


def _evm_set() -> ArtifactSet:
    return ArtifactSet(
        {
            "Counter": CompiledArtifact(
                bytecode=BytecodeObject(object="0x6080604052"),
                deployed_bytecode=BytecodeObject(object="0x60806040"),
                abi_functions=("increment", "number"),
            ),
            "CounterTest": CompiledArtifact(
                bytecode=BytecodeObject(object="0x6001"),
                deployed_bytecode=BytecodeObject(object="0x6002"),
                abi_functions=("setUp", "testIncrement"),
            ),
        }
    )


def _zk_set() -> ArtifactSet:
    return ArtifactSet(
        {
            "Counter.zk": CompiledArtifact(deployed_bytecode=BytecodeObject(object=_packed("c1"))),
            "Missing.zk": CompiledArtifact(deployed_bytecode=BytecodeObject(object=_packed("c2"))),
        }
    )


def _harness(root: Path, resolver: RecordingResolver | None = None, zk: bool = True) -> Harness:
    return Harness(
        root=root,
        load_evm=CountingLoader(_evm_set()),
        load_zk=CountingLoader(_zk_set()) if zk else None,
        resolver=resolver or RecordingResolver(),
        executor=PassingExecutor(),
    )


# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------


class TestArtifactCaching:
    @pytest.mark.asyncio
    async def test_artifacts_loaded_once_and_shared(self, tmp_path):
        harness = _harness(tmp_path)
        first = await harness.runner()
        second = await harness.tracing_runner()

        assert harness.load_evm.calls == 1
        assert first.artifacts is second.artifacts

    def test_zk_artifacts_loaded_once(self, tmp_path):
        harness = _harness(tmp_path)
        assert harness.compiled_zk is harness.compiled_zk
        assert harness.load_zk.calls == 1

    def test_missing_zk_loader(self, tmp_path):
        harness = _harness(tmp_path, zk=False)
        with pytest.raises(RunnerBuildError, match="no zk artifacts"):
            harness.compiled_zk


class TestManifestRoot:
    def test_root_with_testdata(self, tmp_path):
        (tmp_path / "testdata").mkdir()
        assert _harness(tmp_path).manifest_root() == tmp_path

    def test_steps_up_to_shared_testdata(self, tmp_path):
        (tmp_path / "testdata").mkdir()
        crate = tmp_path / "forge"
        crate.mkdir()
        assert _harness(crate).manifest_root() == tmp_path

    def test_no_testdata_anywhere(self, tmp_path):
        crate = tmp_path / "forge"
        crate.mkdir()
        assert _harness(crate).manifest_root() == crate


class TestRunnerVariants:
    @pytest.mark.asyncio
    async def test_default_runner(self, tmp_path):
        resolver = RecordingResolver()
        runner = await _harness(tmp_path, resolver).runner()

        assert len(resolver.calls) == 1
        assert runner.env.chain_id == 31337
        assert runner.settings.cheats.fs_permissions.permissions == [
            PathPermission.read_write(tmp_path)
        ]
        assert tmp_path in runner.settings.cheats.allow_paths
        assert runner.settings.cheats.rpc_endpoints.aliases() == ["rpcAlias", "rpcEnvAlias"]
        assert runner.settings.cheats.dual_compiled_contracts == ()
        assert runner.settings.test_options.fuzz.runs == 256

    @pytest.mark.asyncio
    async def test_runner_with_config_uses_config_sender(self, tmp_path):
        sender = "0x00000000000000000000000000000000000000aa"
        config = HarnessConfig(root=tmp_path, sender=sender)
        runner = await _harness(tmp_path).runner_with_config(config)
        assert runner.settings.sender == sender

    @pytest.mark.asyncio
    async def test_runner_with_zk_carries_dual_contracts(self, tmp_path):
        resolver = RecordingResolver()
        harness = _harness(tmp_path, resolver)
        runner = await harness.runner_with_config_and_zk(HarnessConfig.with_root(tmp_path))

        dual = runner.settings.cheats.dual_compiled_contracts
        assert [d.name for d in dual] == ["Counter"]
        assert dual[0].zk_bytecode_hash == b"\xc1" * 32
        assert len(resolver.calls) == 1

    @pytest.mark.asyncio
    async def test_tracing_runner(self, tmp_path):
        resolver = RecordingResolver()
        runner = await _harness(tmp_path, resolver).tracing_runner()

        assert runner.settings.verbosity == TRACING_VERBOSITY
        assert runner.evm_opts.verbosity == TRACING_VERBOSITY
        assert [c.verbosity for c in resolver.calls] == [TRACING_VERBOSITY]

    @pytest.mark.asyncio
    async def test_forked_runner(self, tmp_path):
        resolver = RecordingResolver()
        runner = await _harness(tmp_path, resolver).forked_runner("https://rpc.example")

        assert len(resolver.calls) == 1
        assert resolver.calls[0].chain_id is None
        assert resolver.calls[0].fork_url == "https://rpc.example"
        assert runner.settings.fork is not None
        assert runner.settings.fork.url == "https://rpc.example"
        assert runner.settings.fork.env == runner.env

    @pytest.mark.asyncio
    async def test_resolution_failure(self, tmp_path):
        harness = _harness(tmp_path, RecordingResolver(fail=True))
        with pytest.raises(EnvironmentResolutionFailed, match="https://rpc.example") as exc_info:
            await harness.forked_runner("https://rpc.example")
        assert isinstance(exc_info.value.__cause__, ConnectionError)

    @pytest.mark.asyncio
    async def test_runner_variants_do_not_share_settings(self, tmp_path):
        harness = _harness(tmp_path)
        plain = await harness.runner()
        tracing = await harness.tracing_runner()
        assert plain.settings.verbosity == 0
        assert tracing.settings.verbosity == TRACING_VERBOSITY


class TestHarnessConfiguration:
    @pytest.mark.asyncio
    async def test_runner_reads_config_file(self, tmp_path):
        (tmp_path / "dualforge.yaml").write_text(
            "verbosity: 2\n"
            "fs_permissions:\n"
            "  permissions:\n"
            "    - access: read\n"
            "      path: out\n"
            "rpc_endpoints:\n"
            "  endpoints:\n"
            "    mainnet:\n"
            "      env: ${MAINNET_RPC}\n"
        )
        runner = await _harness(tmp_path).runner()

        cheats = runner.settings.cheats
        assert runner.settings.verbosity == 2
        assert cheats.rpc_endpoints.aliases() == ["rpcAlias", "rpcEnvAlias", "mainnet"]
        assert cheats.rpc_endpoints.get("mainnet").env == "${MAINNET_RPC}"
        assert cheats.fs_permissions.permissions == [
            PathPermission.read(tmp_path / "out"),
            PathPermission.read_write(tmp_path),
        ]

    @pytest.mark.asyncio
    async def test_config_endpoints_merge_over_defaults(self, tmp_path):
        config = HarnessConfig(
            root=tmp_path,
            rpc_endpoints=RpcEndpoints.new(
                [
                    ("mainnet", RpcEndpoint.from_url("https://mainnet.example")),
                    ("rpcAlias", RpcEndpoint.from_url("https://override.example")),
                ]
            ),
        )
        runner = await _harness(tmp_path).runner_with_config(config)

        endpoints = runner.settings.cheats.rpc_endpoints
        assert endpoints.aliases() == ["rpcAlias", "rpcEnvAlias", "mainnet"]
        assert endpoints.resolve("rpcAlias") == "https://override.example"
        assert endpoints.resolve("mainnet") == "https://mainnet.example"

    @pytest.mark.asyncio
    async def test_zk_runner_honours_config_verbosity(self, tmp_path):
        config = HarnessConfig(root=tmp_path, verbosity=4)
        runner = await _harness(tmp_path).runner_with_config_and_zk(config)
        assert runner.settings.verbosity == 4
