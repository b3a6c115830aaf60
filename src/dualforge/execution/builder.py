"""Runner configuration: default test options, settings records, and build().

Settings are explicit frozen records. Variants are derived from a base
record with with_overrides(), so there is no mutable builder state to
track between calls.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field

from dualforge.execution.errors import EnvironmentResolutionFailed, RunnerBuildError
from dualforge.execution.interfaces import (
    ConsoleLogDecoder,
    ContractExecutor,
    CreateFork,
    ExecutionEnvironment,
    ExecutionEnvironmentResolver,
    Utf8LogDecoder,
)
from dualforge.execution.runner import MultiContractRunner, is_test_contract
from dualforge.models.artifacts import ArtifactSet, DualCompiledContract
from dualforge.models.config import (
    DEFAULT_SENDER,
    EvmOpts,
    FsPermissions,
    FuzzConfig,
    FuzzDictionaryConfig,
    InvariantConfig,
    RpcEndpoint,
    RpcEndpoints,
    TestOptions,
)

logger = logging.getLogger(__name__)

DEFAULT_EVM_SPEC = "cancun"


class CheatsConfig(BaseModel):
    """Settings exposed to cheatcodes: endpoints, sandbox rules, dual contracts."""

    model_config = {"extra": "forbid", "frozen": True}

    rpc_endpoints: RpcEndpoints = Field(default_factory=RpcEndpoints)
    fs_permissions: FsPermissions = Field(default_factory=FsPermissions)
    allow_paths: tuple[Path, ...] = ()
    dual_compiled_contracts: tuple[DualCompiledContract, ...] = ()


class RunnerSettings(BaseModel):
    """Everything a runner needs besides artifacts and its environment."""

    model_config = {"extra": "forbid", "frozen": True}

    sender: str = DEFAULT_SENDER
    test_options: TestOptions = Field(default_factory=TestOptions)
    cheats: CheatsConfig = Field(default_factory=CheatsConfig)
    fork: CreateFork | None = None
    evm_spec: str = DEFAULT_EVM_SPEC
    verbosity: int = 0


def test_opts(**overrides: Any) -> TestOptions:
    """Return the default fuzz/invariant options, optionally overridden.

    Keyword arguments replace top-level fields (``fuzz``, ``invariant``).
    """
    options = TestOptions(
        fuzz=FuzzConfig(
            runs=256,
            max_test_rejects=65536,
            seed=None,
            dictionary=FuzzDictionaryConfig(
                include_storage=True,
                include_push_bytes=True,
                dictionary_weight=40,
                max_fuzz_dictionary_addresses=10_000,
                max_fuzz_dictionary_values=10_000,
            ),
        ),
        invariant=InvariantConfig(
            runs=256,
            depth=15,
            fail_on_revert=False,
            call_override=False,
            dictionary=FuzzDictionaryConfig(
                dictionary_weight=80,
                include_storage=True,
                include_push_bytes=True,
                max_fuzz_dictionary_addresses=10_000,
                max_fuzz_dictionary_values=10_000,
            ),
            shrink_sequence=True,
            shrink_run_limit=2**18,
        ),
    )
    if overrides:
        options = TestOptions.model_validate({**dict(options), **overrides})
    return options


test_opts.__test__ = False  # type: ignore[attr-defined]


def rpc_endpoints() -> RpcEndpoints:
    """The RPC endpoints available to tests."""
    return RpcEndpoints.new(
        [
            ("rpcAlias", RpcEndpoint.from_url("https://eth-mainnet.public.blastapi.io")),
            ("rpcEnvAlias", RpcEndpoint.from_env("${RPC_ENV_ALIAS}")),
        ]
    )


def base_settings(sender: str = DEFAULT_SENDER) -> RunnerSettings:
    """Settings shared by every runner before per-runner overrides."""
    return RunnerSettings(sender=sender, test_options=test_opts())


def with_overrides(base: RunnerSettings, **changes: Any) -> RunnerSettings:
    """Return a copy of base with the given fields replaced.

    The result is validated like a freshly built record.

    Raises:
        ValueError: If a field name is unknown.
        pydantic.ValidationError: If a value does not fit its field.
    """
    unknown = set(changes) - set(RunnerSettings.model_fields)
    if unknown:
        raise ValueError(f"unknown runner settings: {sorted(unknown)}")
    return RunnerSettings.model_validate({**dict(base), **changes})


async def resolve_environment(
    resolver: ExecutionEnvironmentResolver,
    opts: EvmOpts,
) -> ExecutionEnvironment:
    """Resolve the execution environment once, wrapping any failure.

    Raises:
        EnvironmentResolutionFailed: If the resolver raises.
    """
    try:
        return await resolver.resolve(opts)
    except Exception as exc:
        raise EnvironmentResolutionFailed(opts.fork_url, exc) from exc


def build_runner(
    root: Path,
    artifacts: ArtifactSet,
    environment: ExecutionEnvironment,
    opts: EvmOpts,
    settings: RunnerSettings,
    executor: ContractExecutor,
    log_decoder: ConsoleLogDecoder | None = None,
) -> MultiContractRunner:
    """Assemble a runner from pre-resolved parts.

    Raises:
        RunnerBuildError: If a test contract has no deployable creation
            bytecode (for example, unlinked library references).
    """
    unlinked = [
        name
        for name, artifact in artifacts.artifacts()
        if is_test_contract(artifact) and artifact.get_bytecode_bytes() is None
    ]
    if unlinked:
        raise RunnerBuildError(
            f"test contracts without deployable bytecode: {', '.join(unlinked)}"
        )

    logger.debug(
        "building runner at %s: %d artifacts, %d dual-compiled, fork=%s",
        root,
        len(artifacts),
        len(settings.cheats.dual_compiled_contracts),
        settings.fork.url if settings.fork else None,
    )
    return MultiContractRunner(
        root=root,
        artifacts=artifacts,
        env=environment,
        evm_opts=opts,
        settings=settings,
        executor=executor,
        log_decoder=log_decoder or Utf8LogDecoder(),
    )
