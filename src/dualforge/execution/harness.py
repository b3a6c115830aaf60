"""Harness: the bootstrap root that owns compiled artifacts and builds runners.

Compiled artifact sets are loaded lazily on first use and then cached on
the harness, so every runner built from one harness shares the same
immutable sets by reference.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from functools import cached_property
from pathlib import Path

from dualforge.execution.builder import (
    CheatsConfig,
    RunnerSettings,
    base_settings,
    build_runner,
    resolve_environment,
    rpc_endpoints,
    test_opts,
    with_overrides,
)
from dualforge.execution.correlator import correlate
from dualforge.execution.errors import RunnerBuildError
from dualforge.execution.interfaces import (
    ConsoleLogDecoder,
    ContractExecutor,
    ExecutionEnvironment,
    ExecutionEnvironmentResolver,
    Utf8LogDecoder,
)
from dualforge.execution.runner import MultiContractRunner
from dualforge.log import init_logging
from dualforge.models.artifacts import ArtifactSet, DualCompiledContract
from dualforge.models.config import (
    EvmOpts,
    FsPermissions,
    HarnessConfig,
    PathPermission,
    load_harness_config,
)

logger = logging.getLogger(__name__)

TRACING_VERBOSITY = 5


@dataclass
class Harness:
    """Owns the compiled artifacts and collaborators every runner is built from.

    Attributes:
        root: Project root the artifacts were compiled from.
        load_evm: Produces the EVM artifact set; called at most once.
        load_zk: Produces the zk artifact set; called at most once. None
            when the project has no zk build.
        evm_opts: Base execution environment descriptor.
        resolver: Resolves evm_opts into an execution environment.
        executor: Runs individual test functions.
        log_decoder: Decodes raw logs into console lines.
    """

    root: Path
    load_evm: Callable[[], ArtifactSet]
    resolver: ExecutionEnvironmentResolver
    executor: ContractExecutor
    load_zk: Callable[[], ArtifactSet] | None = None
    evm_opts: EvmOpts = field(default_factory=EvmOpts)
    log_decoder: ConsoleLogDecoder = field(default_factory=Utf8LogDecoder)

    @cached_property
    def compiled(self) -> ArtifactSet:
        logger.debug("loading EVM artifacts for %s", self.root)
        return self.load_evm()

    @cached_property
    def compiled_zk(self) -> ArtifactSet:
        if self.load_zk is None:
            raise RunnerBuildError(f"no zk artifacts configured for {self.root}")
        logger.debug("loading zk artifacts for %s", self.root)
        return self.load_zk()

    def manifest_root(self) -> Path:
        """Directory tests may read and write.

        Steps up one level when the fixtures live beside the root rather
        than inside it, so the shared ``testdata`` directory stays reachable.
        """
        root = self.root
        if not (root / "testdata").exists() and (root.parent / "testdata").exists():
            root = root.parent
        return root

    def base_settings(self) -> RunnerSettings:
        init_logging()
        return base_settings(self.evm_opts.sender)

    def config(self) -> HarnessConfig:
        """Harness configuration from the root's dualforge.yaml, or defaults."""
        return load_harness_config(self.root)

    def _cheats(self, config: HarnessConfig, dual: list[DualCompiledContract]) -> CheatsConfig:
        return CheatsConfig(
            rpc_endpoints=rpc_endpoints().merged(config.rpc_endpoints),
            fs_permissions=config.fs_permissions.joined(config.root),
            allow_paths=(*config.allow_paths, self.manifest_root()),
            dual_compiled_contracts=tuple(dual),
        )

    def _build(
        self, settings: RunnerSettings, env: ExecutionEnvironment, opts: EvmOpts
    ) -> MultiContractRunner:
        return build_runner(
            self.root,
            self.compiled,
            env,
            opts,
            settings,
            self.executor,
            self.log_decoder,
        )

    async def runner(self) -> MultiContractRunner:
        """Builds a non-tracing runner from the root's configuration.

        The manifest root is always readable and writable on top of any
        permissions the configuration grants.
        """
        config = self.config()
        permissions = [
            *config.fs_permissions.permissions,
            PathPermission.read_write(self.manifest_root()),
        ]
        config = config.model_copy(update={"fs_permissions": FsPermissions.new(permissions)})
        return await self.runner_with_config(config)

    async def runner_with_config(self, config: HarnessConfig) -> MultiContractRunner:
        """Builds a non-tracing runner from harness configuration."""
        env = await resolve_environment(self.resolver, self.evm_opts)
        settings = with_overrides(
            self.base_settings(),
            test_options=test_opts(),
            cheats=self._cheats(config, []),
            sender=config.sender,
            verbosity=config.verbosity,
        )
        return self._build(settings, env, self.evm_opts)

    async def runner_with_config_and_zk(self, config: HarnessConfig) -> MultiContractRunner:
        """Builds a non-tracing runner carrying dual-compiled contracts.

        A sparse correlation is not an error here; the count is logged so
        callers can judge it.
        """
        env = await resolve_environment(self.resolver, self.evm_opts)
        dual_compiled_contracts = correlate(self.compiled, self.compiled_zk)
        logger.info(
            "correlated %d dual-compiled contracts", len(dual_compiled_contracts)
        )
        settings = with_overrides(
            self.base_settings(),
            test_options=test_opts(),
            cheats=self._cheats(config, dual_compiled_contracts),
            sender=config.sender,
            verbosity=config.verbosity,
        )
        return self._build(settings, env, self.evm_opts)

    async def tracing_runner(self) -> MultiContractRunner:
        """Builds a tracing runner."""
        opts = self.evm_opts.model_copy(update={"verbosity": TRACING_VERBOSITY})
        env = await resolve_environment(self.resolver, opts)
        settings = with_overrides(self.base_settings(), verbosity=TRACING_VERBOSITY)
        return self._build(settings, env, opts)

    async def forked_runner(self, rpc: str) -> MultiContractRunner:
        """Builds a runner that runs against forked state."""
        # clear chain id so the correct one gets fetched from the RPC
        opts = self.evm_opts.model_copy(update={"chain_id": None, "fork_url": rpc})
        env = await resolve_environment(self.resolver, opts)
        fork = self.resolver.get_fork(opts, env)
        settings = with_overrides(self.base_settings(), fork=fork)
        return self._build(settings, env, opts)
