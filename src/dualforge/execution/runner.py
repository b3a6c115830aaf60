"""MultiContractRunner: discovers test functions and executes them concurrently.

Every selected test function runs as its own task against the injected
ContractExecutor. Tests do not share state, and results are addressed
only by contract and test name, never by completion order.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from dualforge.execution.concurrency import gather_all
from dualforge.execution.filter import TestFilter
from dualforge.execution.interfaces import (
    ConsoleLogDecoder,
    ContractExecutor,
    ExecutionEnvironment,
)
from dualforge.models.artifacts import ArtifactSet, CompiledArtifact
from dualforge.models.config import EvmOpts, TestOptions
from dualforge.models.result import SuiteResult, SuiteResultMap, TestResult

if TYPE_CHECKING:
    from dualforge.execution.builder import RunnerSettings

logger = logging.getLogger(__name__)

TEST_PREFIXES: tuple[str, ...] = ("test", "invariant", "statefulFuzz")


def is_test_function(name: str) -> bool:
    return name.startswith(TEST_PREFIXES)


def is_test_contract(artifact: CompiledArtifact) -> bool:
    return any(is_test_function(f) for f in artifact.abi_functions)


def setup_warnings(artifact: CompiledArtifact) -> list[str]:
    """Warn about functions that look like a misspelled ``setUp``."""
    return [
        f'Found invalid setup function "{name}" did you mean "setUp()"?'
        for name in artifact.abi_functions
        if name.lower() == "setup" and name != "setUp"
    ]


@dataclass
class MultiContractRunner:
    """Runs the test functions of every matching contract in an ArtifactSet.

    Constructed by ``builder.build_runner()``; the artifact set is only
    read, never modified.
    """

    root: Path
    artifacts: ArtifactSet
    env: ExecutionEnvironment
    evm_opts: EvmOpts
    settings: RunnerSettings
    executor: ContractExecutor
    log_decoder: ConsoleLogDecoder

    def matching_test_functions(self, filter: TestFilter) -> dict[str, list[str]]:
        """Return contract name -> selected test function names."""
        selected: dict[str, list[str]] = {}
        for name, artifact in self.artifacts.artifacts():
            if not is_test_contract(artifact):
                continue
            if not filter.matches_contract(name) or not filter.matches_path(artifact.source_path):
                continue
            # overloaded functions repeat their name in the abi
            tests = list(
                dict.fromkeys(
                    f for f in artifact.abi_functions if is_test_function(f) and filter.matches_test(f)
                )
            )
            if tests:
                selected[name] = tests
        return selected

    async def test_collect(self, filter: TestFilter, options: TestOptions) -> SuiteResultMap:
        """Execute every matching test and collect results by suite and test name."""
        selected = self.matching_test_functions(filter)
        logger.info(
            "running %d tests across %d contracts",
            sum(len(t) for t in selected.values()),
            len(selected),
        )

        suites = await gather_all(
            self._run_suite(contract, tests, options) for contract, tests in selected.items()
        )
        return dict(zip(selected, suites))

    async def _run_suite(
        self,
        contract: str,
        tests: list[str],
        options: TestOptions,
    ) -> SuiteResult:
        artifact = self.artifacts[contract]
        start_time = time.perf_counter()
        results = await gather_all(
            self._run_test(contract, artifact, test, options) for test in tests
        )
        return SuiteResult(
            test_results=dict(zip(tests, results)),
            warnings=setup_warnings(artifact),
            duration_seconds=time.perf_counter() - start_time,
        )

    async def _run_test(
        self,
        contract: str,
        artifact: CompiledArtifact,
        test: str,
        options: TestOptions,
    ) -> TestResult:
        result = await self.executor.execute(
            contract, artifact, test, options, self.settings, self.env
        )
        if result.logs and not result.decoded_logs:
            result = result.model_copy(
                update={"decoded_logs": self.log_decoder.decode(result.logs)}
            )
        logger.debug("%s::%s -> %s", contract, test, result.status.value)
        return result
