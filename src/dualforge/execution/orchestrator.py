"""ExecutionOrchestrator: runs a filtered suite and enforces a should-fail policy.

On the first test whose status contradicts the policy, a diagnostic is
assembled from the decoded console logs and every call-trace arena of
that test, rendered concurrently. If any render fails, no diagnostic is
produced and the render error propagates instead.
"""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from dualforge.execution.builder import test_opts, with_overrides
from dualforge.execution.concurrency import gather_all
from dualforge.execution.errors import (
    FilterMatchedNothing,
    OutcomeMismatch,
    TraceRenderFailed,
)
from dualforge.execution.filter import TestFilter
from dualforge.execution.interfaces import (
    ConsoleLogDecoder,
    PlainTraceRenderer,
    TraceRenderer,
)
from dualforge.execution.runner import MultiContractRunner
from dualforge.log import init_logging
from dualforge.models.config import TestOptions
from dualforge.models.result import CallTraceArena, SuiteResultMap, TestResult, TestStatus

if TYPE_CHECKING:
    from dualforge.execution.harness import Harness

logger = logging.getLogger(__name__)


def violates_policy(result: TestResult, should_fail: bool) -> bool:
    """True if the result's status contradicts the should-fail policy."""
    if should_fail:
        return result.status == TestStatus.Success
    return result.status == TestStatus.Failure


async def _render_one(renderer: TraceRenderer, index: int, arena: CallTraceArena) -> str:
    try:
        return await renderer.render(arena)
    except Exception as exc:
        raise TraceRenderFailed(index, exc) from exc


async def render_traces(result: TestResult, renderer: TraceRenderer) -> list[str]:
    """Render every arena of a test concurrently, in traversal order.

    Raises:
        TraceRenderFailed: On the first arena that fails to render.
    """
    return await gather_all(
        _render_one(renderer, i, arena) for i, (_, arena) in enumerate(result.traces)
    )


async def render_diagnostic(
    test_name: str,
    result: TestResult,
    should_fail: bool,
    log_decoder: ConsoleLogDecoder,
    renderer: TraceRenderer,
) -> OutcomeMismatch:
    """Build the OutcomeMismatch for a test that broke the policy."""
    logs = result.decoded_logs or log_decoder.decode(result.logs)
    traces = await render_traces(result, renderer)
    outcome = "fail" if should_fail else "pass"
    return OutcomeMismatch(test_name, outcome, result.reason, logs, traces)


async def verify_outcomes(
    results: SuiteResultMap,
    should_fail: bool,
    *,
    log_decoder: ConsoleLogDecoder,
    renderer: TraceRenderer | None = None,
) -> None:
    """Check every result against the should-fail policy.

    Raises:
        FilterMatchedNothing: If results is empty.
        OutcomeMismatch: On the first test contradicting the policy.
        TraceRenderFailed: If that test's diagnostic could not be rendered.
    """
    if not results:
        raise FilterMatchedNothing()

    renderer = renderer or PlainTraceRenderer()
    for suite_name, suite in sorted(results.items()):
        for test_name, result in sorted(suite.test_results.items()):
            if violates_policy(result, should_fail):
                logger.debug("%s::%s violated should_fail=%s", suite_name, test_name, should_fail)
                raise await render_diagnostic(
                    test_name, result, should_fail, log_decoder, renderer
                )


@dataclass(frozen=True)
class ExecutionOrchestrator:
    """How to execute a test run: runner, filter, options, and policy."""

    runner: MultiContractRunner
    should_fail: bool = False
    filter: TestFilter = field(default_factory=TestFilter.matches_all)
    opts: TestOptions = field(default_factory=test_opts)
    renderer: TraceRenderer = field(default_factory=PlainTraceRenderer)

    @classmethod
    def new(cls, runner: MultiContractRunner) -> ExecutionOrchestrator:
        return cls.with_filter(runner, TestFilter.matches_all())

    @classmethod
    def with_filter(cls, runner: MultiContractRunner, filter: TestFilter) -> ExecutionOrchestrator:
        init_logging()
        return cls(runner=runner, filter=filter)

    @classmethod
    async def filter_with(cls, harness: Harness, filter: TestFilter) -> ExecutionOrchestrator:
        """Orchestrate the harness's default runner under filter."""
        return cls.with_filter(await harness.runner(), filter)

    def with_should_fail(self, should_fail: bool) -> ExecutionOrchestrator:
        return dataclasses.replace(self, should_fail=should_fail)

    def expect_failure(self) -> ExecutionOrchestrator:
        return self.with_should_fail(True)

    def with_evm_spec(self, spec: str) -> ExecutionOrchestrator:
        settings = with_overrides(self.runner.settings, evm_spec=spec)
        return dataclasses.replace(self, runner=dataclasses.replace(self.runner, settings=settings))

    def with_renderer(self, renderer: TraceRenderer) -> ExecutionOrchestrator:
        return dataclasses.replace(self, renderer=renderer)

    async def test(self) -> SuiteResultMap:
        """Executes the runner and returns every result."""
        return await self.runner.test_collect(self.filter, self.opts)

    async def verify(self, results: SuiteResultMap) -> None:
        """Checks results against this orchestrator's should-fail policy."""
        if not results:
            raise FilterMatchedNothing(self.filter.describe())
        await verify_outcomes(
            results,
            self.should_fail,
            log_decoder=self.runner.log_decoder,
            renderer=self.renderer,
        )

    async def run(self) -> SuiteResultMap:
        """Executes the test case.

        Raises if the filter matched no tests or a result deviates from
        the configured should-fail setting.
        """
        results = await self.test()
        await self.verify(results)
        return results
