"""Collaborator interfaces consumed by the runner and orchestrator.

The bytecode executor, environment resolver, trace renderer, and
console-log decoder all live outside dualforge. Each is an ABC here so
callers can inject a real backend or a test double. Two lightweight
defaults are provided for the decoder and renderer.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from dualforge.models.result import CallTraceArena, RawLog, TestResult

if TYPE_CHECKING:
    from dualforge.execution.builder import RunnerSettings
    from dualforge.models.artifacts import CompiledArtifact
    from dualforge.models.config import EvmOpts, TestOptions


@dataclass(frozen=True)
class ExecutionEnvironment:
    """Resolved chain environment a runner executes against."""

    chain_id: int | None
    block_number: int = 0
    timestamp: int = 0
    gas_limit: int = 2**63 - 1
    extra: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class CreateFork:
    """Handle describing a fork to run tests against."""

    url: str
    env: ExecutionEnvironment
    block_number: int | None = None


class ExecutionEnvironmentResolver(ABC):
    """Turns an EvmOpts descriptor into a concrete environment."""

    @abstractmethod
    async def resolve(self, opts: EvmOpts) -> ExecutionEnvironment:
        """Resolve the environment, fetching fork state if opts names a fork URL."""
        ...

    def get_fork(self, opts: EvmOpts, env: ExecutionEnvironment) -> CreateFork | None:
        """Return a fork handle for opts, or None when no fork URL is set."""
        if opts.fork_url is None:
            return None
        return CreateFork(url=opts.fork_url, env=env, block_number=opts.fork_block_number)


class ContractExecutor(ABC):
    """Executes one test function of one compiled contract."""

    @abstractmethod
    async def execute(
        self,
        contract: str,
        artifact: CompiledArtifact,
        test: str,
        options: TestOptions,
        settings: RunnerSettings,
        env: ExecutionEnvironment,
    ) -> TestResult:
        ...


class TraceRenderer(ABC):
    """Formats a call-trace arena for display."""

    @abstractmethod
    async def render(self, arena: CallTraceArena) -> str:
        ...


class ConsoleLogDecoder(ABC):
    """Decodes raw log records into console lines."""

    @abstractmethod
    def decode(self, logs: list[RawLog]) -> list[str]:
        ...


class Utf8LogDecoder(ConsoleLogDecoder):
    """Reads each record's data as UTF-8 text, skipping empty payloads."""

    def decode(self, logs: list[RawLog]) -> list[str]:
        return [log.data.decode("utf-8", errors="replace") for log in logs if log.data]


class PlainTraceRenderer(TraceRenderer):
    """Renders an arena as an indented call tree."""

    async def render(self, arena: CallTraceArena) -> str:
        root = arena.root()
        if root is None:
            return ""
        lines: list[str] = []
        self._render_node(arena, root.idx, 0, lines)
        return "\n".join(lines)

    def _render_node(self, arena: CallTraceArena, idx: int, indent: int, lines: list[str]) -> None:
        node = arena.nodes[idx]
        marker = "" if node.success else " [reverted]"
        target = node.label or node.address
        lines.append(f"{'  ' * indent}[{node.gas_used}] {node.kind} {target}{marker}")
        for child in node.children:
            self._render_node(arena, child, indent + 1, lines)
