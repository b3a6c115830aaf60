"""Error types raised by runner construction, suite execution, and verification.

None of these are retried inside dualforge; each surfaces to the
immediate caller.
"""

from __future__ import annotations


class DualforgeError(Exception):
    """Base class for harness errors."""


class FilterMatchedNothing(DualforgeError):
    """Raised when a run produced no results at all."""

    def __init__(self, filter_description: str | None = None) -> None:
        self.filter_description = filter_description
        detail = f" (filter: {filter_description})" if filter_description else ""
        super().__init__(f"empty test result{detail}")


class EnvironmentResolutionFailed(DualforgeError):
    """Raised when fork/RPC environment setup fails during runner construction.

    The resolver's exception is chained as ``__cause__``.
    """

    def __init__(self, fork_url: str | None, cause: BaseException) -> None:
        self.fork_url = fork_url
        target = fork_url or "local environment"
        super().__init__(f"could not instantiate fork environment for {target}: {cause}")


class RunnerBuildError(DualforgeError):
    """Raised when artifacts cannot be turned into a runner."""


class TraceRenderFailed(DualforgeError):
    """Raised when a single call-trace arena fails to render.

    Attributes:
        index: Position of the arena in the test's trace list.
    """

    def __init__(self, index: int, cause: BaseException) -> None:
        self.index = index
        super().__init__(f"failed to render trace #{index}: {cause}")


class OutcomeMismatch(DualforgeError):
    """Raised when a test's status contradicts the should-fail policy.

    The message is the complete diagnostic, ready for display.

    Attributes:
        test_name: Name of the offending test function.
        outcome: The expected outcome label, "pass" or "fail".
        reason: Failure reason reported by the executor, if any.
        logs: Decoded console log lines.
        traces: Rendered call traces in traversal order.
    """

    def __init__(
        self,
        test_name: str,
        outcome: str,
        reason: str | None,
        logs: list[str],
        traces: list[str],
    ) -> None:
        self.test_name = test_name
        self.outcome = outcome
        self.reason = reason
        self.logs = logs
        self.traces = traces
        super().__init__(
            f"Test {test_name} did not {outcome} as expected.\n"
            f"Reason: {reason!r}\n"
            f"Logs:\n{chr(10).join(logs)}\n\n"
            f"Traces:\n{chr(10).join(traces)}"
        )
