"""Structural assertions of suite results against a literal expectation table.

Checks run in a fixed order and stop at the first mismatch:

1. number of suites run
2. every expected contract was run
3. number of tests per contract
4. pass/fail status per test
5. failure reason (only for tests expected to fail)
6. decoded log lines, when expected logs are given
7. suite warning count, when an expected count is given
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence

from dualforge.models.expectation import ExpectationEntry, normalize_expectations
from dualforge.models.result import SuiteResultMap, TestStatus


class AssertionMismatch(AssertionError):
    """First violated check of an expectation comparison.

    Attributes:
        check: Short name of the failed check (e.g. "status", "logs").
        contract: Contract the mismatch was found in, if any.
        test: Test function the mismatch was found in, if any.
    """

    def __init__(
        self,
        message: str,
        check: str,
        contract: str | None = None,
        test: str | None = None,
    ) -> None:
        self.check = check
        self.contract = contract
        self.test = test
        super().__init__(message)


def assert_multiple(
    actuals: SuiteResultMap,
    expecteds: Mapping[str, Sequence[ExpectationEntry]],
) -> None:
    """Assert the outcome of multiple tests with helpful messages.

    Args:
        actuals: Results keyed by suite name.
        expecteds: Contract name -> ordered expected tests, either
            ExpectedTest records or ``(test, should_pass, reason, logs,
            warnings)`` tuples.

    Raises:
        AssertionMismatch: On the first violated check.
    """
    table = normalize_expectations(expecteds)

    if len(actuals) != len(table):
        raise AssertionMismatch(
            f"We did not run as many contracts as we expected "
            f"(expected {len(table)}, got {len(actuals)})",
            check="suite_count",
        )

    for contract_name, tests in table.items():
        if contract_name not in actuals:
            raise AssertionMismatch(
                f"We did not run the contract {contract_name}",
                check="contract_missing",
                contract=contract_name,
            )

        suite = actuals[contract_name]
        if len(suite) != len(tests):
            raise AssertionMismatch(
                f"We did not run as many test functions as we expected for {contract_name} "
                f"(expected {len(tests)}, got {len(suite)})",
                check="test_count",
                contract=contract_name,
            )

        warnings_count = len(suite.warnings)
        for expected in tests:
            test_name = expected.test
            result = suite.test_results.get(test_name)
            if result is None:
                raise AssertionMismatch(
                    f"Test {test_name} was not run for {contract_name}",
                    check="status",
                    contract=contract_name,
                    test=test_name,
                )

            logs = result.decoded_logs
            if expected.should_pass:
                if result.status != TestStatus.Success:
                    raise AssertionMismatch(
                        f"Test {test_name} did not pass as expected.\n"
                        f"Reason: {result.reason!r}\n"
                        f"Logs:\n" + "\n".join(logs),
                        check="status",
                        contract=contract_name,
                        test=test_name,
                    )
            else:
                if result.status != TestStatus.Failure:
                    raise AssertionMismatch(
                        f"Test {test_name} did not fail as expected.\nLogs:\n" + "\n".join(logs),
                        check="status",
                        contract=contract_name,
                        test=test_name,
                    )
                if result.reason != expected.reason:
                    raise AssertionMismatch(
                        f"Failure reason for test {test_name} did not match what we expected.\n"
                        f"Expected: {expected.reason!r}\nGot: {result.reason!r}",
                        check="reason",
                        contract=contract_name,
                        test=test_name,
                    )

            if expected.logs is not None and list(logs) != list(expected.logs):
                raise AssertionMismatch(
                    f"Logs did not match for test {test_name}.\n"
                    f"Expected:\n" + "\n".join(expected.logs) + "\n\nGot:\n" + "\n".join(logs),
                    check="logs",
                    contract=contract_name,
                    test=test_name,
                )

            if expected.warning_count is not None and warnings_count != expected.warning_count:
                raise AssertionMismatch(
                    f"Warning count for test {test_name} did not match what we expected.\n"
                    f"Expected: {expected.warning_count}\nGot: {warnings_count}",
                    check="warnings",
                    contract=contract_name,
                    test=test_name,
                )
