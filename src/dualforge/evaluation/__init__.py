"""dualforge evaluation - expectation table assertions."""

from dualforge.evaluation.assertions import AssertionMismatch, assert_multiple

__all__ = [
    "AssertionMismatch",
    "assert_multiple",
]
