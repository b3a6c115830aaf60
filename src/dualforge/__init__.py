"""dualforge - differential contract-test harness for EVM and zk backends."""

__version__ = "0.1.0"
