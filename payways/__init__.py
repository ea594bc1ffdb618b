"""PayWays — simulated global payments with a fraud-risk gate."""

__version__ = "0.1.0"
