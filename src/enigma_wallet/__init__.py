"""Multi-chain wallet balance aggregation."""

__version__ = "0.1.0"
