"""Orchestration core for a token-swap widget backed by a swap aggregator."""

__version__ = "0.1.0"
