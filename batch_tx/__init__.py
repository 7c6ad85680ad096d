"""Atomic transaction batching: the executor contract and the client SDK."""

__version__ = "0.1.0"
