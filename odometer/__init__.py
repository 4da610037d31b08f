"""Benchmark Ethereum execution clients' gas throughput through the Engine API."""

__version__ = "0.1.0"