"""Fluent HTTP request builder and single-shot executor."""

__version__ = "0.1.0"
