"""Analyze, store and query strings by their SHA-256 content hash."""

__version__ = "1.0.0"
