"""Semantic movie search over MongoDB Atlas Vector Search."""

__version__ = "1.0.0"
