"""Embedding providers and the vector storage layer."""
