"""Settings and search configuration for Semantic Movie Search."""
