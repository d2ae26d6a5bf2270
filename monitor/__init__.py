"""Spirulina Monitor — sensor relay and dashboard backend."""
