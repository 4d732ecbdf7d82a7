"""Issho: anime watch tracking with entries, votes, comments and friends."""

__version__ = "0.1.0"
