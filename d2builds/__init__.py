"""Destiny 2 build finder: catalog indexing and build-synergy recommendations."""

__version__ = "0.1.0"
