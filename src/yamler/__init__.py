"""Yamler: fuzzy search over remote Helm values files."""

__version__ = "0.1.0"
