"""Rerun GitHub Actions workflows from pull request comments."""

__version__ = "0.1.0"
