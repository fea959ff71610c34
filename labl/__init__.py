"""Command-line management of GitHub issue labels."""

__version__ = "0.1.0"
