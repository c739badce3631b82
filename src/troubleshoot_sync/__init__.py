"""Sync troubleshooting articles to a database and GitHub Discussions."""

__version__ = "0.1.0"
