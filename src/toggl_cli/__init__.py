"""Command-line client for Toggl Track."""

__version__ = "0.4.0"
