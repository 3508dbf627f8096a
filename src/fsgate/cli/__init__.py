"""
CLI module for fsgate.

Provides a command-line interface for validating paths and reading files
through the sandbox.
"""

from fsgate.cli.main import cli

__all__ = ["cli"]
