"""
Path sandbox: decides whether a path may be touched at all.
"""

import asyncio
import logging
import os
from typing import Optional

from fsgate.filesystem.config import AllowedDirectoriesProvider
from fsgate.filesystem.deadline import Err, Timeout, run_with_deadline
from fsgate.filesystem.exceptions import (
    PathNotAllowedError,
    PathValidationTimeoutError,
)
from fsgate.filesystem.paths import expand_home, has_valid_ancestor, is_within_allowed
from fsgate.filesystem.telemetry import TelemetrySink, emit

logger = logging.getLogger(__name__)


class PathSandbox:
    """
    Admits or rejects paths against an allow-list and resolves them.

    The allow-list provider is queried on every call; nothing is cached.

    Usage:
        sandbox = PathSandbox(StaticAllowedDirectories(["/srv/data"]))

        try:
            real_path = await sandbox.validate("/srv/data/report.txt")
        except PathNotAllowedError as e:
            print(f"Denied: {e}")
    """

    def __init__(
        self,
        allowed_directories: AllowedDirectoriesProvider,
        telemetry: Optional[TelemetrySink] = None,
        timeout_seconds: float = 10.0,
    ):
        """
        Initialize the sandbox.

        Args:
            allowed_directories: Source of the current allow-list
            telemetry: Optional sink for denial and timeout events
            timeout_seconds: Deadline for a complete validation
        """
        self.allowed_directories = allowed_directories
        self.telemetry = telemetry
        self.timeout_seconds = timeout_seconds

    def is_path_allowed(self, path: str) -> bool:
        """Check an absolute path against the current allow-list."""
        return is_within_allowed(path, self.allowed_directories.get_allowed_directories())

    async def validate(self, requested_path: str) -> str:
        """
        Validate a path and return the form later operations should use.

        Args:
            requested_path: Path as supplied by the caller

        Returns:
            The real path (symlinks resolved) if the target exists, otherwise
            the absolute unresolved path

        Raises:
            PathNotAllowedError: If the path is outside every allowed directory
            PathValidationTimeoutError: If validation exceeds the deadline
        """
        outcome = await run_with_deadline(
            asyncio.to_thread(self._validate_sync, requested_path),
            self.timeout_seconds,
            "Path validation operation",
        )

        if isinstance(outcome, Timeout):
            emit(
                self.telemetry,
                "server_path_validation_timeout",
                {"timeout_ms": int(self.timeout_seconds * 1000)},
            )
            raise PathValidationTimeoutError(requested_path, self.timeout_seconds)

        if isinstance(outcome, Err):
            raise outcome.error

        return outcome.value

    def _validate_sync(self, requested_path: str) -> str:
        expanded = expand_home(requested_path)
        absolute = os.path.abspath(expanded)

        allowed = self.allowed_directories.get_allowed_directories()
        if not is_within_allowed(absolute, allowed):
            emit(
                self.telemetry,
                "server_path_validation_error",
                {"error": "Path not allowed", "allowed_dirs_count": len(allowed)},
            )
            logger.warning(f"Access denied to {requested_path}: not within allowed directories")
            raise PathNotAllowedError(requested_path, allowed)

        if os.path.exists(absolute):
            return os.path.realpath(absolute)

        # Not-yet-existing targets are returned as-is; whatever operation
        # uses the path next reports a missing parent.
        if not has_valid_ancestor(absolute):
            logger.debug(f"No existing ancestor for {absolute}")
        return absolute
