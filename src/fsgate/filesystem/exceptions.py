"""
Exceptions for sandboxed filesystem operations.
"""

from typing import Sequence


class FileSystemError(Exception):
    """Base exception for filesystem operations."""

    pass


class PathNotAllowedError(FileSystemError):
    """Raised when a path resolves outside every allowed directory."""

    def __init__(self, path: str, allowed_directories: Sequence[str] = ()):
        self.path = path
        self.allowed_directories = list(allowed_directories)
        super().__init__(
            f"Path not allowed: {path}. Must be within one of these directories: "
            f"{', '.join(self.allowed_directories)}"
        )


class PathValidationTimeoutError(FileSystemError):
    """Raised when path validation does not finish before its deadline."""

    def __init__(self, path: str, timeout: float):
        self.path = path
        self.timeout = timeout
        super().__init__(f"Path validation failed for path: {path}")


class FileReadTimeoutError(FileSystemError):
    """Raised when a read does not finish before its deadline."""

    def __init__(self, path: str, timeout: float):
        self.path = path
        self.timeout = timeout
        super().__init__(f"Failed to read the file within {timeout:g}s: {path}")


class InvalidRequestError(FileSystemError):
    """Raised when a request is missing a path or carries a malformed one."""

    def __init__(self, path: object, reason: str = "Invalid file path provided"):
        self.path = path
        self.reason = reason
        super().__init__(f"{reason}: {path!r}")


class ImageAsTextRequestedError(FileSystemError):
    """Raised when an exact text read targets a file classified as an image."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"Cannot read image files as text for internal operations: {path}")


class UrlFetchError(FileSystemError):
    """Raised when fetching a URL fails or times out."""

    def __init__(self, url: str, reason: str):
        self.url = url
        self.reason = reason
        super().__init__(reason)
