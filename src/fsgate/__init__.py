"""
fsgate - sandboxed file access for agents.

This package decides which host paths an external agent may touch and reads
bounded line windows from files of any size without loading them whole.
"""

__version__ = "0.1.0"

from fsgate.filesystem import (
    AdaptiveLineReader,
    FileOperations,
    FileReadTimeoutError,
    FileSystemAccessConfig,
    FileSystemError,
    ImageAsTextRequestedError,
    InvalidRequestError,
    LLMFileSystemTools,
    PathNotAllowedError,
    PathSandbox,
    PathValidationTimeoutError,
    ReadResult,
    ReaderConfig,
    create_file_operations,
)

from fsgate.settings import FsgateSettings

__all__ = [
    # Version
    "__version__",
    # Config
    "FileSystemAccessConfig",
    "ReaderConfig",
    "FsgateSettings",
    # Core
    "PathSandbox",
    "AdaptiveLineReader",
    "ReadResult",
    "FileOperations",
    "create_file_operations",
    "LLMFileSystemTools",
    # Errors
    "FileSystemError",
    "PathNotAllowedError",
    "PathValidationTimeoutError",
    "FileReadTimeoutError",
    "InvalidRequestError",
    "ImageAsTextRequestedError",
]
