"""
Sandboxed filesystem access for agents.

This module provides path admission against an allow-list and an adaptive
line reader that returns bounded windows of files of any size, plus thin
sandboxed wrappers for the remaining file operations.
"""

from fsgate.filesystem.config import (
    ConfigAllowedDirectories,
    ConfigLineLimit,
    FileSystemAccessConfig,
    ReaderConfig,
    StaticAllowedDirectories,
)
from fsgate.filesystem.content_types import ContentType, MimeTypeClassifier
from fsgate.filesystem.deadline import Err, Ok, Timeout, run_with_deadline
from fsgate.filesystem.exceptions import (
    FileReadTimeoutError,
    FileSystemError,
    ImageAsTextRequestedError,
    InvalidRequestError,
    PathNotAllowedError,
    PathValidationTimeoutError,
    UrlFetchError,
)
from fsgate.filesystem.lines import select_lines_exact, split_lines_preserving_endings
from fsgate.filesystem.operations import (
    FileInfo,
    FileOperations,
    MultiFileResult,
    create_file_operations,
)
from fsgate.filesystem.reader import (
    BINARY_CONTENT_MARKER,
    READ_TO_END,
    AdaptiveLineReader,
    ReadPlan,
    ReadRequest,
    ReadResult,
    ReadStrategy,
)
from fsgate.filesystem.sandbox import PathSandbox
from fsgate.filesystem.telemetry import LoggingTelemetrySink, NullTelemetrySink
from fsgate.filesystem.tools import LLMFileSystemTools

__all__ = [
    "FileSystemAccessConfig",
    "ReaderConfig",
    "StaticAllowedDirectories",
    "ConfigAllowedDirectories",
    "ConfigLineLimit",
    "ContentType",
    "MimeTypeClassifier",
    "Ok",
    "Timeout",
    "Err",
    "run_with_deadline",
    "FileSystemError",
    "PathNotAllowedError",
    "PathValidationTimeoutError",
    "FileReadTimeoutError",
    "InvalidRequestError",
    "ImageAsTextRequestedError",
    "UrlFetchError",
    "split_lines_preserving_endings",
    "select_lines_exact",
    "FileInfo",
    "FileOperations",
    "MultiFileResult",
    "create_file_operations",
    "BINARY_CONTENT_MARKER",
    "AdaptiveLineReader",
    "ReadPlan",
    "READ_TO_END",
    "ReadRequest",
    "ReadResult",
    "ReadStrategy",
    "PathSandbox",
    "LoggingTelemetrySink",
    "NullTelemetrySink",
    "LLMFileSystemTools",
]
