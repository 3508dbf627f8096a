"""
Configuration and configuration providers for sandboxed filesystem access.
"""

from typing import Protocol, Sequence

from pydantic import BaseModel, Field, field_validator

from fsgate.filesystem.paths import expand_home

MIB = 1024 * 1024


class ReaderConfig(BaseModel):
    """
    Thresholds that steer the adaptive line reader.

    Strategy choice is a performance decision only; changing these values
    never changes which lines a tail or head read returns.
    """

    large_file_threshold_bytes: int = Field(
        default=10 * MIB,
        ge=0,
        description="Files larger than this get bounded-memory tail reads and estimated seeks",
    )

    small_tail_threshold_lines: int = Field(
        default=100,
        ge=0,
        description="Largest tail request served by reading backwards in chunks",
    )

    estimate_offset_threshold_lines: int = Field(
        default=1000,
        ge=0,
        description="Offsets beyond this into a large file use an estimated byte position",
    )

    tail_chunk_size_bytes: int = Field(
        default=8192,
        ge=1,
        description="Chunk size for reading backwards from end of file",
    )

    estimate_sample_size_bytes: int = Field(
        default=10_000,
        ge=1,
        description="Bytes sampled from the start of a file to estimate average line length",
    )


class FileSystemAccessConfig(BaseModel):
    """
    Configuration for agent filesystem access.

    ``allowed_directories`` is read on every validation, so mutating it on a
    live config takes effect on the very next call.
    """

    allowed_directories: list[str] = Field(
        default_factory=list,
        description="Directories that may be accessed (empty or '/' = everything)",
    )

    file_read_line_limit: int = Field(
        default=1000,
        ge=0,
        description="Lines returned by a read that does not specify a length",
    )

    path_validation_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        description="Deadline for allow-list lookup, stat and symlink resolution",
    )

    file_read_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Deadline for a complete file read",
    )

    url_fetch_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Deadline for fetching a URL",
    )

    reader: ReaderConfig = Field(
        default_factory=ReaderConfig,
        description="Adaptive reader thresholds",
    )

    @field_validator("allowed_directories", mode="before")
    @classmethod
    def expand_directories(cls, v):
        """Expand home shorthand; normalization happens at validation time."""
        if not v:
            return []
        return [expand_home(str(p).strip()) for p in v]

    def __repr__(self) -> str:
        return (
            f"FileSystemAccessConfig("
            f"allowed_dirs={len(self.allowed_directories)}, "
            f"line_limit={self.file_read_line_limit})"
        )


class AllowedDirectoriesProvider(Protocol):
    def get_allowed_directories(self) -> Sequence[str]:
        ...


class LineLimitProvider(Protocol):
    def get_default_line_limit(self) -> int:
        ...


class StaticAllowedDirectories:
    """A fixed allow-list."""

    def __init__(self, directories: Sequence[str]):
        self.directories = [expand_home(str(d)) for d in directories]

    def get_allowed_directories(self) -> list[str]:
        return list(self.directories)


class ConfigAllowedDirectories:
    """Reads the allow-list from a live config on every call."""

    def __init__(self, config: FileSystemAccessConfig):
        self.config = config

    def get_allowed_directories(self) -> list[str]:
        return list(self.config.allowed_directories)


class ConfigLineLimit:
    """Reads the default line limit from a live config on every call."""

    def __init__(self, config: FileSystemAccessConfig):
        self.config = config

    def get_default_line_limit(self) -> int:
        return self.config.file_read_line_limit
