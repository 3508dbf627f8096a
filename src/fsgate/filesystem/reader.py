"""
Adaptive line reader for safe agent access to files of any size.
"""

import asyncio
import base64
import logging
import os
import sys
from enum import Enum
from typing import Callable, NamedTuple, Optional

from pydantic import BaseModel, Field

from fsgate.filesystem.config import LineLimitProvider, ReaderConfig
from fsgate.filesystem.content_types import (
    ContentType,
    ContentTypeClassifier,
    MimeTypeClassifier,
)
from fsgate.filesystem.deadline import Err, Timeout, run_with_deadline
from fsgate.filesystem.exceptions import (
    FileReadTimeoutError,
    ImageAsTextRequestedError,
    InvalidRequestError,
)
from fsgate.filesystem.lines import select_lines_exact
from fsgate.filesystem.sandbox import PathSandbox
from fsgate.filesystem.strategies import (
    estimated_position_lines,
    head_stream_lines,
    tail_chunk_lines,
    tail_ring_buffer_lines,
)
from fsgate.filesystem.telemetry import TelemetrySink, emit

logger = logging.getLogger(__name__)

BINARY_CONTENT_MARKER = "Binary file content (base64 encoded):\n"

READ_TO_END = sys.maxsize


class ReadStrategy(str, Enum):
    """The four ways a line window can be read."""

    TAIL_CHUNK = "tail_chunk"
    TAIL_RING_BUFFER = "tail_ring_buffer"
    HEAD_STREAM = "head_stream"
    ESTIMATED_POSITION = "estimated_position"


class ReadPlan(NamedTuple):
    file_size: int
    offset: int
    length: int


class StrategyRule(NamedTuple):
    name: str
    applies: Callable[[ReadPlan, ReaderConfig], bool]
    strategy: ReadStrategy


def _small_tail_of_large_file(plan: ReadPlan, config: ReaderConfig) -> bool:
    return (
        plan.offset < 0
        and plan.file_size > config.large_file_threshold_bytes
        and abs(plan.offset) <= config.small_tail_threshold_lines
    )


def _any_tail(plan: ReadPlan, config: ReaderConfig) -> bool:
    return plan.offset < 0


def _small_file_or_from_start(plan: ReadPlan, config: ReaderConfig) -> bool:
    return plan.file_size < config.large_file_threshold_bytes or plan.offset == 0


def _deep_into_large_file(plan: ReadPlan, config: ReaderConfig) -> bool:
    return plan.offset > config.estimate_offset_threshold_lines


def _always(plan: ReadPlan, config: ReaderConfig) -> bool:
    return True


# Evaluated top-down; the first matching rule wins.
STRATEGY_TABLE: tuple[StrategyRule, ...] = (
    StrategyRule("small tail of a large file", _small_tail_of_large_file, ReadStrategy.TAIL_CHUNK),
    StrategyRule("tail", _any_tail, ReadStrategy.TAIL_RING_BUFFER),
    StrategyRule("small file or from start", _small_file_or_from_start, ReadStrategy.HEAD_STREAM),
    StrategyRule("deep into a large file", _deep_into_large_file, ReadStrategy.ESTIMATED_POSITION),
    StrategyRule("moderate offset into a large file", _always, ReadStrategy.HEAD_STREAM),
)


class ReadRequest(BaseModel):
    """A line-window read of one file."""

    path: str
    offset: int = Field(default=0, description="First line; negative reads the last -offset lines")
    length: Optional[int] = Field(default=None, ge=0, description="Maximum lines (None uses the line limit)")
    include_status: bool = True


class ReadResult(BaseModel):
    """Content returned to the caller of a read."""

    content: str = Field(description="Text (optionally status-annotated) or base64 data")
    mime_type: str = Field(description="Content type label")
    is_image: bool = Field(default=False, description="True when content is base64 image data")


class AdaptiveLineReader:
    """
    Sandboxed reader that returns a bounded window of a file's lines.

    One of four strategies is picked per request from the file size and the
    sign and magnitude of the offset (see ``STRATEGY_TABLE``). Negative
    offsets are tail requests: ``offset=-10`` returns the last ten lines.

    Usage:
        config = FileSystemAccessConfig(allowed_directories=["/var/log"])
        sandbox = PathSandbox(ConfigAllowedDirectories(config))
        reader = AdaptiveLineReader(sandbox, config.reader, ConfigLineLimit(config))

        result = await reader.read_file("/var/log/syslog", offset=-20)
        print(result.content)
    """

    def __init__(
        self,
        sandbox: PathSandbox,
        config: Optional[ReaderConfig] = None,
        line_limit: Optional[LineLimitProvider] = None,
        classifier: Optional[ContentTypeClassifier] = None,
        telemetry: Optional[TelemetrySink] = None,
        read_timeout_seconds: float = 30.0,
        default_line_limit: int = 1000,
    ):
        """
        Initialize the reader.

        Args:
            sandbox: Validates every path before it is read
            config: Strategy thresholds (defaults to ``ReaderConfig()``)
            line_limit: Supplies the length used when a request omits one
            classifier: Decides image vs. text (defaults to ``MimeTypeClassifier``)
            telemetry: Optional sink for read events
            read_timeout_seconds: Deadline for a complete read
            default_line_limit: Length used when no ``line_limit`` provider is given
        """
        self.sandbox = sandbox
        self.config = config or ReaderConfig()
        self.line_limit = line_limit
        self.classifier = classifier or MimeTypeClassifier()
        self.telemetry = telemetry
        self.read_timeout_seconds = read_timeout_seconds
        self.default_line_limit = default_line_limit

    def select_strategy(self, plan: ReadPlan) -> ReadStrategy:
        """Pick the strategy for a read plan."""
        for rule in STRATEGY_TABLE:
            if rule.applies(plan, self.config):
                logger.debug(f"Read strategy {rule.strategy.value} ({rule.name})")
                return rule.strategy
        raise AssertionError("strategy table has no catch-all rule")

    def read_lines(
        self, path: str, offset: int, length: int
    ) -> tuple[ReadStrategy, list[str]]:
        """
        Read a line window from an already validated path (blocking).

        Returns:
            The strategy used and the lines read, without terminators
        """
        plan = ReadPlan(os.path.getsize(path), offset, length)
        strategy = self.select_strategy(plan)

        if strategy is ReadStrategy.TAIL_CHUNK:
            lines = tail_chunk_lines(path, abs(offset), self.config.tail_chunk_size_bytes)
        elif strategy is ReadStrategy.TAIL_RING_BUFFER:
            lines = tail_ring_buffer_lines(path, abs(offset))
        elif strategy is ReadStrategy.ESTIMATED_POSITION:
            lines = estimated_position_lines(
                path, offset, length, self.config.estimate_sample_size_bytes
            )
        else:
            lines = head_stream_lines(path, offset, length)

        return strategy, lines

    async def read(
        self,
        path: str,
        offset: int = 0,
        length: Optional[int] = None,
        include_status: bool = True,
        mime_type: str = "text/plain",
    ) -> ReadResult:
        """
        Read a line window from an already validated path.

        Args:
            path: Validated path of a text file
            offset: First line to read; negative reads the last ``-offset`` lines
            length: Maximum number of lines (ignored for tail reads)
            include_status: Prefix the content with a status annotation
            mime_type: Content type label for the result

        Returns:
            ReadResult with the selected lines joined by ``\\n``

        Raises:
            UnicodeDecodeError: If a returned line is not valid UTF-8
        """
        if length is None:
            length = self._default_length()

        strategy, lines = await asyncio.to_thread(self.read_lines, path, offset, length)
        body = "\n".join(lines)

        if include_status:
            body = f"{status_message(strategy, len(lines), offset)}\n\n{body}"

        return ReadResult(content=body, mime_type=mime_type, is_image=False)

    async def read_file(
        self,
        path: str,
        offset: int = 0,
        length: Optional[int] = None,
        include_status: bool = True,
    ) -> ReadResult:
        """
        Validate and read a file.

        Images are returned whole as base64, ignoring ``offset`` and
        ``length``. Text that fails to decode is returned as base64 behind
        ``BINARY_CONTENT_MARKER`` instead of raising.

        Raises:
            InvalidRequestError: If ``path`` is empty or not a string
            PathNotAllowedError: If the path is outside the allow-list
            PathValidationTimeoutError: If validation exceeds its deadline
            FileReadTimeoutError: If the read exceeds its deadline
            FileNotFoundError: If the file does not exist
        """
        if not path or not isinstance(path, str):
            raise InvalidRequestError(path)

        if length is None:
            length = self._default_length()

        valid_path = await self.sandbox.validate(path)

        outcome = await run_with_deadline(
            self._read_validated(valid_path, offset, length, include_status),
            self.read_timeout_seconds,
            "Read file operation",
        )

        if isinstance(outcome, Timeout):
            raise FileReadTimeoutError(path, self.read_timeout_seconds)
        if isinstance(outcome, Err):
            raise outcome.error

        return outcome.value

    async def read_request(self, request: ReadRequest) -> ReadResult:
        """Run ``read_file`` for a ``ReadRequest``."""
        return await self.read_file(
            request.path, request.offset, request.length, request.include_status
        )

    async def read_exact(
        self, path: str, offset: int = 0, length: Optional[int] = None
    ) -> str:
        """
        Read text with every original line ending preserved.

        Meant for callers that edit the file afterwards. ``length=None``
        uses the default line limit; pass ``READ_TO_END`` for the whole file.

        Raises:
            ImageAsTextRequestedError: If the file is classified as an image
            UnicodeDecodeError: If the file is not valid UTF-8
        """
        if not path or not isinstance(path, str):
            raise InvalidRequestError(path)

        if length is None:
            length = self._default_length()

        valid_path = await self.sandbox.validate(path)

        content_type = await asyncio.to_thread(self.classifier.classify, valid_path)
        if content_type.is_image:
            raise ImageAsTextRequestedError(path)

        content = await asyncio.to_thread(_read_text_exact, valid_path)
        return select_lines_exact(content, offset, None if length >= READ_TO_END else length)

    async def _read_validated(
        self, path: str, offset: int, length: int, include_status: bool
    ) -> ReadResult:
        content_type = await asyncio.to_thread(self._inspect, path, offset, length)
        return await self._read_classified(
            path, offset, length, content_type.mime_type, content_type.is_image, include_status
        )

    def _inspect(self, path: str, offset: int, length: int) -> ContentType:
        """Stat and classify a validated path, reporting the read to telemetry."""
        extension = os.path.splitext(path)[1].lower()

        try:
            file_size = os.path.getsize(path)
        except OSError as e:
            # The read itself reports the failure.
            logger.error(f"Cannot stat {path}: {e}")
            emit(
                self.telemetry,
                "server_read_file_error",
                {"error": type(e).__name__, "file_extension": extension},
            )
        else:
            emit(
                self.telemetry,
                "server_read_file",
                {
                    "file_extension": extension,
                    "offset": offset,
                    "length": length,
                    "file_size": file_size,
                },
            )

        return self.classifier.classify(path)

    async def _read_classified(
        self,
        path: str,
        offset: int,
        length: int,
        mime_type: str,
        is_image: bool,
        include_status: bool,
    ) -> ReadResult:
        if is_image:
            data = await asyncio.to_thread(_read_bytes, path)
            return ReadResult(
                content=base64.b64encode(data).decode("ascii"),
                mime_type=mime_type,
                is_image=True,
            )

        try:
            return await self.read(path, offset, length, include_status, mime_type)
        except UnicodeDecodeError:
            logger.info(f"{path} is not valid UTF-8, returning base64")
            data = await asyncio.to_thread(_read_bytes, path)
            return ReadResult(
                content=BINARY_CONTENT_MARKER + base64.b64encode(data).decode("ascii"),
                mime_type="text/plain",
                is_image=False,
            )

    def _default_length(self) -> int:
        if self.line_limit is not None:
            return self.line_limit.get_default_line_limit()
        return self.default_line_limit


def status_message(strategy: ReadStrategy, count: int, offset: int) -> str:
    """Human-readable annotation describing which lines were returned."""
    if strategy in (ReadStrategy.TAIL_CHUNK, ReadStrategy.TAIL_RING_BUFFER):
        return f"[Reading last {count} lines]"
    if strategy is ReadStrategy.ESTIMATED_POSITION:
        return f"[Reading {count} lines from estimated position (target line {offset})]"
    if offset == 0:
        return f"[Reading {count} lines from start]"
    return f"[Reading {count} lines from line {offset}]"


def _read_bytes(path: str) -> bytes:
    with open(path, "rb") as f:
        return f.read()


def _read_text_exact(path: str) -> str:
    with open(path, "r", encoding="utf-8", newline="") as f:
        return f.read()
