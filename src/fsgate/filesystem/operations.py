"""
Sandboxed pass-through filesystem operations.

Every operation validates its paths through the sandbox first and then
delegates to the host filesystem; no content or listing is cached.
"""

import asyncio
import base64
import logging
import os
import stat
from datetime import datetime
from typing import Literal, Optional

import httpx
from pydantic import BaseModel

from fsgate.filesystem.config import (
    ConfigAllowedDirectories,
    ConfigLineLimit,
    FileSystemAccessConfig,
)
from fsgate.filesystem.content_types import (
    DEFAULT_MIME_TYPE,
    ContentTypeClassifier,
    MimeTypeClassifier,
    is_image_mime_type,
)
from fsgate.filesystem.exceptions import UrlFetchError
from fsgate.filesystem.reader import AdaptiveLineReader, ReadRequest, ReadResult
from fsgate.filesystem.sandbox import PathSandbox
from fsgate.filesystem.telemetry import TelemetrySink, emit

logger = logging.getLogger(__name__)

LINE_COUNT_SIZE_LIMIT = 10 * 1024 * 1024


class MultiFileResult(BaseModel):
    path: str
    content: Optional[str] = None
    mime_type: Optional[str] = None
    is_image: Optional[bool] = None
    error: Optional[str] = None


class FileInfo(BaseModel):
    size: int
    created: datetime
    modified: datetime
    accessed: datetime
    is_directory: bool
    is_file: bool
    permissions: str
    line_count: Optional[int] = None
    last_line: Optional[int] = None
    append_position: Optional[int] = None


class FileOperations:
    """
    Sandboxed file operations for agent tools.

    Usage:
        config = FileSystemAccessConfig(allowed_directories=["/tmp/work"])
        ops = create_file_operations(config)

        await ops.write_file("/tmp/work/notes.txt", "hello\\n")
        result = await ops.read_file("/tmp/work/notes.txt")
    """

    def __init__(
        self,
        sandbox: PathSandbox,
        reader: AdaptiveLineReader,
        classifier: Optional[ContentTypeClassifier] = None,
        telemetry: Optional[TelemetrySink] = None,
        url_timeout_seconds: float = 30.0,
        http_transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize file operations.

        Args:
            sandbox: Validates every path
            reader: Serves local reads
            classifier: Decides image vs. text for stat line counting
            telemetry: Optional sink for write and search events
            url_timeout_seconds: Deadline for URL fetches
            http_transport: Custom httpx transport (for tests or proxies)
        """
        self.sandbox = sandbox
        self.reader = reader
        self.classifier = classifier or MimeTypeClassifier()
        self.telemetry = telemetry
        self.url_timeout_seconds = url_timeout_seconds
        self.http_transport = http_transport

    async def read_file(
        self,
        path: str,
        is_url: bool = False,
        offset: int = 0,
        length: Optional[int] = None,
    ) -> ReadResult:
        """Read from a URL or from the local filesystem."""
        if is_url:
            return await self.read_file_from_url(path)
        return await self.reader.read_request(ReadRequest(path=path, offset=offset, length=length))

    async def read_file_from_url(self, url: str) -> ReadResult:
        """
        Fetch a URL; images come back as base64, everything else as text.

        Raises:
            UrlFetchError: On timeouts, transport errors and non-2xx responses
        """
        timeout_ms = int(self.url_timeout_seconds * 1000)
        try:
            async with httpx.AsyncClient(
                timeout=self.url_timeout_seconds,
                transport=self.http_transport,
                follow_redirects=True,
            ) as client:
                response = await client.get(url)
        except httpx.TimeoutException:
            raise UrlFetchError(url, f"URL fetch timed out after {timeout_ms}ms: {url}")
        except httpx.HTTPError as e:
            raise UrlFetchError(url, f"Failed to fetch URL: {e}")

        if not response.is_success:
            raise UrlFetchError(
                url, f"Failed to fetch URL: HTTP error! Status: {response.status_code}"
            )

        content_type = response.headers.get("content-type") or DEFAULT_MIME_TYPE
        mime_type = content_type.split(";")[0].strip()
        is_image = is_image_mime_type(mime_type)

        if is_image:
            content = base64.b64encode(response.content).decode("ascii")
        else:
            content = response.text

        return ReadResult(content=content, mime_type=content_type, is_image=is_image)

    async def read_multiple_files(self, paths: list[str]) -> list[MultiFileResult]:
        """Read several files concurrently; failures are reported per path."""

        async def read_one(path: str) -> MultiFileResult:
            try:
                result = await self.reader.read_file(path)
            except Exception as e:
                logger.warning(f"Skipping file {path}: {e}")
                return MultiFileResult(path=path, error=str(e))
            return MultiFileResult(
                path=path,
                content=result.content,
                mime_type=result.mime_type,
                is_image=result.is_image,
            )

        return list(await asyncio.gather(*(read_one(p) for p in paths)))

    async def write_file(
        self,
        path: str,
        content: str,
        mode: Literal["rewrite", "append"] = "rewrite",
    ) -> None:
        """Write or append ``content`` to a file."""
        if mode not in ("rewrite", "append"):
            raise ValueError(f"Unknown write mode: {mode}")

        valid_path = await self.sandbox.validate(path)

        emit(
            self.telemetry,
            "server_write_file",
            {
                "file_extension": os.path.splitext(valid_path)[1].lower(),
                "mode": mode,
                "content_bytes": len(content.encode("utf-8")),
                "line_count": len(content.split("\n")),
            },
        )

        await asyncio.to_thread(_write_text, valid_path, content, mode)
        logger.info(f"Wrote {valid_path} ({mode})")

    async def create_directory(self, path: str) -> None:
        """Create a directory and any missing parents."""
        valid_path = await self.sandbox.validate(path)
        await asyncio.to_thread(os.makedirs, valid_path, exist_ok=True)
        logger.info(f"Created directory: {valid_path}")

    async def list_directory(self, path: str) -> list[str]:
        """List entries as ``[DIR] name`` or ``[FILE] name``."""
        valid_path = await self.sandbox.validate(path)
        return await asyncio.to_thread(_list_entries, valid_path)

    async def move_file(self, source: str, destination: str) -> None:
        """Move or rename a file or directory."""
        valid_source = await self.sandbox.validate(source)
        valid_destination = await self.sandbox.validate(destination)
        await asyncio.to_thread(os.rename, valid_source, valid_destination)
        logger.info(f"Moved {valid_source} -> {valid_destination}")

    async def search_files(self, root: str, pattern: str) -> list[str]:
        """
        Find entries whose name contains ``pattern`` (case-insensitive).

        Entries outside the allow-list and unreadable directories are
        skipped. Errors on the root itself are re-raised.
        """
        try:
            valid_root = await self.sandbox.validate(root)
            results = await asyncio.to_thread(self._search, valid_root, pattern)
        except Exception as e:
            emit(
                self.telemetry,
                "server_search_files_error",
                {
                    "error_type": type(e).__name__,
                    "error": "Error with root path",
                    "is_root_path_error": True,
                },
            )
            raise

        emit(
            self.telemetry,
            "server_search_files_complete",
            {"results_count": len(results), "pattern_length": len(pattern)},
        )
        return results

    async def get_file_info(self, path: str) -> FileInfo:
        """Stat a path; text files under 10 MiB also get line counts."""
        valid_path = await self.sandbox.validate(path)
        return await asyncio.to_thread(self._file_info, valid_path)

    def _search(self, root: str, pattern: str) -> list[str]:
        needle = pattern.lower()
        results = []
        pending = [root]

        while pending:
            current = pending.pop()
            try:
                with os.scandir(current) as it:
                    entries = sorted(it, key=lambda e: e.name)
            except OSError as e:
                logger.debug(f"Skipping unreadable directory {current}: {e}")
                continue

            subdirectories = []
            for entry in entries:
                if not self.sandbox.is_path_allowed(entry.path):
                    continue
                if needle in entry.name.lower():
                    results.append(entry.path)
                if entry.is_dir(follow_symlinks=False):
                    subdirectories.append(entry.path)

            pending.extend(reversed(subdirectories))

        return results

    def _file_info(self, path: str) -> FileInfo:
        st = os.stat(path)
        created = getattr(st, "st_birthtime", st.st_ctime)

        info = FileInfo(
            size=st.st_size,
            created=datetime.fromtimestamp(created),
            modified=datetime.fromtimestamp(st.st_mtime),
            accessed=datetime.fromtimestamp(st.st_atime),
            is_directory=stat.S_ISDIR(st.st_mode),
            is_file=stat.S_ISREG(st.st_mode),
            permissions=oct(st.st_mode)[-3:],
        )

        if info.is_file and st.st_size < LINE_COUNT_SIZE_LIMIT:
            if not self.classifier.classify(path).is_image:
                try:
                    with open(path, "r", encoding="utf-8", newline="") as f:
                        line_count = len(f.read().split("\n"))
                except (OSError, UnicodeDecodeError) as e:
                    logger.debug(f"Skipping line count for {path}: {e}")
                else:
                    info.line_count = line_count
                    info.last_line = line_count - 1
                    info.append_position = line_count

        return info


def create_file_operations(
    config: FileSystemAccessConfig,
    telemetry: Optional[TelemetrySink] = None,
    http_transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FileOperations:
    """Wire sandbox, reader and operations from a single config."""
    sandbox = PathSandbox(
        ConfigAllowedDirectories(config),
        telemetry=telemetry,
        timeout_seconds=config.path_validation_timeout_seconds,
    )
    classifier = MimeTypeClassifier()
    reader = AdaptiveLineReader(
        sandbox,
        config=config.reader,
        line_limit=ConfigLineLimit(config),
        classifier=classifier,
        telemetry=telemetry,
        read_timeout_seconds=config.file_read_timeout_seconds,
    )
    return FileOperations(
        sandbox,
        reader,
        classifier=classifier,
        telemetry=telemetry,
        url_timeout_seconds=config.url_fetch_timeout_seconds,
        http_transport=http_transport,
    )


def _write_text(path: str, content: str, mode: str) -> None:
    with open(path, "a" if mode == "append" else "w", encoding="utf-8", newline="") as f:
        f.write(content)


def _list_entries(path: str) -> list[str]:
    with os.scandir(path) as it:
        entries = sorted(it, key=lambda e: e.name)
    return [f"{'[DIR]' if e.is_dir() else '[FILE]'} {e.name}" for e in entries]
