"""
Function-calling interface to the sandboxed filesystem.

Provides OpenAI-compatible tool schemas and a dispatcher that turns tool
calls into ``FileOperations`` calls with JSON-friendly results.
"""

import logging
from typing import Any, Optional

from fsgate.filesystem.config import FileSystemAccessConfig
from fsgate.filesystem.exceptions import FileSystemError
from fsgate.filesystem.operations import FileOperations, create_file_operations
from fsgate.filesystem.telemetry import TelemetrySink

logger = logging.getLogger(__name__)


def _function(name: str, description: str, properties: dict, required: list[str]) -> dict:
    return {
        "type": "function",
        "function": {
            "name": name,
            "description": description,
            "parameters": {
                "type": "object",
                "properties": properties,
                "required": required,
            },
        },
    }


_PATH = {"type": "string", "description": "Absolute path, or path relative to the working directory"}


class LLMFileSystemTools:
    """
    Sandboxed filesystem tools for agent function calling.

    Usage:
        config = FileSystemAccessConfig(allowed_directories=["/tmp/repos"])
        tools = LLMFileSystemTools(config)

        schemas = tools.get_tool_schemas()
        result = await tools.execute_tool(
            tool_name="read_file",
            arguments={"path": "/tmp/repos/app.log", "offset": -50},
        )
    """

    def __init__(
        self,
        config: FileSystemAccessConfig,
        telemetry: Optional[TelemetrySink] = None,
        operations: Optional[FileOperations] = None,
    ):
        """
        Initialize filesystem tools.

        Args:
            config: Filesystem access configuration
            telemetry: Optional telemetry sink
            operations: Prebuilt operations (built from ``config`` if omitted)
        """
        self.config = config
        self.operations = operations or create_file_operations(config, telemetry)

    def get_tool_schemas(self) -> list[dict[str, Any]]:
        """
        Get OpenAI function calling schemas for all available tools.

        Returns:
            List of tool schemas in OpenAI format
        """
        return [
            _function(
                "read_file",
                "Read a file or URL. Use a negative offset to read the last lines of a file "
                "(offset=-20 returns the last 20 lines). Images are returned as base64. "
                f"Defaults to the first {self.config.file_read_line_limit} lines.",
                {
                    "path": _PATH,
                    "is_url": {"type": "boolean", "description": "Treat path as a URL (default: false)"},
                    "offset": {"type": "integer", "description": "First line to read; negative counts from the end"},
                    "length": {"type": "integer", "description": "Maximum number of lines to read"},
                },
                ["path"],
            ),
            _function(
                "read_multiple_files",
                "Read several files at once. Failures are reported per file.",
                {"paths": {"type": "array", "items": {"type": "string"}}},
                ["paths"],
            ),
            _function(
                "write_file",
                "Write content to a file, replacing it, or append to it with mode='append'.",
                {
                    "path": _PATH,
                    "content": {"type": "string", "description": "Content to write"},
                    "mode": {"type": "string", "enum": ["rewrite", "append"]},
                },
                ["path", "content"],
            ),
            _function(
                "create_directory",
                "Create a directory, including missing parents.",
                {"path": _PATH},
                ["path"],
            ),
            _function(
                "list_directory",
                "List a directory. Entries are prefixed with [DIR] or [FILE].",
                {"path": _PATH},
                ["path"],
            ),
            _function(
                "move_file",
                "Move or rename a file or directory.",
                {"source": _PATH, "destination": _PATH},
                ["source", "destination"],
            ),
            _function(
                "search_files",
                "Recursively find files and directories whose name contains a pattern (case-insensitive).",
                {"path": _PATH, "pattern": {"type": "string", "description": "Substring to look for"}},
                ["path", "pattern"],
            ),
            _function(
                "get_file_info",
                "Get size, timestamps, permissions and, for text files, line counts.",
                {"path": _PATH},
                ["path"],
            ),
        ]

    async def execute_tool(
        self, tool_name: str, arguments: dict[str, Any]
    ) -> dict[str, Any]:
        """
        Execute a tool call from an LLM.

        Args:
            tool_name: Name of the tool to execute
            arguments: Tool arguments (from LLM function call)

        Returns:
            Tool execution result as a dict

        Raises:
            ValueError: If tool name is unknown
        """
        handlers = {
            "read_file": self._read_file,
            "read_multiple_files": self._read_multiple_files,
            "write_file": self._write_file,
            "create_directory": self._create_directory,
            "list_directory": self._list_directory,
            "move_file": self._move_file,
            "search_files": self._search_files,
            "get_file_info": self._get_file_info,
        }
        handler = handlers.get(tool_name)
        if handler is None:
            raise ValueError(f"Unknown tool: {tool_name}")

        try:
            result = await handler(**arguments)
        except FileSystemError as e:
            logger.warning(f"LLM {tool_name} failed: {e}")
            return {
                "success": False,
                "error": str(e),
                "error_type": type(e).__name__,
            }
        except Exception as e:
            logger.error(f"LLM {tool_name} unexpected error: {e}")
            return {
                "success": False,
                "error": f"Unexpected error: {e}",
                "error_type": "UnexpectedError",
            }

        return {"success": True, **result}

    async def _read_file(
        self,
        path: str,
        is_url: bool = False,
        offset: int = 0,
        length: Optional[int] = None,
    ) -> dict[str, Any]:
        """Read file tool implementation."""
        result = await self.operations.read_file(path, is_url=is_url, offset=offset, length=length)
        return {
            "path": path,
            "content": result.content,
            "mime_type": result.mime_type,
            "is_image": result.is_image,
        }

    async def _read_multiple_files(self, paths: list[str]) -> dict[str, Any]:
        """Read multiple files tool implementation."""
        results = await self.operations.read_multiple_files(paths)
        return {
            "files": [r.model_dump(exclude_none=True) for r in results],
            "count": len(results),
        }

    async def _write_file(self, path: str, content: str, mode: str = "rewrite") -> dict[str, Any]:
        """Write file tool implementation."""
        await self.operations.write_file(path, content, mode=mode)
        return {
            "path": path,
            "size": len(content),
            "message": "Content appended successfully" if mode == "append" else "File written successfully",
        }

    async def _create_directory(self, path: str) -> dict[str, Any]:
        """Create directory tool implementation."""
        await self.operations.create_directory(path)
        return {"path": path, "message": "Directory created successfully"}

    async def _list_directory(self, path: str) -> dict[str, Any]:
        """List directory tool implementation."""
        entries = await self.operations.list_directory(path)
        return {"path": path, "entries": entries, "count": len(entries)}

    async def _move_file(self, source: str, destination: str) -> dict[str, Any]:
        """Move file tool implementation."""
        await self.operations.move_file(source, destination)
        return {
            "source": source,
            "destination": destination,
            "message": "Moved successfully",
        }

    async def _search_files(self, path: str, pattern: str) -> dict[str, Any]:
        """Search files tool implementation."""
        files = await self.operations.search_files(path, pattern)
        return {"path": path, "pattern": pattern, "files": files, "count": len(files)}

    async def _get_file_info(self, path: str) -> dict[str, Any]:
        """File info tool implementation."""
        info = await self.operations.get_file_info(path)
        return {"path": path, "info": info.model_dump(mode="json", exclude_none=True)}

    def get_summary(self) -> dict[str, Any]:
        """
        Get a summary of the filesystem access configuration.

        Returns:
            Dict with configuration summary
        """
        return {
            "allowed_directories": list(self.config.allowed_directories),
            "file_read_line_limit": self.config.file_read_line_limit,
            "path_validation_timeout_seconds": self.config.path_validation_timeout_seconds,
            "file_read_timeout_seconds": self.config.file_read_timeout_seconds,
            "large_file_threshold_mb": self.config.reader.large_file_threshold_bytes / (1024 * 1024),
        }
