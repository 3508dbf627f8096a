"""
Example: Exposing sandboxed file tools to an agent

This example demonstrates how an agent's tool calls flow through the
sandbox and the adaptive reader: tail reads of a large log, windowed reads,
denied paths, and an exact read before an in-place edit.
"""

import asyncio
import tempfile
from pathlib import Path

from fsgate.filesystem import (
    READ_TO_END,
    FileSystemAccessConfig,
    LLMFileSystemTools,
    ReaderConfig,
)


async def example_tail_and_window(workdir: Path):
    """Example: Tail and windowed reads."""
    print("=== Example 1: Tail and Window Reads ===\n")

    log = workdir / "service.log"
    log.write_text("".join(f"2024-05-01 INFO request {i} done\n" for i in range(200_000)))

    config = FileSystemAccessConfig(
        allowed_directories=[str(workdir)],
        # Lowered so this ~7 MB log takes the large-file paths.
        reader=ReaderConfig(large_file_threshold_bytes=1024 * 1024),
    )
    tools = LLMFileSystemTools(config)

    for arguments in (
        {"path": str(log), "offset": -5},
        {"path": str(log), "offset": 150_000, "length": 3},
        {"path": str(log), "offset": 10, "length": 3},
    ):
        result = await tools.execute_tool(tool_name="read_file", arguments=arguments)
        if result["success"]:
            print(result["content"])
        else:
            print(f"✗ Error: {result['error']}")
        print()


async def example_denied(workdir: Path):
    """Example: A path outside the allow-list."""
    print("=== Example 2: Denied Path ===\n")

    tools = LLMFileSystemTools(FileSystemAccessConfig(allowed_directories=[str(workdir)]))
    result = await tools.execute_tool(tool_name="read_file", arguments={"path": "/etc/passwd"})

    print(f"✗ {result['error_type']}: {result['error']}")
    print()


async def example_exact_edit(workdir: Path):
    """Example: Edit a CRLF file without disturbing its line endings."""
    print("=== Example 3: Exact Read Before Edit ===\n")

    config = FileSystemAccessConfig(allowed_directories=[str(workdir)])
    tools = LLMFileSystemTools(config)
    target = workdir / "settings.ini"
    target.write_bytes(b"[main]\r\nmode=fast\r\nretries=3\r\n")

    content = await tools.operations.reader.read_exact(str(target), length=READ_TO_END)
    await tools.operations.write_file(str(target), content.replace("fast", "safe"))

    print(f"✓ Bytes on disk: {target.read_bytes()!r}")
    print()


async def main():
    with tempfile.TemporaryDirectory() as tmpdir:
        workdir = Path(tmpdir).resolve()
        await example_tail_and_window(workdir)
        await example_denied(workdir)
        await example_exact_edit(workdir)


if __name__ == "__main__":
    asyncio.run(main())
