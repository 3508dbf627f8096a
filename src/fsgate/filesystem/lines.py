"""
Lossless line splitting for reads that feed in-place edits.

Each element returned by ``split_lines_preserving_endings`` keeps the
terminator that followed it (LF, CR, CRLF or nothing), so joining the list
reproduces the input exactly.
"""

from typing import Optional


def split_lines_preserving_endings(content: str) -> list[str]:
    """
    Split text into lines, each carrying its original line ending.

    CR immediately followed by LF is a single terminator. Empty input yields
    ``[""]``.
    """
    if not content:
        return [""]

    lines = []
    start = 0
    i = 0
    size = len(content)

    while i < size:
        char = content[i]
        if char == "\n":
            lines.append(content[start : i + 1])
            start = i + 1
        elif char == "\r":
            if i + 1 < size and content[i + 1] == "\n":
                i += 1
            lines.append(content[start : i + 1])
            start = i + 1
        i += 1

    if start < size:
        lines.append(content[start:])

    return lines


def select_lines_exact(content: str, offset: int = 0, length: Optional[int] = None) -> str:
    """
    Return lines ``[offset, offset + length)`` of ``content`` with endings intact.

    A negative ``offset`` counts from the end. ``length=None`` means "to the
    end"; reading from 0 with no length returns ``content`` untouched.
    """
    if offset == 0 and length is None:
        return content

    lines = split_lines_preserving_endings(content)
    start = offset if offset >= 0 else max(len(lines) + offset, 0)
    end = None if length is None else start + max(length, 0)
    return "".join(lines[start:end])
