"""
Line reading strategies used by the adaptive reader.

All strategies agree on what a line is: text terminated by LF, with a CR
directly before the LF dropped as part of the terminator. A final line
without a terminator still counts; a trailing LF does not start an extra
empty line. Files are read as bytes and only returned lines are decoded
(strict UTF-8), so a ``UnicodeDecodeError`` means returned content was not
text.

Only ``estimated_position_lines`` is approximate. The other three return
exactly the lines a full read followed by slicing would return.
"""

import logging
import os
from collections import deque

logger = logging.getLogger(__name__)

ENCODING = "utf-8"


def _decode_body(body: bytes) -> str:
    if body.endswith(b"\r"):
        body = body[:-1]
    return body.decode(ENCODING)


def _decode_line(raw: bytes) -> str:
    if raw.endswith(b"\n"):
        raw = raw[:-1]
    return _decode_body(raw)


def tail_chunk_lines(path: str, n: int, chunk_size: int = 8192) -> list[str]:
    """
    Return the last ``n`` lines by reading backwards in fixed-size chunks.

    Memory use is bounded by ``n`` lines plus one chunk, so this suits small
    tail requests against very large files.

    Args:
        path: File to read
        n: Number of lines wanted from the end
        chunk_size: Bytes read per backward step

    Returns:
        The last ``min(n, total_lines)`` lines in file order
    """
    if n <= 0:
        return []

    with open(path, "rb") as f:
        size = os.fstat(f.fileno()).st_size
        if size == 0:
            return []

        # A terminating LF closes the last line instead of opening a new one.
        f.seek(size - 1)
        position = size - 1 if f.read(1) == b"\n" else size

        bodies: list[bytes] = []
        # Pieces of the line being assembled, newest read first.
        fragments: list[bytes] = []

        while position > 0 and len(bodies) < n:
            read_size = min(chunk_size, position)
            position -= read_size
            f.seek(position)
            chunk = f.read(read_size)

            pieces = chunk.split(b"\n")
            if len(pieces) == 1:
                fragments.append(chunk)
                continue

            fragments.append(pieces[-1])
            closed = b"".join(reversed(fragments))
            bodies[:0] = pieces[1:-1] + [closed]
            fragments = [pieces[0]]

        if position == 0:
            bodies.insert(0, b"".join(reversed(fragments)))

    return [_decode_body(body) for body in bodies[-n:]]


def tail_ring_buffer_lines(path: str, n: int) -> list[str]:
    """
    Return the last ``n`` lines with one forward pass over a ring buffer.

    Only ``n`` raw lines are held at any time; the whole file is scanned.
    """
    if n <= 0:
        return []

    with open(path, "rb") as f:
        ring = deque(f, maxlen=n)

    return [_decode_line(raw) for raw in ring]


def head_stream_lines(path: str, offset: int, length: int) -> list[str]:
    """
    Return lines ``[offset, offset + length)`` streaming from the start.

    Reading stops as soon as ``length`` lines have been collected.
    """
    if length <= 0:
        return []

    offset = max(offset, 0)
    result = []

    with open(path, "rb") as f:
        for line_number, raw in enumerate(f):
            if line_number < offset:
                continue
            result.append(_decode_line(raw))
            if len(result) >= length:
                break

    return result


def estimated_position_lines(
    path: str,
    offset: int,
    length: int,
    sample_size: int = 10_000,
) -> list[str]:
    """
    Return about ``length`` lines near line ``offset`` without a full scan.

    The average line length of the first ``sample_size`` bytes is used to
    guess the byte position of line ``offset``. The first line found there is
    discarded as probably partial, then up to ``length`` lines are returned.
    The window is approximate: lines longer or shorter than the sample
    average shift it. I/O is bounded by the sample plus the returned lines.

    Args:
        path: File to read
        offset: Target line number
        length: Maximum number of lines
        sample_size: Bytes to sample for the average line length

    Returns:
        Up to ``length`` whole lines from the estimated neighbourhood
    """
    sample_lines = 0
    bytes_sampled = 0

    with open(path, "rb") as f:
        for raw in f:
            bytes_sampled += len(raw)
            sample_lines += 1
            if bytes_sampled >= sample_size:
                break

        if sample_lines == 0:
            logger.debug("Nothing sampled, falling back to a streaming head read")
            return head_stream_lines(path, offset, length)

        average_line_length = bytes_sampled / sample_lines
        size = os.fstat(f.fileno()).st_size
        start = min(int(offset * average_line_length), size)
        logger.debug(
            f"Estimated byte {start} for line {offset} "
            f"(average line length {average_line_length:.1f})"
        )

        f.seek(start)
        if start > 0:
            f.readline()

        result = []
        if length > 0:
            for raw in f:
                result.append(_decode_line(raw))
                if len(result) >= length:
                    break

    return result
