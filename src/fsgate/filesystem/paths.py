"""
Path normalization and ancestry probing used by the sandbox.
"""

import os
import re
from typing import Sequence

# An allowed-directory entry equal to this admits every path.
ROOT_MARKER = "/"

_DRIVE_ROOT = re.compile(r"^[a-z]:$")


def expand_home(path: str, pathmod=os.path) -> str:
    """Expand a leading ``~`` or ``~/`` to the current user's home directory."""
    if path == "~" or path.startswith("~/") or path.startswith("~" + pathmod.sep):
        return pathmod.join(pathmod.expanduser("~"), path[2:])
    return path


def normalize_path(path: str, pathmod=os.path) -> str:
    """
    Produce the canonical form used for admissibility comparisons.

    Home shorthand is expanded, the path is made absolute and normalized,
    case is folded and a trailing separator is stripped.

    Args:
        path: Path to normalize
        pathmod: Path flavour module (``os.path``, ``posixpath`` or ``ntpath``)

    Returns:
        Normalized path string
    """
    normalized = pathmod.normpath(pathmod.abspath(expand_home(path, pathmod))).lower()
    if len(normalized) > 1 and normalized.endswith(pathmod.sep):
        normalized = normalized[:-1]
    return normalized


def is_within_allowed(
    path: str,
    allowed_directories: Sequence[str],
    pathmod=os.path,
    windows: bool = os.name == "nt",
) -> bool:
    """
    Check a path against an allow-list.

    The path is admitted when it equals an allowed directory or starts with
    ``allowed + separator``, so ``/home/user`` never admits ``/home/username``.
    An empty list or one containing the root marker admits everything. On
    Windows a drive-root entry such as ``C:\\`` admits the whole drive.
    """
    if not allowed_directories or ROOT_MARKER in allowed_directories:
        return True

    candidate = normalize_path(path, pathmod)

    for allowed in allowed_directories:
        normalized_allowed = normalize_path(allowed, pathmod)

        if candidate == normalized_allowed:
            return True

        if candidate.startswith(normalized_allowed + pathmod.sep):
            return True

        if windows and _DRIVE_ROOT.match(normalized_allowed):
            if candidate.startswith(normalized_allowed):
                return True

    return False


def has_valid_ancestor(path: str) -> bool:
    """
    Walk up from ``path`` until an existing ancestor directory is found.

    The filesystem root itself never counts as a valid ancestor; reaching it
    (or any directory that is its own parent) ends the walk with ``False``.
    """
    current = path
    while True:
        parent = os.path.dirname(current)
        if parent == current or parent == os.path.dirname(parent):
            return False
        if os.path.exists(parent):
            return True
        current = parent
