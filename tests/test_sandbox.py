"""
Tests for path normalization and the path sandbox.
"""

import ntpath
import os
import posixpath
import tempfile
import time
from pathlib import Path

import pytest

from fsgate.filesystem import (
    ConfigAllowedDirectories,
    FileSystemAccessConfig,
    PathNotAllowedError,
    PathSandbox,
    PathValidationTimeoutError,
    StaticAllowedDirectories,
)
from fsgate.filesystem.paths import (
    expand_home,
    has_valid_ancestor,
    is_within_allowed,
    normalize_path,
)


class RecordingTelemetry:
    """Collects telemetry events for assertions."""

    def __init__(self):
        self.events = []

    def capture(self, event, properties=None):
        self.events.append((event, properties or {}))


class SlowAllowList:
    """Allow-list provider that blocks longer than any test deadline."""

    def __init__(self, delay: float):
        self.delay = delay

    def get_allowed_directories(self):
        time.sleep(self.delay)
        return []


@pytest.fixture
def temp_dir():
    """Create a temporary directory for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(os.path.realpath(tmpdir))


@pytest.fixture
def telemetry():
    return RecordingTelemetry()


@pytest.fixture
def sandbox(temp_dir, telemetry):
    """Sandbox restricted to the temporary directory."""
    return PathSandbox(StaticAllowedDirectories([str(temp_dir)]), telemetry=telemetry)


class TestNormalization:
    """Test home expansion and normalization."""

    def test_expand_home(self, monkeypatch, temp_dir):
        """Test that ~ and ~/ expand to the home directory."""
        monkeypatch.setenv("HOME", str(temp_dir))

        assert expand_home("~") == os.path.join(str(temp_dir), "")
        assert expand_home("~/notes.txt") == os.path.join(str(temp_dir), "notes.txt")

    def test_expand_home_leaves_other_paths(self):
        """Test that paths without a leading ~/ are untouched."""
        assert expand_home("/etc/~/x") == "/etc/~/x"
        assert expand_home("relative/path") == "relative/path"

    def test_normalize_folds_case_and_strips_separator(self):
        """Test case folding and trailing separator removal."""
        assert normalize_path("/Home/User/", posixpath) == "/home/user"
        assert normalize_path("/home/user/../user/./docs", posixpath) == "/home/user/docs"

    def test_normalize_keeps_root(self):
        """Test that the root itself is not stripped to an empty string."""
        assert normalize_path("/", posixpath) == "/"

    def test_normalize_windows_paths(self):
        """Test normalization with Windows path semantics."""
        assert normalize_path("C:\\Users\\Me\\", ntpath) == "c:\\users\\me"
        assert normalize_path("C:\\", ntpath) == "c:"


class TestAllowList:
    """Test allow-list containment rules."""

    def test_child_is_admitted(self):
        assert is_within_allowed("/home/user/file.txt", ["/home/user"], posixpath, windows=False)

    def test_prefix_without_separator_is_rejected(self):
        """Test that /home/user does not admit /home/username."""
        assert not is_within_allowed(
            "/home/username/file.txt", ["/home/user"], posixpath, windows=False
        )

    def test_directory_itself_is_admitted(self):
        assert is_within_allowed("/home/user", ["/home/user"], posixpath, windows=False)
        assert is_within_allowed("/home/user/", ["/home/user"], posixpath, windows=False)

    def test_empty_allow_list_admits_everything(self):
        assert is_within_allowed("/etc/passwd", [], posixpath, windows=False)

    def test_root_marker_admits_everything(self):
        assert is_within_allowed("/etc/passwd", ["/home/user", "/"], posixpath, windows=False)

    def test_comparison_is_case_insensitive(self):
        assert is_within_allowed("/HOME/USER/Docs/a.txt", ["/home/user"], posixpath, windows=False)

    def test_allowed_entry_with_trailing_separator(self):
        assert is_within_allowed("/srv/data/x", ["/srv/data/"], posixpath, windows=False)

    def test_traversal_out_of_allowed_directory(self):
        """Test that .. segments are resolved before comparison."""
        assert not is_within_allowed(
            "/home/user/../other/file.txt", ["/home/user"], posixpath, windows=False
        )

    def test_windows_drive_root_admits_drive(self):
        """Test that a drive-root entry admits the whole drive only."""
        assert is_within_allowed("C:\\Users\\me\\f.txt", ["C:\\"], ntpath, windows=True)
        assert not is_within_allowed("D:\\data\\f.txt", ["C:\\"], ntpath, windows=True)


class TestParentChainValidator:
    """Test the ancestor walk for not-yet-existing paths."""

    def test_existing_parent(self, temp_dir):
        assert has_valid_ancestor(str(temp_dir / "newfile.txt")) is True

    def test_existing_grandparent(self, temp_dir):
        assert has_valid_ancestor(str(temp_dir / "a" / "b" / "c.txt")) is True

    def test_no_ancestor_below_root(self):
        """Test that the walk stops at the root without finding an ancestor."""
        assert has_valid_ancestor("/fsgate-missing-root-dir/a/b") is False

    def test_root_is_a_fixed_point(self):
        assert has_valid_ancestor("/") is False


class TestPathSandbox:
    """Test PathSandbox.validate."""

    @pytest.mark.asyncio
    async def test_existing_file_resolves_to_real_path(self, temp_dir, sandbox):
        """Test that an existing file is returned as its real path."""
        target = temp_dir / "data.txt"
        target.write_text("hello")

        result = await sandbox.validate(str(target))
        assert result == os.path.realpath(target)

    @pytest.mark.asyncio
    async def test_symlink_is_resolved(self, temp_dir, sandbox):
        """Test that symlinks are followed for existing targets."""
        target = temp_dir / "real.txt"
        target.write_text("hello")
        link = temp_dir / "link.txt"
        link.symlink_to(target)

        result = await sandbox.validate(str(link))
        assert result == str(target)

    @pytest.mark.asyncio
    async def test_relative_path_resolves_against_cwd(self, temp_dir, sandbox, monkeypatch):
        """Test that relative paths are made absolute from the working directory."""
        (temp_dir / "rel.txt").write_text("x")
        monkeypatch.chdir(temp_dir)

        result = await sandbox.validate("rel.txt")
        assert result == str(temp_dir / "rel.txt")

    @pytest.mark.asyncio
    async def test_missing_file_with_missing_parent(self, temp_dir, sandbox):
        """Test that a not-yet-existing path returns the absolute path unresolved."""
        target = temp_dir / "newdir" / "newfile.txt"

        result = await sandbox.validate(str(target))
        assert result == str(target)
        assert not target.parent.exists()

    @pytest.mark.asyncio
    async def test_missing_path_without_any_ancestor(self):
        """Test that no valid ancestor is not an error at validation time."""
        sandbox = PathSandbox(StaticAllowedDirectories([]))

        result = await sandbox.validate("/fsgate-missing-root-dir/a/b.txt")
        assert result == "/fsgate-missing-root-dir/a/b.txt"

    @pytest.mark.asyncio
    async def test_outside_path_is_denied(self, sandbox, telemetry):
        """Test that paths outside the allow-list raise and emit telemetry."""
        with pytest.raises(PathNotAllowedError) as exc_info:
            await sandbox.validate("/etc/passwd")

        assert exc_info.value.path == "/etc/passwd"
        assert "/etc/passwd" in str(exc_info.value)

        event, properties = telemetry.events[-1]
        assert event == "server_path_validation_error"
        assert properties["allowed_dirs_count"] == 1
        assert "/etc/passwd" not in str(properties)

    @pytest.mark.asyncio
    async def test_sibling_with_shared_prefix_is_denied(self, temp_dir):
        """Test the separator rule against a real sibling directory."""
        allowed = temp_dir / "user"
        sibling = temp_dir / "username"
        allowed.mkdir()
        sibling.mkdir()
        sandbox = PathSandbox(StaticAllowedDirectories([str(allowed)]))

        with pytest.raises(PathNotAllowedError):
            await sandbox.validate(str(sibling / "file.txt"))

    @pytest.mark.asyncio
    async def test_empty_allow_list_admits_any_path(self):
        sandbox = PathSandbox(StaticAllowedDirectories([]))

        result = await sandbox.validate("/")
        assert result == "/"

    @pytest.mark.asyncio
    async def test_allow_list_is_read_on_every_call(self, temp_dir):
        """Test that mutating the config is visible on the next validation."""
        first = temp_dir / "first"
        second = temp_dir / "second"
        first.mkdir()
        second.mkdir()
        config = FileSystemAccessConfig(allowed_directories=[str(first)])
        sandbox = PathSandbox(ConfigAllowedDirectories(config))

        with pytest.raises(PathNotAllowedError):
            await sandbox.validate(str(second))

        config.allowed_directories.append(str(second))
        assert await sandbox.validate(str(second)) == str(second)

    @pytest.mark.asyncio
    async def test_validation_timeout(self, telemetry):
        """Test that a hung validation fails within the deadline."""
        sandbox = PathSandbox(SlowAllowList(0.5), telemetry=telemetry, timeout_seconds=0.05)

        started = time.monotonic()
        with pytest.raises(PathValidationTimeoutError) as exc_info:
            await sandbox.validate("/some/path.txt")
        elapsed = time.monotonic() - started

        assert elapsed < 0.45
        assert exc_info.value.path == "/some/path.txt"
        event, properties = telemetry.events[-1]
        assert event == "server_path_validation_timeout"
        assert properties == {"timeout_ms": 50}

    def test_is_path_allowed(self, temp_dir, sandbox):
        assert sandbox.is_path_allowed(str(temp_dir / "x" / "y.txt")) is True
        assert sandbox.is_path_allowed("/etc/passwd") is False
