"""
Tests for line-ending preserving splitting.
"""

import pytest

from fsgate.filesystem import select_lines_exact, split_lines_preserving_endings

MIXED_CONTENTS = [
    "",
    "no terminator",
    "unix\nlines\n",
    "windows\r\nlines\r\n",
    "old mac\rlines\r",
    "mixed\nendings\r\nhere\rand no terminator",
    "\n\n\r\n\r",
    "trailing cr before lf\r\n\rnext",
]


class TestSplitLinesPreservingEndings:
    """Test split_lines_preserving_endings."""

    @pytest.mark.parametrize("content", MIXED_CONTENTS)
    def test_round_trip(self, content):
        """Test that joining the pieces reproduces the input exactly."""
        assert "".join(split_lines_preserving_endings(content)) == content

    def test_each_terminator_kind(self):
        content = "a\nb\r\nc\rd"
        assert split_lines_preserving_endings(content) == ["a\n", "b\r\n", "c\r", "d"]

    def test_crlf_is_one_terminator(self):
        """Test that CRLF never produces an empty line between CR and LF."""
        assert split_lines_preserving_endings("x\r\n\r\n") == ["x\r\n", "\r\n"]

    def test_empty_content(self):
        assert split_lines_preserving_endings("") == [""]

    def test_terminator_only(self):
        assert split_lines_preserving_endings("\r") == ["\r"]


class TestSelectLinesExact:
    """Test select_lines_exact."""

    CONTENT = "zero\r\none\ntwo\rthree\r\nfour"

    def test_full_read_short_circuits(self):
        assert select_lines_exact(self.CONTENT) == self.CONTENT

    def test_window_keeps_endings(self):
        assert select_lines_exact(self.CONTENT, 1, 2) == "one\ntwo\r"

    def test_offset_to_end(self):
        assert select_lines_exact(self.CONTENT, 3) == "three\r\nfour"

    def test_negative_offset_counts_from_end(self):
        assert select_lines_exact(self.CONTENT, -2, 1) == "three\r\n"

    def test_window_past_end(self):
        assert select_lines_exact(self.CONTENT, 10, 5) == ""

    def test_zero_length(self):
        assert select_lines_exact(self.CONTENT, 1, 0) == ""
