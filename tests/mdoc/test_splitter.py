"""Tests for mdoc.splitter module.

Tests cover continuation joining, declaration lookup and extraction of the
documentation block in both comment forms.
"""

from __future__ import annotations

import pytest

from mdoc.errors import ErrorCode, NoDeclarationFoundError
from mdoc.splitter import (
    extract_documentation_block,
    find_declaration,
    join_continuations,
    read_block_comment,
    strip_comment_marker,
)


class TestJoinContinuations:
    """Tests for join_continuations."""

    def test_joins_code_lines(self) -> None:
        """A trailing ellipsis folds the next line into the current one."""
        lines = ["function y = f(a, ...", "    b)", "y = a + b;"]
        assert join_continuations(lines) == ["function y = f(a, b)", "y = a + b;"]

    def test_comment_ellipsis_is_prose(self) -> None:
        """Comment lines ending in an ellipsis are left alone."""
        lines = ["% Wait for it...", "% done"]
        assert join_continuations(lines) == lines

    def test_block_comment_content_is_not_joined(self) -> None:
        """Lines inside a delimited comment block are never joined."""
        lines = ["%{", "and so on...", "next", "%}"]
        assert join_continuations(lines) == lines


class TestFindDeclaration:
    """Tests for find_declaration."""

    def test_finds_function_after_leading_comments(self) -> None:
        """Leading comments and blank lines are skipped."""
        lines = ["% header", "", "function f()"]
        assert find_declaration(lines) == 2

    def test_ignores_declaration_inside_block_comment(self) -> None:
        """A declaration inside a delimited comment block does not count."""
        lines = ["%{", "function fake()", "%}", "classdef Real"]
        assert find_declaration(lines) == 3

    def test_missing_declaration_raises(self) -> None:
        """Scripts without a declaration raise NoDeclarationFoundError."""
        with pytest.raises(NoDeclarationFoundError, match="No function or classdef") as info:
            find_declaration(["x = 1;", "disp(x)"])
        assert info.value.code == ErrorCode.NO_DECLARATION_FOUND
        assert info.value.context["line_count"] == 2


class TestCommentMarkers:
    """Tests for comment marker handling."""

    def test_strips_one_space(self) -> None:
        """Only the marker and one following space are removed."""
        assert strip_comment_marker("%   indented") == "  indented"
        assert strip_comment_marker("%plain") == "plain"

    def test_block_comment_dedents_to_opener(self) -> None:
        """Layout whitespace up to the opener's column is dropped."""
        lines = ["    %{", "    Title", "        code", "  shallow", "    %}"]
        content, close = read_block_comment(lines, 0)
        assert content == ["Title", "    code", "shallow"]
        assert close == 4


class TestExtractDocumentationBlock:
    """Tests for extract_documentation_block."""

    def test_line_comments(self) -> None:
        """Consecutive comment lines form the block."""
        lines = ["function f()", "% f  Synopsis.", "%", "% Body.", "x = 1;"]
        block = extract_documentation_block(lines, 0)
        assert block.lines == ("f  Synopsis.", "", "Body.")
        assert block.end_index == 3

    def test_blank_line_followed_by_comment_is_kept(self) -> None:
        """A blank line inside the run survives when a comment follows it."""
        lines = ["function f()", "% One.", "", "% Two.", "y = 2;"]
        block = extract_documentation_block(lines, 0)
        assert block.lines == ("One.", "", "Two.")

    def test_blank_line_before_code_ends_block(self) -> None:
        """A blank line followed by code terminates the run."""
        lines = ["function f()", "% One.", "", "y = 2;", "% later"]
        block = extract_documentation_block(lines, 0)
        assert block.lines == ("One.",)
        assert block.end_index == 1

    def test_delimited_block(self) -> None:
        """A leading delimited block is read whole and dedented."""
        lines = ["function f()", "%{", "f  Synopsis.", "", "  Indented.", "%}", "x = 1;"]
        block = extract_documentation_block(lines, 0)
        assert block.lines == ("f  Synopsis.", "", "  Indented.")
        assert block.end_index == 5

    def test_line_comments_stop_at_block_opener(self) -> None:
        """Mixing forms ends the run at the delimited block."""
        lines = ["function f()", "% One.", "%{", "Two.", "%}"]
        block = extract_documentation_block(lines, 0)
        assert block.lines == ("One.",)

    def test_no_comments(self) -> None:
        """A declaration without comments yields an empty block."""
        block = extract_documentation_block(["function f()", "end"], 0)
        assert block.lines == ()
        assert block.end_index == 0
