"""Tests for mdoc.docblock module."""

from __future__ import annotations

from mdoc.docblock import parse_documentation_block, parse_see_also, split_paragraphs


class TestSynopsis:
    """Tests for synopsis extraction."""

    def test_strips_declared_name(self) -> None:
        """A leading declared name is removed case-insensitively."""
        doc = parse_documentation_block(["RESCALE  Scale data."], "rescale")
        assert doc.synopsis == "Scale data."

    def test_keeps_longer_word(self) -> None:
        """A word that merely starts with the name is kept."""
        doc = parse_documentation_block(["rescaled values are returned"], "rescale")
        assert doc.synopsis == "rescaled values are returned"

    def test_empty_block(self) -> None:
        """No lines give an empty result."""
        doc = parse_documentation_block(["", "  "], "f")
        assert doc.synopsis == ""
        assert doc.sections == ()


class TestSections:
    """Tests for section splitting."""

    def test_description_and_sections(self) -> None:
        """Text before the first heading is the description."""
        lines = ["f  Do it.", "", "Intro.", "", "## Tips", "", "Be careful.", "", "## Notes", "x"]
        doc = parse_documentation_block(lines, "f")
        assert doc.description == "Intro."
        assert [s.heading for s in doc.sections] == ["Tips", "Notes"]
        assert doc.sections[0].content == "Be careful."
        assert doc.sections[0].recognized
        assert not doc.sections[1].recognized

    def test_heading_inside_fence_is_content(self) -> None:
        """Headings inside fenced code do not open sections."""
        lines = ["f  Do it.", "## Examples", "```", "## not a heading", "```"]
        doc = parse_documentation_block(lines, "f")
        assert len(doc.sections) == 1
        assert "## not a heading" in doc.sections[0].content


class TestSeeAlso:
    """Tests for see-also parsing."""

    def test_parse_names(self) -> None:
        """Names are split at commas and the trailing period dropped."""
        assert parse_see_also("See also max, min, scale_range.") == ("max", "min", "scale_range")

    def test_case_insensitive_with_colon(self) -> None:
        """The prefix may be upper case and followed by a colon."""
        assert parse_see_also("SEE ALSO: plot") == ("plot",)

    def test_last_line_is_removed_from_body(self) -> None:
        """The see-also line does not leak into the description."""
        lines = ["f  Do it.", "", "Body.", "", "See also g, h"]
        doc = parse_documentation_block(lines, "f")
        assert doc.see_also == ("g", "h")
        assert "See also" not in doc.description


class TestSplitParagraphs:
    """Tests for split_paragraphs."""

    def test_blank_lines_separate(self) -> None:
        """Runs of blank lines collapse to one boundary."""
        assert split_paragraphs("a\nb\n\n\nc\n") == ["a\nb", "c"]

    def test_fence_keeps_blank_lines(self) -> None:
        """Blank lines inside a fence stay within one paragraph."""
        text = "Intro.\n\n```\na = 1;\n\nb = 2;\n```\n\nAfter."
        assert split_paragraphs(text) == ["Intro.", "```\na = 1;\n\nb = 2;\n```", "After."]
