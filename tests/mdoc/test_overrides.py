"""Tests for mdoc.overrides module.

A documentation section that mentions any declared member of a category
replaces the inline comments of the whole category.
"""

from __future__ import annotations

from mdoc.members import MemberDeclaration
from mdoc.models import DescriptionSource, Member, MemberRole, Section
from mdoc.overrides import parse_keyed_entries, resolve_category


def _declared(name: str, trailing: str = "", preceding: str = "") -> MemberDeclaration:
    return MemberDeclaration(Member(name), trailing=trailing, preceding=preceding)


class TestParseKeyedEntries:
    """Tests for parse_keyed_entries."""

    def test_short_and_long(self) -> None:
        """Indented continuation lines form the dedented long text."""
        entries = parse_keyed_entries("`x` - Input data.\n  Real array.\n  Any size.")
        assert entries["x"].short == "Input data."
        assert entries["x"].long == "Real array.\nAny size."

    def test_dash_variants(self) -> None:
        """Hyphen, en dash and em dash all separate name and text."""
        content = "`a` - one\n`b` – two\n`c` — three"
        entries = parse_keyed_entries(content)
        assert [entries[k].short for k in ("a", "b", "c")] == ["one", "two", "three"]

    def test_last_entry_wins(self) -> None:
        """A repeated name keeps the later entry."""
        entries = parse_keyed_entries("`x` - first\n\n`x` - second")
        assert entries["x"].short == "second"

    def test_prose_before_first_entry_is_ignored(self) -> None:
        """Text before the first keyed line belongs to no entry."""
        assert list(parse_keyed_entries("Intro.\n`x` - data")) == ["x"]


class TestResolveCategory:
    """Tests for resolve_category."""

    def test_inline_when_no_section(self) -> None:
        """Trailing comments give the short text, preceding ones the long text."""
        resolution = resolve_category(
            [_declared("x", trailing="Input", preceding="Long input.")],
            (),
            "Input Arguments",
            MemberRole.POSITIONAL,
        )
        member = resolution.members[0]
        assert resolution.source is DescriptionSource.INLINE
        assert member.short_description == "Input"
        assert member.long_description == "Long input."

    def test_trailing_doubles_as_long(self) -> None:
        """Without a preceding comment the trailing comment is also the long text."""
        resolution = resolve_category(
            [_declared("x", trailing="Input")], (), "Input Arguments", MemberRole.POSITIONAL
        )
        assert resolution.members[0].long_description == "Input"

    def test_section_wins_for_whole_category(self) -> None:
        """Unmatched members lose their inline comments once the section matches one."""
        section = Section("Input Arguments", "`x` - short.\n  long line two")
        resolution = resolve_category(
            [
                _declared("x", trailing="inline x", preceding="preceding x"),
                _declared("y", trailing="inline y"),
            ],
            (section,),
            "Input Arguments",
            MemberRole.POSITIONAL,
        )
        x, y = resolution.members
        assert resolution.source is DescriptionSource.SECTION
        assert x.short_description == "short."
        assert x.long_description == "long line two"
        assert y.description_source is DescriptionSource.NONE
        assert y.short_description == ""
        assert y.long_description == ""

    def test_unmatched_section_keeps_inline(self) -> None:
        """A section naming no declared member leaves inline comments in place."""
        section = Section("Input Arguments", "`z` - unrelated")
        resolution = resolve_category(
            [_declared("x", trailing="inline x")],
            (section,),
            "Input Arguments",
            MemberRole.POSITIONAL,
        )
        assert resolution.source is DescriptionSource.INLINE
        assert resolution.members[0].short_description == "inline x"

    def test_named_member_matches_qualified_key(self) -> None:
        """Named parameters match on ``opts.Name`` as well as ``Name``."""
        declaration = MemberDeclaration(Member("Mode", role=MemberRole.NAMED, namespace="opts"))
        section = Section("Input Arguments", "`opts.Mode` - Clipping mode.")
        resolution = resolve_category(
            [declaration], (section,), "Input Arguments", MemberRole.POSITIONAL
        )
        assert resolution.members[0].short_description == "Clipping mode."

    def test_section_only_members(self) -> None:
        """Without declarations the section entries become the members."""
        section = Section("Output Arguments", "`y` - Result.\n`n` - Count.")
        resolution = resolve_category((), (section,), "Output Arguments", MemberRole.OUTPUT)
        assert resolution.from_section_only
        assert [m.name for m in resolution.members] == ["y", "n"]
        assert all(m.role is MemberRole.OUTPUT for m in resolution.members)

    def test_last_section_is_used(self) -> None:
        """With repeated headings only the last section counts."""
        sections = (
            Section("Input Arguments", "`x` - old"),
            Section("Input Arguments", "`x` - new"),
        )
        resolution = resolve_category(
            [_declared("x")], sections, "Input Arguments", MemberRole.POSITIONAL
        )
        assert resolution.members[0].short_description == "new"

    def test_empty_category(self) -> None:
        """No declarations and no section resolve to nothing."""
        resolution = resolve_category((), (), "Properties", MemberRole.FIELD)
        assert resolution.members == ()
        assert resolution.source is DescriptionSource.NONE
        assert not resolution.from_section_only
