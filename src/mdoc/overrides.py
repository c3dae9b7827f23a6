"""Choose one description source per member category.

Inputs, outputs and fields each resolve independently through
:func:`resolve_category`. If the category's named section holds a keyed
entry for at least one member, that section is the only source for the
whole category; otherwise every member keeps its inline comments. The two
sources are never merged.
"""

from __future__ import annotations

import re
import textwrap
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING

from mdoc.docblock import trim_blank_lines
from mdoc.errors import AmbiguousOverrideSourceError
from mdoc.logging import get_logger
from mdoc.models import DescriptionSource, Member, MemberRole

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from mdoc.members import MemberDeclaration
    from mdoc.models import Section

__all__ = [
    "CategoryResolution",
    "KeyedEntry",
    "parse_keyed_entries",
    "resolve_category",
]

logger = get_logger(__name__)

_KEYED_ENTRY = re.compile(r"^\s*`(?P<name>[^`\s]+)`\s*[-–—]\s*(?P<text>.*)$")


@dataclass(slots=True, frozen=True)
class KeyedEntry:
    """A ``name`` - short text entry with an optional long form below it."""

    name: str
    short: str
    long: str = ""


@dataclass(slots=True, frozen=True)
class CategoryResolution:
    """Resolved members of one category.

    ``from_section_only`` is set when the members were created from section
    entries because the category declared none.
    """

    members: tuple[Member, ...]
    source: DescriptionSource
    from_section_only: bool = False


def parse_keyed_entries(content: str) -> dict[str, KeyedEntry]:
    """Collect keyed entries from a section's content.

    Parameters
    ----------
    content : str
        Raw section content.

    Returns
    -------
    dict[str, KeyedEntry]
        Entries keyed by name in order of first appearance. When a name is
        repeated, the last entry wins.

    Examples
    --------
    >>> entries = parse_keyed_entries("`x` - Input data.\\n  Real array.")
    >>> entries["x"].short, entries["x"].long
    ('Input data.', 'Real array.')
    """
    entries: dict[str, KeyedEntry] = {}
    name: str | None = None
    short = ""
    body: list[str] = []

    def flush() -> None:
        if name is not None:
            long = textwrap.dedent("\n".join(trim_blank_lines(body)))
            entries[name] = KeyedEntry(name=name, short=short, long=long)

    for line in content.splitlines():
        match = _KEYED_ENTRY.match(line)
        if match:
            flush()
            name = match.group("name")
            short = match.group("text").strip()
            body = []
        elif name is not None:
            body.append(line)
    flush()
    return entries


def _lookup(entries: Mapping[str, KeyedEntry], member: Member) -> KeyedEntry | None:
    return entries.get(member.name) or entries.get(member.qualified_name)


def _inline(declaration: MemberDeclaration) -> Member:
    short = declaration.trailing
    long = declaration.preceding or declaration.trailing
    source = DescriptionSource.INLINE if (short or long) else DescriptionSource.NONE
    return replace(
        declaration.member,
        short_description=short,
        long_description=long,
        description_source=source,
    )


def _from_section(member: Member, entry: KeyedEntry | None) -> Member:
    if entry is None:
        return replace(
            member,
            short_description="",
            long_description="",
            description_source=DescriptionSource.NONE,
        )
    return replace(
        member,
        short_description=entry.short,
        long_description=entry.long,
        description_source=DescriptionSource.SECTION,
    )


def _section_only(entries: Mapping[str, KeyedEntry], role: MemberRole) -> tuple[Member, ...]:
    members: list[Member] = []
    for entry in entries.values():
        name, namespace, member_role = entry.name, "", role
        if "." in name and role is MemberRole.POSITIONAL:
            namespace, name = name.split(".", 1)
            member_role = MemberRole.NAMED
        members.append(
            Member(
                name=name,
                role=member_role,
                namespace=namespace,
                short_description=entry.short,
                long_description=entry.long,
                description_source=DescriptionSource.SECTION,
            )
        )
    return tuple(members)


def _check_single_source(category: str, members: Sequence[Member]) -> DescriptionSource:
    sources = {m.description_source for m in members} - {DescriptionSource.NONE}
    if len(sources) > 1:
        msg = f"Category '{category}' mixes description sources"
        raise AmbiguousOverrideSourceError(
            msg, context={"category": category, "sources": sorted(s.value for s in sources)}
        )
    return sources.pop() if sources else DescriptionSource.NONE


def resolve_category(
    declarations: Sequence[MemberDeclaration],
    sections: Sequence[Section],
    heading: str,
    role: MemberRole,
) -> CategoryResolution:
    """Resolve descriptions for one member category.

    Parameters
    ----------
    declarations : Sequence[MemberDeclaration]
        Declared members of the category, in source order.
    sections : Sequence[Section]
        All sections of the unit. The last one titled ``heading`` is used.
    heading : str
        Section heading owning the category (e.g. ``"Input Arguments"``).
    role : MemberRole
        Role given to members created from section entries alone.

    Returns
    -------
    CategoryResolution
        Members in declaration order with their descriptions resolved.

    Raises
    ------
    AmbiguousOverrideSourceError
        If the resolved members draw from more than one source. The rule
        above makes this unreachable; it guards against regressions.
    """
    content = ""
    for section in reversed(sections):
        if section.heading == heading:
            content = section.content
            break
    entries = parse_keyed_entries(content) if content else {}

    if not declarations:
        members = _section_only(entries, role)
        source = _check_single_source(heading, members)
        return CategoryResolution(members=members, source=source, from_section_only=bool(members))

    matched = [_lookup(entries, d.member) for d in declarations]
    if any(entry is not None for entry in matched):
        members = tuple(
            _from_section(d.member, entry) for d, entry in zip(declarations, matched, strict=True)
        )
        known = {d.member.name for d in declarations} | {
            d.member.qualified_name for d in declarations
        }
        unused = [name for name in entries if name not in known]
        if unused:
            logger.debug(
                "Ignoring keyed entries without a declared member",
                extra={"operation": "resolve_descriptions", "heading": heading, "names": unused},
            )
    else:
        members = tuple(_inline(d) for d in declarations)
    source = _check_single_source(heading, members)
    return CategoryResolution(members=members, source=source)
