"""Split a documentation block into synopsis, description and sections."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Final

from mdoc.models import Section

if TYPE_CHECKING:
    from collections.abc import Sequence

__all__ = [
    "ParsedDocumentation",
    "parse_documentation_block",
    "parse_see_also",
    "split_paragraphs",
    "trim_blank_lines",
]

SECTION_PREFIX: Final[str] = "## "
FENCE: Final[str] = "```"

_SEE_ALSO = re.compile(r"^see\s+also\b:?", re.IGNORECASE)


@dataclass(slots=True, frozen=True)
class ParsedDocumentation:
    """Structured view of one documentation block."""

    synopsis: str = ""
    description: str = ""
    sections: tuple[Section, ...] = ()
    see_also: tuple[str, ...] = ()


def trim_blank_lines(lines: Sequence[str]) -> list[str]:
    """Drop blank lines at both ends while keeping inner layout."""
    start = 0
    end = len(lines)
    while start < end and not lines[start].strip():
        start += 1
    while end > start and not lines[end - 1].strip():
        end -= 1
    return list(lines[start:end])


def split_paragraphs(text: str) -> list[str]:
    """Split ``text`` at blank lines into non-empty paragraphs.

    Blank lines inside a fenced block do not split it, so a fence always
    lies within one paragraph.
    """
    paragraphs: list[str] = []
    current: list[str] = []
    in_fence = False
    for line in text.splitlines():
        if line.strip().startswith(FENCE):
            in_fence = not in_fence
        if line.strip() or in_fence:
            current.append(line)
        elif current:
            paragraphs.append("\n".join(current))
            current = []
    if current:
        paragraphs.append("\n".join(current))
    return paragraphs


def _strip_synopsis(line: str, name: str) -> str:
    text = line.strip()
    if name and text.lower().startswith(name.lower()):
        remainder = text[len(name) :]
        if not remainder or not (remainder[0].isalnum() or remainder[0] == "_"):
            return remainder.strip()
    return text


def parse_see_also(line: str) -> tuple[str, ...]:
    """Parse a ``See also a, b, c.`` line into names.

    Parameters
    ----------
    line : str
        The line, including its ``See also`` prefix.

    Returns
    -------
    tuple[str, ...]
        Names in order, trimmed, trailing period removed, empties dropped.
    """
    remainder = _SEE_ALSO.sub("", line.strip(), count=1)
    names: list[str] = []
    for raw in remainder.split(","):
        name = raw.strip().rstrip(".").strip()
        if name:
            names.append(name)
    return tuple(names)


def _find_see_also(lines: Sequence[str]) -> int | None:
    for index in range(len(lines) - 1, -1, -1):
        if _SEE_ALSO.match(lines[index].strip()):
            return index
    return None


def parse_documentation_block(lines: Sequence[str], name: str) -> ParsedDocumentation:
    """Parse comment lines into a :class:`ParsedDocumentation`.

    The first non-empty line is the synopsis, with a leading declared name
    removed (case-insensitively). The last ``See also`` line is removed from
    the body and parsed as a name list. The remaining body is split at
    ``## heading`` lines: text before the first heading is the description,
    each heading opens a section that runs to the next heading. Headings
    inside fenced code blocks are ignored.

    Parameters
    ----------
    lines : Sequence[str]
        Normalised comment lines from
        :func:`mdoc.splitter.extract_documentation_block`.
    name : str
        Declared name of the unit.

    Returns
    -------
    ParsedDocumentation
        Synopsis, description, ordered sections and see-also names.

    Examples
    --------
    >>> lines = ["rescale  Scale data", "", "## Tips", "Use it."]
    >>> doc = parse_documentation_block(lines, "rescale")
    >>> doc.synopsis, doc.sections[0].heading
    ('Scale data', 'Tips')
    """
    first = next((i for i, line in enumerate(lines) if line.strip()), None)
    if first is None:
        return ParsedDocumentation()
    synopsis = _strip_synopsis(lines[first], name)
    body = list(lines[first + 1 :])

    see_also: tuple[str, ...] = ()
    see_index = _find_see_also(body)
    if see_index is not None:
        see_also = parse_see_also(body.pop(see_index))

    description: list[str] = []
    sections: list[Section] = []
    heading: str | None = None
    current: list[str] = []
    in_fence = False
    for line in body:
        stripped = line.strip()
        if stripped.startswith(FENCE):
            in_fence = not in_fence
        elif not in_fence and stripped.startswith(SECTION_PREFIX):
            if heading is None:
                description = current
            else:
                sections.append(Section(heading, "\n".join(trim_blank_lines(current))))
            heading = stripped[len(SECTION_PREFIX) :].strip()
            current = []
            continue
        current.append(line)
    if heading is None:
        description = current
    else:
        sections.append(Section(heading, "\n".join(trim_blank_lines(current))))

    return ParsedDocumentation(
        synopsis=synopsis,
        description="\n".join(trim_blank_lines(description)),
        sections=tuple(sections),
        see_also=see_also,
    )
