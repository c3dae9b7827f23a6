"""Derive the calling-syntax summary of a unit.

Four tiers are tried in order and the first that yields entries wins:

1. an explicit, non-blank ``## Syntax`` section
2. calling-form paragraphs in the free-form description
3. forms synthesised from declared parameter metadata
4. the declaration line without its ``function`` keyword

Entries from different tiers are never combined.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from mdoc.docblock import FENCE, split_paragraphs
from mdoc.logging import get_logger
from mdoc.models import SyntaxEntry, SyntaxSource

if TYPE_CHECKING:
    from collections.abc import Sequence

    from mdoc.models import Member, Section

__all__ = [
    "extract_calling_forms",
    "generate_forms",
    "legacy_form",
    "parse_syntax_section",
    "resolve_syntax",
]

logger = get_logger(__name__)

_LEADING_CODE = re.compile(r"^`(?P<form>[^`]+)`\s*")


def _calls(form: str, name: str, *, allow_bare: bool) -> bool:
    escaped = re.escape(name)
    pattern = rf"(?<!\w){escaped}\(" if not allow_bare else rf"(?<!\w){escaped}(?:\(|\s*$)"
    return re.search(pattern, form, re.IGNORECASE) is not None


def _paragraph_entry(paragraph: str, name: str, *, allow_bare: bool) -> SyntaxEntry | None:
    text = paragraph.strip()
    match = _LEADING_CODE.match(text)
    if match is None:
        return None
    form = match.group("form").strip()
    if not _calls(form, name, allow_bare=allow_bare):
        return None
    return SyntaxEntry(form=form, description=text[match.end() :].strip())


def parse_syntax_section(content: str, name: str) -> tuple[SyntaxEntry, ...]:
    """Parse an explicit ``## Syntax`` section.

    Each non-blank line of a fenced block is a form without description. A
    paragraph opening with an inline-code calling form yields the form and
    the paragraph's remaining text. Bare constructor forms such as
    ``obj = Sensor`` are accepted here. Other paragraphs are ignored.

    Parameters
    ----------
    content : str
        Section content.
    name : str
        Unit name the forms must call.

    Returns
    -------
    tuple[SyntaxEntry, ...]
        Entries in authoring order.
    """
    entries: list[SyntaxEntry] = []
    lines = content.splitlines()
    index = 0
    while index < len(lines):
        stripped = lines[index].strip()
        if stripped.startswith(FENCE):
            index += 1
            while index < len(lines) and not lines[index].strip().startswith(FENCE):
                form = lines[index].strip()
                if form:
                    entries.append(SyntaxEntry(form=form))
                index += 1
            index += 1
            continue
        if not stripped:
            index += 1
            continue
        paragraph: list[str] = []
        while (
            index < len(lines)
            and lines[index].strip()
            and not lines[index].strip().startswith(FENCE)
        ):
            paragraph.append(lines[index])
            index += 1
        entry = _paragraph_entry("\n".join(paragraph), name, allow_bare=True)
        if entry is not None:
            entries.append(entry)
    return tuple(entries)


def extract_calling_forms(description: str, name: str) -> tuple[SyntaxEntry, ...]:
    """Return calling-form paragraphs found in ``description``.

    A calling-form paragraph starts with an inline-code span in which the
    unit name is immediately followed by ``(`` (case-insensitive).

    Examples
    --------
    >>> extract_calling_forms("`y = f(x)` does W\\n\\nMore prose.", "f")
    (SyntaxEntry(form='y = f(x)', description='does W'),)
    """
    entries = (
        _paragraph_entry(paragraph, name, allow_bare=False)
        for paragraph in split_paragraphs(description)
        if not paragraph.lstrip().startswith(FENCE)
    )
    return tuple(entry for entry in entries if entry is not None)


def generate_forms(
    name: str,
    output_names: Sequence[str],
    positional: Sequence[Member],
    named: Sequence[Member],
) -> tuple[SyntaxEntry, ...]:
    """Synthesise calling forms from parameter metadata.

    Produces the required-only form, one cumulative form per optional
    positional parameter, ``___ = f(___, Name=Value)`` when named parameters
    exist and ``[o1, o2] = f(___)`` when more than one output is declared.

    Examples
    --------
    >>> from mdoc.models import Member
    >>> forms = generate_forms("f", [], [Member("x"), Member("a", default="0")], [])
    >>> [entry.form for entry in forms]
    ['f(x)', 'f(x, a)']
    """
    required = [m.name for m in positional if not m.default]
    optional = [m.name for m in positional if m.default]
    single = f"{output_names[0]} = " if output_names else ""

    forms = [f"{single}{name}({', '.join(required)})"]
    for count in range(1, len(optional) + 1):
        arguments = ", ".join([*required, *optional[:count]])
        forms.append(f"{single}{name}({arguments})")
    if named:
        prefix = "___ = " if single else ""
        forms.append(f"{prefix}{name}(___, Name=Value)")
    if len(output_names) > 1:
        forms.append(f"[{', '.join(output_names)}] = {name}(___)")
    return tuple(SyntaxEntry(form=form) for form in forms)


def legacy_form(signature: str) -> SyntaxEntry:
    """Return the declaration line without its ``function`` keyword."""
    return SyntaxEntry(form=re.sub(r"^\s*function\s+", "", signature).strip())


def resolve_syntax(
    name: str,
    *,
    sections: Sequence[Section],
    description: str,
    output_names: Sequence[str],
    positional: Sequence[Member],
    named: Sequence[Member],
    fallback: SyntaxEntry,
) -> tuple[tuple[SyntaxEntry, ...], SyntaxSource]:
    """Pick the syntax entries of a unit from the first applicable tier.

    Parameters
    ----------
    name : str
        Unit name used to recognise calling forms.
    sections : Sequence[Section]
        Unit sections; the last ``Syntax`` section is used when non-blank.
    description : str
        Free-form description text.
    output_names : Sequence[str]
        Declared output names.
    positional : Sequence[Member]
        Declared positional parameters. Members created from section entries
        alone must not be passed.
    named : Sequence[Member]
        Declared named parameters, same restriction.
    fallback : SyntaxEntry
        Entry used when no other tier applies.

    Returns
    -------
    tuple[tuple[SyntaxEntry, ...], SyntaxSource]
        Entries and the tier that produced them.
    """
    content = ""
    for section in reversed(sections):
        if section.heading == "Syntax":
            content = section.content
            break
    if content.strip():
        return parse_syntax_section(content, name), SyntaxSource.EXPLICIT_SECTION

    forms = extract_calling_forms(description, name)
    if forms:
        return forms, SyntaxSource.DESCRIPTION_FORMS

    if positional or named:
        return (
            generate_forms(name, output_names, positional, named),
            SyntaxSource.AUTO_GENERATED,
        )

    logger.debug(
        "Falling back to declaration syntax",
        extra={"operation": "resolve_syntax", "unit": name, "form": fallback.form},
    )
    return (fallback,), SyntaxSource.LEGACY_FALLBACK
