"""Terminal help text for a parsed unit, with markup removed."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from mdoc.docblock import FENCE
from mdoc.markup import CalloutKind

if TYPE_CHECKING:
    from mdoc.models import DeclarationUnit

__all__ = ["format_help", "strip_markup"]

_HEADING = re.compile(r"^#{2,3}\s+(.*)$")
_CALLOUT = re.compile(r"^>\s*\[!(" + "|".join(k.name for k in CalloutKind) + r")\]\s*")
_QUOTE = re.compile(r"^>\s?")
_BOLD = re.compile(r"\*\*(.+?)\*\*")
_ITALIC = re.compile(r"(?<![A-Za-z0-9_])_([^_]+?)_(?![A-Za-z0-9_])")
_CODE = re.compile(r"`([^`]+?)`")
_IMAGE = re.compile(r"!\[([^\]]*?)\]\([^)]+?\)")
_LINK = re.compile(r"\[([^\]]+?)\]\([^)]+?\)")


def strip_markup(line: str) -> str:
    """Remove inline and line-level markup from one documentation line.

    Examples
    --------
    >>> strip_markup("## Input Arguments")
    'INPUT ARGUMENTS'
    >>> strip_markup("> [!NOTE] Use **care** with `x`.")
    'NOTE: Use care with x.'
    """
    stripped = line.strip()
    heading = _HEADING.match(stripped)
    if heading is not None:
        return heading.group(1).upper()
    out = _CALLOUT.sub(lambda m: f"{m.group(1)}: ", line.lstrip(), count=1)
    if out == line.lstrip():
        out = _QUOTE.sub("  ", line, count=1) if stripped.startswith(">") else line
    out = _BOLD.sub(r"\1", out)
    out = _ITALIC.sub(r"\1", out)
    out = _CODE.sub(r"\1", out)
    out = _IMAGE.sub(r"(\1)", out)
    return _LINK.sub(r"\1", out)


def format_help(unit: DeclarationUnit) -> str:
    """Format ``unit``'s documentation block for a terminal.

    Parameters
    ----------
    unit : DeclarationUnit
        Parsed unit; its raw ``doc_lines`` are used so the text keeps the
        author's layout.

    Returns
    -------
    str
        ``name — synopsis`` header followed by the body indented two spaces,
        fenced code indented four spaces. A unit without documentation gives
        ``No help found for <name>.``
    """
    lines = list(unit.doc_lines)
    first = next((i for i, line in enumerate(lines) if line.strip()), None)
    if first is None:
        return f"No help found for {unit.qualified_name}.\n"

    header = f"  {unit.qualified_name}"
    if unit.synopsis:
        header += f" — {strip_markup(unit.synopsis)}"
    out = [header, ""]

    body = lines[first + 1 :]
    while body and not body[0].strip():
        body.pop(0)
    in_code = False
    for line in body:
        if line.strip().startswith(FENCE):
            in_code = not in_code
            if in_code:
                out.append("")
            continue
        if in_code:
            out.append(f"    {line}")
        else:
            text = strip_markup(line)
            out.append(f"  {text}" if text.strip() else "")
    return "\n".join(out).rstrip() + "\n"
