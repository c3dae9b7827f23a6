"""Locate declarations and isolate their documentation blocks.

Both physical comment forms are normalised here into plain lists of
comment-content lines, so every later stage works on one representation:

* per-line comments: ``% text`` (one optional space after ``%`` is dropped)
* delimited blocks: ``%{`` ... ``%}``, dedented to the column of ``%{``
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Final

from mdoc.errors import NoDeclarationFoundError

if TYPE_CHECKING:
    from collections.abc import Sequence

__all__ = [
    "CONTINUATION",
    "DocumentationBlock",
    "extract_documentation_block",
    "find_declaration",
    "is_block_close",
    "is_block_open",
    "is_comment",
    "join_continuations",
    "read_block_comment",
    "strip_comment_marker",
]

CONTINUATION: Final[str] = "..."

_DECLARATION = re.compile(r"^(function|classdef)\s")


@dataclass(slots=True, frozen=True)
class DocumentationBlock:
    """Comment content following a declaration.

    Attributes
    ----------
    lines : tuple[str, ...]
        Comment text with markers removed, one entry per source line.
    end_index : int
        Index of the last source line belonging to the block, or the
        declaration index when the block is empty.
    """

    lines: tuple[str, ...]
    end_index: int


def is_comment(stripped: str) -> bool:
    return stripped.startswith("%")


def is_block_open(stripped: str) -> bool:
    return stripped == "%{"


def is_block_close(stripped: str) -> bool:
    return stripped == "%}"


def strip_comment_marker(stripped: str) -> str:
    """Drop the leading ``%`` and one following space from a comment line."""
    content = stripped[1:]
    if content.startswith(" "):
        content = content[1:]
    return content


def join_continuations(lines: Sequence[str]) -> list[str]:
    """Join code lines ending in ``...`` with the line that follows.

    Comment lines and the content of ``%{ ... %}`` blocks are never joined,
    so an ellipsis in prose stays prose.

    Parameters
    ----------
    lines : Sequence[str]
        Raw source lines.

    Returns
    -------
    list[str]
        Lines with continuations folded. Indentation of the first physical
        line is kept.
    """
    joined: list[str] = []
    in_block = False
    pending: str | None = None
    for line in lines:
        stripped = line.strip()
        if pending is not None:
            line = f"{pending} {stripped}"
            stripped = line.strip()
            pending = None
        if in_block:
            joined.append(line)
            if is_block_close(stripped):
                in_block = False
            continue
        if is_block_open(stripped):
            in_block = True
            joined.append(line)
            continue
        if not is_comment(stripped) and stripped.endswith(CONTINUATION):
            pending = line.rstrip()[: -len(CONTINUATION)].rstrip()
            continue
        joined.append(line)
    if pending is not None:
        joined.append(pending)
    return joined


def find_declaration(lines: Sequence[str]) -> int:
    """Return the index of the first ``function`` or ``classdef`` line.

    Parameters
    ----------
    lines : Sequence[str]
        Source lines after continuation joining.

    Returns
    -------
    int
        Zero-based line index.

    Raises
    ------
    NoDeclarationFoundError
        If no line declares a function or type.
    """
    in_block = False
    for index, line in enumerate(lines):
        stripped = line.strip()
        if in_block:
            in_block = not is_block_close(stripped)
            continue
        if is_block_open(stripped):
            in_block = True
            continue
        if _DECLARATION.match(stripped):
            return index
    msg = "No function or classdef declaration found"
    raise NoDeclarationFoundError(msg, context={"line_count": len(lines)})


def read_block_comment(lines: Sequence[str], open_index: int) -> tuple[list[str], int]:
    """Read a ``%{ ... %}`` block starting at ``open_index``.

    Content is dedented to the column of the opening delimiter: layout
    whitespace up to that column is removed, deeper indentation is kept.

    Parameters
    ----------
    lines : Sequence[str]
        Source lines.
    open_index : int
        Index of the ``%{`` line.

    Returns
    -------
    tuple[list[str], int]
        Content lines and the index of the closing ``%}`` line (the last line
        index when the block is unterminated).
    """
    opener = lines[open_index]
    column = len(opener) - len(opener.lstrip())
    content: list[str] = []
    index = open_index + 1
    while index < len(lines):
        line = lines[index]
        if is_block_close(line.strip()):
            return content, index
        indent = len(line) - len(line.lstrip())
        content.append(line[min(indent, column) :].rstrip())
        index += 1
    return content, len(lines) - 1


def extract_documentation_block(lines: Sequence[str], after_index: int) -> DocumentationBlock:
    """Return the contiguous comment run following line ``after_index``.

    A blank line is tolerated only when a comment line follows it. The run
    stops at the first code line. The first comment decides the form: a
    ``%{`` opener yields exactly one delimited block, otherwise only
    per-line comments are collected and a ``%{`` line ends the run.

    Parameters
    ----------
    lines : Sequence[str]
        Source lines after continuation joining.
    after_index : int
        Index of the declaration line.

    Returns
    -------
    DocumentationBlock
        Normalised comment lines and the index of the block's last line.
    """
    collected: list[str] = []
    end_index = after_index
    index = after_index + 1
    while index < len(lines):
        stripped = lines[index].strip()
        if is_block_open(stripped):
            if collected:
                break
            content, close_index = read_block_comment(lines, index)
            return DocumentationBlock(lines=tuple(content), end_index=close_index)
        if is_comment(stripped):
            collected.append(strip_comment_marker(stripped))
            end_index = index
        elif not stripped:
            following = lines[index + 1].strip() if index + 1 < len(lines) else ""
            if not is_comment(following) or (collected and is_block_open(following)):
                break
            if collected:
                collected.append("")
            end_index = index
        else:
            break
        index += 1
    return DocumentationBlock(lines=tuple(collected), end_index=end_index)
