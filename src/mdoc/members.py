"""Parse parameter and field declaration lines.

A declaration line has the shape::

    name (size) type {validators} = default  % trailing comment

Splitting tracks bracket depth and quoted literals so that ``%``, ``=`` or
spaces inside ``{mustBeMember(x, ["a b", "c"])}`` or ``= zeros(3, 1)`` are
never mistaken for separators.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Final

from mdoc.errors import MalformedMemberLineError
from mdoc.logging import get_logger
from mdoc.models import Member, MemberRole
from mdoc.splitter import (
    is_block_open,
    is_comment,
    read_block_comment,
    strip_comment_marker,
)

if TYPE_CHECKING:
    from collections.abc import Sequence

__all__ = [
    "MemberDeclaration",
    "extract_allowed_values",
    "is_block_end",
    "parse_member_block",
    "parse_member_line",
    "split_code_comment",
]

logger = get_logger(__name__)

_OPEN: Final[dict[str, str]] = {"(": ")", "[": "]", "{": "}"}
_CLOSE: Final[frozenset[str]] = frozenset(_OPEN.values())
_NAME = re.compile(r"^[A-Za-z]\w*(?:\.[A-Za-z]\w*)?$")
_MUST_BE_MEMBER = re.compile(r"mustBeMember\(\s*[^,]+,\s*[\[{](?P<values>[^\]}]*)[\]}]\s*\)")
_QUOTED = re.compile(r'"([^"]*)"|\'([^\']*)\'')
_END = re.compile(r"^end\s*(?:[;,]\s*)?(?:%.*)?$")


@dataclass(slots=True, frozen=True)
class MemberDeclaration:
    """A parsed member before description resolution.

    ``trailing`` is the same-line comment and ``preceding`` the comment run
    directly above the declaration; both are candidates only.
    """

    member: Member
    trailing: str = ""
    preceding: str = ""


def is_block_end(stripped: str) -> bool:
    """Whether a stripped line is a bare ``end`` statement."""
    return bool(_END.match(stripped))


def _quote_opens(text: str, index: int) -> bool:
    if text[index] == '"':
        return True
    # A single quote directly after a value is the transpose operator.
    previous = text[:index].rstrip()
    return not previous or not (previous[-1].isalnum() or previous[-1] in "_)]}.'")


def _scan(text: str) -> tuple[int | None, int | None, list[tuple[int, int]]]:
    """Return the comment index, default index and top-level groups of ``text``.

    Raises
    ------
    ValueError
        If brackets do not balance or a literal is unterminated.
    """
    comment: int | None = None
    equals: int | None = None
    groups: list[tuple[int, int]] = []
    stack: list[str] = []
    group_start = 0
    quote: str | None = None
    index = 0
    while index < len(text):
        char = text[index]
        if quote is not None:
            if char == quote:
                quote = None
        elif char in "\"'" and _quote_opens(text, index):
            quote = char
        elif char in _OPEN:
            if not stack:
                group_start = index
            stack.append(_OPEN[char])
        elif char in _CLOSE:
            if not stack or stack.pop() != char:
                msg = f"unbalanced '{char}' at column {index}"
                raise ValueError(msg)
            if not stack:
                groups.append((group_start, index + 1))
        elif not stack and char == "%":
            comment = index
            break
        elif not stack and char == "=" and equals is None:
            equals = index
        index += 1
    if quote is not None:
        msg = "unterminated string literal"
        raise ValueError(msg)
    if stack:
        msg = "unbalanced brackets"
        raise ValueError(msg)
    return comment, equals, groups


def split_code_comment(stripped: str) -> tuple[str, str]:
    """Split a code line into code and trailing comment text.

    Parameters
    ----------
    stripped : str
        Line without surrounding whitespace.

    Returns
    -------
    tuple[str, str]
        Code part and comment text (without ``%``), both stripped. Lines that
        cannot be scanned are returned whole with no comment.
    """
    try:
        comment, _, _ = _scan(stripped)
    except ValueError:
        return stripped, ""
    if comment is None:
        return stripped, ""
    return stripped[:comment].strip(), stripped[comment + 1 :].strip()


def extract_allowed_values(validators: str) -> tuple[str, ...]:
    """Return the values listed by a ``mustBeMember`` validator.

    Examples
    --------
    >>> extract_allowed_values('{mustBeMember(m, ["linear", "log"])}')
    ('linear', 'log')
    """
    match = _MUST_BE_MEMBER.search(validators)
    if match is None:
        return ()
    raw = match.group("values")
    quoted = [double or single for double, single in _QUOTED.findall(raw)]
    if quoted:
        return tuple(value for value in quoted if value)
    return tuple(value.strip() for value in re.split(r"[,\s]+", raw) if value.strip())


def parse_member_line(line: str, role: MemberRole = MemberRole.POSITIONAL) -> MemberDeclaration:
    """Parse one declaration line.

    Parameters
    ----------
    line : str
        Source line (surrounding whitespace is ignored).
    role : MemberRole, optional
        Role for undotted names. Dotted names such as ``opts.Method`` always
        become named parameters with the prefix stored as ``namespace``.
        Defaults to ``MemberRole.POSITIONAL``.

    Returns
    -------
    MemberDeclaration
        Member metadata plus the trailing comment.

    Raises
    ------
    MalformedMemberLineError
        If brackets or literals do not balance or the name is not an
        identifier.

    Examples
    --------
    >>> parsed = parse_member_line("opts.Method (1,1) string = \\"linear\\"  % Scaling method")
    >>> parsed.member.name, parsed.member.role.value, parsed.trailing
    ('Method', 'named', 'Scaling method')
    """
    text = line.strip()
    try:
        comment, equals, groups = _scan(text)
    except ValueError as exc:
        msg = f"Cannot split member declaration: {exc}"
        raise MalformedMemberLineError(msg, line=line, cause=exc) from exc

    trailing = ""
    if comment is not None:
        trailing = text[comment + 1 :].strip()
        text = text[:comment].rstrip()
    default = ""
    if equals is not None and (comment is None or equals < comment):
        default = text[equals + 1 :].strip().rstrip(";").strip()
        text = text[:equals].rstrip()
    text = text.rstrip(";").rstrip()

    size = ""
    validators: list[str] = []
    plain: list[str] = []
    cursor = 0
    for start, end in groups:
        if start >= len(text):
            break
        plain.append(text[cursor:start])
        group = text[start:end]
        if group.startswith("(") and not size and not validators:
            size = group
        elif group.startswith("{"):
            validators.append(group)
        else:
            plain.append(group)
        cursor = end
    plain.append(text[cursor:])

    tokens = "".join(plain).split()
    if not tokens or not _NAME.match(tokens[0]):
        msg = "Member declaration does not start with an identifier"
        raise MalformedMemberLineError(msg, line=line)

    name = tokens[0]
    namespace = ""
    if "." in name:
        namespace, name = name.split(".", 1)
        role = MemberRole.NAMED
    validator_text = " ".join(validators)
    member = Member(
        name=name,
        role=role,
        namespace=namespace,
        size=size,
        type=" ".join(tokens[1:]),
        default=default,
        validators=validator_text,
        allowed_values=extract_allowed_values(validator_text),
    )
    return MemberDeclaration(member=member, trailing=trailing)


def parse_member_block(
    lines: Sequence[str],
    start: int,
    role: MemberRole = MemberRole.POSITIONAL,
    *,
    group: str = "",
    flags: dict[str, bool] | None = None,
) -> tuple[list[MemberDeclaration], int]:
    """Parse member lines from ``start`` up to the block's ``end``.

    A comment run directly above a declaration (either comment form) is
    attached as its preceding description; any blank line resets the run.
    Malformed lines are logged and skipped.

    Parameters
    ----------
    lines : Sequence[str]
        Source lines after continuation joining.
    start : int
        Index of the first line inside the block.
    role : MemberRole, optional
        Role for undotted names. Defaults to ``MemberRole.POSITIONAL``.
    group : str, optional
        Group label applied to every member. Defaults to "".
    flags : dict[str, bool] | None, optional
        Field flags (``read_only``, ``dependent``, ``constant``,
        ``abstract``) applied to every member. Defaults to None.

    Returns
    -------
    tuple[list[MemberDeclaration], int]
        Declarations in source order and the index of the closing ``end``
        (``len(lines)`` when the block is unterminated).
    """
    declarations: list[MemberDeclaration] = []
    pending: list[str] = []
    index = start
    while index < len(lines):
        stripped = lines[index].strip()
        if is_block_end(stripped):
            return declarations, index
        if not stripped:
            pending = []
        elif is_block_open(stripped):
            content, index = read_block_comment(lines, index)
            pending.extend(content)
        elif is_comment(stripped):
            pending.append(strip_comment_marker(stripped))
        else:
            try:
                parsed = parse_member_line(stripped, role)
            except MalformedMemberLineError as exc:
                logger.warning(
                    "Skipping malformed member line",
                    extra={"operation": "parse_members", "line": exc.line, "error": exc.message},
                )
            else:
                member = replace(parsed.member, group=group, **(flags or {}))
                declarations.append(
                    MemberDeclaration(
                        member=member,
                        trailing=parsed.trailing,
                        preceding="\n".join(pending).strip("\n"),
                    )
                )
            pending = []
        index += 1
    return declarations, len(lines)
