"""Parse ``classdef`` files into structured-type units.

The class body is scanned once. ``properties``, ``methods`` and ``events``
blocks are filtered by their access attributes. A trailing comment on a
block's opening line becomes the group label of every member inside it.
The constructor and every visible method are parsed into full nested units
stored in the type unit's ``units`` arena.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Final

from mdoc.docblock import parse_documentation_block
from mdoc.functions import build_function_unit, parse_function_signature
from mdoc.logging import get_logger, with_fields
from mdoc.members import is_block_end, parse_member_block, split_code_comment
from mdoc.models import (
    DeclarationUnit,
    EventInfo,
    MemberRole,
    MethodSummary,
    SyntaxEntry,
    SyntaxSource,
    UnitKind,
)
from mdoc.overrides import resolve_category
from mdoc.splitter import (
    extract_documentation_block,
    is_block_open,
    is_comment,
    read_block_comment,
    strip_comment_marker,
)

if TYPE_CHECKING:
    from collections.abc import Sequence

    from mdoc.members import MemberDeclaration

__all__ = [
    "BlockAttributes",
    "ClassDeclaration",
    "build_type_unit",
    "parse_block_attributes",
    "parse_classdef_declaration",
    "skip_block",
]

logger = get_logger(__name__)

_BLOCK = re.compile(r"^(?P<keyword>properties|methods|events|enumeration)\b(?!\s*[=.])")
_OPENERS: Final[frozenset[str]] = frozenset(
    {
        "arguments",
        "classdef",
        "enumeration",
        "events",
        "for",
        "function",
        "if",
        "methods",
        "parfor",
        "properties",
        "spmd",
        "switch",
        "try",
        "while",
    }
)
_FIRST_WORD = re.compile(r"^([A-Za-z]+)\b(?!\s*=[^=])")
_BARE_SIGNATURE = re.compile(
    r"^(?:(?:\[[^\]]*\]|[A-Za-z]\w*)\s*=\s*)?[A-Za-z]\w*(?:\.[A-Za-z]\w*)?\s*(?:\([^)]*\))?$"
)
_HIDDEN_ACCESS: Final[frozenset[str]] = frozenset({"private", "protected"})
_READ_ONLY_ACCESS: Final[frozenset[str]] = frozenset({"private", "protected", "immutable"})


@dataclass(slots=True, frozen=True)
class ClassDeclaration:
    """Pieces of a ``classdef`` line."""

    name: str
    attributes: tuple[str, ...] = ()
    superclasses: tuple[str, ...] = ()
    text: str = ""


@dataclass(slots=True, frozen=True)
class BlockAttributes:
    """Attributes of a ``properties``/``methods``/``events`` block.

    Keys are lower-cased. Flag attributes written without a value are stored
    as ``"true"``.
    """

    values: dict[str, str] = field(default_factory=dict)

    def flag(self, name: str) -> bool:
        return self.values.get(name.lower(), "false").lower() != "false"

    def value(self, name: str) -> str:
        return self.values.get(name.lower(), "").lower()

    def hides(self, *keys: str) -> bool:
        """Whether any of ``keys`` is private/protected or ``Hidden`` is set."""
        return self.flag("hidden") or any(self.value(key) in _HIDDEN_ACCESS for key in keys)


def parse_classdef_declaration(line: str) -> ClassDeclaration:
    """Parse ``classdef (Sealed) Name < Base1 & Base2``."""
    code, _ = split_code_comment(line.strip())
    body = code.removeprefix("classdef").strip()
    attributes: tuple[str, ...] = ()
    if body.startswith("("):
        close = body.find(")")
        if close != -1:
            attributes = tuple(a.strip() for a in body[1:close].split(",") if a.strip())
            body = body[close + 1 :].strip()
    superclasses: tuple[str, ...] = ()
    if "<" in body:
        body, bases = body.split("<", 1)
        superclasses = tuple(b.strip() for b in bases.split("&") if b.strip())
    return ClassDeclaration(
        name=body.strip(), attributes=attributes, superclasses=superclasses, text=code
    )


def parse_block_attributes(code: str) -> BlockAttributes:
    """Read ``(SetAccess = private, Hidden)`` after a block keyword."""
    match = re.search(r"\((?P<attrs>[^)]*)\)", code)
    values: dict[str, str] = {}
    if match is not None:
        for part in match.group("attrs").split(","):
            key, sep, value = part.partition("=")
            key = key.strip().lstrip("~").lower()
            if not key:
                continue
            if sep:
                values[key] = value.strip().strip("'\"")
            else:
                values[key] = "false" if part.strip().startswith("~") else "true"
    return BlockAttributes(values)


def _opens_block(stripped: str) -> bool:
    code, _ = split_code_comment(stripped)
    match = _FIRST_WORD.match(code)
    if match is None or match.group(1) not in _OPENERS:
        return False
    # One-line statements such as "if x, y = 1; end" close themselves.
    return not re.search(r"[,;]\s*end\s*;?$", code)


def skip_block(lines: Sequence[str], start: int) -> int:
    """Return the index of the ``end`` closing the block opened before ``start``.

    Nested control-flow, function and member blocks are tracked; comment
    lines and ``%{ ... %}`` blocks are ignored. Returns the last index when
    the block never closes.
    """
    depth = 1
    index = start
    while index < len(lines):
        stripped = lines[index].strip()
        if is_block_open(stripped):
            _, index = read_block_comment(lines, index)
        elif stripped and not is_comment(stripped):
            if is_block_end(stripped):
                depth -= 1
                if depth == 0:
                    return index
            elif _opens_block(stripped):
                depth += 1
        index += 1
    return len(lines) - 1


def _next_code_line(lines: Sequence[str], start: int) -> str:
    index = start
    while index < len(lines):
        stripped = lines[index].strip()
        if is_block_open(stripped):
            _, index = read_block_comment(lines, index)
        elif stripped and not is_comment(stripped):
            return stripped
        index += 1
    return ""


@dataclass(slots=True)
class _TypeBuilder:
    """Mutable accumulator used while scanning one class body."""

    declaration: ClassDeclaration
    fields: list[MemberDeclaration] = field(default_factory=list)
    methods: list[MethodSummary] = field(default_factory=list)
    events: list[EventInfo] = field(default_factory=list)
    units: list[DeclarationUnit] = field(default_factory=list)
    constructor_index: int | None = None

    def add_unit(self, unit: DeclarationUnit) -> int:
        self.units.append(unit)
        return len(self.units) - 1


def _properties_block(
    builder: _TypeBuilder, lines: Sequence[str], index: int, attrs: BlockAttributes, group: str
) -> int:
    if attrs.hides("access", "getaccess"):
        return skip_block(lines, index + 1)
    flags = {
        "read_only": attrs.value("setaccess") in _READ_ONLY_ACCESS,
        "dependent": attrs.flag("dependent"),
        "constant": attrs.flag("constant"),
        "abstract": attrs.flag("abstract"),
    }
    declarations, end = parse_member_block(
        lines, index + 1, MemberRole.FIELD, group=group, flags=flags
    )
    builder.fields.extend(declarations)
    return end


def _register_method(
    builder: _TypeBuilder,
    name: str,
    method_lines: list[str],
    *,
    group: str,
    static: bool,
    abstract: bool,
) -> None:
    owner = builder.declaration.name
    if name == owner:
        unit = build_function_unit(method_lines, 0, owner="", constructor=True)
        builder.constructor_index = builder.add_unit(unit)
        return
    unit = build_function_unit(method_lines, 0, owner=owner)
    builder.methods.append(
        MethodSummary(
            name=name,
            synopsis=unit.synopsis,
            unit_index=builder.add_unit(unit),
            group=group,
            static=static,
            abstract=abstract,
        )
    )


def _method(
    builder: _TypeBuilder,
    lines: Sequence[str],
    index: int,
    *,
    group: str,
    static: bool,
    abstract: bool,
) -> int:
    name = parse_function_signature(lines[index]).name
    next_code = _next_code_line(lines, index + 1)
    has_body = not abstract and not next_code.startswith("function ")
    end = skip_block(lines, index + 1) if has_body else index
    if name.startswith(("get.", "set.")):
        return end
    method_lines = list(lines[index : end + 1]) if has_body else list(lines[index:])
    _register_method(
        builder, name, method_lines, group=group, static=static, abstract=abstract
    )
    return end


def _declared_method(
    builder: _TypeBuilder,
    lines: Sequence[str],
    index: int,
    *,
    group: str,
    static: bool,
    abstract: bool,
) -> None:
    """Register a method declared by its signature alone, e.g. ``a = area(obj)``.

    The trailing comment documents the method; without one, the comment run
    below the signature does.
    """
    code, comment = split_code_comment(lines[index].strip())
    code = code.rstrip(";").strip()
    if _BARE_SIGNATURE.match(code) is None:
        logger.debug(
            "Ignoring methods block line", extra={"operation": "parse", "line": code}
        )
        return
    signature = f"function {code}"
    name = parse_function_signature(signature).name
    if name.startswith(("get.", "set.")):
        return
    if comment:
        method_lines = [signature, f"% {comment}"]
    else:
        method_lines = [signature, *lines[index + 1 :]]
    _register_method(
        builder, name, method_lines, group=group, static=static, abstract=abstract
    )


def _methods_block(
    builder: _TypeBuilder, lines: Sequence[str], index: int, attrs: BlockAttributes, group: str
) -> int:
    if attrs.hides("access"):
        return skip_block(lines, index + 1)
    static = attrs.flag("static")
    abstract = attrs.flag("abstract")
    cursor = index + 1
    while cursor < len(lines):
        stripped = lines[cursor].strip()
        if is_block_open(stripped):
            _, cursor = read_block_comment(lines, cursor)
        elif is_block_end(stripped):
            return cursor
        elif stripped.startswith("function "):
            cursor = _method(
                builder, lines, cursor, group=group, static=static, abstract=abstract
            )
        elif stripped and not is_comment(stripped):
            _declared_method(
                builder, lines, cursor, group=group, static=static, abstract=abstract
            )
        cursor += 1
    return len(lines) - 1


def _events_block(
    builder: _TypeBuilder, lines: Sequence[str], index: int, attrs: BlockAttributes, group: str
) -> int:
    if attrs.hides("access", "listenaccess"):
        return skip_block(lines, index + 1)
    pending: list[str] = []
    cursor = index + 1
    while cursor < len(lines):
        stripped = lines[cursor].strip()
        if is_block_end(stripped):
            return cursor
        if not stripped:
            pending = []
        elif is_block_open(stripped):
            content, cursor = read_block_comment(lines, cursor)
            pending.extend(content)
        elif is_comment(stripped):
            pending.append(strip_comment_marker(stripped))
        else:
            code, comment = split_code_comment(stripped)
            name = code.rstrip(";").strip()
            if name:
                description = comment or "\n".join(pending).strip()
                builder.events.append(EventInfo(name=name, description=description, group=group))
            pending = []
        cursor += 1
    return len(lines) - 1


def _default_constructor(name: str, has_settable_field: bool) -> DeclarationUnit:
    entries = [SyntaxEntry(form=f"obj = {name}")]
    if has_settable_field:
        entries.append(SyntaxEntry(form=f"obj = {name}(Name=Value)"))
    return DeclarationUnit(
        kind=UnitKind.FUNCTION,
        name=name,
        signature=f"function obj = {name}",
        syntax_source=SyntaxSource.AUTO_GENERATED,
        output_names=("obj",),
        syntax_entries=tuple(entries),
    )


def build_type_unit(lines: Sequence[str], declaration_index: int) -> DeclarationUnit:
    """Parse the ``classdef`` declared at ``declaration_index``.

    Parameters
    ----------
    lines : Sequence[str]
        Source lines after continuation joining.
    declaration_index : int
        Index of the ``classdef`` line.

    Returns
    -------
    DeclarationUnit
        Type unit whose ``syntax_entries`` are those of its constructor. When
        the class defines no constructor a synthetic one is generated: a bare
        construction form plus a ``Name=Value`` form if any field is settable.
    """
    declaration = parse_classdef_declaration(lines[declaration_index])
    log = with_fields(logger, operation="parse", unit=declaration.name)
    block = extract_documentation_block(lines, declaration_index)
    doc = parse_documentation_block(block.lines, declaration.name)

    builder = _TypeBuilder(declaration=declaration)
    handlers = {
        "properties": _properties_block,
        "methods": _methods_block,
        "events": _events_block,
    }
    index = block.end_index + 1
    while index < len(lines):
        stripped = lines[index].strip()
        if is_block_open(stripped):
            _, index = read_block_comment(lines, index)
        elif is_block_end(stripped):
            break
        elif stripped and not is_comment(stripped):
            code, group = split_code_comment(stripped)
            match = _BLOCK.match(code)
            if match is None:
                log.debug("Ignoring class body line", extra={"line": stripped})
            elif match.group("keyword") == "enumeration":
                index = skip_block(lines, index + 1)
            else:
                handler = handlers[match.group("keyword")]
                index = handler(builder, lines, index, parse_block_attributes(code), group)
        index += 1

    fields = resolve_category(builder.fields, doc.sections, "Properties", MemberRole.FIELD)
    if builder.constructor_index is None:
        has_settable = any(m.settable for m in fields.members)
        builder.constructor_index = builder.add_unit(
            _default_constructor(declaration.name, has_settable)
        )
    constructor = builder.units[builder.constructor_index]

    log.debug(
        "Parsed type unit",
        extra={
            "fields": len(fields.members),
            "methods": len(builder.methods),
            "events": len(builder.events),
            "field_source": fields.source.value,
        },
    )
    return DeclarationUnit(
        kind=UnitKind.TYPE,
        name=declaration.name,
        signature=declaration.text,
        syntax_source=constructor.syntax_source,
        synopsis=doc.synopsis,
        description=doc.description,
        sections=doc.sections,
        see_also=doc.see_also,
        syntax_entries=constructor.syntax_entries,
        fields=fields.members,
        methods=tuple(builder.methods),
        events=tuple(builder.events),
        constructor_index=builder.constructor_index,
        units=tuple(builder.units),
        attributes=declaration.attributes,
        superclasses=declaration.superclasses,
        doc_lines=block.lines,
    )
