"""Build units for functions, methods and constructors."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING

from mdoc.docblock import parse_documentation_block
from mdoc.logging import get_logger
from mdoc.members import MemberDeclaration, parse_member_block, split_code_comment
from mdoc.models import DeclarationUnit, Member, MemberRole, SyntaxEntry, UnitKind
from mdoc.overrides import resolve_category
from mdoc.splitter import (
    extract_documentation_block,
    is_block_open,
    is_comment,
    read_block_comment,
)
from mdoc.syntax import legacy_form, resolve_syntax

if TYPE_CHECKING:
    from collections.abc import Sequence

__all__ = [
    "ArgumentBlocks",
    "FunctionSignature",
    "build_function_unit",
    "parse_argument_blocks",
    "parse_function_signature",
]

logger = get_logger(__name__)

_SIGNATURE = re.compile(
    r"^function\s+(?:(?P<outputs>\[[^\]]*\]|[A-Za-z]\w*)\s*=\s*)?"
    r"(?P<name>[A-Za-z]\w*(?:\.[A-Za-z]\w*)?)\s*(?:\((?P<inputs>[^)]*)\))?"
)
_ARGUMENTS = re.compile(r"^arguments(?:\s*\((?P<attrs>[^)]*)\))?\s*$")


@dataclass(slots=True, frozen=True)
class FunctionSignature:
    """Names recovered from a ``function`` declaration line."""

    name: str
    output_names: tuple[str, ...] = ()
    input_names: tuple[str, ...] = ()
    text: str = ""


@dataclass(slots=True, frozen=True)
class ArgumentBlocks:
    """Declarations collected from the ``arguments`` blocks of a function."""

    inputs: tuple[MemberDeclaration, ...] = ()
    outputs: tuple[MemberDeclaration, ...] = ()


def _names(text: str | None) -> tuple[str, ...]:
    if not text:
        return ()
    return tuple(n for n in re.split(r"[\s,]+", text.strip("[] ")) if n)


def parse_function_signature(line: str) -> FunctionSignature:
    """Parse a declaration such as ``function [a, b] = name(x, y)``.

    Parameters
    ----------
    line : str
        Declaration line after continuation joining.

    Returns
    -------
    FunctionSignature
        Name, outputs in order, input names and the declaration text without
        its trailing comment. A line the pattern cannot read yields the text
        after ``function`` as the name.
    """
    code, _ = split_code_comment(line.strip())
    match = _SIGNATURE.match(code)
    if match is None:
        name = code.removeprefix("function").strip().split("(")[0].strip()
        return FunctionSignature(name=name, text=code)
    return FunctionSignature(
        name=match.group("name"),
        output_names=_names(match.group("outputs")),
        input_names=_names(match.group("inputs")),
        text=code,
    )


def parse_argument_blocks(lines: Sequence[str], after_index: int) -> ArgumentBlocks:
    """Collect ``arguments`` blocks directly following the documentation.

    Only blank and comment lines may precede a block. ``(Output)`` blocks
    feed outputs, ``(Repeating)`` blocks are skipped, everything else feeds
    inputs. Scanning stops at the first other code line.

    Parameters
    ----------
    lines : Sequence[str]
        Source lines after continuation joining.
    after_index : int
        Index of the last line of the documentation block.

    Returns
    -------
    ArgumentBlocks
        Input and output declarations in source order.
    """
    inputs: list[MemberDeclaration] = []
    outputs: list[MemberDeclaration] = []
    index = after_index + 1
    while index < len(lines):
        stripped = lines[index].strip()
        if is_block_open(stripped):
            _, index = read_block_comment(lines, index)
            index += 1
            continue
        if not stripped or is_comment(stripped):
            index += 1
            continue
        code, _ = split_code_comment(stripped)
        match = _ARGUMENTS.match(code)
        if match is None:
            break
        attributes = (match.group("attrs") or "").lower()
        role = MemberRole.OUTPUT if "output" in attributes else MemberRole.POSITIONAL
        declarations, end = parse_member_block(lines, index + 1, role)
        if "repeating" not in attributes:
            (outputs if role is MemberRole.OUTPUT else inputs).extend(declarations)
        index = end + 1
    return ArgumentBlocks(inputs=tuple(inputs), outputs=tuple(outputs))


def _output_declarations(
    names: Sequence[str], metadata: Sequence[MemberDeclaration]
) -> list[MemberDeclaration]:
    by_name = {d.member.name: d for d in metadata}
    return [
        by_name.get(name) or MemberDeclaration(Member(name, role=MemberRole.OUTPUT))
        for name in names
    ]


def build_function_unit(
    lines: Sequence[str],
    declaration_index: int,
    *,
    owner: str = "",
    constructor: bool = False,
) -> DeclarationUnit:
    """Parse the function declared at ``declaration_index``.

    Parameters
    ----------
    lines : Sequence[str]
        Source lines after continuation joining. For methods, the slice
        holding the method definition.
    declaration_index : int
        Index of the ``function`` line.
    owner : str, optional
        Owning type name for methods and constructors. Defaults to "".
    constructor : bool, optional
        Use ``out = TypeName`` (``out`` defaulting to ``obj``) as the legacy
        syntax fallback. Defaults to False.

    Returns
    -------
    DeclarationUnit
        Function unit with members and syntax resolved.
    """
    signature = parse_function_signature(lines[declaration_index])
    block = extract_documentation_block(lines, declaration_index)
    doc = parse_documentation_block(block.lines, signature.name)
    arguments = parse_argument_blocks(lines, block.end_index)

    inputs = resolve_category(
        arguments.inputs, doc.sections, "Input Arguments", MemberRole.POSITIONAL
    )
    outputs = resolve_category(
        _output_declarations(signature.output_names, arguments.outputs),
        doc.sections,
        "Output Arguments",
        MemberRole.OUTPUT,
    )

    declared = [d.member for d in arguments.inputs]
    positional = [m for m in declared if m.role is MemberRole.POSITIONAL]
    named = [m for m in declared if m.role is MemberRole.NAMED]
    if constructor:
        out = signature.output_names[0] if signature.output_names else "obj"
        fallback = SyntaxEntry(form=f"{out} = {signature.name}")
    else:
        fallback = legacy_form(signature.text)
    entries, source = resolve_syntax(
        signature.name,
        sections=doc.sections,
        description=doc.description,
        output_names=signature.output_names,
        positional=positional,
        named=named,
        fallback=fallback,
    )

    unit = DeclarationUnit(
        kind=UnitKind.FUNCTION,
        name=signature.name,
        signature=signature.text,
        syntax_source=source,
        output_names=signature.output_names,
        synopsis=doc.synopsis,
        description=doc.description,
        sections=doc.sections,
        see_also=doc.see_also,
        syntax_entries=entries,
        inputs=tuple(m for m in inputs.members if m.role is MemberRole.POSITIONAL),
        named_parameters=tuple(m for m in inputs.members if m.role is MemberRole.NAMED),
        outputs=outputs.members,
        owner=owner,
        doc_lines=block.lines,
    )
    logger.debug(
        "Parsed function unit",
        extra={
            "operation": "parse",
            "unit": unit.qualified_name,
            "syntax_source": source.value,
            "input_source": inputs.source.value,
            "output_source": outputs.source.value,
        },
    )
    return unit
