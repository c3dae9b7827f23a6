"""Entry point turning source text into a :class:`~mdoc.models.DeclarationUnit`.

Parsing is a pure function of the text: no I/O, no shared state. Callers
that read files live in :mod:`mdoc.site` and :mod:`mdoc.cli`.

Examples
--------
>>> from mdoc.parser import parse_source
>>> unit = parse_source("function y = twice(x)\\n% twice  Double a value.\\ny = 2*x;\\nend\\n")
>>> unit.name, unit.synopsis, unit.syntax_entries[0].form
('twice', 'Double a value.', 'y = twice(x)')
"""

from __future__ import annotations

from mdoc.classdef import build_type_unit
from mdoc.errors import NoDeclarationFoundError
from mdoc.functions import build_function_unit
from mdoc.logging import get_logger
from mdoc.models import DeclarationUnit
from mdoc.splitter import find_declaration, join_continuations

__all__ = ["parse_source"]

logger = get_logger(__name__)


def parse_source(text: str, name: str | None = None) -> DeclarationUnit:
    """Parse one declaration unit from ``text``.

    Parameters
    ----------
    text : str
        Complete source of one ``.m`` file.
    name : str | None, optional
        Name the caller expects (usually the file stem). Used only to label
        errors and log records. Defaults to None.

    Returns
    -------
    DeclarationUnit
        Parsed function or structured type.

    Raises
    ------
    NoDeclarationFoundError
        If the text declares neither a function nor a type.
    """
    lines = join_continuations(text.splitlines())
    try:
        index = find_declaration(lines)
    except NoDeclarationFoundError as exc:
        if name is not None:
            exc.context["source"] = name
        raise
    if lines[index].strip().startswith("classdef"):
        unit = build_type_unit(lines, index)
    else:
        unit = build_function_unit(lines, index)
    if name is not None and name != unit.name:
        logger.debug(
            "Declared name differs from expected name",
            extra={"operation": "parse", "unit": unit.name, "expected": name},
        )
    return unit
