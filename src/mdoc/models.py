"""Intermediate representation for parsed declaration units.

Every value here is created once by :mod:`mdoc.parser` and never mutated.
A structured type owns its constructor and method units in the ``units``
arena; summaries refer to them by index, so units never reference each
other directly and can be rendered concurrently.
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from enum import Enum, StrEnum
from typing import Final, cast

__all__ = [
    "IR_VERSION",
    "RECOGNIZED_HEADINGS",
    "DeclarationUnit",
    "DescriptionSource",
    "EventInfo",
    "Member",
    "MemberRole",
    "MethodSummary",
    "Section",
    "SyntaxEntry",
    "SyntaxSource",
    "UnitKind",
    "dump_unit",
    "serialize_unit",
]

IR_VERSION: Final[str] = "1.0"

RECOGNIZED_HEADINGS: Final[frozenset[str]] = frozenset(
    {
        "Syntax",
        "Input Arguments",
        "Output Arguments",
        "Examples",
        "Tips",
        "Algorithms",
        "References",
        "Version History",
        "More About",
        "Properties",
    }
)


class UnitKind(StrEnum):
    """Kind of declaration a unit was parsed from."""

    FUNCTION = "function"
    TYPE = "type"


class SyntaxSource(StrEnum):
    """Tier that supplied a unit's syntax entries.

    Exactly one tier applies per unit; entries from different tiers are never
    combined.
    """

    EXPLICIT_SECTION = "explicit-section"
    DESCRIPTION_FORMS = "description-forms"
    AUTO_GENERATED = "auto-generated"
    LEGACY_FALLBACK = "legacy-fallback"


class DescriptionSource(StrEnum):
    """Where a member's descriptions came from."""

    SECTION = "section"
    INLINE = "inline"
    NONE = "none"


class MemberRole(StrEnum):
    """Position a member occupies in its declaration."""

    POSITIONAL = "positional"
    NAMED = "named"
    OUTPUT = "output"
    FIELD = "field"


@dataclass(slots=True, frozen=True)
class Member:
    """Parameter, output or field with its resolved descriptions."""

    name: str
    role: MemberRole = MemberRole.POSITIONAL
    namespace: str = ""
    size: str = ""
    type: str = ""
    default: str = ""
    validators: str = ""
    allowed_values: tuple[str, ...] = ()
    short_description: str = ""
    long_description: str = ""
    description_source: DescriptionSource = DescriptionSource.NONE
    group: str = ""
    read_only: bool = False
    dependent: bool = False
    constant: bool = False
    abstract: bool = False

    @property
    def qualified_name(self) -> str:
        """Name including the named-parameter prefix, e.g. ``opts.Method``."""
        return f"{self.namespace}.{self.name}" if self.namespace else self.name

    @property
    def required(self) -> bool:
        """Whether a positional parameter has no default value."""
        return self.role is MemberRole.POSITIONAL and not self.default

    @property
    def settable(self) -> bool:
        """Whether a field may be assigned at construction time."""
        return not (self.read_only or self.constant or self.dependent)


@dataclass(slots=True, frozen=True)
class SyntaxEntry:
    """One calling form plus an optional description."""

    form: str
    description: str = ""


@dataclass(slots=True, frozen=True)
class Section:
    """Named block of documentation content introduced by ``## heading``."""

    heading: str
    content: str

    @property
    def recognized(self) -> bool:
        return self.heading in RECOGNIZED_HEADINGS


@dataclass(slots=True, frozen=True)
class MethodSummary:
    """Row of a type's member-function table.

    ``unit_index`` points into the owning unit's ``units`` arena.
    """

    name: str
    synopsis: str
    unit_index: int
    group: str = ""
    visibility: str = "public"
    static: bool = False
    abstract: bool = False


@dataclass(slots=True, frozen=True)
class EventInfo:
    """Event declared in a visible ``events`` block."""

    name: str
    description: str = ""
    group: str = ""
    visibility: str = "public"


@dataclass(slots=True, frozen=True)
class DeclarationUnit:
    """One parsed function, method or structured type.

    Parameters
    ----------
    kind : UnitKind
        Function or structured type.
    name : str
        Declared name. Methods carry their bare name and ``owner``.
    signature : str
        Declaration line after continuation joining.
    syntax_source : SyntaxSource
        Tier that produced ``syntax_entries``.
    """

    kind: UnitKind
    name: str
    signature: str
    syntax_source: SyntaxSource
    output_names: tuple[str, ...] = ()
    synopsis: str = ""
    description: str = ""
    sections: tuple[Section, ...] = ()
    see_also: tuple[str, ...] = ()
    syntax_entries: tuple[SyntaxEntry, ...] = ()
    inputs: tuple[Member, ...] = ()
    named_parameters: tuple[Member, ...] = ()
    outputs: tuple[Member, ...] = ()
    fields: tuple[Member, ...] = ()
    methods: tuple[MethodSummary, ...] = ()
    events: tuple[EventInfo, ...] = ()
    constructor_index: int | None = None
    units: tuple[DeclarationUnit, ...] = ()
    owner: str = ""
    attributes: tuple[str, ...] = ()
    superclasses: tuple[str, ...] = ()
    doc_lines: tuple[str, ...] = field(default=(), repr=False)

    @property
    def qualified_name(self) -> str:
        """``Owner.name`` for methods, the plain name otherwise."""
        return f"{self.owner}.{self.name}" if self.owner else self.name

    @property
    def constructor(self) -> DeclarationUnit | None:
        """Constructor unit of a structured type, if any."""
        if self.constructor_index is None:
            return None
        return self.units[self.constructor_index]

    def method_unit(self, summary: MethodSummary) -> DeclarationUnit:
        """Return the nested unit a method summary refers to."""
        return self.units[summary.unit_index]

    def section(self, heading: str) -> Section | None:
        """Return the last section titled ``heading``, or None."""
        for candidate in reversed(self.sections):
            if candidate.heading == heading:
                return candidate
        return None

    def section_content(self, heading: str) -> str:
        """Content of :meth:`section`, or an empty string."""
        found = self.section(heading)
        return found.content if found is not None else ""

    @property
    def unrecognized_sections(self) -> tuple[Section, ...]:
        """Sections without specialised rendering, in authoring order."""
        return tuple(section for section in self.sections if not section.recognized)


def _enum_values(obj: object) -> object:
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, dict):
        return {key: _enum_values(value) for key, value in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [_enum_values(value) for value in obj]
    return obj


def serialize_unit(unit: DeclarationUnit) -> dict[str, object]:
    """Convert a unit (and its arena) into a JSON-serialisable dictionary.

    Parameters
    ----------
    unit : DeclarationUnit
        Unit to serialise.

    Returns
    -------
    dict[str, object]
        Plain mapping with enum members replaced by their values.
    """
    payload = cast("dict[str, object]", _enum_values(asdict(unit)))
    payload["ir_version"] = IR_VERSION
    return payload


def dump_unit(unit: DeclarationUnit, *, indent: int | None = 2) -> str:
    """Return the IR of ``unit`` as a JSON document."""
    return json.dumps(serialize_unit(unit), indent=indent, ensure_ascii=False)
