"""Tests for mdoc.classdef module.

Tests cover block attribute filtering, group labels, the constructor and
method arena, events and the synthetic default constructor.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from mdoc.classdef import (
    parse_block_attributes,
    parse_classdef_declaration,
    skip_block,
)
from mdoc.models import DescriptionSource, SyntaxSource, UnitKind
from mdoc.parser import parse_source

if TYPE_CHECKING:
    from collections.abc import Callable

    from mdoc.models import DeclarationUnit


class TestDeclaration:
    """Tests for parse_classdef_declaration."""

    def test_attributes_and_superclasses(self) -> None:
        """Attributes and every superclass are recovered."""
        declaration = parse_classdef_declaration(
            "classdef (Sealed, Abstract) Probe < handle & matlab.mixin.Copyable"
        )
        assert declaration.name == "Probe"
        assert declaration.attributes == ("Sealed", "Abstract")
        assert declaration.superclasses == ("handle", "matlab.mixin.Copyable")


class TestBlockAttributes:
    """Tests for parse_block_attributes."""

    def test_values_and_flags(self) -> None:
        """Keys are lower-cased and bare names become true flags."""
        attrs = parse_block_attributes("properties (SetAccess = private, Dependent, ~Hidden)")
        assert attrs.value("SetAccess") == "private"
        assert attrs.flag("dependent")
        assert not attrs.flag("hidden")

    def test_hides(self) -> None:
        """Private access or Hidden hides a block."""
        assert parse_block_attributes("methods (Access = protected)").hides("access")
        assert parse_block_attributes("events (Hidden)").hides("access")
        assert not parse_block_attributes("properties (SetAccess = private)").hides("access")


class TestSkipBlock:
    """Tests for skip_block."""

    def test_nested_blocks(self) -> None:
        """Nested control flow is tracked to the matching end."""
        lines = ["if a", "  for k = 1:3", "  end", "  x = [1 2 end];", "end", "end"]
        assert skip_block(lines, 0) == 5

    def test_one_line_statement(self) -> None:
        """A statement closing itself on one line does not nest."""
        lines = ["if x, y = 1; end", "end"]
        assert skip_block(lines, 0) == 1

    def test_assignment_to_keyword_like_name(self) -> None:
        """Assigning to a variable named like a keyword does not open a block."""
        lines = ["events = 3;", "end"]
        assert skip_block(lines, 0) == 1


class TestTypeUnit:
    """Tests for build_type_unit through parse_source."""

    def test_fields_groups_and_visibility(
        self, parse_fixture: Callable[[str], DeclarationUnit]
    ) -> None:
        """Hidden blocks are dropped and group labels carried per block."""
        unit = parse_fixture("types/Thermometer.m")
        assert unit.kind is UnitKind.TYPE
        assert unit.superclasses == ("handle",)
        assert [f.name for f in unit.fields] == ["Label", "Location", "Reading", "Fahrenheit"]
        assert [f.group for f in unit.fields] == [
            "Identification",
            "Identification",
            "Readings",
            "Readings",
        ]
        label, _, reading, fahrenheit = unit.fields
        assert label.short_description == "Probe label"
        assert label.long_description == "Label shown in plots."
        assert reading.read_only
        assert not reading.settable
        assert fahrenheit.dependent

    def test_constructor_in_arena(self, parse_fixture: Callable[[str], DeclarationUnit]) -> None:
        """The constructor is a nested unit and supplies the type's syntax."""
        unit = parse_fixture("types/Thermometer.m")
        constructor = unit.constructor
        assert constructor is not None
        assert constructor.name == "Thermometer"
        assert constructor.synopsis == "Create a thermometer for one sensor."
        assert [m.name for m in constructor.inputs] == ["label"]
        assert [m.qualified_name for m in constructor.named_parameters] == ["opts.Location"]
        assert unit.syntax_source is SyntaxSource.DESCRIPTION_FORMS
        assert [e.form for e in unit.syntax_entries] == [
            "t = Thermometer(label)",
            "t = Thermometer(label, Location=loc)",
        ]

    def test_methods(self, parse_fixture: Callable[[str], DeclarationUnit]) -> None:
        """Visible methods are summarised; accessors and private methods are not."""
        unit = parse_fixture("types/Thermometer.m")
        assert [m.name for m in unit.methods] == ["record", "toCelsius"]
        record, to_celsius = unit.methods
        assert record.synopsis == "Store a new reading."
        assert not record.static
        assert to_celsius.static
        assert to_celsius.group == "Conversion"
        nested = unit.method_unit(record)
        assert nested.owner == "Thermometer"
        assert nested.qualified_name == "Thermometer.record"
        assert nested.syntax_entries[0].form == "record(t, value)"

    def test_events(self, parse_fixture: Callable[[str], DeclarationUnit]) -> None:
        """Events take the trailing comment, else the preceding one."""
        unit = parse_fixture("types/Thermometer.m")
        assert [(e.name, e.description) for e in unit.events] == [
            ("ReadingRecorded", "Fires after each reading"),
            ("Relocated", "Fires when the sensor is moved."),
        ]

    def test_default_constructor(self, parse_fixture: Callable[[str], DeclarationUnit]) -> None:
        """Without a constructor a bare and a Name=Value form are generated."""
        unit = parse_fixture("types/Counter.m")
        assert unit.syntax_source is SyntaxSource.AUTO_GENERATED
        assert [e.form for e in unit.syntax_entries] == [
            "obj = Counter",
            "obj = Counter(Name=Value)",
        ]
        constructor = unit.constructor
        assert constructor is not None
        assert constructor.output_names == ("obj",)

    def test_properties_section_wins(
        self, parse_fixture: Callable[[str], DeclarationUnit]
    ) -> None:
        """A Properties section replaces inline field comments for all fields."""
        unit = parse_fixture("types/Counter.m")
        limit, count, step = unit.fields
        assert limit.constant
        assert limit.description_source is DescriptionSource.NONE
        assert limit.short_description == ""
        assert count.short_description == "Number of events so far."
        assert step.short_description == "Increment applied per event."

    def test_only_constant_fields_give_bare_constructor(self) -> None:
        """No settable field means no Name=Value form."""
        source = "classdef Limits\n    properties (Constant)\n        Max = 1\n    end\nend\n"
        unit = parse_source(source)
        assert [e.form for e in unit.syntax_entries] == ["obj = Limits"]

    def test_enumeration_is_skipped(self) -> None:
        """Enumeration members are not reported as fields."""
        source = (
            "classdef Color\n"
            "    enumeration\n"
            "        Red, Green\n"
            "    end\n"
            "    properties\n"
            "        Name\n"
            "    end\n"
            "end\n"
        )
        unit = parse_source(source)
        assert [f.name for f in unit.fields] == ["Name"]


class TestDeclaredMethods:
    """Tests for methods declared by a signature without a body."""

    SOURCE = (
        "classdef Shape < handle\n"
        "% Shape  Base class for planar shapes.\n"
        "    methods (Abstract)\n"
        "        a = area(obj)  % Compute the enclosed area.\n"
        "        p = perimeter(obj)\n"
        "        % Length of the boundary.\n"
        "    end\n"
        "    methods\n"
        "        r = scale(obj, factor);\n"
        "    end\n"
        "    methods (Access = private)\n"
        "        check(obj)\n"
        "    end\n"
        "end\n"
    )

    def test_signatures_become_methods(self) -> None:
        """Bare signatures are listed in declaration order; hidden blocks stay hidden."""
        unit = parse_source(self.SOURCE)
        assert [m.name for m in unit.methods] == ["area", "perimeter", "scale"]
        assert [m.abstract for m in unit.methods] == [True, True, False]
        assert len(unit.units) == 4

    def test_documentation_sources(self) -> None:
        """The trailing comment or the comment run below documents the method."""
        unit = parse_source(self.SOURCE)
        area, perimeter, scale = unit.methods
        assert area.synopsis == "Compute the enclosed area."
        assert perimeter.synopsis == "Length of the boundary."
        assert scale.synopsis == ""

    def test_nested_unit(self) -> None:
        """Declared methods are parsed into full units owned by the type."""
        unit = parse_source(self.SOURCE)
        scale = unit.method_unit(unit.methods[2])
        assert scale.owner == "Shape"
        assert scale.output_names == ("r",)
        assert scale.syntax_source is SyntaxSource.LEGACY_FALLBACK
        assert [e.form for e in scale.syntax_entries] == ["r = scale(obj, factor)"]
