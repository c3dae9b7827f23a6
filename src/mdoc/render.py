"""Render declaration units as self-contained HTML reference pages.

A page is the title and synopsis followed by an ordered list of
:class:`PageSection` entries. Each entry pairs a predicate over the unit with
a render function; sections whose predicate fails are left out. Function and
type pages use different section lists.

Examples
--------
>>> from mdoc.parser import parse_source
>>> unit = parse_source("function y = twice(x)\\n% twice  Double a value.\\ny = 2*x;\\n")
>>> html = render_unit(unit)
>>> '<h1 class="func-name">twice</h1>' in html
True
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from functools import cache
from typing import TYPE_CHECKING, Final

from jinja2 import Environment, PackageLoader, StrictUndefined, select_autoescape
from markupsafe import Markup

from mdoc.docblock import FENCE
from mdoc.logging import get_logger
from mdoc.markup import has_math, render_block, render_description, render_inline
from mdoc.models import DeclarationUnit, Member, MethodSummary, SyntaxSource, UnitKind
from mdoc.settings import RenderSettings, load_settings
from mdoc.xref import NameResolver

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Sequence

    from jinja2.runtime import TemplateModule

    from mdoc.models import Section

__all__ = [
    "FUNCTION_SECTIONS",
    "TRAILING_HEADINGS",
    "TYPE_SECTIONS",
    "ArgumentView",
    "PageRenderer",
    "PageSection",
    "RenderContext",
    "TableRow",
    "render_unit",
]

logger = get_logger(__name__)

TRAILING_HEADINGS: Final[tuple[str, ...]] = (
    "Tips",
    "Algorithms",
    "Version History",
    "References",
    "More About",
)

_LEADING_CODE = re.compile(r"^\s*`([^`]+)`")

_ENV = Environment(
    loader=PackageLoader("mdoc", "templates"),
    autoescape=select_autoescape(enabled_extensions=("html", "j2"), default_for_string=True),
    undefined=StrictUndefined,
    trim_blocks=True,
    lstrip_blocks=True,
    keep_trailing_newline=False,
)


@cache
def _fragments() -> TemplateModule:
    return _ENV.get_template("sections.html.j2").module


@dataclass(slots=True, frozen=True)
class RenderContext:
    """Settings and link resolver shared by the sections of one page."""

    settings: RenderSettings
    resolver: NameResolver

    def block(self, text: str) -> Markup:
        return render_block(text, self.settings.code_language)


@dataclass(slots=True, frozen=True)
class PageSection:
    """One conditional part of a page."""

    name: str
    predicate: Callable[[DeclarationUnit], bool]
    render: Callable[[RenderContext, DeclarationUnit], Markup]


@dataclass(slots=True, frozen=True)
class ArgumentView:
    """Template data for one collapsible argument entry."""

    name: str
    summary_html: Markup = field(default_factory=Markup)
    long_html: Markup = field(default_factory=Markup)
    values: tuple[tuple[str, bool], ...] = ()
    datatype: str = ""
    default: str = ""


@dataclass(slots=True, frozen=True)
class TableRow:
    """Template data for one member-table row.

    A non-empty ``group`` emits a group header row before this row.
    """

    name_html: Markup
    detail_html: Markup
    group: str = ""


class _Anchors:
    """Assigns ``syntax-<i>`` ids to described syntax entries.

    Ids are handed out in the order description paragraphs are rendered and
    remembered so the syntax block links only to ids that exist.
    """

    def __init__(self, unit: DeclarationUnit) -> None:
        self._pending: dict[str, list[int]] = {}
        for index, entry in enumerate(unit.syntax_entries):
            if entry.description.strip():
                self._pending.setdefault(entry.form.strip(), []).append(index)
        self.used: dict[int, str] = {}

    def __call__(self, paragraph: str) -> str | None:
        match = _LEADING_CODE.match(paragraph)
        if match is None:
            return None
        queue = self._pending.get(match.group(1).strip())
        if not queue:
            return None
        index = queue.pop(0)
        element_id = f"syntax-{index}"
        self.used[index] = element_id
        return element_id


def _description_body(ctx: RenderContext, unit: DeclarationUnit) -> tuple[Markup, _Anchors]:
    anchors = _Anchors(unit)
    language = ctx.settings.code_language
    if unit.syntax_source is SyntaxSource.EXPLICIT_SECTION:
        described = "\n\n".join(
            f"`{entry.form}` {entry.description}"
            for entry in unit.syntax_entries
            if entry.description.strip()
        )
        parts = []
        if described:
            parts.append(render_description(described, language, anchor=anchors))
        if unit.description.strip():
            parts.append(ctx.block(unit.description))
        return Markup("\n").join(parts), anchors
    if not unit.description.strip():
        return Markup(), anchors
    return render_description(unit.description, language, anchor=anchors), anchors


def _syntax_lines(ctx: RenderContext, unit: DeclarationUnit) -> list[Markup]:
    _, anchors = _description_body(ctx, unit)
    line = _fragments().syntax_line
    return [
        line(entry.form, anchors.used.get(index, ""))
        for index, entry in enumerate(unit.syntax_entries)
    ]


def _has_description(unit: DeclarationUnit) -> bool:
    if unit.description.strip():
        return True
    return unit.syntax_source is SyntaxSource.EXPLICIT_SECTION and any(
        entry.description.strip() for entry in unit.syntax_entries
    )


def _render_syntax(ctx: RenderContext, unit: DeclarationUnit) -> Markup:
    return _fragments().syntax_block(_syntax_lines(ctx, unit))


def _render_description(ctx: RenderContext, unit: DeclarationUnit) -> Markup:
    body, _ = _description_body(ctx, unit)
    return _fragments().description(body)


def _allowed_values(member: Member) -> tuple[tuple[str, bool], ...]:
    default = member.default.strip().strip("\"'")
    return tuple((value, bool(default) and value == default) for value in member.allowed_values)


def _argument_view(ctx: RenderContext, member: Member) -> ArgumentView:
    return ArgumentView(
        name=member.name,
        summary_html=render_inline(member.short_description),
        long_html=ctx.block(member.long_description),
        values=_allowed_values(member),
        datatype=member.type,
        default=member.default,
    )


def _output_view(ctx: RenderContext, member: Member) -> ArgumentView:
    summary = member.short_description
    if not summary and member.long_description.strip():
        summary = member.long_description.strip().splitlines()[0].strip()
    return ArgumentView(
        name=member.name,
        summary_html=render_inline(summary),
        long_html=ctx.block(member.long_description),
        datatype=member.type,
    )


def _argument_section(
    heading: str,
    section_id: str,
    views: Sequence[ArgumentView],
    *,
    intro: bool = False,
) -> Markup:
    fragments = _fragments()
    body = fragments.argument_list(list(views), intro)
    return fragments.collapsible_section(heading, section_id, body)


def _render_inputs(ctx: RenderContext, unit: DeclarationUnit) -> Markup:
    views = [_argument_view(ctx, member) for member in unit.inputs]
    return _argument_section("Input Arguments", "section-input-args", views)


def _render_named(ctx: RenderContext, unit: DeclarationUnit) -> Markup:
    views = [_argument_view(ctx, member) for member in unit.named_parameters]
    return _argument_section("Name-Value Arguments", "section-nv-args", views, intro=True)


def _render_outputs(ctx: RenderContext, unit: DeclarationUnit) -> Markup:
    views = [_output_view(ctx, member) for member in unit.outputs]
    return _argument_section("Output Arguments", "section-output-args", views)


def split_examples(content: str) -> list[tuple[str, str]]:
    """Split Examples content at ``###`` lines outside fenced blocks.

    Returns ``(title, body)`` pairs; a leading preamble has an empty title.
    """
    parts: list[tuple[str, list[str]]] = [("", [])]
    in_fence = False
    for line in content.splitlines():
        stripped = line.strip()
        if stripped.startswith(FENCE):
            in_fence = not in_fence
        elif not in_fence and stripped.startswith("### "):
            parts.append((stripped[4:].strip(), []))
            continue
        parts[-1][1].append(line)
    return [
        (title, "\n".join(body).strip("\n"))
        for title, body in parts
        if title or "\n".join(body).strip()
    ]


def _render_examples(ctx: RenderContext, unit: DeclarationUnit) -> Markup:
    parts = [
        (render_inline(title) if title else Markup(), ctx.block(body))
        for title, body in split_examples(unit.section_content("Examples"))
    ]
    return _fragments().examples(parts)


def _has_section(heading: str) -> Callable[[DeclarationUnit], bool]:
    def predicate(unit: DeclarationUnit) -> bool:
        return bool(unit.section_content(heading).strip())

    return predicate


def _section_renderer(heading: str) -> Callable[[RenderContext, DeclarationUnit], Markup]:
    def render(ctx: RenderContext, unit: DeclarationUnit) -> Markup:
        return _fragments().generic_section(heading, ctx.block(unit.section_content(heading)))

    return render


_TYPE_PAGE_HEADINGS: Final[frozenset[str]] = frozenset(
    {"Properties", "Examples", *TRAILING_HEADINGS}
)


def _generic_sections(unit: DeclarationUnit) -> tuple[Section, ...]:
    """Sections with no dedicated renderer on the page of ``unit``.

    Type pages have no Syntax or argument sections of their own; those
    headings render as plain sections there.
    """
    if unit.kind is UnitKind.TYPE:
        return tuple(s for s in unit.sections if s.heading not in _TYPE_PAGE_HEADINGS)
    return tuple(s for s in unit.sections if not s.recognized or s.heading == "Properties")


def _render_generic(ctx: RenderContext, unit: DeclarationUnit) -> Markup:
    section = _fragments().generic_section
    return Markup("\n").join(
        section(item.heading, ctx.block(item.content)) for item in _generic_sections(unit)
    )


def _render_see_also(ctx: RenderContext, unit: DeclarationUnit) -> Markup:
    links = [ctx.resolver.resolve(name) for name in unit.see_also]
    return _fragments().see_also(links)


def _render_creation(ctx: RenderContext, unit: DeclarationUnit) -> Markup:
    constructor = unit.constructor
    if constructor is None:
        return Markup()
    fragments = _fragments()
    parts = [fragments.syntax_block(_syntax_lines(ctx, constructor), "Creation")]
    body, _ = _description_body(ctx, constructor)
    if body:
        parts.append(Markup('<div class="description-body">\n{}\n</div>').format(body))
    if constructor.inputs:
        parts.append(_render_inputs(ctx, constructor))
    if constructor.named_parameters:
        parts.append(_render_named(ctx, constructor))
    return Markup("\n").join(parts)


def _has_creation(unit: DeclarationUnit) -> bool:
    return unit.constructor is not None and bool(unit.constructor.syntax_entries)


def _grouped_rows(
    items: Iterable[tuple[str, Markup, Markup]],
) -> list[TableRow]:
    rows: list[TableRow] = []
    previous: str | None = None
    for group, name_html, detail_html in items:
        label = group if group and group != previous else ""
        rows.append(TableRow(name_html=name_html, detail_html=detail_html, group=label))
        previous = group
    return rows


def _field_flags(member: Member) -> list[str]:
    flags = []
    if member.read_only:
        flags.append("Read-only")
    if member.dependent:
        flags.append("Dependent")
    if member.constant:
        flags.append("Constant")
    if member.abstract:
        flags.append("Abstract")
    return flags


def _field_detail(ctx: RenderContext, member: Member) -> Markup:
    parts: list[Markup] = []
    short = member.short_description.strip()
    long = member.long_description.strip()
    if short:
        parts.append(Markup("<p>{}</p>").format(render_inline(short)))
    if long and long != short:
        block = ctx.block(member.long_description)
        parts.append(Markup('<div class="arg-desc">\n{}\n</div>').format(block))
    meta: list[Markup] = []
    if member.type:
        meta.append(Markup("<code>{}</code>").format(member.type))
    if member.default:
        meta.append(Markup("Default: <code>{}</code>").format(member.default))
    meta.extend(Markup("{}").format(flag) for flag in _field_flags(member))
    if meta:
        parts.append(
            Markup('<p class="member-flags">{}</p>').format(Markup(" &middot; ").join(meta))
        )
    return Markup("\n").join(parts)


def _render_properties(ctx: RenderContext, unit: DeclarationUnit) -> Markup:
    rows = _grouped_rows(
        (member.group, Markup("<code>{}</code>").format(member.name), _field_detail(ctx, member))
        for member in unit.fields
    )
    return _fragments().member_table("Properties", rows, "section-properties")


def _method_name(ctx: RenderContext, unit: DeclarationUnit, name: str) -> Markup:
    href = ctx.resolver.lookup(f"{unit.name}.{name}")
    if href is None:
        return Markup("<code>{}</code>").format(name)
    return Markup('<a href="{}"><code>{}</code></a>').format(href, name)


def _method_detail(method: MethodSummary) -> Markup:
    pairs = (("Static", method.static), ("Abstract", method.abstract))
    flags = [label for label, on in pairs if on]
    text = render_inline(method.synopsis)
    if flags:
        text += Markup(' <span class="member-flags">({})</span>').format(", ".join(flags))
    return text


def _render_methods(ctx: RenderContext, unit: DeclarationUnit) -> Markup:
    rows = _grouped_rows(
        (method.group, _method_name(ctx, unit, method.name), _method_detail(method))
        for method in unit.methods
    )
    return _fragments().member_table("Object Functions", rows, "section-methods")


def _render_events(ctx: RenderContext, unit: DeclarationUnit) -> Markup:
    rows = _grouped_rows(
        (
            event.group,
            Markup("<code>{}</code>").format(event.name),
            render_inline(event.description),
        )
        for event in unit.events
    )
    return _fragments().member_table("Events", rows, "section-events")


def _slug(heading: str) -> str:
    return heading.lower().replace(" ", "-")


def _render_type_description(ctx: RenderContext, unit: DeclarationUnit) -> Markup:
    return _fragments().description(
        render_description(unit.description, ctx.settings.code_language)
    )


_TRAILING: Final[tuple[PageSection, ...]] = tuple(
    PageSection(_slug(heading), _has_section(heading), _section_renderer(heading))
    for heading in TRAILING_HEADINGS
)

_CLOSING: Final[tuple[PageSection, ...]] = (
    PageSection("other-sections", lambda unit: bool(_generic_sections(unit)), _render_generic),
    PageSection("see-also", lambda unit: bool(unit.see_also), _render_see_also),
)

FUNCTION_SECTIONS: Final[tuple[PageSection, ...]] = (
    PageSection("syntax", lambda unit: bool(unit.syntax_entries), _render_syntax),
    PageSection("description", _has_description, _render_description),
    PageSection("examples", _has_section("Examples"), _render_examples),
    PageSection("input-arguments", lambda unit: bool(unit.inputs), _render_inputs),
    PageSection("name-value-arguments", lambda unit: bool(unit.named_parameters), _render_named),
    PageSection("output-arguments", lambda unit: bool(unit.outputs), _render_outputs),
    *_TRAILING,
    *_CLOSING,
)

TYPE_SECTIONS: Final[tuple[PageSection, ...]] = (
    PageSection(
        "description", lambda unit: bool(unit.description.strip()), _render_type_description
    ),
    PageSection("creation", _has_creation, _render_creation),
    PageSection("properties", lambda unit: bool(unit.fields), _render_properties),
    PageSection("object-functions", lambda unit: bool(unit.methods), _render_methods),
    PageSection("events", lambda unit: bool(unit.events), _render_events),
    PageSection("examples", _has_section("Examples"), _render_examples),
    *_TRAILING,
    *_CLOSING,
)


class PageRenderer:
    """Render units to complete HTML documents.

    Parameters
    ----------
    settings : RenderSettings | None, optional
        Rendering options. Defaults to the environment-derived settings.
    resolver : NameResolver | None, optional
        Cross-reference resolver. Defaults to an empty map using the
        settings' fallback template and strictness.
    """

    def __init__(
        self,
        settings: RenderSettings | None = None,
        resolver: NameResolver | None = None,
    ) -> None:
        self.settings = settings if settings is not None else load_settings().render
        self.resolver = resolver or NameResolver(
            fallback_template=self.settings.fallback_link_template,
            strict=self.settings.strict_cross_references,
        )

    def sections_for(self, unit: DeclarationUnit) -> tuple[PageSection, ...]:
        """Return the section list used for ``unit``'s page."""
        return TYPE_SECTIONS if unit.kind is UnitKind.TYPE else FUNCTION_SECTIONS

    def render_blocks(self, unit: DeclarationUnit, *, page: str = "") -> list[Markup]:
        """Render the body sections of ``unit`` whose predicates hold."""
        resolver = self.resolver.for_page(page) if page else self.resolver
        ctx = RenderContext(settings=self.settings, resolver=resolver)
        return [
            section.render(ctx, unit)
            for section in self.sections_for(unit)
            if section.predicate(unit)
        ]

    def render(
        self,
        unit: DeclarationUnit,
        *,
        page: str = "",
        breadcrumb: Markup | None = None,
    ) -> str:
        """Render ``unit`` as a complete HTML document.

        Parameters
        ----------
        unit : DeclarationUnit
            Function, method or type unit. Methods are titled
            ``Owner.name``.
        page : str, optional
            Site-relative path of the output page; cross-reference hrefs are
            made relative to it. Defaults to "".
        breadcrumb : Markup | None, optional
            Navigation trail placed above the title. Defaults to None.

        Returns
        -------
        str
            HTML document. Rendering the same unit twice gives identical
            output.
        """
        blocks = self.render_blocks(unit, page=page)
        synopsis = render_inline(unit.synopsis) if unit.synopsis else Markup()
        math = self.settings.math_enabled and (
            has_math(unit.synopsis) or any(has_math(str(block)) for block in blocks)
        )
        logger.debug(
            "Rendered page",
            extra={
                "operation": "render",
                "unit": unit.qualified_name,
                "sections": len(blocks),
                "math": math,
            },
        )
        return _ENV.get_template("page.html.j2").render(
            title=unit.qualified_name,
            synopsis=synopsis,
            breadcrumb=breadcrumb,
            blocks=blocks,
            math=math,
            katex_version=self.settings.katex_version,
        )


def render_unit(
    unit: DeclarationUnit,
    settings: RenderSettings | None = None,
    resolver: NameResolver | None = None,
) -> str:
    """Render ``unit`` with a one-off :class:`PageRenderer`."""
    return PageRenderer(settings, resolver).render(unit)


def fragments() -> TemplateModule:
    """Return the macros of ``sections.html.j2`` (breadcrumbs, tables)."""
    return _fragments()


def template_environment() -> Environment:
    """Return the shared Jinja2 environment."""
    return _ENV
