"""Convert the documentation markup dialect to HTML.

Supported blocks: fenced code (optional language tag), ``> [!NOTE]``
callouts, ``###`` headings, ordered and unordered lists with indented
continuation lines, and paragraphs. Supported inline markup: ``**bold**``,
``_italic_``, inline code, ``![alt](src)`` images, ``[text](href)`` links and
``$``/``$$`` math spans (left for the math script).

Literal text is escaped before any formatting is applied. Code, math, link
and image spans are swapped for placeholders as soon as they are produced
so later patterns cannot reach inside them.
"""

from __future__ import annotations

import re
from enum import StrEnum
from typing import TYPE_CHECKING, Final

from markupsafe import Markup, escape

from mdoc.docblock import FENCE, split_paragraphs

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

__all__ = [
    "CalloutKind",
    "has_math",
    "render_block",
    "render_description",
    "render_inline",
]

_PLACEHOLDER: Final[str] = "\x00{}\x00"
_RESTORE = re.compile(r"\x00(\d+)\x00")

_CODE = re.compile(r"`([^`]+?)`")
_DISPLAY_MATH = re.compile(r"\$\$(.+?)\$\$", re.DOTALL)
_INLINE_MATH = re.compile(r"(?<![\\$])\$([^$\n]+?)\$")
_IMAGE = re.compile(r"!\[([^\]]*?)\]\(([^)\s]+?)\)")
_LINK = re.compile(r"\[([^\]]+?)\]\(([^)\s]+?)\)")
_BOLD = re.compile(r"\*\*(.+?)\*\*", re.DOTALL)
_ITALIC = re.compile(r"(?<![A-Za-z0-9_])_([^_\n]+?)_(?![A-Za-z0-9_])")

_CALLOUT = re.compile(r"^>\s*\[!(?P<kind>[A-Z]+)\]\s*(?P<rest>.*)$")
_ORDERED = re.compile(r"^\d+\.\s+")
_UNORDERED = re.compile(r"^[-*]\s+")


class CalloutKind(StrEnum):
    """Admonition tags recognised in ``> [!TAG]`` lines.

    Unknown tags are not callouts; the line renders as ordinary text.
    """

    NOTE = "note"
    WARNING = "warning"
    IMPORTANT = "important"

    @property
    def title(self) -> str:
        return self.value.upper()

    @classmethod
    def from_tag(cls, tag: str) -> CalloutKind | None:
        try:
            return cls(tag.lower())
        except ValueError:
            return None


def has_math(text: str) -> bool:
    """Whether ``text`` contains a ``$`` math delimiter."""
    return "$" in text


class _Protector:
    """Stores finished HTML fragments behind placeholders."""

    def __init__(self) -> None:
        self._fragments: list[str] = []

    def keep(self, html: str) -> str:
        self._fragments.append(html)
        return _PLACEHOLDER.format(len(self._fragments) - 1)

    def restore(self, text: str) -> str:
        # Fragments may themselves hold placeholders (links around code).
        while _RESTORE.search(text):
            text = _RESTORE.sub(lambda m: self._fragments[int(m.group(1))], text)
        return text


def _emphasis(text: str) -> str:
    text = _BOLD.sub(r"<strong>\1</strong>", text)
    return _ITALIC.sub(r"<em>\1</em>", text)


def render_inline(text: str) -> Markup:
    """Render inline markup in ``text``.

    Parameters
    ----------
    text : str
        Raw text from a documentation block.

    Returns
    -------
    Markup
        HTML safe to embed in a template.

    Examples
    --------
    >>> str(render_inline("Use **care** with `a < b`"))
    'Use <strong>care</strong> with <code>a &lt; b</code>'
    """
    protector = _Protector()
    html = str(escape(text.replace("\x00", "")))
    html = _CODE.sub(lambda m: protector.keep(f"<code>{m.group(1)}</code>"), html)
    html = _DISPLAY_MATH.sub(lambda m: protector.keep(m.group(0)), html)
    html = _INLINE_MATH.sub(lambda m: protector.keep(m.group(0)), html)
    html = _IMAGE.sub(
        lambda m: protector.keep(f'<img src="{m.group(2)}" alt="{m.group(1)}">'), html
    )
    html = _LINK.sub(
        lambda m: protector.keep(f'<a href="{m.group(2)}">{_emphasis(m.group(1))}</a>'), html
    )
    html = _emphasis(html)
    return Markup(protector.restore(html))  # noqa: S704


def _starts_block(stripped: str) -> bool:
    return bool(
        not stripped
        or stripped.startswith((FENCE, "### "))
        or _CALLOUT.match(stripped)
        or _ORDERED.match(stripped)
        or _UNORDERED.match(stripped)
    )


def _list_items(
    lines: Sequence[str], index: int, marker: re.Pattern[str]
) -> tuple[list[Markup], int]:
    items: list[list[str]] = []
    while index < len(lines):
        stripped = lines[index].strip()
        match = marker.match(stripped)
        if match is not None:
            items.append([stripped[match.end() :]])
            index += 1
            continue
        line = lines[index]
        indented = line.startswith(("  ", "\t"))
        if items and indented and not _starts_block(stripped):
            items[-1].append(stripped)
            index += 1
            continue
        break
    return [render_inline(" ".join(parts)) for parts in items], index


class _BlockRenderer:
    def __init__(self, code_language: str) -> None:
        self.code_language = code_language
        self.out: list[str] = []

    def fence(self, lines: Sequence[str], index: int) -> int:
        language = lines[index].strip()[len(FENCE) :].strip() or self.code_language
        index += 1
        body: list[str] = []
        while index < len(lines) and not lines[index].strip().startswith(FENCE):
            body.append(str(escape(lines[index])))
            index += 1
        self.out.append(
            f'<pre><code class="language-{escape(language)}">{chr(10).join(body)}</code></pre>'
        )
        return index + 1

    def callout(self, lines: Sequence[str], index: int, kind: CalloutKind, rest: str) -> int:
        parts = [rest] if rest else []
        index += 1
        while index < len(lines) and lines[index].strip().startswith(">"):
            parts.append(re.sub(r"^\s*>\s?", "", lines[index]))
            index += 1
        body = render_inline(" ".join(p.strip() for p in parts if p.strip()))
        self.out.append(
            f'<div class="callout callout-{kind.value}">'
            f'<div class="callout-title">{kind.title}</div><p>{body}</p></div>'
        )
        return index

    def listing(self, lines: Sequence[str], index: int, tag: str, marker: re.Pattern[str]) -> int:
        items, index = _list_items(lines, index, marker)
        rows = "\n".join(f"  <li>{item}</li>" for item in items)
        self.out.append(f"<{tag}>\n{rows}\n</{tag}>")
        return index

    def paragraph(self, lines: Sequence[str], index: int) -> int:
        text: list[str] = [lines[index]]
        index += 1
        while index < len(lines) and not _starts_block(lines[index].strip()):
            text.append(lines[index])
            index += 1
        self.out.append(f"<p>{render_inline(chr(10).join(t.strip() for t in text))}</p>")
        return index

    def run(self, text: str) -> str:
        lines = text.splitlines()
        index = 0
        while index < len(lines):
            stripped = lines[index].strip()
            callout = _CALLOUT.match(stripped)
            kind = CalloutKind.from_tag(callout.group("kind")) if callout else None
            if not stripped:
                index += 1
            elif stripped.startswith(FENCE):
                index = self.fence(lines, index)
            elif callout is not None and kind is not None:
                index = self.callout(lines, index, kind, callout.group("rest"))
            elif stripped.startswith("### "):
                self.out.append(f"<h3>{render_inline(stripped[4:].strip())}</h3>")
                index += 1
            elif _UNORDERED.match(stripped):
                index = self.listing(lines, index, "ul", _UNORDERED)
            elif _ORDERED.match(stripped):
                index = self.listing(lines, index, "ol", _ORDERED)
            else:
                index = self.paragraph(lines, index)
        return "\n".join(self.out)


def render_block(text: str, code_language: str = "matlab") -> Markup:
    """Render block-level markup.

    Parameters
    ----------
    text : str
        Multi-line documentation text.
    code_language : str, optional
        Language class for fenced blocks without a tag. Defaults to "matlab".

    Returns
    -------
    Markup
        HTML fragment, one block element per line group.
    """
    return Markup(_BlockRenderer(code_language).run(text))  # noqa: S704


def render_description(
    text: str,
    code_language: str = "matlab",
    *,
    anchor: Callable[[str], str | None] | None = None,
) -> Markup:
    """Render description text with separators before calling-form paragraphs.

    Every paragraph after the first that opens with inline code is preceded
    by ``<hr class="desc-sep">``. When ``anchor`` is given it is called with
    each such paragraph; a returned id wraps the rendered paragraph in a
    ``div`` carrying that id.

    Parameters
    ----------
    text : str
        Description text.
    code_language : str, optional
        Language class for fenced blocks without a tag. Defaults to "matlab".
    anchor : Callable[[str], str | None] | None, optional
        Maps a calling-form paragraph to an element id.
        Defaults to None.

    Returns
    -------
    Markup
        HTML fragment.
    """
    out: list[str] = []
    chunks = split_paragraphs(text)
    for position, chunk in enumerate(chunks):
        html = str(render_block(chunk, code_language))
        if chunk.lstrip().startswith("`") and not chunk.lstrip().startswith(FENCE):
            if position > 0:
                out.append('<hr class="desc-sep">')
            element_id = anchor(chunk) if anchor is not None else None
            if element_id:
                html = f'<div class="syntax-desc" id="{escape(element_id)}">\n{html}\n</div>'
        out.append(html)
    return Markup("\n".join(out))  # noqa: S704
