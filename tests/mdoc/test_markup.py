"""Tests for mdoc.markup module.

Tests cover inline spans, block elements, escaping and the separators and
anchors added to calling-form paragraphs.
"""

from __future__ import annotations

from markupsafe import Markup

from mdoc.markup import CalloutKind, has_math, render_block, render_description, render_inline


class TestRenderInline:
    """Tests for render_inline."""

    def test_bold_and_code(self) -> None:
        """Bold and code spans are converted, literal text is escaped."""
        assert render_inline("Use **care** with `a < b`") == (
            "Use <strong>care</strong> with <code>a &lt; b</code>"
        )

    def test_returns_markup(self) -> None:
        """The result is safe to embed without further escaping."""
        assert isinstance(render_inline("x"), Markup)

    def test_html_is_escaped(self) -> None:
        """Raw HTML in comments is shown, not interpreted."""
        assert render_inline("<script>alert(1)</script>") == (
            "&lt;script&gt;alert(1)&lt;/script&gt;"
        )

    def test_italic_needs_word_boundaries(self) -> None:
        """Underscores inside identifiers are not emphasis."""
        assert render_inline("see _this_ and my_var_name") == (
            "see <em>this</em> and my_var_name"
        )

    def test_code_is_protected(self) -> None:
        """Markup characters inside code spans stay literal."""
        assert render_inline("`a_b_c` and `**x**`") == (
            "<code>a_b_c</code> and <code>**x**</code>"
        )

    def test_math_is_left_for_the_script(self) -> None:
        """Math spans keep their delimiters and underscores."""
        assert render_inline("value $a_1 + b_2$ here") == "value $a_1 + b_2$ here"

    def test_link_and_image(self) -> None:
        """Links and images become anchors and img tags."""
        assert render_inline("[**docs**](https://example.org/a)") == (
            '<a href="https://example.org/a"><strong>docs</strong></a>'
        )
        assert render_inline("![plot](img/p.png)") == '<img src="img/p.png" alt="plot">'


class TestRenderBlock:
    """Tests for render_block."""

    def test_paragraph(self) -> None:
        """Consecutive lines form one paragraph."""
        assert render_block("first\nsecond") == "<p>first\nsecond</p>"

    def test_fenced_code_default_language(self) -> None:
        """Untagged fences use the configured language and escape content."""
        html = render_block("```\nif a < b\n```", code_language="octave")
        assert html == '<pre><code class="language-octave">if a &lt; b</code></pre>'

    def test_fenced_code_tag(self) -> None:
        """A fence tag overrides the default language."""
        assert 'class="language-python"' in render_block("```python\nx = 1\n```")

    def test_callout(self) -> None:
        """Known admonition tags render as callout boxes."""
        html = render_block("> [!WARNING] Data is modified\n> in place.")
        assert html == (
            '<div class="callout callout-warning"><div class="callout-title">WARNING</div>'
            "<p>Data is modified in place.</p></div>"
        )

    def test_unknown_callout_is_text(self) -> None:
        """Unknown tags are left as an ordinary paragraph."""
        assert render_block("> [!TIP] try") == "<p>&gt; [!TIP] try</p>"

    def test_lists(self) -> None:
        """Lists keep indented continuation lines with their item."""
        assert render_block("- one\n- two\n  continued") == (
            "<ul>\n  <li>one</li>\n  <li>two continued</li>\n</ul>"
        )
        assert render_block("1. a\n2. b") == "<ol>\n  <li>a</li>\n  <li>b</li>\n</ol>"

    def test_heading(self) -> None:
        """Third-level headings are supported inside blocks."""
        assert render_block("### Title") == "<h3>Title</h3>"

    def test_empty(self) -> None:
        """Blank input renders nothing."""
        assert render_block("\n\n") == ""


class TestRenderDescription:
    """Tests for render_description."""

    def test_separators_before_calling_forms(self) -> None:
        """Every code-led paragraph after the first gets a separator."""
        html = render_description("`f(x)` does X.\n\n`f(x, y)` does Y.\n\nProse.")
        assert html == (
            "<p><code>f(x)</code> does X.</p>\n"
            '<hr class="desc-sep">\n'
            "<p><code>f(x, y)</code> does Y.</p>\n"
            "<p>Prose.</p>"
        )

    def test_anchor_wraps_paragraph(self) -> None:
        """An anchor callback wraps the paragraph in an identified div."""
        html = render_description("Intro.\n\n`f(x)` does X.", anchor=lambda _: "syntax-0")
        assert '<hr class="desc-sep">' in html
        assert '<div class="syntax-desc" id="syntax-0">\n<p><code>f(x)</code>' in html

    def test_fence_with_blank_lines_is_one_chunk(self) -> None:
        """Blank lines inside a fence do not split the code block."""
        html = render_description("```\na = 1;\n\nb = 2;\n```")
        assert html.count("<pre>") == 1
        assert "desc-sep" not in html


class TestCallouts:
    """Tests for CalloutKind and has_math."""

    def test_from_tag(self) -> None:
        """Tags are case-insensitive; unknown ones give None."""
        assert CalloutKind.from_tag("NOTE") is CalloutKind.NOTE
        assert CalloutKind.from_tag("TIP") is None
        assert CalloutKind.IMPORTANT.title == "IMPORTANT"

    def test_has_math(self) -> None:
        """A dollar sign marks math content."""
        assert has_math("cost $x$")
        assert not has_math("no math")
