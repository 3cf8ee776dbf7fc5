"""
Tests for prompt rendering.
"""

from quiz_portal.core.markdown_math_renderer import MATHJAX_SCRIPT_URL, MarkdownMathRenderer


def test_fragment_renders_markdown_and_keeps_math_delimiters():
    html = MarkdownMathRenderer().render_fragment("Which is **LIFO**? $O(n)$")

    assert "<strong>LIFO</strong>" in html
    assert "$O(n)$" in html


def test_empty_prompt_has_placeholder():
    assert "No content provided" in MarkdownMathRenderer().render_fragment("   ")


def test_raw_html_is_escaped_by_default():
    html = MarkdownMathRenderer().render_fragment("<script>alert(1)</script>")

    assert "<script>" not in html


def test_inline_has_no_paragraph():
    assert MarkdownMathRenderer().render_inline("`push()`") == "<code>push()</code>"


def test_document_loads_mathjax_and_escapes_title():
    document = MarkdownMathRenderer().wrap_with_mathjax("<p>x</p>", title="<q1>", font_size=18)

    assert MATHJAX_SCRIPT_URL in document
    assert "&lt;q1&gt;" in document
    assert "font-size: 18pt" in document
