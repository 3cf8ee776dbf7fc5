"""Markdown + LaTeX rendering of question prompts for web and Qt clients.

Prompts are rendered to HTML once per request and MathJax typesets the math
client-side, so the browser portal and the desktop ``QWebEngineView`` show
identical output. Raw HTML inside prompts is escaped; question banks are
authored by teachers but displayed to every student.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from html import escape

from markdown_it import MarkdownIt

MATHJAX_SCRIPT_URL = "https://cdn.jsdelivr.net/npm/mathjax@3/es5/tex-mml-chtml.js"
MATHJAX_CONFIG_SCRIPT = (
    "window.MathJax = { tex: { inlineMath: [['$','$']], displayMath: [['$$','$$']] },"
    " svg: { fontCache: 'global' } };"
)


@dataclass(slots=True)
class MarkdownMathRenderer:
    """Converts markdown-with-math into HTML fragments or full documents."""

    enable_html: bool = False
    _markdown: MarkdownIt = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._markdown = (
            MarkdownIt("commonmark", {"html": self.enable_html})
            .enable("table")
            .enable("strikethrough")
        )

    def render_fragment(self, markdown_text: str) -> str:
        """Render a markdown string into an HTML fragment."""

        sanitized = markdown_text.strip()
        if not sanitized:
            return "<p><em>No content provided.</em></p>"
        return self._markdown.render(sanitized)

    def render_inline(self, markdown_text: str) -> str:
        """Render a single line (an option) without the wrapping paragraph."""

        return self._markdown.renderInline(markdown_text.strip())

    def wrap_with_mathjax(
        self,
        body_html: str,
        *,
        title: str = "Quiz Portal",
        font_size: int = 14,
        text_color: str = "#000000",
        background: str = "transparent",
    ) -> str:
        """Wrap a fragment inside a minimal HTML document that loads MathJax."""

        return f"""<!doctype html>
<html lang="en">
  <head>
    <meta charset="utf-8" />
    <title>{escape(title)}</title>
    <meta name="viewport" content="width=device-width, initial-scale=1" />
    <style>
      body {{ font-family: 'Segoe UI', system-ui, sans-serif; margin: 0; padding: 1rem; background: {background}; color: {text_color}; }}
      .question-html {{ font-size: {font_size}pt; line-height: 1.5; }}
    </style>
    <script>{MATHJAX_CONFIG_SCRIPT}</script>
    <script defer src="{MATHJAX_SCRIPT_URL}"></script>
  </head>
  <body>
    <div class="question-html">{body_html}</div>
  </body>
</html>"""


# Shared instance; MarkdownIt is safe for concurrent read-only renders.
renderer = MarkdownMathRenderer()
