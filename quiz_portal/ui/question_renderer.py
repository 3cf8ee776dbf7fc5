"""Question rendering utilities for displaying quiz prompts."""

from __future__ import annotations

from quiz_portal.core.markdown_math_renderer import renderer
from quiz_portal.core.models import Question
from quiz_portal.styling.color_palette import ColorPalette, Theme


def render_question_document(question: Question, font_size: int = 14, theme: Theme = Theme.LIGHT) -> str:
    """Render a quiz prompt as a full HTML document.

    Args:
        question: The question whose prompt (Markdown + LaTeX) is shown
        font_size: Font size in points for the prompt text (default 14)
        theme: Theme whose text colour is used

    Returns:
        HTML string ready for display in QWebEngineView
    """
    fragment = renderer.render_fragment(question.prompt)
    return renderer.wrap_with_mathjax(
        fragment,
        title=question.id,
        font_size=font_size,
        text_color=ColorPalette.TEXT_PRIMARY.get(theme),
    )
