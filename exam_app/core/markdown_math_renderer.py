"""Markdown + LaTeX rendering for question prompts sent to test takers.

Prompts are stored as markdown with `$...$` math. The server renders them
to HTML fragments and the client typesets the math with MathJax.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from markdown_it import MarkdownIt


@dataclass(slots=True)
class MarkdownMathRenderer:
    """Converts markdown-with-math into HTML fragments."""

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

    def render_options(self, options: list[str]) -> list[str]:
        """Render each option inline, without the wrapping paragraph."""

        return [self._markdown.renderInline(option.strip()) for option in options]


renderer = MarkdownMathRenderer()
# MarkdownIt is safe for concurrent read-only renders, so request handlers
# share this instance.
