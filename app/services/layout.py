"""Text flow cursor used by the PDF renderers.

The cursor owns the layout state of exactly one document: where the next line
goes, which style is active, and when a new page must be started. Vertical
positions are measured from the top edge of the page; reportlab's bottom-left
origin is only used at the moment a line is drawn.
"""

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from dataclasses import field
from typing import Any

from reportlab.lib import colors
from reportlab.lib.colors import Color
from reportlab.pdfbase.pdfmetrics import stringWidth

from app.core.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

REGULAR_FONT = "Helvetica"
BOLD_FONT = "Helvetica-Bold"


@dataclass
class PageLayoutState:
    """Mutable layout state for a single document build."""

    page_width: float
    page_height: float
    margin_x: float
    margin_y: float
    line_height: float
    font_name: str = REGULAR_FONT
    font_size: float = 11.0
    color: Color = field(default_factory=lambda: colors.black)
    cursor_y: float = 0.0

    def __post_init__(self) -> None:
        if self.page_height - 2 * self.margin_y < self.line_height:
            raise ConfigurationError(
                f"Page height {self.page_height} leaves no room for a {self.line_height}pt line with {self.margin_y}pt margins"
            )
        if self.page_width - 2 * self.margin_x <= 0:
            raise ConfigurationError(f"Page width {self.page_width} leaves no room between {self.margin_x}pt margins")
        self.reset_cursor()

    @property
    def bottom_limit(self) -> float:
        return self.page_height - self.margin_y

    @property
    def content_width(self) -> float:
        return self.page_width - 2 * self.margin_x

    def reset_cursor(self) -> None:
        self.cursor_y = self.margin_y


def wrap_text(text: str, max_width: float, font_name: str, font_size: float) -> list[str]:
    """Greedy word wrap to ``max_width`` points.

    Lines are broken only at whitespace, so a word wider than ``max_width``
    ends up alone on its own line instead of being split. Explicit newlines
    always start a new line and blank paragraphs are kept as empty lines.
    """
    lines: list[str] = []
    for paragraph in (text or "").split("\n"):
        words = paragraph.split()
        if not words:
            lines.append("")
            continue
        current = words[0]
        for word in words[1:]:
            candidate = f"{current} {word}"
            if stringWidth(candidate, font_name, font_size) <= max_width:
                current = candidate
            else:
                lines.append(current)
                current = word
        lines.append(current)
    return lines


class TextFlowCursor:
    """Flows wrapped lines down a reportlab canvas, breaking pages as needed."""

    def __init__(self, canvas: Any, state: PageLayoutState) -> None:
        self.canvas = canvas
        self.state = state
        self.page_count = 1
        self.state.reset_cursor()
        self._apply_style()

    def _apply_style(self) -> None:
        self.canvas.setFont(self.state.font_name, self.state.font_size)
        self.canvas.setFillColor(self.state.color)

    def set_style(self, font_name: str | None = None, font_size: float | None = None, color: Color | None = None) -> None:
        if font_name is not None:
            self.state.font_name = font_name
        if font_size is not None:
            self.state.font_size = font_size
        if color is not None:
            self.state.color = color
        self._apply_style()

    @contextmanager
    def style(self, font_name: str | None = None, font_size: float | None = None, color: Color | None = None) -> Iterator[None]:
        """Temporarily switch style; the previous one is restored on exit."""
        previous = (self.state.font_name, self.state.font_size, self.state.color)
        self.set_style(font_name, font_size, color)
        try:
            yield
        finally:
            self.set_style(*previous)

    def wrap(self, text: str, max_width: float | None = None) -> list[str]:
        width = self.state.content_width if max_width is None else max_width
        return wrap_text(text, width, self.state.font_name, self.state.font_size)

    def new_page(self) -> None:
        self.canvas.showPage()
        self.page_count += 1
        self.state.reset_cursor()
        # showPage() drops the graphics state
        self._apply_style()
        logger.debug("Page break, now on page %d", self.page_count)

    def ensure_space(self, line_count: int) -> None:
        """Start a new page if ``line_count`` more lines would cross the bottom margin."""
        needed = line_count * self.state.line_height
        if self.state.cursor_y + needed <= self.state.bottom_limit:
            return
        if self.state.cursor_y <= self.state.margin_y:
            # Already at the top of a page; a new one would not offer more room
            return
        self.new_page()

    def advance(self, line_count: int = 1, extra: float = 0.0) -> None:
        self.state.cursor_y += line_count * self.state.line_height + extra

    def draw_lines(self, lines: list[str]) -> None:
        for line in lines:
            self.ensure_space(1)
            # Baseline sits at the bottom of the line slot
            baseline = self.state.page_height - (self.state.cursor_y + self.state.line_height)
            self.canvas.drawString(self.state.margin_x, baseline, line)
            self.advance(1)

    def draw_block(self, text: str, extra_after: float = 0.0) -> int:
        """Wrap ``text`` with the current style and draw it; returns the line count."""
        lines = self.wrap(text)
        self.draw_lines(lines)
        if extra_after:
            self.advance(0, extra_after)
        return len(lines)

    def blank_line(self) -> None:
        self.advance(1)
