"""
Layout — page list, write cursor, and the draw-command list.

Part of the report_generator_service package.

Renderers never touch the PDF writer. They ask the PageManager where to
draw (``advance`` / ``reserve``), then append immutable draw commands to
the page they were given. The assembler walks the finished pages in a
second traversal to stamp footers and write the document.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Union

from fpdf import FPDF

from strata_reports.config import Settings
from strata_reports.services.brand_service import Theme
from strata_reports.services.report_generator_service.formatting import sanitize_for_pdf
from strata_reports.services.report_generator_service.models import Align, PagePosition

logger = logging.getLogger(__name__)

FONT = "Helvetica"
ELLIPSIS = "..."
LINE_SPACING = 1.25  # line height as a multiple of font size


# ---------------------------------------------------------------------------
# Draw commands
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TextCommand:
    """Single-line text in a box; y is the top of the box."""
    x: float
    y: float
    w: float
    h: float
    text: str
    size: float = 10
    style: str = ""  # "", "B", "I"
    color: str = "#1a2332"
    align: Align = Align.LEFT


@dataclass(frozen=True)
class RectCommand:
    x: float
    y: float
    w: float
    h: float
    fill: Optional[str] = None
    stroke: Optional[str] = None
    line_width: float = 0.5


@dataclass(frozen=True)
class LineCommand:
    x1: float
    y1: float
    x2: float
    y2: float
    color: str
    width: float = 1.0


@dataclass(frozen=True)
class ImageCommand:
    x: float
    y: float
    w: float
    h: float
    data: bytes = field(repr=False)


DrawCommand = Union[TextCommand, RectCommand, LineCommand, ImageCommand]


@dataclass
class Page:
    index: int
    commands: List[DrawCommand] = field(default_factory=list)


@dataclass
class PageCursor:
    current_y: float
    page_index: int
    page_height: float
    page_width: float
    margin: float
    footer_reserve: float

    @property
    def bottom(self) -> float:
        """Lowest y body content may reach on any page."""
        return self.page_height - self.footer_reserve


# ---------------------------------------------------------------------------
# Page / cursor manager
# ---------------------------------------------------------------------------


class PageManager:
    """
    Owns the ordered page list and the single write cursor.

    Page indices are zero-based and monotonic. The total page count can
    only be read after ``seal()``, which ends the body pass.
    """

    def __init__(self, page_width: float, page_height: float, margin: float, footer_reserve: float):
        self.pages: List[Page] = [Page(index=0)]
        self.cursor = PageCursor(
            current_y=margin,
            page_index=0,
            page_height=page_height,
            page_width=page_width,
            margin=margin,
            footer_reserve=footer_reserve,
        )
        self._sealed = False

    @property
    def top(self) -> float:
        return self.cursor.margin

    @property
    def current_page(self) -> Page:
        return self.pages[self.cursor.page_index]

    @property
    def sealed(self) -> bool:
        return self._sealed

    @property
    def page_count(self) -> int:
        if not self._sealed:
            raise RuntimeError("Page count is unknown until layout is sealed")
        return len(self.pages)

    def _check_open(self):
        if self._sealed:
            raise RuntimeError("Layout is sealed; body content can no longer be placed")

    def fits(self, height: float) -> bool:
        """True if ``height`` fits below the cursor on the current page."""
        return self.cursor.current_y + height <= self.cursor.bottom

    def new_page(self) -> Page:
        self._check_open()
        page = Page(index=len(self.pages))
        self.pages.append(page)
        self.cursor.page_index = page.index
        self.cursor.current_y = self.top
        logger.debug("Page break -> page %d", page.index)
        return page

    def _break_if_needed(self, height: float):
        # A page that is still empty keeps oversize content instead of
        # breaking forever.
        if not self.fits(height) and self.cursor.current_y > self.top:
            self.new_page()

    def reserve(self, height: float) -> PagePosition:
        """Break first if ``height`` does not fit; the cursor does not move."""
        self._check_open()
        self._break_if_needed(height)
        return PagePosition(self.cursor.page_index, self.cursor.current_y)

    def advance(self, height: float) -> PagePosition:
        """Return where to draw a ``height``-tall element, then move below it."""
        position = self.reserve(height)
        self.cursor.current_y += height
        return position

    def move_down(self, height: float):
        """Vertical gap; never breaks by itself, the next placement decides."""
        self._check_open()
        self.cursor.current_y += height

    def seal(self) -> int:
        """End the body pass and fix the page count."""
        self._sealed = True
        return len(self.pages)


# ---------------------------------------------------------------------------
# Text measurement
# ---------------------------------------------------------------------------


class TextMeasurer:
    """Helvetica string metrics from an off-screen fpdf2 instance."""

    def __init__(self, page_format: str):
        self._pdf = FPDF(unit="pt", format=page_format)
        self.page_width = self._pdf.w
        self.page_height = self._pdf.h

    def width(self, text: str, size: float, style: str = "") -> float:
        self._pdf.set_font(FONT, style, size)
        return self._pdf.get_string_width(sanitize_for_pdf(text))

    def truncate(self, text: str, max_width: float, size: float, style: str = "") -> str:
        """Truncate text with '...' suffix if it exceeds the given width."""
        text = sanitize_for_pdf(text)
        if self.width(text, size, style) <= max_width:
            return text
        ew = self.width(ELLIPSIS, size, style)
        for i in range(len(text), 0, -1):
            if self.width(text[:i], size, style) + ew <= max_width:
                return text[:i].rstrip() + ELLIPSIS
        return ELLIPSIS

    def wrap(self, text: str, max_width: float, size: float, style: str = "") -> List[str]:
        """Greedy word wrap; explicit newlines start new lines."""
        lines: List[str] = []
        for paragraph in sanitize_for_pdf(text).split("\n"):
            words = paragraph.split()
            if not words:
                lines.append("")
                continue
            current = ""
            for word in words:
                candidate = f"{current} {word}" if current else word
                if self.width(candidate, size, style) <= max_width:
                    current = candidate
                    continue
                if current:
                    lines.append(current)
                # Hard-split words wider than the line
                while self.width(word, size, style) > max_width and len(word) > 1:
                    cut = len(word) - 1
                    while cut > 1 and self.width(word[:cut], size, style) > max_width:
                        cut -= 1
                    lines.append(word[:cut])
                    word = word[cut:]
                current = word
            lines.append(current)
        return lines


# ---------------------------------------------------------------------------
# Layout context shared by every renderer during one render call
# ---------------------------------------------------------------------------


class LayoutContext:
    """
    Mutable layout state for a single document.

    Not thread-safe and never shared between documents: the assembler
    builds one per ``generate_pdf`` call.
    """

    def __init__(self, theme: Theme, settings: Settings):
        self.theme = theme
        self.settings = settings
        self.measure = TextMeasurer(settings.page_format)
        self.pages = PageManager(
            page_width=self.measure.page_width,
            page_height=self.measure.page_height,
            margin=settings.page_margin,
            footer_reserve=settings.footer_reserve,
        )

    @property
    def margin(self) -> float:
        return self.settings.page_margin

    @property
    def page_width(self) -> float:
        return self.pages.cursor.page_width

    @property
    def page_height(self) -> float:
        return self.pages.cursor.page_height

    @property
    def content_width(self) -> float:
        return self.page_width - 2 * self.margin

    # -- raw command helpers -------------------------------------------------

    def draw(self, command: DrawCommand, page_index: Optional[int] = None):
        index = self.pages.cursor.page_index if page_index is None else page_index
        self.pages.pages[index].commands.append(command)

    def text(self, x: float, y: float, w: float, h: float, text: str, *,
             size: float = 10, style: str = "", color: Optional[str] = None,
             align: Align = Align.LEFT, page_index: Optional[int] = None):
        self.draw(
            TextCommand(
                x=x, y=y, w=w, h=h, text=sanitize_for_pdf(text), size=size,
                style=style, color=color or self.theme.primary, align=align,
            ),
            page_index,
        )

    def rect(self, x: float, y: float, w: float, h: float, *,
             fill: Optional[str] = None, stroke: Optional[str] = None,
             line_width: float = 0.5, page_index: Optional[int] = None):
        self.draw(RectCommand(x, y, w, h, fill, stroke, line_width), page_index)

    def line(self, x1: float, y1: float, x2: float, y2: float, *,
             color: str, width: float = 1.0, page_index: Optional[int] = None):
        self.draw(LineCommand(x1, y1, x2, y2, color, width), page_index)

    def image(self, x: float, y: float, w: float, h: float, data: bytes,
              page_index: Optional[int] = None):
        self.draw(ImageCommand(x, y, w, h, data), page_index)

    # -- flowing content -----------------------------------------------------

    def heading(self, text: str, size: float = 16, color: Optional[str] = None,
                space_after: float = 6.0):
        """Bold one-line heading that stays on the page of its next line."""
        h = size * LINE_SPACING
        self.pages.reserve(h + space_after + 2 * 11 * LINE_SPACING)
        pos = self.pages.advance(h)
        self.text(self.margin, pos.y, self.content_width, h, text,
                  size=size, style="B", color=color)
        self.pages.move_down(space_after)

    def paragraph(self, text: str, size: float = 11, style: str = "",
                  color: Optional[str] = None, indent: float = 0.0,
                  align: Align = Align.LEFT) -> int:
        """Wrap text to the content width and flow it line by line.

        Returns the number of lines placed. Long paragraphs continue on
        the next page.
        """
        width = self.content_width - indent
        lines = self.measure.wrap(text, width, size, style)
        h = size * LINE_SPACING
        for line in lines:
            pos = self.pages.advance(h)
            if line:
                self.text(self.margin + indent, pos.y, width, h, line,
                          size=size, style=style, color=color, align=align)
        return len(lines)

    def gap(self, height: float):
        self.pages.move_down(height)
