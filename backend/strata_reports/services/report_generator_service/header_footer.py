"""
Header/Footer Composer — branded title block and "Page i of N" footers.

Part of the report_generator_service package.

The header is drawn once, at the top of page 0, before any report body.
Footers are stamped in a second pass over the sealed page list, because
every footer needs the final page count.
"""

import io
import logging
from typing import Optional, Tuple

from PIL import Image

from strata_reports.services.report_generator_service.formatting import format_date
from strata_reports.services.report_generator_service.layout import LayoutContext
from strata_reports.services.report_generator_service.models import Align, ReportDocument

logger = logging.getLogger(__name__)

LOGO_HEIGHT = 50
LOGO_MAX_WIDTH = 150
BADGE_WIDTH = 180
BADGE_HEIGHT = 60
RULE_OFFSET = 90
HEADER_ADVANCE = 100

FOOTER_RULE_OFFSET = 60
FOOTER_TEXT_OFFSET = 45
FOOTER_FONT_SIZE = 8


def _load_logo(path: str) -> Optional[Tuple[bytes, float, float]]:
    """Read the logo as PNG bytes scaled to the header height, or None."""
    if not path:
        return None
    try:
        with Image.open(path) as img:
            img.load()
            width, height = img.size
            buf = io.BytesIO()
            img.convert("RGBA").save(buf, format="PNG")
    except (OSError, ValueError) as e:
        logger.warning("Logo %s unreadable, using brand name: %s", path, e)
        return None
    if not width or not height:
        return None
    draw_w = min(LOGO_MAX_WIDTH, LOGO_HEIGHT * width / height)
    return buf.getvalue(), draw_w, draw_w * height / width


def draw_header(ctx: LayoutContext, doc: ReportDocument):
    """Title block: logo or brand name, title, org badge, dates, accent rule."""
    theme = ctx.theme
    margin = ctx.margin
    content_w = ctx.content_width
    top = ctx.pages.reserve(HEADER_ADVANCE).y

    logo = _load_logo(theme.logo_path)
    if logo is not None:
        data, w, h = logo
        ctx.image(margin, top - 10, w, h, data)
    else:
        ctx.text(margin, top, LOGO_MAX_WIDTH, 22,
                 ctx.measure.truncate(theme.name, LOGO_MAX_WIDTH, 18, "B"),
                 size=18, style="B", color=theme.primary)

    title = doc.title or "Report"
    ctx.text(margin, top + 10, content_w, 30,
             ctx.measure.truncate(title, content_w, 24, "B"),
             size=24, style="B", color=theme.primary, align=Align.CENTER)

    if doc.org_name:
        box_x = ctx.page_width - margin - BADGE_WIDTH
        inner_w = BADGE_WIDTH - 20
        ctx.rect(box_x, top, BADGE_WIDTH, BADGE_HEIGHT, fill=theme.primary, stroke=theme.primary)
        ctx.text(box_x + 10, top + 8, inner_w, 15,
                 ctx.measure.truncate(doc.org_name, inner_w, 12, "B"),
                 size=12, style="B", color=theme.white, align=Align.CENTER)
        if doc.org_unit_count:
            ctx.text(box_x + 10, top + 26, inner_w, 12, f"{doc.org_unit_count} units",
                     size=10, color=theme.white, align=Align.CENTER)
        if doc.org_address:
            ctx.text(box_x + 10, top + 41, inner_w, 10,
                     ctx.measure.truncate(doc.org_address, inner_w, 8),
                     size=8, color=theme.white, align=Align.CENTER)

    ctx.text(margin, top + 50, content_w, 12, f"Generated: {format_date(doc.generated_at)}",
             size=10, color=theme.neutral_dark, align=Align.CENTER)

    if doc.date_range is not None and not doc.date_range.is_all_time:
        period = (
            f"Report Period: {format_date(doc.date_range.start)} - "
            f"{format_date(doc.date_range.end)}"
        )
        ctx.text(margin, top + 65, content_w, 12, period,
                 size=10, color=theme.neutral_dark, align=Align.CENTER)

    ctx.line(margin, top + RULE_OFFSET, margin + content_w, top + RULE_OFFSET,
             color=theme.accent, width=2)
    ctx.pages.advance(HEADER_ADVANCE)


def footer_label(page_index: int, page_count: int) -> str:
    return f"Page {page_index + 1} of {page_count}"


def stamp_footers(ctx: LayoutContext, year: int) -> int:
    """
    Second pass: accent rule, copyright and page number on every page.

    Raises:
        RuntimeError: the body pass has not been sealed yet.
    """
    total = ctx.pages.page_count
    theme = ctx.theme
    margin = ctx.margin
    width = ctx.page_width - 2 * margin
    rule_y = ctx.page_height - FOOTER_RULE_OFFSET
    text_y = ctx.page_height - FOOTER_TEXT_OFFSET
    copyright_line = f"{theme.copyright} (c) {year}"

    for page in ctx.pages.pages:
        ctx.line(margin, rule_y, margin + width, rule_y,
                 color=theme.accent, width=1, page_index=page.index)
        ctx.text(margin, text_y, width, 10, footer_label(page.index, total),
                 size=FOOTER_FONT_SIZE, color=theme.neutral_dark,
                 align=Align.RIGHT, page_index=page.index)
        ctx.text(margin, text_y, width / 2, 10, copyright_line,
                 size=FOOTER_FONT_SIZE, color=theme.neutral_dark,
                 align=Align.LEFT, page_index=page.index)
    logger.debug("Stamped footers on %d pages", total)
    return total
