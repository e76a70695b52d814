"""
Table Renderer — header band, striped rows, optional summary band.

Part of the report_generator_service package. Cell text is clipped with an
ellipsis, never wrapped; long tables flow onto new pages one row at a time.
"""

import logging

from strata_reports.services.report_generator_service.layout import LayoutContext
from strata_reports.services.report_generator_service.models import TableSpec

logger = logging.getLogger(__name__)

TITLE_SIZE = 14
TITLE_ADVANCE = 25
HEADER_HEIGHT = 20
ROW_HEIGHT = 18
SUMMARY_HEIGHT = 20
CELL_PADDING = 5
GAP_AFTER = 10

HEADER_FONT_SIZE = 10
ROW_FONT_SIZE = 9
SUMMARY_FONT_SIZE = 10


def _draw_cells(ctx: LayoutContext, spec: TableSpec, cells, y: float, height: float,
                size: float, style: str, color: str):
    x = ctx.margin
    for i, cell in enumerate(cells):
        col_w = spec.column_widths[i]
        inner = col_w - 2 * CELL_PADDING
        text = ctx.measure.truncate(cell, inner, size, style)
        if text:
            ctx.text(x + CELL_PADDING, y, inner, height, text,
                     size=size, style=style, color=color, align=spec.alignment(i))
        x += col_w


def _draw_header_band(ctx: LayoutContext, spec: TableSpec):
    theme = ctx.theme
    pos = ctx.pages.advance(HEADER_HEIGHT)
    ctx.rect(ctx.margin, pos.y, spec.width, HEADER_HEIGHT,
             fill=theme.table_header, stroke=theme.table_header)
    _draw_cells(ctx, spec, spec.headers, pos.y, HEADER_HEIGHT,
                HEADER_FONT_SIZE, "B", theme.white)


def render_table(ctx: LayoutContext, spec: TableSpec) -> int:
    """
    Draw a table at the cursor.

    Every data row calls ``advance(ROW_HEIGHT)``, so a row moves to a new
    page exactly when it would cross the footer reserve. The header band
    is repeated on continuation pages only when ``spec.repeat_header``.

    Returns:
        Number of pages the table touched.

    Raises:
        InvalidSpecError: column/row/width mismatches.
    """
    spec.validate(ctx.content_width)
    theme = ctx.theme
    first_page = ctx.pages.cursor.page_index

    # Keep title, header and the first row together
    lead = HEADER_HEIGHT + (ROW_HEIGHT if spec.rows else 0)
    if spec.title:
        ctx.pages.reserve(TITLE_ADVANCE + lead)
        pos = ctx.pages.advance(TITLE_ADVANCE)
        ctx.text(ctx.margin, pos.y, ctx.content_width, TITLE_SIZE * 1.25,
                 ctx.measure.truncate(spec.title, ctx.content_width, TITLE_SIZE, "B"),
                 size=TITLE_SIZE, style="B", color=theme.primary)
    else:
        ctx.pages.reserve(lead)

    _draw_header_band(ctx, spec)

    for index, row in enumerate(spec.rows):
        if spec.repeat_header and not ctx.pages.fits(ROW_HEIGHT):
            ctx.pages.new_page()
            _draw_header_band(ctx, spec)
        pos = ctx.pages.advance(ROW_HEIGHT)
        fill = theme.white if index % 2 == 0 else theme.table_alt
        ctx.rect(ctx.margin, pos.y, spec.width, ROW_HEIGHT,
                 fill=fill, stroke=theme.neutral_dark, line_width=0.5)
        _draw_cells(ctx, spec, row, pos.y, ROW_HEIGHT, ROW_FONT_SIZE, "", theme.primary)

    if spec.summary_row is not None:
        pos = ctx.pages.advance(SUMMARY_HEIGHT)
        ctx.rect(ctx.margin, pos.y, spec.width, SUMMARY_HEIGHT,
                 fill=theme.table_summary, stroke=theme.accent, line_width=1.0)
        _draw_cells(ctx, spec, spec.summary_row, pos.y, SUMMARY_HEIGHT,
                    SUMMARY_FONT_SIZE, "B", theme.primary)

    ctx.gap(GAP_AFTER)
    pages = ctx.pages.cursor.page_index - first_page + 1
    if pages > 1:
        logger.debug("Table '%s' spans %d pages", spec.title or "", pages)
    return pages
