"""
PDF Generator — document assembler and fpdf2 writer.

Part of the report_generator_service package.

Body pass: header, then the report-type sequence, each appending draw
commands to the page list. The page list is then sealed, footers are
stamped in a second pass, and only then is every command written through
fpdf2. A failure at any stage raises; no partial buffer is returned.
"""

import io
import logging
from dataclasses import replace
from datetime import datetime, timezone
from typing import Optional

from fpdf import FPDF

from strata_reports.config import Settings
from strata_reports.config import settings as default_settings
from strata_reports.exceptions import DocumentFinalizeFailure, InvalidSpecError, RenderError
from strata_reports.services.brand_service import Theme, get_theme
from strata_reports.services.report_generator_service.formatting import (
    hex_to_rgb,
    sanitize_filename,
    to_datetime,
)
from strata_reports.services.report_generator_service.header_footer import (
    draw_header,
    stamp_footers,
)
from strata_reports.services.report_generator_service.layout import (
    FONT,
    ImageCommand,
    LayoutContext,
    LineCommand,
    RectCommand,
    TextCommand,
)
from strata_reports.services.report_generator_service.models import Align, ReportDocument
from strata_reports.services.report_generator_service.report_sections import render_report_body

logger = logging.getLogger(__name__)

_FPDF_ALIGN = {Align.LEFT: "L", Align.CENTER: "C", Align.RIGHT: "R"}


def build_filename(title: str) -> str:
    """Download filename: every non-alphanumeric character becomes '_'."""
    return sanitize_filename(title)


def _resolve_generated_at(doc: ReportDocument) -> Optional[datetime]:
    """Timezone-aware generation time, or None when unparseable."""
    try:
        generated = to_datetime(doc.generated_at)
    except ValueError:
        logger.warning("Unparseable generated_at %r", doc.generated_at)
        return None
    if generated is not None and generated.tzinfo is None:
        generated = generated.replace(tzinfo=timezone.utc)
    return generated


# ---------------------------------------------------------------------------
# Writer
# ---------------------------------------------------------------------------


def _emit(pdf: FPDF, command):
    if isinstance(command, RectCommand):
        style = ""
        if command.fill:
            pdf.set_fill_color(*hex_to_rgb(command.fill))
            style += "F"
        if command.stroke:
            pdf.set_draw_color(*hex_to_rgb(command.stroke))
            pdf.set_line_width(command.line_width)
            style = "D" + style if style else "D"
        if style:
            pdf.rect(command.x, command.y, command.w, command.h, style=style)
    elif isinstance(command, TextCommand):
        pdf.set_font(FONT, command.style, command.size)
        pdf.set_text_color(*hex_to_rgb(command.color))
        pdf.set_xy(command.x, command.y)
        pdf.cell(command.w, command.h, command.text, align=_FPDF_ALIGN[Align(command.align)])
    elif isinstance(command, LineCommand):
        pdf.set_draw_color(*hex_to_rgb(command.color))
        pdf.set_line_width(command.width)
        pdf.line(command.x1, command.y1, command.x2, command.y2)
    elif isinstance(command, ImageCommand):
        pdf.image(io.BytesIO(command.data), x=command.x, y=command.y, w=command.w, h=command.h)
    else:
        raise TypeError(f"Unknown draw command: {type(command).__name__}")


def write_pdf(ctx: LayoutContext, doc: ReportDocument, created: datetime) -> bytes:
    """Walk the sealed page list into an fpdf2 document and return its bytes."""
    pdf = FPDF(unit="pt", format=ctx.settings.page_format)
    pdf.set_auto_page_break(False)
    pdf.set_margins(0, 0, 0)
    pdf.c_margin = 0
    pdf.set_title(doc.title or "Report")
    pdf.set_author(ctx.theme.name)
    pdf.set_creator(ctx.theme.name)
    pdf.set_creation_date(created)

    for page in ctx.pages.pages:
        pdf.add_page()
        for command in page.commands:
            _emit(pdf, command)

    return bytes(pdf.output())


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def generate_pdf(
    doc: ReportDocument,
    theme: Optional[Theme] = None,
    settings: Optional[Settings] = None,
) -> bytes:
    """
    Render a report document to PDF bytes.

    Args:
        doc: The report to render.
        theme: Brand colours and names; defaults to the configured theme.
        settings: Page geometry and limits; defaults to the process settings.

    Returns:
        Complete PDF document bytes (starting with ``%PDF-``).

    Raises:
        InvalidSpecError: A table or KPI spec built from the payload is malformed.
        RenderError: Any other layout fault.
        DocumentFinalizeFailure: The PDF writer failed while finalizing.
    """
    theme = theme or get_theme()
    settings = settings or default_settings
    report_type = getattr(doc.report_type, "value", doc.report_type)
    logger.info("Generating PDF report '%s' (%s)", doc.title, report_type)

    if not doc.generated_at:
        doc = replace(doc, generated_at=datetime.now(timezone.utc))

    try:
        created = _resolve_generated_at(doc) or datetime.now(timezone.utc)
        ctx = LayoutContext(theme, settings)
        draw_header(ctx, doc)
        render_report_body(ctx, doc.report_type, doc.content)
        page_count = ctx.pages.seal()
        stamp_footers(ctx, created.year)
    except InvalidSpecError:
        raise
    except Exception as e:
        logger.error("Layout failed for report '%s': %s", doc.title, e, exc_info=True)
        raise RenderError(f"Report layout failed: {e}") from e

    try:
        data = write_pdf(ctx, doc, created)
    except Exception as e:
        logger.error("PDF finalization failed for report '%s': %s", doc.title, e, exc_info=True)
        raise DocumentFinalizeFailure(f"PDF finalization failed: {e}") from e

    logger.info("PDF generated: %d page(s), %d bytes", page_count, len(data))
    return data
