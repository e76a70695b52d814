"""
KPI Dashboard Renderer — rows of four coloured metric boxes.

Part of the report_generator_service package.
"""

import logging
import re
from typing import Sequence

from strata_reports.exceptions import InvalidSpecError
from strata_reports.services.report_generator_service.layout import LayoutContext
from strata_reports.services.report_generator_service.models import Align, KPISpec

logger = logging.getLogger(__name__)

KPI_SLOTS = 4
KPI_HEIGHT = 70
KPI_GAP = 10
KPI_TOP_GAP = 10
KPI_BOTTOM_GAP = 20
KPI_INNER_PADDING = 10

LABEL_SIZE = 10
VALUE_SIZE = 16

_HEX_COLOR_RE = re.compile(r"^#(?:[0-9a-fA-F]{3}|[0-9a-fA-F]{6})$")


def kpi_box_width(content_width: float) -> float:
    """Width of one slot; a row always divides into four."""
    return (content_width - (KPI_SLOTS - 1) * KPI_GAP) / KPI_SLOTS


def render_kpis(ctx: LayoutContext, kpis: Sequence[KPISpec]) -> int:
    """
    Draw KPI boxes left to right in rows of four.

    A short group keeps four equal slots and leaves the trailing ones
    blank; more than four wraps onto further rows.

    Returns:
        Number of rows drawn.
    """
    for kpi in kpis:
        if not _HEX_COLOR_RE.match(kpi.color or ""):
            raise InvalidSpecError(f"KPI '{kpi.label}' has invalid colour {kpi.color!r}")
    if not kpis:
        return 0

    theme = ctx.theme
    box_w = kpi_box_width(ctx.content_width)
    text_w = box_w - 2 * KPI_INNER_PADDING
    rows = 0
    for start in range(0, len(kpis), KPI_SLOTS):
        ctx.gap(KPI_TOP_GAP)
        pos = ctx.pages.advance(KPI_HEIGHT + KPI_BOTTOM_GAP)
        x = ctx.margin
        for kpi in kpis[start:start + KPI_SLOTS]:
            ctx.rect(x, pos.y, box_w, KPI_HEIGHT, fill=kpi.color, stroke=kpi.color)
            ctx.text(x + KPI_INNER_PADDING, pos.y + 10, text_w, LABEL_SIZE * 1.25,
                     ctx.measure.truncate(kpi.label, text_w, LABEL_SIZE),
                     size=LABEL_SIZE, color=theme.white, align=Align.CENTER)
            ctx.text(x + KPI_INNER_PADDING, pos.y + 30, text_w, VALUE_SIZE * 1.25,
                     ctx.measure.truncate(kpi.value, text_w, VALUE_SIZE, "B"),
                     size=VALUE_SIZE, style="B", color=theme.white, align=Align.CENTER)
            x += box_w + KPI_GAP
        rows += 1
    return rows
