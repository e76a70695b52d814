"""
Chart Renderer — bar, pie, and doughnut charts rasterized with Pillow.

Part of the report_generator_service package. Stateless: a chart spec
goes in, PNG bytes come out, so charts for different documents can be
rendered in parallel.
"""

import io
import logging
import math
from typing import List, Optional, Sequence, Tuple

from PIL import Image, ImageDraw, ImageFont

from strata_reports.config import settings
from strata_reports.exceptions import ChartRenderFailure
from strata_reports.services.report_generator_service.formatting import (
    format_axis_currency,
    hex_to_rgb,
    sanitize_for_pdf,
)
from strata_reports.services.report_generator_service.models import ChartKind, ChartSpec

logger = logging.getLogger(__name__)

# Logical canvas; the PNG is rendered at SCALE x for print sharpness
CHART_WIDTH = 500
CHART_HEIGHT = 300
SCALE = 2

_TITLE_RGB = hex_to_rgb("#1a2332")
_TEXT_RGB = hex_to_rgb("#374151")
_GRID_RGB = hex_to_rgb("#e5e7eb")
_AXIS_RGB = hex_to_rgb("#9ca3af")
_WHITE = (255, 255, 255)

DOUGHNUT_CUTOUT = 0.5  # inner radius as a fraction of the outer radius


def _load_chart_font(size: int, bold: bool = False):
    """Load a sans-serif font for chart rendering, with fallback."""
    candidates: List[str] = []
    if bold:
        candidates.extend(settings.chart_bold_font_paths)
    candidates.extend(settings.chart_font_paths)
    for path in candidates:
        try:
            return ImageFont.truetype(path, size)
        except (OSError, IOError):
            continue
    return ImageFont.load_default()


def _text_size(draw: ImageDraw.ImageDraw, text: str, font) -> Tuple[int, int]:
    bbox = draw.textbbox((0, 0), text, font=font)
    return bbox[2] - bbox[0], bbox[3] - bbox[1]


def _fit_label(draw: ImageDraw.ImageDraw, text: str, font, max_width: float) -> str:
    if _text_size(draw, text, font)[0] <= max_width:
        return text
    for i in range(len(text), 0, -1):
        candidate = text[:i] + "..."
        if _text_size(draw, candidate, font)[0] <= max_width:
            return candidate
    return "..."


def nice_axis(max_value: float, integer_ticks: bool = False, target_ticks: int = 5) -> Tuple[float, float]:
    """
    Pick a round tick step and axis maximum covering ``max_value``.

    The axis always starts at zero. Steps are 1, 2, or 5 times a power
    of ten.

    Returns:
        (step, axis_max)
    """
    if max_value <= 0:
        return 1.0, float(target_ticks)
    raw = max_value / target_ticks
    magnitude = 10 ** math.floor(math.log10(raw))
    step = magnitude
    for multiple in (1, 2, 5, 10):
        step = multiple * magnitude
        if step >= raw:
            break
    if integer_ticks:
        step = max(1.0, math.ceil(step))
    axis_max = math.ceil(max_value / step) * step
    return float(step), float(axis_max)


def _draw_title(draw: ImageDraw.ImageDraw, title: str, width: int):
    font = _load_chart_font(16 * SCALE, bold=True)
    text = _fit_label(draw, sanitize_for_pdf(title), font, width - 20 * SCALE)
    tw, _ = _text_size(draw, text, font)
    draw.text(((width - tw) // 2, 8 * SCALE), text, fill=_TITLE_RGB, font=font)


def _draw_legend_row(draw: ImageDraw.ImageDraw, items: Sequence[Tuple[str, tuple]],
                     width: int, y: int):
    """Centered horizontal legend (bar charts)."""
    font = _load_chart_font(10 * SCALE)
    swatch = 10 * SCALE
    spacing = 14 * SCALE
    labels = [sanitize_for_pdf(name) for name, _ in items]
    total = sum(swatch + 4 * SCALE + _text_size(draw, label, font)[0] for label in labels)
    total += spacing * max(0, len(items) - 1)
    x = max(4 * SCALE, (width - total) // 2)
    for label, (_, rgb) in zip(labels, items):
        draw.rectangle([x, y, x + swatch, y + swatch], fill=rgb)
        x += swatch + 4 * SCALE
        draw.text((x, y - 1 * SCALE), label, fill=_TEXT_RGB, font=font)
        x += _text_size(draw, label, font)[0] + spacing


def _draw_bar_chart(spec: ChartSpec) -> Image.Image:
    width, height = CHART_WIDTH * SCALE, CHART_HEIGHT * SCALE
    ml, mr, mt, mb = 70 * SCALE, 15 * SCALE, 40 * SCALE, 55 * SCALE
    cw = width - ml - mr
    ch = height - mt - mb

    img = Image.new("RGB", (width, height), _WHITE)
    draw = ImageDraw.Draw(img)
    _draw_title(draw, spec.title, width)

    n_labels = len(spec.labels)
    if spec.stacked:
        peak = max((sum(s.values[i] for s in spec.series) for i in range(n_labels)), default=0.0)
    else:
        peak = max((v for s in spec.series for v in s.values), default=0.0)
    is_count = spec.value_format == "count"
    step, axis_max = nice_axis(peak, integer_ticks=is_count)

    def sy(v: float) -> float:
        return mt + ch - (v / axis_max) * ch

    # Grid lines + Y-axis labels
    font_tick = _load_chart_font(9 * SCALE)
    n_ticks = int(round(axis_max / step))
    for i in range(n_ticks + 1):
        val = i * step
        gy = int(sy(val))
        draw.line([(ml, gy), (width - mr, gy)], fill=_GRID_RGB, width=1)
        label = f"{int(val):,}" if is_count else format_axis_currency(val)
        tw, th = _text_size(draw, label, font_tick)
        draw.text((ml - 6 * SCALE - tw, gy - th // 2 - 2), label, fill=_TEXT_RGB, font=font_tick)
    draw.line([(ml, mt), (ml, mt + ch)], fill=_AXIS_RGB, width=SCALE)
    draw.line([(ml, mt + ch), (width - mr, mt + ch)], fill=_AXIS_RGB, width=SCALE)

    if n_labels:
        slot = cw / n_labels
        cluster = slot * 0.75
        font_label = _load_chart_font(9 * SCALE)
        for li, label in enumerate(spec.labels):
            slot_x = ml + li * slot
            if spec.stacked:
                bar_w = cluster * 0.6
                x0 = slot_x + (slot - bar_w) / 2
                base = 0.0
                for s in spec.series:
                    v = s.values[li]
                    if v > 0:
                        draw.rectangle(
                            [int(x0), int(sy(base + v)), int(x0 + bar_w), int(sy(base))],
                            fill=hex_to_rgb(s.color),
                        )
                    base += v
            else:
                bar_w = cluster / len(spec.series)
                x0 = slot_x + (slot - cluster) / 2
                for si, s in enumerate(spec.series):
                    v = s.values[li]
                    bx = x0 + si * bar_w
                    if v > 0:
                        draw.rectangle(
                            [int(bx), int(sy(v)), max(int(bx), int(bx + bar_w) - SCALE), int(sy(0))],
                            fill=hex_to_rgb(s.color),
                        )
            text = _fit_label(draw, sanitize_for_pdf(label), font_label, slot - 4 * SCALE)
            tw, _ = _text_size(draw, text, font_label)
            draw.text((int(slot_x + (slot - tw) / 2), mt + ch + 6 * SCALE), text,
                      fill=_TEXT_RGB, font=font_label)

    legend = [(s.name, hex_to_rgb(s.color)) for s in spec.series]
    _draw_legend_row(draw, legend, width, height - 22 * SCALE)
    return img


def _wedge_colors(spec: ChartSpec) -> List[tuple]:
    palette = list(spec.colors) or [s.color for s in spec.series]
    return [hex_to_rgb(palette[i % len(palette)]) for i in range(len(spec.labels))]


def _draw_pie_chart(spec: ChartSpec, doughnut: bool) -> Image.Image:
    width, height = CHART_WIDTH * SCALE, CHART_HEIGHT * SCALE
    legend_w = 150 * SCALE
    mt, mb = 40 * SCALE, 12 * SCALE

    values = spec.series[0].values
    total = sum(values)
    if total <= 0:
        raise ChartRenderFailure(f"Chart '{spec.title}' has no positive values")

    img = Image.new("RGB", (width, height), _WHITE)
    draw = ImageDraw.Draw(img)
    _draw_title(draw, spec.title, width)

    plot_w = width - legend_w
    radius = min(plot_w - 20 * SCALE, height - mt - mb) // 2
    cx = plot_w // 2
    cy = mt + (height - mt - mb) // 2
    bbox = [cx - radius, cy - radius, cx + radius, cy + radius]
    colors = _wedge_colors(spec)

    # Start at 12 o'clock and go clockwise
    start = -90.0
    for value, rgb in zip(values, colors):
        if value <= 0:
            continue
        sweep = value / total * 360.0
        draw.pieslice(bbox, start, start + sweep, fill=rgb, outline=_WHITE, width=2 * SCALE)
        start += sweep

    if doughnut:
        inner = int(radius * DOUGHNUT_CUTOUT)
        draw.ellipse([cx - inner, cy - inner, cx + inner, cy + inner], fill=_WHITE)

    # Right-side legend
    font = _load_chart_font(10 * SCALE)
    swatch = 10 * SCALE
    row_h = 16 * SCALE
    legend_x = plot_w + 4 * SCALE
    legend_y = max(mt, cy - (len(spec.labels) * row_h) // 2)
    for label, rgb in zip(spec.labels, colors):
        draw.rectangle([legend_x, legend_y, legend_x + swatch, legend_y + swatch], fill=rgb)
        text = _fit_label(draw, sanitize_for_pdf(label), font, legend_w - swatch - 12 * SCALE)
        draw.text((legend_x + swatch + 5 * SCALE, legend_y - 1 * SCALE), text,
                  fill=_TEXT_RGB, font=font)
        legend_y += row_h
    return img


def render_chart(spec: ChartSpec) -> bytes:
    """
    Rasterize a chart spec into PNG bytes (500x300 logical units).

    Raises:
        ChartRenderFailure: invalid series data or a drawing fault. Callers
            treat this as "chart omitted", never as a document failure.
    """
    try:
        spec.validate()
        if spec.kind == ChartKind.BAR:
            img = _draw_bar_chart(spec)
        elif spec.kind in (ChartKind.PIE, ChartKind.DOUGHNUT):
            img = _draw_pie_chart(spec, doughnut=spec.kind == ChartKind.DOUGHNUT)
        else:
            raise ChartRenderFailure(f"Unsupported chart kind: {spec.kind}")
        buf = io.BytesIO()
        img.save(buf, format="PNG", optimize=True)
        return buf.getvalue()
    except ChartRenderFailure:
        raise
    except Exception as e:
        raise ChartRenderFailure(f"Chart '{spec.title}' could not be rendered: {e}") from e


def try_render_chart(spec: ChartSpec) -> Optional[bytes]:
    """render_chart() that logs and returns None instead of raising."""
    try:
        return render_chart(spec)
    except ChartRenderFailure as e:
        logger.warning("Chart omitted: %s", e.message)
        return None
