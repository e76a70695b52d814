"""
Tests for backend/strata_reports/services/report_generator_service/table_renderer.py

Covers spec validation, band geometry and colours, ellipsis clipping,
row-level page breaks, and optional header repetition.
"""

import pytest

from strata_reports.exceptions import InvalidSpecError
from strata_reports.services.report_generator_service.layout import RectCommand, TextCommand
from strata_reports.services.report_generator_service.models import Align, table_spec
from strata_reports.services.report_generator_service.table_renderer import (
    GAP_AFTER,
    HEADER_HEIGHT,
    ROW_HEIGHT,
    SUMMARY_HEIGHT,
    TITLE_ADVANCE,
    render_table,
)


def _fund_table(rows=None, **options):
    rows = rows if rows is not None else [["Reserve", "reserve", "$125,000.00"]]
    return table_spec(
        ["Fund Name", "Type", "Balance"],
        rows,
        [250, 150, 112],
        alignments=["left", "left", "right"],
        **options,
    )


def _rects(page):
    return [c for c in page.commands if isinstance(c, RectCommand)]


def _texts(page):
    return [c for c in page.commands if isinstance(c, TextCommand)]


class TestTableValidation:
    """Structural violations raise InvalidSpecError."""

    def test_width_count_mismatch(self, ctx):
        spec = table_spec(["A", "B"], [], [100])
        with pytest.raises(InvalidSpecError):
            render_table(ctx, spec)

    def test_row_length_mismatch(self, ctx):
        spec = table_spec(["A", "B"], [["only one"]], [100, 100])
        with pytest.raises(InvalidSpecError):
            render_table(ctx, spec)

    def test_alignment_count_mismatch(self, ctx):
        spec = table_spec(["A", "B"], [], [100, 100], alignments=["left"])
        with pytest.raises(InvalidSpecError):
            render_table(ctx, spec)

    def test_summary_length_mismatch(self, ctx):
        spec = table_spec(["A", "B"], [], [100, 100], summary_row=["x"])
        with pytest.raises(InvalidSpecError):
            render_table(ctx, spec)

    def test_wider_than_content_width(self, ctx):
        spec = table_spec(["A", "B"], [], [300, 300])
        with pytest.raises(InvalidSpecError):
            render_table(ctx, spec)

    def test_exactly_content_width_is_allowed(self, ctx):
        spec = table_spec(["A", "B"], [["1", "2"]], [256, 256])
        render_table(ctx, spec)

    def test_invalid_alignment_value(self):
        with pytest.raises(ValueError):
            table_spec(["A"], [], [100], alignments=["justify"])


class TestTableGeometry:
    """Band heights, fills, and cursor movement."""

    def test_cursor_moves_by_bands_and_gap(self, ctx):
        start = ctx.pages.cursor.current_y
        render_table(ctx, _fund_table(title="Fund Balances",
                                      summary_row=["Total Fund Balance", "", "$125,000.00"]))
        expected = TITLE_ADVANCE + HEADER_HEIGHT + ROW_HEIGHT + SUMMARY_HEIGHT + GAP_AFTER
        assert ctx.pages.cursor.current_y == pytest.approx(start + expected)

    def test_band_colours(self, ctx, theme):
        render_table(ctx, _fund_table(
            rows=[["A", "x", "1"], ["B", "y", "2"]],
            summary_row=["Total", "", "3"],
        ))
        rects = _rects(ctx.pages.current_page)
        assert [r.fill for r in rects] == [
            theme.table_header, theme.white, theme.table_alt, theme.table_summary,
        ]
        assert [r.h for r in rects] == [HEADER_HEIGHT, ROW_HEIGHT, ROW_HEIGHT, SUMMARY_HEIGHT]
        assert rects[-1].stroke == theme.accent
        assert all(r.w == 512 for r in rects)

    def test_header_text_is_white_bold(self, ctx, theme):
        render_table(ctx, _fund_table())
        header = [t for t in _texts(ctx.pages.current_page) if t.text == "Fund Name"][0]
        assert header.style == "B"
        assert header.color == theme.white

    def test_cells_positioned_by_cumulative_width(self, ctx):
        render_table(ctx, _fund_table())
        cells = {t.text: t for t in _texts(ctx.pages.current_page)}
        assert cells["Reserve"].x == 50 + 5
        assert cells["reserve"].x == 50 + 250 + 5
        assert cells["$125,000.00"].x == 50 + 400 + 5
        assert cells["$125,000.00"].align == Align.RIGHT
        assert cells["$125,000.00"].w == 112 - 10

    def test_long_cell_is_ellipsised(self, ctx):
        long_name = "Contingency reserve for the roof replacement project of 2031 and beyond"
        render_table(ctx, _fund_table(rows=[[long_name, "reserve", "$1.00"]]))
        cell = [t for t in _texts(ctx.pages.current_page) if t.text.startswith("Contingency")][0]
        assert cell.text.endswith("...")
        assert ctx.measure.width(cell.text, cell.size) <= 250 - 10

    def test_empty_table_draws_header_only(self, ctx):
        render_table(ctx, _fund_table(rows=[]))
        assert len(_rects(ctx.pages.current_page)) == 1

    def test_title_is_bold(self, ctx):
        render_table(ctx, _fund_table(title="Fund Balances"))
        title = _texts(ctx.pages.current_page)[0]
        assert title.text == "Fund Balances"
        assert title.style == "B"
        assert title.size == 14


class TestTablePagination:
    """Long tables flow across pages one row at a time."""

    def _rows(self, n):
        return [[f"Fund {i}", "operating", "$1.00"] for i in range(n)]

    def test_rows_never_cross_footer_reserve(self, ctx):
        render_table(ctx, _fund_table(rows=self._rows(100)))
        bottom = ctx.pages.cursor.bottom
        for page in ctx.pages.pages:
            for rect in _rects(page):
                assert rect.y + rect.h <= bottom

    def test_break_happens_exactly_when_row_would_overflow(self, ctx):
        render_table(ctx, _fund_table(rows=self._rows(60)))
        bottom = ctx.pages.cursor.bottom
        page0_rows = [r for r in _rects(ctx.pages.pages[0]) if r.h == ROW_HEIGHT]
        last = page0_rows[-1]
        # The next row would not have fit below the last one on page 0
        assert last.y + ROW_HEIGHT + ROW_HEIGHT > bottom
        first_next = [r for r in _rects(ctx.pages.pages[1]) if r.h == ROW_HEIGHT][0]
        assert first_next.y == ctx.margin

    def test_returns_pages_touched(self, ctx):
        assert render_table(ctx, _fund_table(rows=self._rows(100))) == len(ctx.pages.pages)

    def test_header_not_repeated_by_default(self, ctx, theme):
        render_table(ctx, _fund_table(rows=self._rows(60)))
        fills = [r.fill for r in _rects(ctx.pages.pages[1])]
        assert theme.table_header not in fills

    def test_header_repeated_when_requested(self, ctx, theme):
        render_table(ctx, _fund_table(rows=self._rows(60), repeat_header=True))
        page1 = _rects(ctx.pages.pages[1])
        assert page1[0].fill == theme.table_header
        assert page1[0].y == ctx.margin
        assert page1[1].y == ctx.margin + HEADER_HEIGHT

    def test_title_kept_with_header(self, ctx):
        ctx.pages.cursor.current_y = ctx.pages.cursor.bottom - 30
        render_table(ctx, _fund_table(title="Fund Balances"))
        assert ctx.pages.pages[0].commands == []
        assert _texts(ctx.pages.pages[1])[0].text == "Fund Balances"
