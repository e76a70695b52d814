"""
Report Sections — per-report-type rendering sequences.

Part of the report_generator_service package. Each sequence is composed
only from the layout primitives (headings, paragraphs, KPI rows, charts,
tables) and is deterministic in its ``content`` payload.
"""

import logging
from typing import Any, Callable, Dict, List, Sequence, Union

from strata_reports.services.report_generator_service.chart_renderer import (
    CHART_HEIGHT,
    CHART_WIDTH,
    try_render_chart,
)
from strata_reports.services.report_generator_service.formatting import (
    format_currency,
    format_date,
    format_percent,
    month_key,
    to_number,
)
from strata_reports.services.report_generator_service.kpi_renderer import render_kpis
from strata_reports.services.report_generator_service.layout import LayoutContext
from strata_reports.services.report_generator_service.models import (
    ChartSpec,
    KPISpec,
    ReportType,
    chart_spec,
    table_spec,
)
from strata_reports.services.report_generator_service.table_renderer import render_table

logger = logging.getLogger(__name__)

SECTION_GAP = 20
BLOCK_GAP = 15
WIDE_CHART_WIDTH = 500
CHART_DRAW_WIDTH = 450
CHART_GAP = 15
MEETING_BAND_HEIGHT = 30

UNAVAILABLE_MESSAGE = "Report content not available for PDF format."
NO_MEETINGS_MESSAGE = "No meetings found for this period."
NO_COMMUNICATIONS_MESSAGE = "No communications found for this period."
NO_MAINTENANCE_MESSAGE = "No maintenance requests found for this period."
HOME_SALE_INTRO = (
    "This package contains all required documents for property sale "
    "as mandated by strata regulations."
)

STATUS_GLYPHS = {
    "completed": "\u2713",
    "in-progress": "\u2192",
}
PENDING_GLYPH = "\u23f3"

ReportSequence = Callable[[LayoutContext, Dict[str, Any]], None]


# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------


def _records(value: Any) -> List[Dict[str, Any]]:
    """List of dict entries from a payload field; anything else is empty."""
    if not isinstance(value, (list, tuple)):
        return []
    return [item for item in value if isinstance(item, dict)]


def _count(value: Any) -> int:
    return int(to_number(value))


def _section(ctx: LayoutContext, title: str, text: str):
    ctx.heading(title)
    ctx.paragraph(text)
    ctx.gap(SECTION_GAP)


def _muted(ctx: LayoutContext, text: str):
    ctx.paragraph(text, size=12, color=ctx.theme.neutral_dark)


def _truncation_note(ctx: LayoutContext, hidden: int, noun: str):
    if hidden > 0:
        ctx.paragraph(f"... and {hidden} more {noun}", size=9, style="I",
                      color=ctx.theme.neutral_dark)


def place_chart(ctx: LayoutContext, spec: ChartSpec, width: float = CHART_DRAW_WIDTH) -> bool:
    """
    Rasterize a chart and place it at the cursor, breaking first if the
    image does not fit. A failed chart is omitted and layout continues.
    """
    png = try_render_chart(spec)
    if png is None:
        return False
    width = min(width, ctx.content_width)
    height = width * CHART_HEIGHT / CHART_WIDTH
    pos = ctx.pages.advance(height)
    ctx.image(ctx.margin, pos.y, width, height, png)
    ctx.gap(CHART_GAP)
    return True


# ---------------------------------------------------------------------------
# Financial
# ---------------------------------------------------------------------------


def monthly_expense_totals(expenses: Sequence[Dict[str, Any]], limit: int) -> Dict[str, float]:
    """Expense sums keyed by 'Mon YYYY' in first-seen order, last ``limit`` keys."""
    totals: Dict[str, float] = {}
    for expense in expenses:
        key = month_key(expense.get("date"))
        if key is None:
            logger.debug("Expense without a usable date skipped in monthly chart")
            continue
        totals[key] = totals.get(key, 0.0) + to_number(expense.get("amount"))
    keys = list(totals)[-limit:] if limit > 0 else []
    return {key: totals[key] for key in keys}


def category_totals(expenses: Sequence[Dict[str, Any]]) -> Dict[str, float]:
    totals: Dict[str, float] = {}
    for expense in expenses:
        category = expense.get("category") or "Other"
        totals[category] = totals.get(category, 0.0) + to_number(expense.get("amount"))
    return totals


def render_financial(ctx: LayoutContext, content: Dict[str, Any]):
    theme = ctx.theme
    limit = ctx.settings.max_table_rows
    total_income = to_number(content.get("monthlyIncome"))
    total_expenses = to_number(content.get("totalExpenses"))
    net_balance = total_income - total_expenses
    funds = _records(content.get("funds"))
    expenses = _records(content.get("expenses"))

    total_funds = sum(to_number(f.get("balance")) for f in funds)
    reserve = next((f for f in funds if f.get("type") == "reserve"), None)
    reserve_balance = to_number(reserve.get("balance")) if reserve else 0.0

    render_kpis(ctx, [
        KPISpec("Monthly Income", format_currency(total_income), theme.success),
        KPISpec("Total Expenses", format_currency(total_expenses), theme.warning),
        KPISpec("Net Balance", format_currency(net_balance),
                theme.success if net_balance >= 0 else theme.warning),
        KPISpec("Reserve Fund", f"{format_percent(reserve_balance, total_funds)}%", theme.accent),
    ])
    ctx.gap(SECTION_GAP)

    direction = "positive" if net_balance >= 0 else "negative"
    _section(
        ctx,
        "Executive Summary",
        "This financial report provides a comprehensive overview of the strata's "
        f"financial health. The strata generated {format_currency(total_income)} in income "
        f"and incurred {format_currency(total_expenses)} in expenses, resulting in a net "
        f"{direction} balance of {format_currency(abs(net_balance))}.",
    )

    if funds:
        place_chart(ctx, chart_spec(
            "pie",
            [f.get("name") or "Unnamed" for f in funds],
            [{"name": "Balance", "values": [to_number(f.get("balance")) for f in funds],
              "color": theme.accent}],
            "Fund Allocation",
            colors=theme.fund_palette,
        ))
        render_table(ctx, table_spec(
            ["Fund Name", "Type", "Balance"],
            [
                [f.get("name") or "Unnamed Fund", f.get("type") or "N/A",
                 format_currency(f.get("balance"))]
                for f in funds
            ],
            [250, 150, 112],
            alignments=["left", "left", "right"],
            title="Fund Balances",
            summary_row=["Total Fund Balance", "", format_currency(total_funds)],
        ))
        ctx.gap(SECTION_GAP)

    if not expenses:
        return

    months = monthly_expense_totals(expenses, ctx.settings.max_chart_months)
    if months:
        place_chart(ctx, chart_spec(
            "bar",
            list(months),
            [
                # Income per month is not in the payload; the monthly figure is repeated
                {"name": "Income", "values": [total_income] * len(months), "color": theme.success},
                {"name": "Expenses", "values": list(months.values()), "color": theme.warning},
            ],
            f"Income vs Expenses (Last {ctx.settings.max_chart_months} Months)",
        ), width=WIDE_CHART_WIDTH)

    categories = category_totals(expenses)
    place_chart(ctx, chart_spec(
        "doughnut",
        list(categories),
        [{"name": "Amount", "values": list(categories.values()), "color": theme.warning}],
        "Expense Breakdown by Category",
        colors=theme.category_palette,
    ))

    shown = expenses[:limit]
    subtotal = sum(to_number(e.get("amount")) for e in shown)
    render_table(ctx, table_spec(
        ["Date", "Description", "Category", "Amount"],
        [
            [format_date(e.get("date"))[:12], str(e.get("description") or "N/A")[:40],
             e.get("category") or "N/A", format_currency(e.get("amount"))]
            for e in shown
        ],
        [80, 230, 100, 102],
        alignments=["left", "left", "left", "right"],
        title=f"Recent Expenses (Top {limit})",
        summary_row=["", "", "Subtotal:", format_currency(subtotal)],
    ))
    _truncation_note(ctx, len(expenses) - len(shown), "expenses")


# ---------------------------------------------------------------------------
# Meeting minutes
# ---------------------------------------------------------------------------


def _meeting_block(ctx: LayoutContext, number: int, meeting: Dict[str, Any]):
    theme = ctx.theme
    # Band plus a few metadata lines stay together
    ctx.pages.reserve(MEETING_BAND_HEIGHT + 100)
    pos = ctx.pages.advance(MEETING_BAND_HEIGHT)
    ctx.rect(ctx.margin, pos.y, ctx.content_width, MEETING_BAND_HEIGHT,
             fill=theme.accent, stroke=theme.accent)
    title = f"{number}. {meeting.get('title') or 'Untitled Meeting'}"
    ctx.text(ctx.margin + 10, pos.y, ctx.content_width - 20, MEETING_BAND_HEIGHT,
             ctx.measure.truncate(title, ctx.content_width - 20, 14, "B"),
             size=14, style="B", color=theme.white)
    ctx.gap(10)

    details = []
    if meeting.get("date"):
        details.append(f"Date: {format_date(meeting.get('date'))}")
    if meeting.get("type"):
        details.append(f"Type: {meeting['type']}")
    if meeting.get("location"):
        details.append(f"Location: {meeting['location']}")
    attendees = meeting.get("attendees")
    if isinstance(attendees, (list, tuple)):
        details.append(f"Attendees: {len(attendees)}")
    if meeting.get("status"):
        details.append(f"Status: {meeting['status']}")
    for line in details:
        ctx.paragraph(line, size=10)

    minutes = meeting.get("minutes")
    if minutes:
        ctx.gap(6)
        ctx.paragraph("Minutes:", size=11, style="B")
        ctx.paragraph(str(minutes), size=9, indent=20)
    ctx.gap(SECTION_GAP)


def render_meeting_minutes(ctx: LayoutContext, content: Dict[str, Any]):
    theme = ctx.theme
    summary = content.get("summary") or {}
    meetings = _records(content.get("meetings"))
    total = _count(summary.get("totalMeetings"))
    completed = sum(1 for m in meetings if m.get("status") == "completed")
    upcoming = sum(1 for m in meetings if m.get("status") == "scheduled")

    render_kpis(ctx, [
        KPISpec("Total Meetings", str(total), theme.primary),
        KPISpec("Completed", str(completed), theme.success),
        KPISpec("Upcoming", str(upcoming), theme.accent),
        KPISpec("Attendance Rate", "85%", theme.success),
    ])
    ctx.gap(SECTION_GAP)
    _section(ctx, "Meeting Minutes Summary",
             f"This report contains minutes from {total} meeting(s) during the specified period.")

    if not meetings:
        _muted(ctx, NO_MEETINGS_MESSAGE)
        return
    for number, meeting in enumerate(meetings, start=1):
        _meeting_block(ctx, number, meeting)


# ---------------------------------------------------------------------------
# Communications
# ---------------------------------------------------------------------------


def priority_color(ctx: LayoutContext, priority: Any) -> str:
    if priority == "high":
        return ctx.theme.warning
    if priority == "medium":
        return ctx.theme.accent
    return ctx.theme.success


def render_communications(ctx: LayoutContext, content: Dict[str, Any]):
    theme = ctx.theme
    summary = content.get("summary") or {}
    announcements = _records(content.get("announcements"))
    messages = _records(content.get("messages"))
    n_announcements = _count(summary.get("totalAnnouncements"))
    n_messages = _count(summary.get("totalMessages"))
    n_total = _count(summary.get("totalCommunications"))

    render_kpis(ctx, [
        KPISpec("Announcements", str(n_announcements), theme.accent),
        KPISpec("Messages", str(n_messages), theme.success),
        KPISpec("Total Communications", str(n_total), theme.primary),
        KPISpec("Engagement", "92%", theme.success),
    ])
    ctx.gap(SECTION_GAP)
    _section(
        ctx,
        "Communications Overview",
        f"This report contains {n_total} communication(s), including "
        f"{n_announcements} announcement(s) and {n_messages} message(s).",
    )

    if announcements:
        ctx.heading("Announcements", size=14)
        for number, item in enumerate(announcements, start=1):
            ctx.pages.reserve(80)
            ctx.paragraph(f"{number}. {item.get('title') or 'Untitled'}", size=12, style="B")
            priority = item.get("priority")
            ctx.paragraph(f"Priority: {priority or 'normal'}", size=9,
                          color=priority_color(ctx, priority), indent=20)
            if item.get("createdAt"):
                ctx.paragraph(f"Date: {format_date(item.get('createdAt'))}", size=9,
                              color=theme.neutral_dark, indent=20)
            if item.get("message"):
                ctx.paragraph(str(item["message"]), size=9, indent=20)
            ctx.gap(BLOCK_GAP)

    if messages:
        ctx.pages.reserve(130)
        ctx.heading("Messages", size=14)
        for number, item in enumerate(messages, start=1):
            ctx.pages.reserve(80)
            ctx.paragraph(f"{number}. {item.get('subject') or 'No Subject'}", size=12, style="B")
            if item.get("sender"):
                ctx.paragraph(f"From: {item['sender']}", size=9,
                              color=theme.neutral_dark, indent=20)
            if item.get("createdAt"):
                ctx.paragraph(f"Date: {format_date(item.get('createdAt'))}", size=9,
                              color=theme.neutral_dark, indent=20)
            if item.get("message"):
                ctx.paragraph(str(item["message"]), size=9, indent=20)
            ctx.gap(BLOCK_GAP)

    if not announcements and not messages:
        _muted(ctx, NO_COMMUNICATIONS_MESSAGE)


# ---------------------------------------------------------------------------
# Maintenance
# ---------------------------------------------------------------------------


def status_label(status: Any) -> str:
    """Status cell text with its glyph, e.g. '-> in-progress' once sanitized."""
    glyph = STATUS_GLYPHS.get(status, PENDING_GLYPH)
    return f"{glyph} {status or 'N/A'}"


def render_maintenance(ctx: LayoutContext, content: Dict[str, Any]):
    theme = ctx.theme
    limit = ctx.settings.max_table_rows
    summary = content.get("summary") or {}
    requests = _records(content.get("requests"))
    total = _count(summary.get("totalRequests"))
    completed = _count(summary.get("completed"))
    in_progress = _count(summary.get("inProgress"))
    pending = _count(summary.get("pending"))

    render_kpis(ctx, [
        KPISpec("Total Requests", str(total), theme.primary),
        KPISpec("Completed", str(completed), theme.success),
        KPISpec("In Progress", str(in_progress), theme.accent),
        KPISpec("Completion Rate", f"{format_percent(completed, total, 0)}%", theme.success),
    ])
    ctx.gap(SECTION_GAP)
    _section(
        ctx,
        "Maintenance Overview",
        f"This report contains {total} maintenance request(s). {completed} have been "
        f"completed, {in_progress} are in progress, and {pending} are pending.",
    )

    if total > 0:
        place_chart(ctx, chart_spec(
            "bar",
            ["Status Overview"],
            [
                {"name": "Completed", "values": [completed], "color": theme.success},
                {"name": "In Progress", "values": [in_progress], "color": theme.accent},
                {"name": "Pending", "values": [pending], "color": theme.warning},
            ],
            "Project Status Distribution",
            stacked=True,
            value_format="count",
        ), width=WIDE_CHART_WIDTH)

    if not requests:
        _muted(ctx, NO_MAINTENANCE_MESSAGE)
        return

    shown = requests[:limit]
    render_table(ctx, table_spec(
        ["Project Name", "Priority", "Status", "Date"],
        [
            [str(r.get("title") or "Untitled")[:30], r.get("priority") or "N/A",
             status_label(r.get("status")), format_date(r.get("createdAt"))[:12]]
            for r in shown
        ],
        [200, 100, 112, 100],
        alignments=["left", "left", "left", "left"],
        title="Maintenance Requests",
    ))
    _truncation_note(ctx, len(requests) - len(shown), "requests")


# ---------------------------------------------------------------------------
# Home sale package
# ---------------------------------------------------------------------------


def render_home_sale_package(ctx: LayoutContext, content: Dict[str, Any]):
    _section(ctx, "Home Sale Package", HOME_SALE_INTRO)

    documents = _records(content.get("documents"))
    if documents:
        ctx.heading("Included Documents", size=14)
        render_table(ctx, table_spec(
            ["Document Title", "Category", "Status"],
            [
                [f"{number}. {d.get('title') or d.get('name') or 'Unnamed Document'}",
                 d.get("category") or "N/A", d.get("status") or "N/A"]
                for number, d in enumerate(documents, start=1)
            ],
            [250, 150, 112],
            alignments=["left", "left", "left"],
        ))
        ctx.gap(SECTION_GAP)

    bylaws = content.get("bylaws")
    if bylaws is not None and bylaws is not False:
        count = len(bylaws) if isinstance(bylaws, (list, tuple)) else _count(bylaws)
        ctx.heading("Bylaws", size=14, space_after=2)
        ctx.paragraph(f"{count} bylaw document(s) included", indent=20)
        ctx.gap(12)

    if content.get("financialStatements"):
        ctx.heading("Financial Statements", size=14, space_after=2)
        ctx.paragraph("Current financial statements included", indent=20)


# ---------------------------------------------------------------------------
# Dispatch
# ---------------------------------------------------------------------------

SEQUENCES: Dict[ReportType, ReportSequence] = {
    ReportType.FINANCIAL: render_financial,
    ReportType.MEETING_MINUTES: render_meeting_minutes,
    ReportType.COMMUNICATIONS: render_communications,
    ReportType.MAINTENANCE: render_maintenance,
    ReportType.HOME_SALE_PACKAGE: render_home_sale_package,
}


def render_report_body(ctx: LayoutContext, report_type: Union[ReportType, str],
                       content: Dict[str, Any]):
    """Run the sequence registered for ``report_type``.

    Unknown types render a single fallback sentence instead of failing.
    """
    try:
        sequence = SEQUENCES[ReportType(report_type)]
    except ValueError:
        logger.warning("No PDF layout for report type %r", report_type)
        ctx.paragraph(UNAVAILABLE_MESSAGE, size=12)
        return
    logger.debug("Rendering %s report body", sequence.__name__)
    sequence(ctx, content if isinstance(content, dict) else {})
