"""
Report engine value types — document descriptor and renderer specs.

Part of the report_generator_service package. Everything here is frozen:
a document and its specs are built once by the aggregation layer, consumed
once by the engine, and discarded.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional, Sequence, Tuple, Union

from strata_reports.exceptions import InvalidSpecError

ALL_TIME = "All time"


class ReportType(str, Enum):
    """Report kinds the dispatcher knows how to lay out"""

    FINANCIAL = "financial"
    MEETING_MINUTES = "meeting-minutes"
    COMMUNICATIONS = "communications"
    MAINTENANCE = "maintenance"
    HOME_SALE_PACKAGE = "home-sale-package"


class ChartKind(str, Enum):
    BAR = "bar"
    PIE = "pie"
    DOUGHNUT = "doughnut"


class Align(str, Enum):
    LEFT = "left"
    RIGHT = "right"
    CENTER = "center"


@dataclass(frozen=True)
class DateRange:
    start: str
    end: str

    @property
    def is_all_time(self) -> bool:
        return not self.start or self.start == ALL_TIME


@dataclass(frozen=True)
class ReportDocument:
    """One report render request."""
    title: str
    report_type: Union[ReportType, str]
    content: Dict[str, Any]
    generated_at: Union[datetime, str]
    date_range: Optional[DateRange] = None
    org_name: Optional[str] = None
    org_unit_count: Optional[int] = None
    org_address: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ReportDocument":
        """
        Build a document from the JSON payload handed over by the
        aggregation layer (camelCase keys, strata* aliases accepted).

        Unknown report types are kept as plain strings so the dispatcher
        can render its fallback sentence instead of failing.
        """
        raw_type = data.get("reportType", data.get("report_type", ""))
        try:
            report_type: Union[ReportType, str] = ReportType(raw_type)
        except ValueError:
            report_type = str(raw_type)

        raw_range = data.get("dateRange", data.get("date_range"))
        date_range = None
        if isinstance(raw_range, dict) and raw_range.get("start"):
            date_range = DateRange(
                start=str(raw_range.get("start")),
                end=str(raw_range.get("end") or ""),
            )

        units = data.get("orgUnitCount", data.get("strataUnits", data.get("org_unit_count")))
        return cls(
            title=data.get("title") or "Report",
            report_type=report_type,
            content=data.get("content") or {},
            generated_at=data.get("generatedAt", data.get("generated_at")) or "",
            date_range=date_range,
            org_name=data.get("orgName", data.get("strataName", data.get("org_name"))),
            org_unit_count=int(units) if units else None,
            org_address=data.get("orgAddress", data.get("strataAddress", data.get("org_address"))),
        )


@dataclass(frozen=True)
class ChartSeries:
    name: str
    values: Tuple[float, ...]
    color: str


@dataclass(frozen=True)
class ChartSpec:
    """
    Labeled series set for the chart rasterizer.

    Pie and doughnut charts use the first series only, one wedge per label,
    coloured from ``colors`` (falls back to the series colour cycle).
    """
    kind: ChartKind
    labels: Tuple[str, ...]
    series: Tuple[ChartSeries, ...]
    title: str
    stacked: bool = False
    value_format: str = "currency"  # "currency" or "count" (bar y-axis)
    colors: Tuple[str, ...] = ()

    def validate(self) -> None:
        if not self.series:
            raise InvalidSpecError(f"Chart '{self.title}' has no series")
        for s in self.series:
            if len(s.values) != len(self.labels):
                raise InvalidSpecError(
                    f"Chart '{self.title}': series '{s.name}' has {len(s.values)} "
                    f"values for {len(self.labels)} labels"
                )
            if any(v < 0 for v in s.values):
                raise InvalidSpecError(
                    f"Chart '{self.title}': series '{s.name}' has negative values"
                )


@dataclass(frozen=True)
class TableSpec:
    headers: Tuple[str, ...]
    rows: Tuple[Tuple[str, ...], ...]
    column_widths: Tuple[float, ...]
    alignments: Optional[Tuple[Align, ...]] = None
    title: Optional[str] = None
    summary_row: Optional[Tuple[str, ...]] = None
    repeat_header: bool = False

    def alignment(self, index: int) -> Align:
        if not self.alignments:
            return Align.LEFT
        return Align(self.alignments[index])

    @property
    def width(self) -> float:
        return sum(self.column_widths)

    def validate(self, content_width: float) -> None:
        """Raise InvalidSpecError on any structural mismatch."""
        n = len(self.headers)
        if len(self.column_widths) != n:
            raise InvalidSpecError(
                f"Table has {n} headers but {len(self.column_widths)} column widths"
            )
        if self.alignments is not None and len(self.alignments) != n:
            raise InvalidSpecError(
                f"Table has {n} headers but {len(self.alignments)} alignments"
            )
        for i, row in enumerate(self.rows):
            if len(row) != n:
                raise InvalidSpecError(f"Table row {i} has {len(row)} cells, expected {n}")
        if self.summary_row is not None and len(self.summary_row) != n:
            raise InvalidSpecError(
                f"Table summary row has {len(self.summary_row)} cells, expected {n}"
            )
        if self.width > content_width + 1e-6:
            raise InvalidSpecError(
                f"Table width {self.width:g} exceeds content width {content_width:g}"
            )


@dataclass(frozen=True)
class KPISpec:
    label: str
    value: str
    color: str


def table_spec(
    headers: Sequence[str],
    rows: Sequence[Sequence[Any]],
    column_widths: Sequence[float],
    alignments: Optional[Sequence[str]] = None,
    title: Optional[str] = None,
    summary_row: Optional[Sequence[Any]] = None,
    repeat_header: bool = False,
) -> TableSpec:
    """Build a TableSpec from plain lists (cells are stringified)."""
    return TableSpec(
        headers=tuple(headers),
        rows=tuple(tuple(str(c) for c in row) for row in rows),
        column_widths=tuple(float(w) for w in column_widths),
        alignments=tuple(Align(a) for a in alignments) if alignments else None,
        title=title,
        summary_row=tuple(str(c) for c in summary_row) if summary_row is not None else None,
        repeat_header=repeat_header,
    )


def chart_spec(
    kind: str,
    labels: Sequence[str],
    series: Sequence[Dict[str, Any]],
    title: str,
    **options: Any,
) -> ChartSpec:
    """Build a ChartSpec from ``[{"name", "values", "color"}]`` dicts."""
    return ChartSpec(
        kind=ChartKind(kind),
        labels=tuple(str(label) for label in labels),
        series=tuple(
            ChartSeries(
                name=s["name"],
                values=tuple(float(v) for v in s["values"]),
                color=s.get("color", "#0891b2"),
            )
            for s in series
        ),
        title=title,
        stacked=options.get("stacked", False),
        value_format=options.get("value_format", "currency"),
        colors=tuple(options.get("colors", ())),
    )


@dataclass(frozen=True)
class PagePosition:
    """Where an element is drawn: page index plus top-left y."""
    page_index: int
    y: float

