"""
Report Generator Service

Split into focused modules:
- formatting: date/currency formatting and PDF-safe text
- models: report document and renderer specs
- layout: page list, cursor, and draw commands
- chart_renderer: bar/pie/doughnut charts with Pillow
- table_renderer, kpi_renderer, header_footer: layout primitives
- report_sections: the five report-type sequences
- pdf_generator: document assembly and fpdf2 output
"""

from strata_reports.services.report_generator_service.pdf_generator import (  # noqa: F401
    build_filename,
    generate_pdf,
)
from strata_reports.services.report_generator_service.models import (  # noqa: F401
    ChartSpec,
    DateRange,
    KPISpec,
    ReportDocument,
    ReportType,
    TableSpec,
    chart_spec,
    table_spec,
)
from strata_reports.services.report_generator_service.chart_renderer import (  # noqa: F401
    render_chart,
)
