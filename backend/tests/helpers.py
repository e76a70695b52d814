"""
Helpers shared by the report engine tests.
"""

import io
from datetime import datetime, timezone

from pypdf import PdfReader

from strata_reports.services.report_generator_service.layout import TextCommand
from strata_reports.services.report_generator_service.models import ReportDocument

GENERATED_AT = datetime(2024, 3, 15, 12, 0, tzinfo=timezone.utc)


def make_document(report_type, content, **overrides):
    fields = {
        "title": "Test Report",
        "report_type": report_type,
        "content": content,
        "generated_at": GENERATED_AT,
    }
    fields.update(overrides)
    return ReportDocument(**fields)


def pdf_pages_text(data: bytes):
    """Extracted text of each page of a PDF byte string."""
    reader = PdfReader(io.BytesIO(data))
    return [page.extract_text() or "" for page in reader.pages]


def page_texts(ctx):
    """All TextCommand strings per page of a layout context."""
    return [
        [cmd.text for cmd in page.commands if isinstance(cmd, TextCommand)]
        for page in ctx.pages.pages
    ]


def all_texts(ctx):
    return [text for texts in page_texts(ctx) for text in texts]
