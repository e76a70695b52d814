"""
Reports API Router

Endpoints for rendering report PDFs directly, queueing background
generation, polling report status, and downloading finished PDFs.
"""

import asyncio
import logging
from datetime import datetime
from typing import Any, Dict, Optional

from fastapi import APIRouter, BackgroundTasks
from fastapi.responses import Response
from pydantic import BaseModel, ConfigDict, Field

from strata_reports.exceptions import NotFoundError
from strata_reports.services.report_generator_service import build_filename, generate_pdf
from strata_reports.services.report_generator_service.models import ReportDocument
from strata_reports.services.report_task_service import (
    ReportStatus,
    generate_report_in_background,
    report_store,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/reports", tags=["reports"])


# ----- Pydantic Schemas -----

class DateRangeBody(BaseModel):
    start: str = Field(..., min_length=1)
    end: str = ""


class ReportRequest(BaseModel):
    """Report payload as handed over by the aggregation layer."""

    model_config = ConfigDict(populate_by_name=True)

    title: str = Field("Report", min_length=1, max_length=200)
    report_type: str = Field(..., alias="reportType", min_length=1)
    content: Dict[str, Any] = Field(default_factory=dict)
    generated_at: Optional[datetime] = Field(None, alias="generatedAt")
    date_range: Optional[DateRangeBody] = Field(None, alias="dateRange")
    org_name: Optional[str] = Field(None, alias="orgName", max_length=200)
    org_unit_count: Optional[int] = Field(None, alias="orgUnitCount", ge=0)
    org_address: Optional[str] = Field(None, alias="orgAddress", max_length=500)

    def to_document(self) -> ReportDocument:
        return ReportDocument.from_dict(self.model_dump(by_alias=True))


def _pdf_response(content: bytes, title: str) -> Response:
    return Response(
        content=content,
        media_type="application/pdf",
        headers={
            "Content-Disposition": f'attachment; filename="{build_filename(title)}"',
            "Content-Length": str(len(content)),
        },
    )


# ----- Endpoints -----

@router.post("/render")
async def render_report(body: ReportRequest):
    """Render a report synchronously and return the PDF."""
    document = body.to_document()
    pdf = await asyncio.to_thread(generate_pdf, document)
    return _pdf_response(pdf, document.title)


@router.post("", status_code=202)
async def create_report(body: ReportRequest, background_tasks: BackgroundTasks) -> dict:
    """Create a report record and generate its PDF in the background."""
    record = report_store.create(body.to_document())
    background_tasks.add_task(generate_report_in_background, record.id)
    logger.info("Queued report %s (%s)", record.id, body.report_type)
    return record.to_dict()


@router.get("/{report_id}")
async def get_report(report_id: str) -> dict:
    """Get a report record's generation status."""
    return report_store.get(report_id).to_dict()


@router.get("/{report_id}/download")
async def download_report_pdf(report_id: str):
    """Download a completed report as PDF."""
    record = report_store.get(report_id)
    if record.status != ReportStatus.COMPLETED or record.pdf_content is None:
        raise NotFoundError("PDF not available for this report")
    return _pdf_response(record.pdf_content, record.document.title)
